"""Tests for the advisory LockManager."""

from datetime import timedelta

import pytest
from hvac.exceptions import Forbidden, InternalServerError, InvalidRequest

from libs.vault_storage.client import VaultKVClient
from libs.vault_storage.exceptions import BackendError, LockHeldError, TimestampParseError
from libs.vault_storage.locks import LOCK_SUFFIX, LockManager, LockState, lock_key_for
from libs.vault_storage.paths import PathBuilder

LOCK_DATA_PATH = "/v1/caddycerts/data/certificates/example.com.lock"
LOCK_META_PATH = "/v1/caddycerts/metadata/certificates/example.com.lock"


@pytest.fixture()
def locks(hvac_client, clock):
    client = VaultKVClient("https://vault.example.com:8200", client=hvac_client)
    return LockManager(client, PathBuilder("https://vault.example.com:8200"), clock=clock)


class TestLockKeyFor:
    def test_appends_suffix(self):
        assert lock_key_for("certificates/example.com") == "certificates/example.com.lock"

    def test_does_not_double_suffix(self):
        assert lock_key_for("certificates/example.com.lock") == "certificates/example.com.lock"

    def test_suffix_constant(self):
        assert LOCK_SUFFIX == ".lock"


class TestLockState:
    def test_unlocked_when_absent(self, locks):
        assert locks.state("certificates/example.com.lock") is LockState.UNLOCKED

    def test_fresh_at_threshold(self, locks, clock):
        locks.lock("certificates/example.com")
        clock.advance(60)

        assert locks.state("certificates/example.com.lock") is LockState.FRESH

    def test_stale_after_threshold(self, locks, clock):
        locks.lock("certificates/example.com")
        clock.advance(60.5)

        assert locks.state("certificates/example.com.lock") is LockState.STALE

    def test_empty_payload_counts_as_unlocked(self, locks, fake_vault):
        fake_vault.records["certificates/example.com.lock"] = {
            "data": {},
            "created_time": "2025-01-15T12:00:00Z",
            "version": 1,
        }

        assert locks.state("certificates/example.com.lock") is LockState.UNLOCKED

    def test_custom_threshold(self, hvac_client, clock):
        client = VaultKVClient("https://vault.example.com:8200", client=hvac_client)
        locks = LockManager(client, PathBuilder(), stale_after=timedelta(seconds=5), clock=clock)
        locks.lock("k")
        clock.advance(6)

        assert locks.state("k.lock") is LockState.STALE
        assert locks.stale_after == timedelta(seconds=5)


class TestLockAcquire:
    def test_lock_writes_create_only_record(self, locks, fake_vault):
        locks.lock("certificates/example.com")

        assert fake_vault.records["certificates/example.com.lock"]["data"] == {
            "certificates/example.com.lock": "locked"
        }
        assert ("PUT", LOCK_DATA_PATH) in fake_vault.calls

    def test_fresh_lock_is_refused_without_writing(self, locks, fake_vault):
        locks.lock("certificates/example.com")
        fake_vault.calls.clear()

        with pytest.raises(LockHeldError) as exc_info:
            locks.lock("certificates/example.com")

        assert exc_info.value.key == "certificates/example.com.lock"
        assert fake_vault.calls == [("GET", LOCK_DATA_PATH)]

    def test_stale_lock_takeover_deletes_then_writes(self, locks, fake_vault, clock):
        locks.lock("certificates/example.com")
        clock.advance(120)
        fake_vault.calls.clear()

        locks.lock("certificates/example.com")

        assert fake_vault.calls == [
            ("GET", LOCK_DATA_PATH),
            ("DELETE", LOCK_META_PATH),
            ("PUT", LOCK_DATA_PATH),
        ]
        assert locks.state("certificates/example.com.lock") is LockState.FRESH

    def test_presence_check_error_propagates(self, locks, fake_vault):
        fake_vault.fail("GET", LOCK_DATA_PATH, InternalServerError(errors=["storage failure"]))

        with pytest.raises(BackendError) as exc_info:
            locks.lock("certificates/example.com")

        assert exc_info.value.errors == ["storage failure"]
        assert ("PUT", LOCK_DATA_PATH) not in fake_vault.calls

    def test_bad_lock_timestamp_propagates(self, locks, fake_vault):
        fake_vault.seed("certificates/example.com.lock", "locked", created_time="not-a-time")

        with pytest.raises(TimestampParseError):
            locks.lock("certificates/example.com")

    def test_concurrent_create_reported_as_held(self, locks, fake_vault):
        fake_vault.fail(
            "PUT",
            LOCK_DATA_PATH,
            InvalidRequest(errors=["check-and-set parameter did not match the current version"]),
        )

        with pytest.raises(LockHeldError, match="concurrently"):
            locks.lock("certificates/example.com")

    def test_other_write_errors_are_backend_errors(self, locks, fake_vault):
        fake_vault.fail("PUT", LOCK_DATA_PATH, Forbidden(errors=["permission denied"]))

        with pytest.raises(BackendError, match="Failed to lock: permission denied"):
            locks.lock("certificates/example.com")


class TestLockRelease:
    def test_unlock_without_suffix(self, locks, fake_vault):
        locks.lock("certificates/example.com")

        locks.unlock("certificates/example.com")

        assert "certificates/example.com.lock" not in fake_vault.records
        assert ("DELETE", LOCK_META_PATH) in fake_vault.calls

    def test_unlock_with_suffix(self, locks, fake_vault):
        locks.lock("certificates/example.com")

        locks.unlock("certificates/example.com.lock")

        assert "certificates/example.com.lock" not in fake_vault.records

    def test_unlock_when_not_locked(self, locks):
        locks.unlock("certificates/example.com")

    def test_unlock_backend_error(self, locks, fake_vault):
        fake_vault.fail("DELETE", LOCK_META_PATH, Forbidden(errors=["permission denied"]))

        with pytest.raises(BackendError, match="Failed to unlock"):
            locks.unlock("certificates/example.com")

    def test_relock_after_unlock(self, locks):
        locks.lock("certificates/example.com")
        locks.unlock("certificates/example.com")

        locks.lock("certificates/example.com")
