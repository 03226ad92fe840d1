"""Shared fixtures for vault_storage tests.

FakeVaultAdapter stands in for hvac's JSON adapter: it serves the KV v2
data/metadata endpoints from a dict, honors check-and-set version 0, and raises
the same hvac exceptions a real Vault response would produce. Like hvac's
urljoin it strips trailing slashes, so a folder read "data/b/" reaches Vault as
"data/b" and a mount-root read reaches it as the bare "data" path, which KV v2
rejects with "unsupported path".
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest
from hvac.exceptions import InvalidPath, InvalidRequest, VaultError

from libs.vault_storage.storage import VaultStorage

VAULT_URL = "https://vault.example.com:8200"
MOUNT = "caddycerts"


class FrozenClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeVaultAdapter:
    """In-memory KV v2 engine mounted at ``mount``."""

    def __init__(self, clock: FrozenClock, mount: str = MOUNT) -> None:
        self.clock = clock
        self.mount = mount
        self.records: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], VaultError] = {}
        self.closed = False

    def fail(self, method: str, url: str, error: VaultError) -> None:
        """Make the next (and every later) request for method+url raise error."""
        self.failures[(method, url)] = error

    def seed(self, key: str, value: str, created_time: str | None = None) -> None:
        self.records[key] = {
            "data": {key: value},
            "created_time": created_time or self._timestamp(),
            "version": 1,
        }

    def get(self, url: str, **kwargs: Any) -> dict[str, Any]:
        key = self._route("GET", url, "data")
        record = self.records.get(self._require_key(key))
        if record is None:
            raise InvalidPath()
        return {
            "data": {
                "data": dict(record["data"]),
                "metadata": {
                    "created_time": record["created_time"],
                    "deletion_time": "",
                    "destroyed": False,
                    "version": record["version"],
                },
            }
        }

    def list(self, url: str, **kwargs: Any) -> dict[str, Any]:
        directory = self._route("LIST", url, "metadata").strip("/")
        children = set()
        for key in self.records:
            if directory:
                if not key.startswith(directory + "/"):
                    continue
                rest = key[len(directory) + 1 :]
            else:
                rest = key
            segment, separator, _ = rest.partition("/")
            children.add(segment + ("/" if separator else ""))
        if not children:
            raise InvalidPath()
        return {"data": {"keys": sorted(children)}}

    def put(self, url: str, json: dict[str, Any] | None = None, **kwargs: Any) -> dict[str, Any]:
        key = self._route("PUT", url, "data")
        self._require_key(key)
        body = json or {}
        existing = self.records.get(key)
        cas = (body.get("options") or {}).get("cas")
        if cas is not None and cas != (existing["version"] if existing else 0):
            raise InvalidRequest(
                errors=["check-and-set parameter did not match the current version"]
            )

        version = existing["version"] + 1 if existing else 1
        self.records[key] = {
            "data": dict(body["data"]),
            "created_time": self._timestamp(),
            "version": version,
        }
        return {"data": {"created_time": self.records[key]["created_time"], "version": version}}

    def delete(self, url: str, **kwargs: Any) -> None:
        key = self._route("DELETE", url, "metadata")
        self._require_key(key)
        self.records.pop(key, None)

    def close(self) -> None:
        self.closed = True

    def _route(self, method: str, url: str, expected_axis: str) -> str:
        url = url.rstrip("/")
        self.calls.append((method, url))
        if (method, url) in self.failures:
            raise self.failures[(method, url)]

        root = f"/v1/{self.mount}/"
        if not url.startswith(root):
            raise InvalidPath(errors=[f"no handler for route '{url}'"])
        axis, _, key = url[len(root) :].partition("/")
        assert axis == expected_axis, f"{method} on {axis} axis: {url}"
        return key

    @staticmethod
    def _require_key(key: str) -> str:
        if not key:
            raise InvalidPath(errors=["1 error occurred:\n\t* unsupported path\n\n"])
        return key

    def _timestamp(self) -> str:
        # Vault reports nanosecond precision
        return self.clock().strftime("%Y-%m-%dT%H:%M:%S.%f") + "123Z"


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 1, 15, 12, 0, 0, 250000, tzinfo=UTC))


@pytest.fixture()
def fake_vault(clock: FrozenClock) -> FakeVaultAdapter:
    return FakeVaultAdapter(clock)


@pytest.fixture()
def hvac_client(fake_vault: FakeVaultAdapter) -> MagicMock:
    """Mock hvac.Client whose adapter is the in-memory Vault."""
    client = MagicMock()
    client.adapter = fake_vault
    return client


@pytest.fixture()
def storage(hvac_client: MagicMock, clock: FrozenClock) -> VaultStorage:
    return VaultStorage(
        address=VAULT_URL,
        token="s.test_token",
        client=hvac_client,
        clock=clock,
    )
