"""
Advisory distributed locks over KV v2 records.

Vault's open-source KV engine has no lease or lock primitive, so a lock is an
ordinary record stored next to the key it guards:

    certificates/example.com       → guarded key
    certificates/example.com.lock  → lock record {"<key>.lock": "locked"}

Protocol:
    - Unlocked (no live lock record): create it with check-and-set version 0
    - Locked, fresh (age <= stale_after): refuse with LockHeldError
    - Locked, stale (age > stale_after): destroy it, then create a fresh one

Mutual exclusion relies on Vault enforcing cas=0 atomically: when two
processes race, exactly one create succeeds and the other sees a
check-and-set rejection, reported as LockHeldError. Stale takeover is a
liveness mechanism for holders that crashed without unlocking, not a
correctness guarantee.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum

from libs.vault_storage.client import ResultStatus, VaultKVClient
from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import BackendError, LockHeldError, TimestampParseError
from libs.vault_storage.paths import PathBuilder
from libs.vault_storage.timestamps import parse_rfc3339

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"
LOCK_VALUE = "locked"
DEFAULT_STALE_AFTER = timedelta(seconds=60)

# Vault's rejection message for a failed check-and-set write
_CAS_MISMATCH = "check-and-set"


class LockState(str, Enum):
    UNLOCKED = "unlocked"
    FRESH = "fresh"
    STALE = "stale"


def lock_key_for(key: str) -> str:
    """Return the lock record key for key, appending the suffix once."""
    return key if key.endswith(LOCK_SUFFIX) else key + LOCK_SUFFIX


def utc_now() -> datetime:
    return datetime.now(UTC)


class LockManager:
    """
    Acquire and release advisory lock records.

    Args:
        client: Backend client
        paths: Path builder for the configured prefix
        stale_after: Age after which a lock record may be taken over
        clock: Returns the current time as an aware datetime (tests inject one)
    """

    def __init__(
        self,
        client: VaultKVClient,
        paths: PathBuilder,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self._paths = paths
        self._stale_after = stale_after
        self._clock = clock

    @property
    def stale_after(self) -> timedelta:
        return self._stale_after

    def state(self, lock_key: str, ctx: OperationContext | None = None) -> LockState:
        """
        Classify the lock record at lock_key.

        Raises:
            BackendError: The presence check failed for a reason other than absence
            TimestampParseError: The lock record's created_time is malformed
        """
        result = self._client.read(self._paths.data_path(lock_key), ctx=ctx)
        if result.status is ResultStatus.ERROR:
            raise BackendError("Failed to check lock", result.errors, key=lock_key)
        if not result.present:
            return LockState.UNLOCKED

        try:
            modified = parse_rfc3339(result.metadata.created_time)
        except ValueError as e:
            raise TimestampParseError(lock_key, result.metadata.created_time) from e

        if self._clock() - modified > self._stale_after:
            return LockState.STALE
        return LockState.FRESH

    def lock(self, key: str, ctx: OperationContext | None = None) -> None:
        """
        Acquire the lock for key without waiting.

        Raises:
            LockHeldError: A fresh lock exists, or another process created one
                between our check and our write
            BackendError: The presence check, the stale cleanup or the write failed
        """
        lock_key = key + LOCK_SUFFIX
        state = self.state(lock_key, ctx=ctx)

        if state is LockState.FRESH:
            logger.info(
                "Lock already held",
                extra={"lock_key": lock_key, "backend": "vault"},
            )
            raise LockHeldError(lock_key)

        if state is LockState.STALE:
            logger.warning(
                "Taking over stale lock",
                extra={
                    "lock_key": lock_key,
                    "stale_after_seconds": self._stale_after.total_seconds(),
                    "backend": "vault",
                },
            )
            self.unlock(lock_key, ctx=ctx)

        self._create(lock_key, ctx=ctx)
        logger.info("Lock acquired", extra={"lock_key": lock_key, "backend": "vault"})

    def unlock(self, key: str, ctx: OperationContext | None = None) -> None:
        """
        Release the lock for key; accepts keys with or without the lock suffix.

        Raises:
            BackendError: Vault reported errors for the delete
        """
        lock_key = lock_key_for(key)
        result = self._client.remove(self._paths.metadata_path(lock_key), ctx=ctx)
        if result.status is ResultStatus.ERROR:
            raise BackendError("Failed to unlock", result.errors, key=lock_key)
        logger.info("Lock released", extra={"lock_key": lock_key, "backend": "vault"})

    def _create(self, lock_key: str, ctx: OperationContext | None = None) -> None:
        result = self._client.write(
            self._paths.data_path(lock_key),
            {lock_key: LOCK_VALUE},
            create_only=True,
            ctx=ctx,
        )
        if result.status is not ResultStatus.ERROR:
            return
        if any(_CAS_MISMATCH in error for error in result.errors):
            raise LockHeldError(lock_key, reason="Lock acquired concurrently by another holder")
        raise BackendError("Failed to lock", result.errors, key=lock_key)
