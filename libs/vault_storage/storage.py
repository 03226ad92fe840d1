"""
HashiCorp Vault Certificate Storage.

This module implements VaultStorage, the storage contract consumed by the TLS
certificate lifecycle manager, on top of a Vault KV v2 secrets engine.

Architecture:
    VaultStorage
    ├── PathBuilder      - logical key → /v1/<prefix>/{data,metadata}/<key>
    ├── NamespaceWalker  - exact-level queries and hierarchical listing
    ├── LockManager      - advisory lock records with stale takeover
    └── VaultKVClient    - four normalized round trips via hvac

Record layout:
    A logical key K is stored as a KV v2 secret at <prefix>/data/K whose
    payload is {K: <payload text>}. A record is present iff the payload is
    non-empty and the latest version is not destroyed.

Security Considerations:
    - Payload values (certificates, private keys) are NEVER logged
    - Token is kept inside the hvac client only

Usage Example:
    >>> storage = VaultStorage(
    ...     address="https://vault.example.com:8200",
    ...     token="s.abc123",
    ... )
    >>> storage.store("acme/account.json", b'{"status": "valid"}')
    >>> storage.load("acme/account.json")
    b'{"status": "valid"}'
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

import hvac

from libs.common.logging import operation_scoped
from libs.vault_storage.client import ReadResult, ResultStatus, VaultKVClient
from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import (
    BackendError,
    KeyNotFoundError,
    StorageError,
    TimestampParseError,
)
from libs.vault_storage.interface import CertificateStorage, KeyInfo
from libs.vault_storage.locks import DEFAULT_STALE_AFTER, LockManager, utc_now
from libs.vault_storage.paths import PathBuilder
from libs.vault_storage.timestamps import parse_rfc3339
from libs.vault_storage.walker import NamespaceWalker

logger = logging.getLogger(__name__)


class VaultStorage(CertificateStorage):
    """
    Certificate storage backed by a Vault KV v2 engine.

    Instances hold no mutable state between calls (no cache, no in-process
    locks), so several instances against different mounts stay independent.

    Args:
        address: Vault server address (e.g., "https://vault.example.com:8200")
        token: Vault token
        prefix: KV v2 mount path. Default: "caddycerts"
        verify: Verify TLS certificates. Default: True
        timeout: Default per-request timeout in seconds. Default: 30
        lock_stale_after: Age after which a lock may be taken over. Default: 60s
        client: Pre-built hvac.Client (bypasses address/token/verify/timeout)
        clock: Current-time source for lock staleness (tests)
    """

    def __init__(
        self,
        address: str,
        token: str | None = None,
        prefix: str | None = None,
        verify: bool = True,
        timeout: float | None = 30,
        lock_stale_after: timedelta = DEFAULT_STALE_AFTER,
        client: hvac.Client | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._paths = PathBuilder(address=address, prefix=prefix)
        self._client = VaultKVClient(
            address=address,
            token=token,
            verify=verify,
            timeout=timeout,
            client=client,
        )
        self._walker = NamespaceWalker(self._client)
        self._locks = LockManager(
            self._client,
            self._paths,
            stale_after=lock_stale_after,
            clock=clock,
        )
        logger.info(
            "Vault storage configured",
            extra={
                "vault_url": self._paths.build_url("data"),
                "prefix": self._paths.prefix,
                "backend": "vault",
            },
        )

    @property
    def prefix(self) -> str:
        return self._paths.prefix

    @property
    def paths(self) -> PathBuilder:
        return self._paths

    @property
    def lock_stale_after(self) -> timedelta:
        return self._locks.stale_after

    @operation_scoped
    def list(
        self,
        prefix: str,
        recursive: bool = False,
        ctx: OperationContext | None = None,
    ) -> list[str]:
        if recursive:
            keys = self._walker.list_path(
                self._paths.metadata_path(),
                self._paths.data_path(),
                prefix,
                ctx=ctx,
            )
        else:
            keys = self._walker.query_path(self._paths.data_path(), prefix, ctx=ctx)

        if not keys:
            raise KeyNotFoundError(prefix, additional_context="No keys under prefix")
        return keys

    @operation_scoped
    def load(self, key: str, ctx: OperationContext | None = None) -> bytes:
        result = self._read(key, ctx=ctx)
        if not result.present or key not in result.payload:
            raise KeyNotFoundError(key)
        return str(result.payload[key]).encode("utf-8")

    @operation_scoped
    def store(self, key: str, value: bytes, ctx: OperationContext | None = None) -> None:
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageError("Failed to store: payload is not valid UTF-8", key=key) from e

        result = self._client.write(self._paths.data_path(key), {key: text}, ctx=ctx)
        if result.status is ResultStatus.ERROR:
            raise BackendError("Failed to store", result.errors, key=key)
        logger.info("Stored key", extra={"key": key, "size": len(value), "backend": "vault"})

    @operation_scoped
    def exists(self, key: str, ctx: OperationContext | None = None) -> bool:
        result = self._client.read(self._paths.data_path(key), ctx=ctx)
        if result.status is ResultStatus.ERROR:
            logger.warning(
                "Existence check failed, reporting key as absent",
                extra={"key": key, "error": result.errors[0], "backend": "vault"},
            )
        return result.present

    @operation_scoped
    def stat(self, key: str, ctx: OperationContext | None = None) -> KeyInfo:
        result = self._read(key, ctx=ctx)
        if not result.present:
            raise KeyNotFoundError(key)

        children = self._client.list_children(self._paths.metadata_path(key), ctx=ctx)
        if children.status is ResultStatus.ERROR:
            raise BackendError("Failed to stat", children.errors, key=key)

        value = result.payload.get(key)
        size = len(str(value).encode("utf-8")) if value is not None else 0
        is_terminal = not children.keys

        try:
            modified = parse_rfc3339(result.metadata.created_time)
        except ValueError as e:
            partial = KeyInfo(key=key, is_terminal=is_terminal, size=size, modified=None)
            raise TimestampParseError(key, result.metadata.created_time, key_info=partial) from e

        return KeyInfo(key=key, is_terminal=is_terminal, size=size, modified=modified)

    @operation_scoped
    def delete(self, key: str, ctx: OperationContext | None = None) -> None:
        result = self._client.remove(self._paths.metadata_path(key), ctx=ctx)
        if result.status is ResultStatus.ERROR:
            raise BackendError("Failed to delete", result.errors, key=key)
        logger.info("Deleted key", extra={"key": key, "backend": "vault"})

    @operation_scoped
    def lock(self, key: str, ctx: OperationContext | None = None) -> None:
        self._locks.lock(key, ctx=ctx)

    @operation_scoped
    def unlock(self, key: str, ctx: OperationContext | None = None) -> None:
        self._locks.unlock(key, ctx=ctx)

    def close(self) -> None:
        self._client.close()
        logger.info("Vault storage closed", extra={"backend": "vault"})

    def _read(self, key: str, ctx: OperationContext | None = None) -> ReadResult:
        result = self._client.read(self._paths.data_path(key), ctx=ctx)
        if result.status is ResultStatus.ERROR:
            raise BackendError("Failed to read", result.errors, key=key)
        return result
