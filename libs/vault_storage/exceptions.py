"""
Vault Certificate Storage Exception Hierarchy.

This module defines every exception raised by the Vault-backed certificate
storage, giving the TLS lifecycle manager clear semantics for absent keys,
backend failures, contended locks and malformed metadata.

Exception hierarchy:
    StorageError (base)
    ├── KeyNotFoundError - No live record (or empty listing) for a key/prefix
    ├── BackendError - Vault reported one or more error strings
    ├── LockHeldError - A fresh lock record is owned by another holder
    ├── TimestampParseError - Record metadata has a malformed created_time
    ├── StorageConfigError - Vault address or token could not be resolved
    └── OperationCancelledError - Operation context cancelled or expired

All exceptions carry structured context (logical key, backend type) and
never include stored payloads or tokens in their messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from libs.vault_storage.interface import KeyInfo


class StorageError(Exception):
    """
    Base exception for all certificate storage errors.

    Attributes:
        key: Logical key involved in the failed operation (e.g., "certificates/x/x.crt")
        backend: Backend type, always "vault" for this package
        message: Human-readable error message (MUST NOT include payloads)

    Example:
        >>> try:
        ...     storage.load("certificates/example.com/example.com.crt")
        ... except StorageError as e:
        ...     logger.error("Storage error", extra={"key": e.key})
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        backend: str | None = "vault",
    ) -> None:
        super().__init__(message)
        self.key = key
        self.backend = backend
        self.message = message

    def __str__(self) -> str:
        """
        Format error message with context (key + backend).

        Example:
            >>> str(StorageError("Timeout", "acme/account.json"))
            "Timeout (key: acme/account.json, backend: vault)"
        """
        context_parts = []
        if self.key:
            context_parts.append(f"key: {self.key}")
        if self.backend:
            context_parts.append(f"backend: {self.backend}")

        if context_parts:
            return f"{self.message} ({', '.join(context_parts)})"
        return self.message


class KeyNotFoundError(StorageError):
    """
    Raised when a key or prefix has no live record.

    This is the storage contract's "does not exist" signal. It is raised when:
    - Load finds an empty payload or a destroyed latest version
    - List produces no keys (empty listings are never a success)
    - Stat is called on an absent key

    Callers MUST NOT distinguish "no list results" from "found but empty".
    """

    def __init__(self, key: str, additional_context: str | None = None) -> None:
        message = f"Key '{key}' not found"
        if additional_context:
            message += f". {additional_context}"
        super().__init__(message=message, key=key)


class BackendError(StorageError):
    """
    Raised when Vault reports errors for a request.

    The backend's error strings are surfaced verbatim: the first one is part
    of the message, all of them are kept in ``errors``.

    Example:
        >>> raise BackendError("Failed to store", ["permission denied"], key="a")
        BackendError: Failed to store: permission denied (key: a, backend: vault)
    """

    def __init__(
        self,
        action: str,
        errors: list[str] | None = None,
        key: str | None = None,
    ) -> None:
        self.errors = list(errors or [])
        message = f"{action}: {self.errors[0]}" if self.errors else action
        super().__init__(message=message, key=key)


class LockHeldError(StorageError):
    """
    Raised when a non-stale lock record already exists for a key.

    Lock acquisition is never retried internally; retry and backoff are the
    caller's responsibility.
    """

    def __init__(self, key: str, reason: str = "Lock already exists") -> None:
        super().__init__(message=reason, key=key)


class TimestampParseError(StorageError):
    """
    Raised when a record's created_time metadata is not valid RFC 3339.

    Stat still populates everything it can: ``key_info`` carries the partial
    result (key, is_terminal and size set, ``modified`` None). Callers must
    treat the operation as failed even though ``key_info`` looks populated.
    """

    def __init__(self, key: str, raw_value: str, key_info: KeyInfo | None = None) -> None:
        super().__init__(
            message=f"Invalid created_time metadata {raw_value!r}",
            key=key,
        )
        self.raw_value = raw_value
        self.key_info = key_info


class StorageConfigError(StorageError):
    """
    Raised at setup when the Vault address or token cannot be resolved.

    Resolution:
    - Set the ``address``/``token`` directives in the storage config block
    - Or export VAULT_ADDR / VAULT_TOKEN in the server environment
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, key=None)


class OperationCancelledError(StorageError):
    """Raised when an operation context is cancelled or its deadline passed."""

    def __init__(self, reason: str, key: str | None = None) -> None:
        super().__init__(message=f"Operation cancelled: {reason}", key=key)
