"""
Abstract Certificate Storage Interface.

This module defines the storage contract expected by the TLS certificate
lifecycle manager (issuance, renewal, OCSP stapling caches, ACME accounts):
list/load/store/exists/stat/delete plus an advisory lock/unlock pair.

Architecture:
    CertificateStorage (ABC)
    └── VaultStorage - HashiCorp Vault KV v2 (storage.py)

Usage Example:
    >>> from libs.vault_storage import create_vault_storage
    >>> with create_vault_storage() as storage:
    ...     storage.lock("certificates/example.com")
    ...     try:
    ...         storage.store("certificates/example.com/example.com.crt", pem)
    ...     finally:
    ...         storage.unlock("certificates/example.com")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType

from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import (
    KeyNotFoundError,  # noqa: F401 - Used in docstrings for documentation
    LockHeldError,  # noqa: F401 - Used in docstrings for documentation
    StorageError,  # noqa: F401 - Used in docstrings for documentation
)


@dataclass(frozen=True)
class KeyInfo:
    """Stat result for a logical key.

    Attributes:
        key: Logical key
        is_terminal: True when no deeper keys exist below this key
        size: Payload length in bytes
        modified: Creation time of the latest version (None if unparseable)
    """

    key: str
    is_terminal: bool
    size: int
    modified: datetime | None


class CertificateStorage(ABC):
    """
    Abstract base class for certificate storage backends.

    Every operation takes an optional OperationContext used for cancellation
    and deadlines. Implementations are stateless between calls: concurrency
    across processes is coordinated only through lock()/unlock().

    Error semantics:
        - KeyNotFoundError: absent key, or an empty listing
        - StorageError subclasses for everything else
    """

    @abstractmethod
    def list(
        self,
        prefix: str,
        recursive: bool = False,
        ctx: OperationContext | None = None,
    ) -> list[str]:
        """
        List logical keys under a prefix.

        Args:
            prefix: Key prefix ("" for the whole namespace)
            recursive: Walk the whole sub-tree instead of the exact prefix level

        Returns:
            Non-empty list of logical keys

        Raises:
            KeyNotFoundError: Nothing was found (empty lists are never returned)
        """

    @abstractmethod
    def load(self, key: str, ctx: OperationContext | None = None) -> bytes:
        """
        Return the payload stored at key.

        Raises:
            KeyNotFoundError: No live record exists
        """

    @abstractmethod
    def store(self, key: str, value: bytes, ctx: OperationContext | None = None) -> None:
        """Store value at key, overwriting any previous version."""

    @abstractmethod
    def exists(self, key: str, ctx: OperationContext | None = None) -> bool:
        """Return True if a live record exists at key. Never raises on backend errors."""

    @abstractmethod
    def stat(self, key: str, ctx: OperationContext | None = None) -> KeyInfo:
        """
        Return size, modification time and terminal flag for key.

        Raises:
            KeyNotFoundError: No live record exists
            TimestampParseError: Metadata timestamp malformed (partial
                result available on the exception's ``key_info``)
        """

    @abstractmethod
    def delete(self, key: str, ctx: OperationContext | None = None) -> None:
        """Delete key and all of its versions. Deleting an absent key succeeds."""

    @abstractmethod
    def lock(self, key: str, ctx: OperationContext | None = None) -> None:
        """
        Acquire the advisory lock for key (non-blocking).

        Raises:
            LockHeldError: A fresh lock is held by someone else
        """

    @abstractmethod
    def unlock(self, key: str, ctx: OperationContext | None = None) -> None:
        """Release the advisory lock for key."""

    def close(self) -> None:  # noqa: B027 - Intentionally optional hook with default no-op
        """Close connections and release resources (optional hook)."""

    def __enter__(self) -> CertificateStorage:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
