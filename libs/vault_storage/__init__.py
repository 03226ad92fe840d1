"""
Vault Certificate Storage Library.

This package stores ACME certificates, private keys and account metadata in a
HashiCorp Vault KV v2 secrets engine, implementing the storage contract of a
TLS certificate lifecycle manager.

Architecture:
    - CertificateStorage: Abstract storage contract (interface.py)
    - VaultStorage: Vault KV v2 implementation (storage.py)
    - Factory: create_vault_storage() resolves config block + environment
    - LockManager: advisory locks with stale takeover (locks.py)

Quick Start:
    >>> from libs.vault_storage import create_vault_storage
    >>> storage = create_vault_storage()  # Reads VAULT_ADDR / VAULT_TOKEN
    >>> storage.store("acme/account.json", b"{}")
    >>> storage.list("", recursive=True)
    ['acme/account.json']

Security Requirements:
    - Payloads (certificates, private keys) NEVER logged (only keys/paths)
    - Token kept in memory only, never stored in module-level state
"""

from libs.vault_storage.client import ResultStatus, VaultKVClient
from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import (
    BackendError,
    KeyNotFoundError,
    LockHeldError,
    OperationCancelledError,
    StorageConfigError,
    StorageError,
    TimestampParseError,
)
from libs.vault_storage.factory import create_vault_storage, parse_config_block
from libs.vault_storage.interface import CertificateStorage, KeyInfo
from libs.vault_storage.locks import LOCK_SUFFIX, LockManager
from libs.vault_storage.paths import DEFAULT_PREFIX, Axis, PathBuilder
from libs.vault_storage.storage import VaultStorage
from libs.vault_storage.walker import NamespaceWalker

# Package exports (PEP 8: __all__ defines public API)
__all__ = [
    # Core interface
    "CertificateStorage",
    "KeyInfo",
    "OperationContext",
    # Factory (recommended for most use cases)
    "create_vault_storage",
    "parse_config_block",
    # Implementation and components
    "VaultStorage",
    "VaultKVClient",
    "ResultStatus",
    "PathBuilder",
    "Axis",
    "DEFAULT_PREFIX",
    "NamespaceWalker",
    "LockManager",
    "LOCK_SUFFIX",
    # Exceptions (callers should catch these)
    "StorageError",
    "KeyNotFoundError",
    "BackendError",
    "LockHeldError",
    "TimestampParseError",
    "StorageConfigError",
    "OperationCancelledError",
]
