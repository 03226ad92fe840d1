"""
Root conftest for tests.

This ensures:
1. Vault settings never leak in from the developer's environment
2. Root logger handlers installed by configure_logging() are restored
3. No operation ID survives from one test into the next
"""

import logging

import pytest

from libs.common.logging.context import clear_operation_id

_VAULT_ENV_VARS = (
    "VAULT_ADDR",
    "VAULT_TOKEN",
    "VAULT_STORAGE_PREFIX",
    "VAULT_STORAGE_LOCK_STALE_AFTER",
    "VAULT_STORAGE_VERIFY",
    "VAULT_STORAGE_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Clear Vault environment variables for every test."""
    for name in _VAULT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler and level changes made by configure_logging()."""
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    yield

    root_logger.handlers[:] = original_handlers
    root_logger.setLevel(original_level)


@pytest.fixture(autouse=True)
def reset_operation_id():
    clear_operation_id()
    yield
    clear_operation_id()
