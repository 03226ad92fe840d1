"""
Factory for creating VaultStorage instances from host configuration.

Each setting is resolved from, highest priority first:
    1. The host's storage config block (directives "address", "store", "token")
    2. Environment variables (VAULT_ADDR, VAULT_TOKEN, VAULT_STORAGE_*)
    3. Defaults (prefix "caddycerts", 60s lock staleness, TLS verification on)

Setup fails fast with StorageConfigError when the Vault address or token
cannot be resolved from either source.

Example Usage:
    >>> block = parse_config_block([
    ...     "address https://vault.example.com:8200",
    ...     "store caddycerts",
    ... ])
    >>> storage = create_vault_storage(block)  # token from VAULT_TOKEN

See Also:
    - config/settings.py - environment layer
    - libs/vault_storage/storage.py - VaultStorage
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import timedelta
from typing import Final

import hvac
from pydantic import SecretStr, ValidationError

from config.settings import VaultStorageSettings
from libs.vault_storage.exceptions import StorageConfigError
from libs.vault_storage.storage import VaultStorage

logger = logging.getLogger(__name__)

# Config block directive → settings field
CONFIG_DIRECTIVES: Final[dict[str, str]] = {
    "address": "address",
    "store": "prefix",
    "token": "token",
}


def parse_config_block(lines: Iterable[str]) -> dict[str, str]:
    """
    Parse "<directive> <value>" lines of a storage config block.

    Blank lines, "#" comments and braces are skipped; directives without a
    value are ignored, as are unknown directives. Later lines win.

    Example:
        >>> parse_config_block(["address http://127.0.0.1:8200", "token"])
        {'address': 'http://127.0.0.1:8200'}
    """
    block: dict[str, str] = {}
    for raw_line in lines:
        line = raw_line.split("#", 1)[0].strip()
        if not line or line in ("{", "}"):
            continue

        parts = line.split(None, 1)
        if len(parts) < 2:
            continue

        directive, value = parts[0], parts[1].strip().strip('"')
        if directive not in CONFIG_DIRECTIVES:
            logger.debug("Ignoring unknown storage directive", extra={"directive": directive})
            continue
        if value:
            block[directive] = value
    return block


def resolve_settings(
    block: Mapping[str, str] | None = None,
    settings: VaultStorageSettings | None = None,
) -> VaultStorageSettings:
    """
    Merge a config block over environment settings and validate them.

    Raises:
        StorageConfigError: Address or token unresolved, or invalid settings
    """
    try:
        base = settings if settings is not None else VaultStorageSettings()
    except ValidationError as e:
        raise StorageConfigError(f"Invalid Vault storage settings: {e}") from e

    updates: dict[str, object] = {}
    for directive, value in (block or {}).items():
        field_name = CONFIG_DIRECTIVES.get(directive)
        if field_name is None or not value:
            continue
        updates[field_name] = SecretStr(value) if field_name == "token" else value
    resolved = base.model_copy(update=updates)

    if not resolved.address:
        raise StorageConfigError(
            "Unable to find Vault address. Set the 'address' directive in the "
            "storage config block or the VAULT_ADDR environment variable."
        )
    if not resolved.token.get_secret_value():
        raise StorageConfigError(
            "Unable to find Vault token. Set the 'token' directive in the "
            "storage config block or the VAULT_TOKEN environment variable."
        )
    return resolved


def create_vault_storage(
    block: Mapping[str, str] | None = None,
    settings: VaultStorageSettings | None = None,
    client: hvac.Client | None = None,
) -> VaultStorage:
    """
    Create a VaultStorage from a config block and the environment.

    Args:
        block: Directive mapping from the host config (see parse_config_block)
        settings: Settings override. If None, read from the environment.
        client: Pre-built hvac.Client (tests, custom sessions)

    Raises:
        StorageConfigError: Address or token unresolved
    """
    resolved = resolve_settings(block, settings)
    logger.info(
        "Initializing Vault storage",
        extra={"vault_url": resolved.address, "prefix": resolved.prefix},
    )
    return VaultStorage(
        address=resolved.address,
        token=resolved.token.get_secret_value(),
        prefix=resolved.prefix,
        verify=resolved.verify,
        timeout=resolved.timeout,
        lock_stale_after=timedelta(seconds=resolved.lock_stale_after),
        client=client,
    )
