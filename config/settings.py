"""
Vault storage settings loaded from environment variables.

Uses Pydantic Settings for type-safe configuration with validation. Values
set in the host's storage config block take precedence; see
libs/vault_storage/factory.py for the merge.

Environment Variables:
    VAULT_ADDR: Vault server address (e.g., "https://vault.example.com:8200")
    VAULT_TOKEN: Vault token
    VAULT_STORAGE_PREFIX: KV v2 mount path (default: "caddycerts")
    VAULT_STORAGE_LOCK_STALE_AFTER: Seconds before a lock may be taken over
    VAULT_STORAGE_VERIFY: Verify TLS certificates (default: true)
    VAULT_STORAGE_TIMEOUT: Per-request timeout in seconds
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class VaultStorageSettings(BaseSettings):
    """
    Vault storage configuration.

    An explicit settings object is passed to every storage instance; nothing
    is read from module-level state, so several instances can point at
    different servers or mounts.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULT_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    address: str = Field(
        default="",
        validation_alias="VAULT_ADDR",
        description="Vault server address including scheme and port",
    )
    token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias="VAULT_TOKEN",
        description="Vault token (sent as X-Vault-Token)",
    )
    prefix: str = Field(
        default="caddycerts",
        description="KV v2 secret engine mount path",
    )
    lock_stale_after: float = Field(
        default=60.0,
        gt=0,
        description="Seconds after which an unreleased lock may be taken over",
    )
    verify: bool = Field(
        default=True,
        description="Verify TLS certificates (disable only for local development)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Per-request timeout in seconds",
    )
