"""Configuration management."""

from config.settings import VaultStorageSettings

__all__ = [
    "VaultStorageSettings",
]
