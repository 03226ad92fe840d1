"""Vault KV v2 path construction.

Path convention:
    - Logical key: "certificates/acme/example.com/example.com.crt"
    - Value path:  "/v1/<prefix>/data/certificates/acme/example.com/example.com.crt"
    - Meta path:   "/v1/<prefix>/metadata/certificates/acme/example.com/example.com.crt"
    - Prefix is the KV v2 mount path (default: "caddycerts")
"""

from __future__ import annotations

from enum import Enum

DEFAULT_PREFIX = "caddycerts"
API_VERSION = "v1"


class Axis(str, Enum):
    """KV v2 endpoint families."""

    DATA = "data"
    METADATA = "metadata"


class PathBuilder:
    """Translate logical keys into Vault API paths.

    The HTTP transport is bound to the base address, so ``build_path`` returns
    address-relative paths; ``build_url`` returns the absolute form for
    diagnostics.

    Args:
        address: Vault base address including scheme and port
        prefix: KV v2 mount path. Empty or None falls back to DEFAULT_PREFIX.
    """

    def __init__(self, address: str = "", prefix: str | None = None) -> None:
        self.address = address.rstrip("/")
        self.prefix = (prefix or "").strip("/") or DEFAULT_PREFIX

    def build_path(self, axis: Axis | str, key: str = "") -> str:
        """Return "/v1/<prefix>/<axis>/" with the key appended when given."""
        axis_name = Axis(axis).value
        return f"/{API_VERSION}/{self.prefix}/{axis_name}/{key}"

    def build_url(self, axis: Axis | str, key: str = "") -> str:
        return self.address + self.build_path(axis, key)

    def data_path(self, key: str = "") -> str:
        return self.build_path(Axis.DATA, key)

    def metadata_path(self, key: str = "") -> str:
        return self.build_path(Axis.METADATA, key)
