"""
HashiCorp Vault KV v2 Backend Client.

This module implements VaultKVClient, the leaf component of the certificate
storage. It issues exactly four primitive requests against a KV v2 engine
through hvac's HTTP adapter and normalizes every outcome into a tagged result,
so callers branch on ResultStatus instead of HTTP status codes or payload
shape.

Architecture:
    - Uses hvac's JSON adapter (token header, TLS verification, session pooling)
    - Paths are address-relative API paths built by PathBuilder
    - Never raises on HTTP-level failure: errors come back in result.errors
    - One round trip per call; no retries, no caching
    - Honors OperationContext: checks before each request and passes the
      remaining time as the request timeout

Status mapping:
    - 2xx                          → SUCCESS
    - 404 without error strings    → NOT_FOUND (Vault's "no such path")
    - any other hvac VaultError    → ERROR (backend error strings preserved)
    - requests transport failures  → ERROR (exception text as the error)

Security Considerations:
    - Payload values are NEVER logged (only methods and paths)
    - Token lives in the hvac client only
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import hvac
import requests
from hvac.exceptions import InvalidPath, VaultError

from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import OperationCancelledError

logger = logging.getLogger(__name__)

_REPEATED_SLASHES = re.compile(r"/{2,}")


class ResultStatus(str, Enum):
    """Outcome of a single backend round trip."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class RecordMetadata:
    """Version metadata of the latest record version."""

    created_time: str = ""
    destroyed: bool = False


@dataclass(frozen=True)
class ReadResult:
    status: ResultStatus
    payload: dict[str, Any] = field(default_factory=dict)
    metadata: RecordMetadata = field(default_factory=RecordMetadata)
    errors: list[str] = field(default_factory=list)

    @property
    def present(self) -> bool:
        """A record is present iff its payload is non-empty and not destroyed."""
        return (
            self.status is ResultStatus.SUCCESS
            and bool(self.payload)
            and not self.metadata.destroyed
        )


@dataclass(frozen=True)
class ListResult:
    status: ResultStatus
    keys: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class WriteResult:
    status: ResultStatus
    errors: list[str] = field(default_factory=list)


def normalize_path(path: str) -> str:
    """Collapse repeated slashes; Vault treats "//" as "/"."""
    return _REPEATED_SLASHES.sub("/", path)


class VaultKVClient:
    """
    Thin KV v2 client returning normalized results.

    Args:
        address: Vault server address (e.g., "https://vault.example.com:8200")
        token: Vault token sent as X-Vault-Token
        verify: Verify TLS certificates. Default: True
        timeout: Default per-request timeout in seconds. Default: 30
        client: Pre-built hvac.Client (tests, custom session). When given,
            address/token/verify/timeout are ignored.

    Example:
        >>> kv = VaultKVClient("https://vault.example.com:8200", token="s.abc")
        >>> result = kv.read("/v1/caddycerts/data/acme/account.json")
        >>> if result.status is ResultStatus.ERROR:
        ...     print(result.errors)
    """

    def __init__(
        self,
        address: str,
        token: str | None = None,
        verify: bool = True,
        timeout: float | None = 30,
        client: hvac.Client | None = None,
    ) -> None:
        self._address = address
        self._timeout = timeout
        self._client = client or hvac.Client(
            url=address,
            token=token,
            verify=verify,
            timeout=timeout,
        )

    @property
    def adapter(self) -> Any:
        return self._client.adapter

    def read(self, path: str, ctx: OperationContext | None = None) -> ReadResult:
        """GET the latest version of the record at a data path."""
        status, response, errors = self._request("GET", self.adapter.get, path, ctx)
        if status is not ResultStatus.SUCCESS:
            return ReadResult(status=status, errors=errors)

        body = (response.get("data") or {}) if isinstance(response, dict) else {}
        raw_metadata = body.get("metadata") or {}
        metadata = RecordMetadata(
            created_time=str(raw_metadata.get("created_time") or ""),
            destroyed=bool(raw_metadata.get("destroyed", False)),
        )
        return ReadResult(
            status=ResultStatus.SUCCESS,
            payload=dict(body.get("data") or {}),
            metadata=metadata,
        )

    def list_children(self, path: str, ctx: OperationContext | None = None) -> ListResult:
        """LIST the path segments one level below a metadata path."""
        status, response, errors = self._request("LIST", self.adapter.list, path, ctx)
        if status is not ResultStatus.SUCCESS:
            return ListResult(status=status, errors=errors)

        body = (response.get("data") or {}) if isinstance(response, dict) else {}
        return ListResult(status=ResultStatus.SUCCESS, keys=list(body.get("keys") or []))

    def write(
        self,
        path: str,
        payload: dict[str, Any],
        create_only: bool = False,
        ctx: OperationContext | None = None,
    ) -> WriteResult:
        """PUT a new version at a data path.

        Args:
            create_only: Request check-and-set with version 0 so Vault only
                writes when no live version exists.
        """
        body: dict[str, Any] = {"data": payload}
        if create_only:
            body["options"] = {"cas": 0}
        status, _, errors = self._request("PUT", self.adapter.put, path, ctx, json=body)
        return WriteResult(status=status, errors=errors)

    def remove(self, path: str, ctx: OperationContext | None = None) -> WriteResult:
        """DELETE at a path (on a metadata path this destroys all versions)."""
        status, _, errors = self._request("DELETE", self.adapter.delete, path, ctx)
        return WriteResult(status=status, errors=errors)

    def close(self) -> None:
        """Close the hvac adapter's HTTP session."""
        adapter = getattr(self._client, "adapter", None)
        if adapter and hasattr(adapter, "close"):
            adapter.close()

    def _request(
        self,
        method: str,
        send: Callable[..., Any],
        path: str,
        ctx: OperationContext | None,
        **kwargs: Any,
    ) -> tuple[ResultStatus, Any, list[str]]:
        path = normalize_path(path)
        timeout = self._timeout
        if ctx is not None:
            ctx.check()
            timeout = ctx.request_timeout(self._timeout)

        try:
            response = send(path, timeout=timeout, **kwargs)
        except InvalidPath as e:
            if not e.errors:
                logger.debug(
                    "Vault path not found",
                    extra={"method": method, "path": path, "backend": "vault"},
                )
                return ResultStatus.NOT_FOUND, None, []
            return ResultStatus.ERROR, None, self._error_strings(method, path, e)
        except VaultError as e:
            return ResultStatus.ERROR, None, self._error_strings(method, path, e)
        except requests.RequestException as e:
            if ctx is not None and ctx.expired:
                raise OperationCancelledError("deadline exceeded during request") from e
            return ResultStatus.ERROR, None, self._error_strings(method, path, e)

        logger.debug(
            "Vault request completed",
            extra={"method": method, "path": path, "backend": "vault"},
        )
        return ResultStatus.SUCCESS, response, []

    @staticmethod
    def _error_strings(method: str, path: str, error: Exception) -> list[str]:
        errors = [str(item) for item in (getattr(error, "errors", None) or [])]
        if not errors:
            errors = [str(error) or type(error).__name__]
        logger.warning(
            "Vault request failed",
            extra={
                "method": method,
                "path": path,
                "backend": "vault",
                "error_type": type(error).__name__,
                "error": errors[0],
            },
        )
        return errors
