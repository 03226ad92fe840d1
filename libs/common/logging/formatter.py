"""JSON log formatter for structured logging.

Example log output:
    {
        "timestamp": "2025-10-21T10:30:00.000Z",
        "level": "WARNING",
        "service": "vault_storage",
        "operation_id": "abc123-def456",
        "logger": "libs.vault_storage.locks",
        "message": "Taking over stale lock",
        "context": {
            "lock_key": "certificates/example.com.lock",
            "backend": "vault"
        }
    }
"""

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"operation_id", "context", "message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record.

    Fields passed through ``extra={...}`` (the convention used by every
    module logger in this repo) are grouped under "context"; an explicit
    ``extra={"context": {...}}`` dict is used as-is.

    Attributes:
        service_name: Name of the emitting service or tool
        include_context: Whether to include the context dict
    """

    def __init__(
        self, service_name: str, include_context: bool = True, *args: Any, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "service": self.service_name,
            "operation_id": getattr(record, "operation_id", None),
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context = self._extract_context(record)
            if context:
                log_entry["context"] = context

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        return json.dumps(log_entry, default=str)

    @staticmethod
    def _format_timestamp(created: float) -> str:
        """ISO 8601 UTC with millisecond precision, e.g. '2023-10-21T10:30:00.000Z'."""
        dt = datetime.fromtimestamp(created, tz=UTC)
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    @staticmethod
    def _extract_context(record: logging.LogRecord) -> dict[str, Any] | None:
        context = getattr(record, "context", None)
        if context and isinstance(context, dict):
            return dict(context)

        extra = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_FIELDS
        }
        return extra or None
