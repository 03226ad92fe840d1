"""Logging setup for services and command-line tools.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="vault_storage", log_level="INFO")
    >>> logger.info("Storage ready", extra={"prefix": "caddycerts"})
"""

import logging
import sys
from typing import TextIO

from libs.common.logging.context import get_operation_id
from libs.common.logging.formatter import JSONFormatter

# Third-party loggers that are chatty at DEBUG/INFO
_QUIET_LOGGERS = ("urllib3", "requests", "hvac")


class OperationIDFilter(logging.Filter):
    """Inject the current operation ID into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation_id = get_operation_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure structured JSON logging on the root logger.

    Replaces existing root handlers, so calling it twice does not duplicate
    output. Should be called once at process startup.

    Args:
        service_name: Name reported in the "service" field
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include the context dict in output
        stream: Output stream. Default: sys.stderr (stdout is left for data)

    Returns:
        The configured root logger

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(OperationIDFilter())
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return root_logger


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
