"""Structured logging library.

JSON log output with operation IDs for correlating all backend round trips
of a single storage call.

Usage:
    # At process startup
    from libs.common.logging import configure_logging
    configure_logging(service_name="vault_storage", log_level="INFO")

    # Around a unit of work
    from libs.common.logging import OperationScope
    with OperationScope():
        storage.lock("certificates/example.com")
"""

from libs.common.logging.config import (
    OperationIDFilter,
    configure_logging,
    get_logger,
)
from libs.common.logging.context import (
    OperationScope,
    clear_operation_id,
    generate_operation_id,
    get_operation_id,
    operation_scoped,
    set_operation_id,
)
from libs.common.logging.formatter import JSONFormatter

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "OperationIDFilter",
    # Operation ID management
    "generate_operation_id",
    "get_operation_id",
    "set_operation_id",
    "clear_operation_id",
    "OperationScope",
    "operation_scoped",
    # Formatter (for advanced usage)
    "JSONFormatter",
]
