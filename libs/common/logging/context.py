"""Operation ID propagation for log correlation.

A single storage call (a recursive list, a lock with stale takeover) issues
several Vault round trips. Each call runs under one operation ID so every log
line it produces can be grouped together.

Example:
    >>> from libs.common.logging.context import OperationScope, get_operation_id
    >>> with OperationScope("op-123"):
    ...     get_operation_id()
    'op-123'
"""

import contextvars
import functools
import uuid
from collections.abc import Callable
from types import TracebackType
from typing import ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")

_operation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation_id", default=None
)


def generate_operation_id() -> str:
    """Return a new UUID4 operation ID."""
    return str(uuid.uuid4())


def get_operation_id() -> str | None:
    return _operation_id_var.get()


def set_operation_id(operation_id: str) -> None:
    """Set the operation ID for the current context.

    Raises:
        ValueError: If operation_id is empty
    """
    if not operation_id:
        raise ValueError("Operation ID cannot be empty")
    _operation_id_var.set(operation_id)


def clear_operation_id() -> None:
    _operation_id_var.set(None)


class OperationScope:
    """Context manager binding an operation ID to a block of code.

    Nested scopes without an explicit ID join the enclosing operation, so a
    lock() that internally unlocks a stale record logs under one ID. The
    previous value is restored on exit.

    Args:
        operation_id: ID to use. If None, reuses the active one or generates one.
    """

    def __init__(self, operation_id: str | None = None) -> None:
        self.operation_id = operation_id
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> str:
        operation_id = self.operation_id or get_operation_id() or generate_operation_id()
        self._token = _operation_id_var.set(operation_id)
        return operation_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _operation_id_var.reset(self._token)
            self._token = None


def operation_scoped(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator running func inside an OperationScope."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with OperationScope():
            return func(*args, **kwargs)

    return wrapper
