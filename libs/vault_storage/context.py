"""Cancellation and deadline handling for storage operations.

Every storage operation accepts an optional ``OperationContext``. The backend
client checks it before each round trip and hands the remaining time to the
HTTP transport as the request timeout, so an expired deadline aborts the
in-flight request instead of waiting for the server.

Example:
    >>> ctx = OperationContext(timeout=5.0)
    >>> storage.load("acme/account.json", ctx=ctx)
    >>> ctx.cancel()  # from another thread
"""

from __future__ import annotations

import threading
import time

from libs.vault_storage.exceptions import OperationCancelledError


class OperationContext:
    """Cancellation token with an optional deadline.

    Args:
        timeout: Seconds from now after which the context expires. None means
            no deadline (only explicit cancel() ends it).

    Thread Safety:
        cancel() may be called from any thread; check() and remaining() are
        safe to call concurrently.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Mark the context cancelled. Idempotent."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Return seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self, key: str | None = None) -> None:
        """Raise OperationCancelledError if the context is no longer live.

        Args:
            key: Logical key to attach to the error for context.
        """
        if self.cancelled:
            raise OperationCancelledError("context cancelled", key=key)
        if self.expired:
            raise OperationCancelledError("deadline exceeded", key=key)

    def request_timeout(self, default: float | None) -> float | None:
        """Timeout to pass to the transport: the smaller of default and remaining."""
        remaining = self.remaining()
        if remaining is None:
            return default
        if default is None:
            return remaining
        return min(default, remaining)
