"""RFC 3339 parsing for Vault metadata timestamps.

Vault reports ``created_time`` with nanosecond precision
("2024-03-22T02:24:06.945319214Z"). ``datetime.fromisoformat`` accepts the
"Z" suffix and keeps the first six fraction digits.
"""

from __future__ import annotations

from datetime import datetime


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into a timezone-aware datetime.

    Date-only values and values without an offset are rejected: lock
    staleness compares against the current UTC time, which needs an offset.

    Raises:
        ValueError: value is not an ISO 8601 timestamp with a UTC offset
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value!r}")
    return parsed
