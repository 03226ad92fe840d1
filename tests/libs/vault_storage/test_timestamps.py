"""Tests for RFC 3339 parsing of Vault timestamps."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from libs.vault_storage.timestamps import parse_rfc3339


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-03-22T02:24:06Z", datetime(2024, 3, 22, 2, 24, 6, tzinfo=UTC)),
        (
            "2024-03-22T02:24:06.945319214Z",
            datetime(2024, 3, 22, 2, 24, 6, 945319, tzinfo=UTC),
        ),
        ("2024-03-22T02:24:06.5Z", datetime(2024, 3, 22, 2, 24, 6, 500000, tzinfo=UTC)),
        (
            "2024-03-22T04:24:06+02:00",
            datetime(2024, 3, 22, 4, 24, 6, tzinfo=timezone(timedelta(hours=2))),
        ),
    ],
)
def test_parses_vault_timestamps(value, expected):
    parsed = parse_rfc3339(value)

    assert parsed == expected
    assert parsed.tzinfo is not None


@pytest.mark.parametrize("value", ["", "yesterday", "2024-03-22", "2024-03-22T02:24:06"])
def test_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_rfc3339(value)


def test_offset_is_required():
    with pytest.raises(ValueError, match="no UTC offset"):
        parse_rfc3339("2024-03-22T02:24:06.945319")
