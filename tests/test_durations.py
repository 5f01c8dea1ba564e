from __future__ import annotations

import arrow
import pytest

from shortsyntax.durations import get_worklog_str, ms_to_string, string_to_ms


@pytest.mark.parametrize(
    "value,expected",
    [
        ("30m", 1_800_000),
        ("1h", 3_600_000),
        ("2d", 172_800_000),
        ("1h30m", 5_400_000),
        ("1d2h", 93_600_000),
        ("", 0),
        (None, 0),
    ],
)
def test_string_to_ms(value: str | None, expected: int) -> None:
    assert string_to_ms(value) == expected


def test_string_to_ms_rejects_unreadable_input() -> None:
    assert string_to_ms("soon") is None


@pytest.mark.parametrize(
    "ms,expected",
    [
        (0, "0m"),
        (None, "0m"),
        (1_800_000, "30m"),
        (5_400_000, "1h 30m"),
        (93_600_000, "1d 2h"),
    ],
)
def test_ms_to_string(ms: int | None, expected: str) -> None:
    assert ms_to_string(ms) == expected


def test_worklog_str_uses_day_of_reference() -> None:
    assert get_worklog_str(arrow.Arrow(2025, 5, 15, 23, 59, tzinfo="UTC")) == "2025-05-15"
    assert get_worklog_str(arrow.Arrow(2025, 1, 2, 0, 0, tzinfo="US/Pacific")) == "2025-01-02"
