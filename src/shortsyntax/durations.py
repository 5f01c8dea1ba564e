from __future__ import annotations

import arrow
from pytimeparse import parse as parse_duration

__all__ = ["get_worklog_str", "ms_to_string", "string_to_ms"]

_MS_PER_MINUTE = 60_000
_MS_PER_HOUR = 60 * _MS_PER_MINUTE
_MS_PER_DAY = 24 * _MS_PER_HOUR


def string_to_ms(value: str | None) -> int | None:
    """Convert a unit-tagged duration such as ``1h30m`` to milliseconds.

    Empty input is zero. Input pytimeparse cannot read yields None.
    """
    candidate = (value or "").strip()
    if not candidate:
        return 0
    seconds = parse_duration(candidate)
    if seconds is None:
        return None
    return int(round(seconds * 1000))


def ms_to_string(ms: int | None) -> str:
    if not ms or ms < 0:
        return "0m"
    days, remainder = divmod(int(ms), _MS_PER_DAY)
    hours, remainder = divmod(remainder, _MS_PER_HOUR)
    minutes = remainder // _MS_PER_MINUTE
    parts: list[str] = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def get_worklog_str(now: arrow.Arrow | None = None) -> str:
    """Key of the work-log day containing ``now`` (local time by default)."""
    reference = now or arrow.now()
    return reference.format("YYYY-MM-DD")
