"""Shared utilities for logscope."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

import dateparser

_TIME_UNITS: dict[str, str] = {
    "s": "seconds",
    "sec": "seconds",
    "m": "minutes",
    "min": "minutes",
    "h": "hours",
    "d": "days",
}

_RELATIVE_RE = re.compile(r"^(\d+)\s*([a-z]+)$")


def parse_time(value: str, now: datetime | None = None) -> datetime:
    """Parse a point in time.

    Supports:
    - Relative shorthand meaning "ago": 30s, 5m, 1h, 2d
    - ISO 8601: 2024-01-15T10:30:00Z
    - Anything dateparser understands: "yesterday 7:58", "Feb 13 2026 7:58"
    """
    stripped = value.strip()
    reference = now or datetime.now(tz=UTC)

    match = _RELATIVE_RE.match(stripped.lower())
    if match and match.group(2) in _TIME_UNITS:
        delta = timedelta(**{_TIME_UNITS[match.group(2)]: int(match.group(1))})
        return reference - delta

    try:
        parsed = datetime.fromisoformat(stripped)
    except ValueError:
        pass
    else:
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    settings: dict[str, object] = {
        "TIMEZONE": "UTC",
        "RETURN_AS_TIMEZONE_AWARE": True,
        "PREFER_DATES_FROM": "past",
        "RELATIVE_BASE": reference.replace(tzinfo=None),
    }
    result = dateparser.parse(stripped, settings=settings)
    if result is not None:
        return result

    msg = f"Cannot parse time: {value!r}"
    raise ValueError(msg)
