"""Utility functions for time handling.

Audit and persistence timestamps are UTC and timezone-aware. Schedule
fields (dates, HH:MM times, weekdays) are wall-clock values in the
deployment's timezone, so resolution at "now" goes through local_now().
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def local_now(tz_name: str | None = None) -> datetime:
    """Return the current wall-clock time in *tz_name* as a naive datetime.

    Falls back to UTC when the zone is unknown or not given.
    """
    tz: Any = timezone.utc
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            tz = timezone.utc
    return datetime.now(tz).replace(tzinfo=None)


def local_today(tz_name: str | None = None) -> date:
    return local_now(tz_name).date()


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def parse_local_datetime(value: Any) -> datetime | None:
    """Parse an ISO instant into a naive wall-clock datetime.

    Offsets are dropped rather than converted: a player asking about
    ``2025-06-02T01:00+02:00`` means 01:00 on its own clock.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1]
    try:
        return datetime.fromisoformat(raw).replace(tzinfo=None)
    except ValueError:
        return None
