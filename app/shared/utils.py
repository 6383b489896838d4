"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

# Weekday numbering used by availability: 0 = Sunday ... 6 = Saturday.
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_now(tz_name: str) -> datetime:
    """Return naive wall-clock datetime of the school timezone."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def day_of_week(value: datetime) -> int:
    """Map a date to the Sunday-based day index."""
    return (value.weekday() + 1) % 7


def format_wall_time(value: time) -> str:
    """Render time of day as HH:MM."""
    return value.strftime("%H:%M")
