"""
Date and timestamp utilities.

The application "day" follows the plain calendar (midnight starts a new day),
so the date an application was logged is always the current calendar date.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional

TIME_FORMAT_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def now() -> str:
    """Current local time as a filesystem-friendly stamp (YYYYMMDD_HHMMSS)."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def data_inscricao(now: Optional[datetime] = None) -> str:
    """
    Return the application date for a vaga logged at `now`.

    Args:
        now: Current date/time (defaults to datetime.now())

    Returns:
        Calendar date in YYYY-MM-DD format
    """
    return format_date_yyyy_mm_dd(now or datetime.now())


def format_date_yyyy_mm_dd(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_date_dd_mm_yyyy(value: date) -> str:
    """Format a date for display as DD/MM/YYYY."""
    return f"{value.day:02d}/{value.month:02d}/{value.year:04d}"


def is_valid_time_format(value: str) -> bool:
    """Check that a string is a zero-padded 24h HH:MM time."""
    return bool(TIME_FORMAT_PATTERN.match(value))


def days_between(first: date, second: date) -> int:
    """
    Absolute number of days between two dates.

    Datetimes are compared by elapsed time and rounded to the nearest day.
    """
    if isinstance(first, datetime) and isinstance(second, datetime):
        return round(abs((first - second).total_seconds()) / 86400)
    return abs((first - second).days)


def iso_from_epoch(epoch_seconds: float) -> str:
    """Convert epoch seconds to a UTC ISO 8601 string (millisecond precision)."""
    dt = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_timestamp(iso_timestamp: str, relative: bool = False) -> str:
    """
    Format ISO 8601 timestamp to readable format.

    Args:
        iso_timestamp: ISO 8601 formatted timestamp string
        relative: If True, show relative time (e.g., "2h ago")
                 If False, show absolute time (e.g., "2025-11-13 18:45:40")

    Returns:
        Human-readable timestamp, or the input unchanged if it cannot be parsed

    Examples:
        format_timestamp("2025-11-13T18:45:40.572549")
        # "2025-11-13 18:45:40"
    """
    try:
        dt = datetime.fromisoformat(iso_timestamp)
    except (TypeError, ValueError):
        return iso_timestamp

    if relative:
        return _format_relative_time(dt)
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _format_relative_time(dt: datetime) -> str:
    """Format datetime as compact relative time ("30s ago", "2h ago", "5d from now")."""
    now = datetime.now(dt.tzinfo)
    diff = now - dt

    if diff.total_seconds() < 0:
        diff = -diff
        suffix = "from now"
    else:
        suffix = "ago"

    seconds = int(diff.total_seconds())
    minutes = seconds // 60
    hours = minutes // 60

    if seconds < 60:
        return f"{seconds}s {suffix}"
    elif minutes < 60:
        return f"{minutes}m {suffix}"
    elif hours < 24:
        return f"{hours}h {suffix}"
    else:
        return f"{diff.days}d {suffix}"
