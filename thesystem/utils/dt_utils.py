# File: utils/dt_utils.py
"""Date and time utilities for THE SYSTEM.

Pure Python date/time functions with no dependency on the state document.
Uses standard library datetime plus python-dateutil for ISO parsing and the
machine's local timezone.

The state document mixes two kinds of values:
    - calendar dates ("2026-01-18") for due dates, login dates and habit log keys
    - UTC timestamps ("2026-01-18T12:30:00.000000+00:00") for createdAt/completedAt

Calendar dates are always interpreted in the configured local timezone.

Functions:
    - set_default_timezone / get_default_timezone: Timezone configuration
    - dt_today_local / dt_today_iso: Today's local calendar date
    - dt_now_local / dt_now_utc / dt_now_iso: Current datetime
    - as_utc / as_local: Timezone conversion
    - dt_parse_date: Parse calendar dates (and timestamp prefixes)
    - dt_to_utc: Parse ISO timestamps into UTC datetimes
    - dt_local_date_of: Local calendar date of a stored timestamp
    - days_between / add_days: Calendar-day arithmetic
    - dt_iso_date: Normalize date input to "YYYY-MM-DD"
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo
import logging

# Third-party date utilities
from dateutil import parser as dt_parser, tz

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Timezone Configuration
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: tzinfo = tz.tzlocal()


def set_default_timezone(tz_info: tzinfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this once at startup (tests pin it to UTC).
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz_info


def get_default_timezone() -> tzinfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz_info: tzinfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Example:
        datetime.date(2026, 1, 18)
    """
    return datetime.now(tz_info or DEFAULT_TIME_ZONE).date()


def dt_today_iso(tz_info: tzinfo | None = None) -> str:
    """Return today's date in local timezone as ISO string (YYYY-MM-DD)."""
    return dt_today_local(tz_info).isoformat()


def dt_now_local(tz_info: tzinfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    return datetime.now(tz_info or DEFAULT_TIME_ZONE)


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_iso() -> str:
    """Return the current UTC datetime as an ISO 8601 string.

    Stored timestamps are always UTC so the quest-log dedup key
    (id, completedAt) does not depend on the machine's timezone.

    Example:
        "2026-01-18T12:30:00.123456+00:00"
    """
    return dt_now_utc().isoformat()


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC, treating naive values as local time."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz_info: tzinfo | None = None) -> datetime:
    """Convert a datetime to local timezone, treating naive values as UTC."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info or DEFAULT_TIME_ZONE)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(value: str | date | datetime | None) -> date | None:
    """Safely parse a calendar date.

    Accepts:
    - date objects (returned as-is)
    - datetime objects (converted to the local calendar date)
    - "2026-01-18" (ISO date)
    - "2026-01-18T09:00:00Z" (timestamp; its local calendar date is returned)

    Returns:
        datetime.date or None if parsing fails.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_local(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    parsed = dt_to_utc(value)
    if parsed is None:
        return None
    return as_local(parsed).date()


def dt_to_utc(dt_str: str | None) -> datetime | None:
    """Parse an ISO 8601 string, apply timezone if naive, and convert to UTC.

    Example:
        "2026-01-18T14:30:00Z" → datetime.datetime(2026, 1, 18, 14, 30, tzinfo=UTC)
    """
    if not dt_str:
        return None
    try:
        result = dt_parser.isoparse(dt_str)
    except (ValueError, OverflowError):
        _LOGGER.debug("Unparseable timestamp: %s", dt_str)
        return None
    return as_utc(result)


def dt_local_date_of(timestamp: str | None) -> date | None:
    """Return the local calendar date a stored UTC timestamp falls on."""
    parsed = dt_to_utc(timestamp)
    if parsed is None:
        return None
    return as_local(parsed).date()


def dt_iso_date(value: str | date | datetime | None) -> str | None:
    """Normalize date input to an ISO "YYYY-MM-DD" string (None if unparseable)."""
    parsed = dt_parse_date(value)
    return parsed.isoformat() if parsed else None


# ==============================================================================
# Calendar-Day Arithmetic
# ==============================================================================


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier).

    Counts calendar dates, so a 23 or 25 hour DST day still counts as one.
    """
    return (end - start).days


def add_days(day: date, days: int) -> date:
    """Shift a calendar date by a number of days."""
    return day + timedelta(days=days)
