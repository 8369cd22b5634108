"""Datetime utilities with consistent UTC timezone handling.

This module provides centralized datetime functions so that every timestamp
flowing through the timeline engine is timezone-aware and in UTC, plus the
day arithmetic shared by the duration calculator and the CLI.
"""

import math
from datetime import datetime, timezone
from typing import Any, Callable, Optional


# A clock is any zero-argument callable returning an aware datetime.
Clock = Callable[[], datetime]

SECONDS_PER_DAY = 24 * 60 * 60


def now_utc() -> datetime:
    """Return current datetime in UTC timezone.

    Returns:
        Current datetime with timezone=UTC
    """
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.

    Args:
        dt: Datetime to check/convert, or None

    Returns:
        Timezone-aware datetime in UTC, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a feed timestamp into an aware UTC datetime.

    Accepts datetimes, ISO 8601 strings (including a trailing ``Z``) and
    plain ``YYYY-MM-DD`` dates. Anything else yields None rather than raising,
    since feed data is user-entered and frequently incomplete.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"

    try:
        return ensure_aware(datetime.fromisoformat(text))
    except ValueError:
        pass

    try:
        return parse_date_with_tz(text)
    except ValueError:
        return None


def parse_date_with_tz(date_str: str, date_format: str = "%Y-%m-%d") -> datetime:
    """Parse date string and ensure it's timezone-aware (UTC).

    Args:
        date_str: Date string to parse
        date_format: Format string for parsing (default: YYYY-MM-DD)

    Returns:
        Timezone-aware datetime in UTC
    """
    parsed = datetime.strptime(date_str, date_format)
    return ensure_aware(parsed)


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO string with timezone info.

    Args:
        dt: Datetime to convert, or None

    Returns:
        ISO format string with timezone, or None if input was None
    """
    if dt is None:
        return None

    aware_dt = ensure_aware(dt)
    return aware_dt.isoformat()


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, rounded half-up and never negative."""
    seconds = (ensure_aware(end) - ensure_aware(start)).total_seconds()
    return max(0, math.floor(seconds / SECONDS_PER_DAY + 0.5))


def days_to_weeks(days: float) -> int:
    """Convert days to whole weeks, rounded half-up."""
    return math.floor(days / 7 + 0.5)


def format_duration_in_weeks(days: float) -> str:
    """Format a day count as weeks with pluralization, e.g. ``"3 weeks"``."""
    weeks = days_to_weeks(days)
    return "1 week" if weeks == 1 else f"{weeks} weeks"


def frozen_clock(moment: datetime) -> Clock:
    """Return a clock that always reports ``moment``."""
    aware = ensure_aware(moment)
    return lambda: aware
