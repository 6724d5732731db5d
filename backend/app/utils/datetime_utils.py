"""
Wall-clock time utilities.

Plans describe a single calendar day, so task times are stored as "HH:MM"
strings and converted to integer minutes since midnight for arithmetic.
"""

import re
from datetime import datetime, timezone

from app.core.exceptions import InvalidTimeFormatError

# UTC timezone constant
UTC = timezone.utc

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"
_TIME_RE = re.compile(TIME_PATTERN)


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def to_minutes(value: str) -> int:
    """
    Parse an "HH:MM" string into minutes since midnight.

    Args:
        value: 24-hour wall-clock time, e.g. "09:30"

    Returns:
        int: Minutes in the range 0..1439

    Raises:
        InvalidTimeFormatError: If the string is not a valid HH:MM time

    Example:
        >>> to_minutes("09:30")
        570
    """
    match = _TIME_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeFormatError(
            f"Invalid time '{value}', expected HH:MM",
            details={"value": value},
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def to_time_string(minutes: int) -> str:
    """
    Format minutes since midnight as "HH:MM".

    Raises:
        InvalidTimeFormatError: If minutes is outside 0..1439
    """
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeFormatError(
            f"{minutes} minutes is not a time of day",
            details={"minutes": minutes},
        )
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def format_duration(minutes: int) -> str:
    """
    Render a duration as hours and minutes joined by a dot.

    This is a display format, not a decimal: 90 minutes is "1.30".
    """
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours}.{mins:02d}"
