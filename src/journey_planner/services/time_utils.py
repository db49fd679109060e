"""Time-of-day arithmetic for GTFS schedule times.

GTFS expresses service after midnight as hours >= 24 ("25:30:00" is 1:30 AM
on the next day), so times of one service day compare correctly as plain
minute counts. Durations that still come out negative are assumed to cross
midnight going forward.
"""

from dataclasses import dataclass
from datetime import datetime

MINUTES_PER_DAY = 24 * 60

# Returned by duration() when either endpoint is missing or malformed.
DEFAULT_DURATION_MINUTES = 30


@dataclass(frozen=True)
class GTFSTime:
    """A parsed time of day; hour may exceed 23 for next-day service."""

    hour: int
    minute: int
    total_minutes: int


def parse_time(time_str: str) -> GTFSTime:
    """Parse an HH:MM or HH:MM:SS string.

    Args:
        time_str: Time string; hours can exceed 24.

    Returns:
        GTFSTime (seconds are dropped).

    Raises:
        ValueError: If the time string is empty or invalid.
    """
    if time_str is None:
        raise ValueError("Missing GTFS time")

    parts = time_str.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid GTFS time format: {time_str!r}")

    try:
        numbers = [int(part) for part in parts]
    except ValueError as e:
        raise ValueError(f"Invalid GTFS time format: {time_str!r}") from e

    hours, minutes = numbers[0], numbers[1]
    if hours < 0 or not 0 <= minutes < 60 or (len(numbers) == 3 and not 0 <= numbers[2] < 60):
        raise ValueError(f"Invalid GTFS time format: {time_str!r}")

    return GTFSTime(hour=hours, minute=minutes, total_minutes=hours * 60 + minutes)


def try_parse_time(time_str: str | None) -> GTFSTime | None:
    """Parse a time string, returning None instead of raising."""
    if not time_str:
        return None
    try:
        return parse_time(time_str)
    except ValueError:
        return None


def is_at_or_after(t: GTFSTime, reference: GTFSTime) -> bool:
    """True if t is not earlier than reference within the same service day."""
    return t.total_minutes >= reference.total_minutes


def duration(start: str | GTFSTime | None, end: str | GTFSTime | None) -> int:
    """Minutes from start to end.

    A negative difference is taken to cross midnight, so the result is never
    negative. Returns DEFAULT_DURATION_MINUTES when either side cannot be
    parsed; callers that need a real interval must check their inputs first.
    """
    start_time = start if isinstance(start, GTFSTime) else try_parse_time(start)
    end_time = end if isinstance(end, GTFSTime) else try_parse_time(end)
    if start_time is None or end_time is None:
        return DEFAULT_DURATION_MINUTES

    minutes = end_time.total_minutes - start_time.total_minutes
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes


def format_time(time_str: str) -> str:
    """Format a GTFS time string for human display.

    Converts 24-hour format to 12-hour with AM/PM.
    Times >= 24:00 are shown with "(+1)" suffix to indicate next day.

    Args:
        time_str: Time string in HH:MM or HH:MM:SS format.

    Returns:
        Human-readable time like "8:30 AM" or "1:30 AM (+1)", or "N/A".
    """
    parsed = try_parse_time(time_str)
    if parsed is None:
        return "N/A"

    hours, minutes = parsed.hour, parsed.minute
    next_day = ""
    if hours >= 24:
        hours %= 24
        next_day = " (+1)"

    period = "AM"
    display_hour = hours
    if hours == 0:
        display_hour = 12
    elif hours == 12:
        period = "PM"
    elif hours > 12:
        display_hour = hours - 12
        period = "PM"

    return f"{display_hour}:{minutes:02d} {period}{next_day}"


def format_duration(minutes: int) -> str:
    """Render a duration like "1h 05m" or "45m"."""
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins:02d}m"
    return f"{mins}m"


def time_to_gtfs_format(dt: datetime) -> str:
    """Convert a datetime to GTFS time format.

    Args:
        dt: Datetime object.

    Returns:
        Time string in HH:MM:SS format.
    """
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"


def current_time_of_day() -> str:
    """Local wall-clock time in GTFS format."""
    return time_to_gtfs_format(datetime.now())
