"""
Quiz timer utilities.

Pure functions over a start instant and a fixed duration. Naive datetimes
(as returned by SQLite) are read as UTC.
"""
import math
from datetime import datetime, timezone
from typing import Optional

DEFAULT_DURATION_SECONDS = 1800


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _elapsed(start: datetime, end: datetime) -> int:
    return math.floor((_as_utc(end) - _as_utc(start)).total_seconds())


def time_remaining(
    started_at: Optional[datetime],
    duration_seconds: int = DEFAULT_DURATION_SECONDS,
    now: Optional[datetime] = None,
) -> int:
    """
    Calculate the time remaining in whole seconds.

    Args:
        started_at: When the quiz started; a missing start leaves the whole duration
        duration_seconds: Total duration in seconds
        now: Reference instant, defaults to the current time

    Returns:
        Remaining seconds, 0 once the duration has elapsed
    """
    if started_at is None:
        return duration_seconds
    elapsed = _elapsed(started_at, now or utcnow())
    return max(0, duration_seconds - elapsed)


def is_time_expired(
    started_at: Optional[datetime],
    duration_seconds: int = DEFAULT_DURATION_SECONDS,
    now: Optional[datetime] = None,
) -> bool:
    return time_remaining(started_at, duration_seconds, now) == 0


def time_spent(started_at: Optional[datetime], completed_at: Optional[datetime] = None) -> int:
    """Seconds between the start and completion (or now). Callers must not pass an end before the start."""
    if started_at is None:
        return 0
    return _elapsed(started_at, completed_at or utcnow())


def format_time(seconds: int) -> str:
    """Format seconds as ``MM:SS``; minutes grow past two digits when needed."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"
