"""
Time handling for financial reporting.

Stored timestamps are UTC. Calendar arithmetic (day and month boundaries)
happens in the caller's local zone, which is carried on the `now` value
handed to the range resolver.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

END_OF_DAY = time(23, 59, 59, 999000)


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def now_local(tz_name: str) -> datetime:
    """Current time in the named IANA zone."""
    return to_local(now_utc(), tz_name)


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert an aware datetime to a local timezone.

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )

    try:
        local_tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")

    return dt.astimezone(local_tz)


def require_aware(dt: datetime) -> datetime:
    """Return dt unchanged, raising ValueError if it is naive."""
    if dt.tzinfo is None:
        raise ValueError(
            "Naive datetime not allowed. Datetime must be timezone-aware."
        )
    return dt


def coerce_datetime(value: Any) -> datetime | None:
    """
    Best-effort conversion of a stored temporal value to an aware datetime.

    Accepts datetime, date, ISO-8601 strings and epoch milliseconds.
    Naive values are read as UTC. Anything unrecognizable yields None
    rather than raising; callers treat None as "no date".
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def start_of_day(dt: datetime) -> datetime:
    """00:00:00.000 on dt's calendar day, same tzinfo."""
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def end_of_day(dt: datetime) -> datetime:
    """23:59:59.999 on dt's calendar day, same tzinfo."""
    return datetime.combine(dt.date(), END_OF_DAY, tzinfo=dt.tzinfo)


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    """Shift a (year, month) pair by offset months. Month is 1-based."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def ms_until_next_midnight(now: datetime) -> int:
    """
    Milliseconds until 50ms past the next local midnight.

    Used by the host's day-change timer to re-resolve rolling presets.
    """
    require_aware(now)
    next_midnight = start_of_day(now) + timedelta(days=1, milliseconds=50)
    return (next_midnight - now) // timedelta(milliseconds=1)


def ymd(dt: datetime | None) -> str:
    """YYYY-MM-DD for dt, or empty string."""
    return dt.strftime("%Y-%m-%d") if dt is not None else ""
