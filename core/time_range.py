"""
Reporting time windows.

Turns a preset (or an explicit custom start/end) into a closed DateRange and
lays out calendar-month buckets for trend series. All boundaries are computed
in the timezone of the `now` value supplied by the caller.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable

from core.models import DateRange, MonthBucket, RangePreset
from utils.timezone import add_months, end_of_day, require_aware, start_of_day

# Months covered by each month-aligned preset, counting the current month.
_TRAILING_MONTHS = {
    RangePreset.THIS_MONTH: 1,
    RangePreset.SIX_MONTHS: 6,
    RangePreset.TWELVE_MONTHS: 12,
}


def _as_day(value: date | datetime, tz) -> datetime:
    """A custom-range endpoint as midnight in tz (datetimes are converted first)."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(tz)
    return datetime(value.year, value.month, value.day, tzinfo=tz)


def _month_start(year: int, month: int, tz) -> datetime:
    return datetime(year, month, 1, tzinfo=tz)


def resolve_range(
    preset: RangePreset | str,
    now: datetime,
    custom_start: date | datetime | None = None,
    custom_end: date | datetime | None = None,
) -> DateRange:
    """
    Resolve a preset to a closed interval.

    Args:
        preset: RangePreset or its string value ("last7", "ytd", ...)
        now: Current time, timezone-aware; its zone defines day boundaries
        custom_start: First day of a custom range (inclusive)
        custom_end: Last day of a custom range (inclusive)

    Returns:
        DateRange. "all" has no bounds. Custom ranges are normalized to
        [00:00:00, 23:59:59.999] and swapped if given inverted.

    Raises:
        ValueError: If now is naive or preset is unknown
    """
    require_aware(now)
    preset = RangePreset(preset)
    tz = now.tzinfo

    if preset == RangePreset.ALL:
        return DateRange(preset=preset)

    if preset == RangePreset.LAST_7:
        return DateRange(
            preset=preset,
            start=start_of_day(now - timedelta(days=6)),
            end=end_of_day(now),
        )

    if preset == RangePreset.YTD:
        return DateRange(preset=preset, start=_month_start(now.year, 1, tz), end=end_of_day(now))

    if preset in _TRAILING_MONTHS:
        year, month = add_months(now.year, now.month, -_TRAILING_MONTHS[preset] + 1)
        return DateRange(preset=preset, start=_month_start(year, month, tz), end=end_of_day(now))

    # custom
    start = _as_day(custom_start, tz) if custom_start is not None else None
    end = _as_day(custom_end, tz) if custom_end is not None else None
    if start is not None and end is not None and start > end:
        start, end = end, start
    return DateRange(
        preset=preset,
        start=start_of_day(start) if start is not None else None,
        end=end_of_day(end) if end is not None else None,
    )


def month_key(moment: datetime) -> str:
    """'YYYY-MM' for a datetime."""
    return f"{moment.year:04d}-{moment.month:02d}"


def month_label(year: int, month: int) -> str:
    """'Jan 2025' style label."""
    return f"{calendar.month_abbr[month]} {year}"


def month_count(start: datetime, end: datetime) -> int:
    """Number of calendar months from start's month to end's month, inclusive."""
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def month_buckets(start: datetime, end: datetime) -> list[MonthBucket]:
    """
    One bucket per calendar month from start's month to end's month, inclusive.

    Buckets are never skipped, including months with no documents. Returns
    an empty list when end falls in an earlier month than start.
    """
    buckets = []
    for offset in range(max(month_count(start, end), 0)):
        year, month = add_months(start.year, start.month, offset)
        buckets.append(MonthBucket(
            key=f"{year:04d}-{month:02d}",
            label=month_label(year, month),
            year=year,
            month=month,
        ))
    return buckets


def trend_window(
    date_range: DateRange,
    now: datetime,
    dates: Iterable[datetime | None] = (),
) -> tuple[datetime, datetime]:
    """
    Start and end of the month buckets for a range.

    A bounded side is used as-is. An open start widens to the earliest of the
    given document dates; an open end reaches now or the latest document date.
    The unbounded "all" range covers at least the trailing twelve months. Every
    dated document that passed the range filter therefore lands in a bucket.
    """
    require_aware(now)
    tz = now.tzinfo
    dated = [moment.astimezone(tz) for moment in dates if moment is not None]

    if date_range.start is not None and date_range.end is not None:
        return date_range.start.astimezone(tz), date_range.end.astimezone(tz)

    if date_range.end is not None:
        end = date_range.end.astimezone(tz)
        return min([end, *dated]), end

    if date_range.start is not None:
        return date_range.start.astimezone(tz), max([now, *dated])

    year, month = add_months(now.year, now.month, -11)
    return min([_month_start(year, month, tz), *dated]), max([now, *dated])
