"""
Temporal bucketing of timestamped records.

Records are grouped by the canonical start of the day, ISO week
(Monday), calendar month or calendar year that contains them.  Only
buckets holding at least one record are produced, in ascending order.
Aware datetimes are read in the current Django time zone before their
calendar date is taken.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from operator import itemgetter
from typing import Any, Callable, Iterable, Optional, TypeVar

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from analytics.exceptions import ValidationError

T = TypeVar('T')

DAILY = 'daily'
WEEKLY = 'weekly'
MONTHLY = 'monthly'
YEARLY = 'yearly'
PERIODS = (DAILY, WEEKLY, MONTHLY, YEARLY)

MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


def to_local_date(value: Any) -> Optional[date]:
    """Return the calendar date of ``value`` or ``None`` when it has none.

    Accepts dates, naive or aware datetimes and ISO-8601 strings.
    Anything unparseable yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = parse_datetime(value) or parse_date(value)
        except ValueError:
            return None
        if value is None:
            return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def bucket_start(day: date, period: str) -> date:
    if period == DAILY:
        return day
    if period == WEEKLY:
        # weekday(): Monday == 0, Sunday == 6
        return day - timedelta(days=day.weekday())
    if period == MONTHLY:
        return day.replace(day=1)
    if period == YEARLY:
        return date(day.year, 1, 1)
    raise ValueError(f'unknown period: {period!r}')


def bucketize(
    records: Iterable[T],
    period: str,
    instant: Callable[[T], Any] = lambda r: r,
) -> list[tuple[date, list[T]]]:
    """Group ``records`` into ``(bucket_start, records)`` pairs ordered by start."""
    buckets: dict[date, list[T]] = {}
    for record in records:
        day = to_local_date(instant(record))
        if day is None:
            continue
        buckets.setdefault(bucket_start(day, period), []).append(record)
    return sorted(buckets.items(), key=itemgetter(0))


def week_of_month(day: date) -> int:
    """``ceil(day_of_month / 7)``: days 1-7 are week 1, 29-31 week 5."""
    return (day.day + 6) // 7


def month_week_buckets(
    records: Iterable[T],
    instant: Callable[[T], Any],
) -> list[tuple[date, list[tuple[int, list[T]]]]]:
    """Two-level month -> week-of-month grouping, both levels ascending."""
    result = []
    for month_start, month_records in bucketize(records, MONTHLY, instant):
        weeks: dict[int, list[T]] = {}
        for record in month_records:
            weeks.setdefault(week_of_month(to_local_date(instant(record))), []).append(record)
        result.append((month_start, sorted(weeks.items(), key=itemgetter(0))))
    return result


def month_label(month_start: date) -> str:
    return f'{MONTH_NAMES[month_start.month - 1]} {month_start.year}'


def week_label(week: int) -> str:
    return f'Week {week}'


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Aware datetimes spanning the first instant of ``start`` to the last of ``end``."""
    if start > end:
        raise ValidationError('startDate cannot be later than endDate.')
    tz = timezone.get_current_timezone()
    lower = timezone.make_aware(datetime.combine(start, time.min), tz)
    upper = timezone.make_aware(datetime.combine(end, time.max), tz)
    return lower, upper
