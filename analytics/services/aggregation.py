"""
Reductions over bucketed records.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Hashable, Iterable, Optional, TypeVar

from analytics.services.bucketing import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    bucketize,
    month_label,
    month_week_buckets,
    week_label,
)

T = TypeVar('T')

# Name of the bucket key in occupancy trend rows, per period
TREND_KEYS = {
    DAILY: 'date',
    WEEKLY: 'weekStart',
    MONTHLY: 'monthStart',
    YEARLY: 'yearStart',
}


def total(records: Iterable[T], value: Callable[[T], float]) -> float:
    return sum(value(r) for r in records)


def count(records: Iterable[Any]) -> int:
    return sum(1 for _ in records)


def average(values: Iterable[float]) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def distinct_average(pairs: Iterable[tuple[Hashable, float]]) -> Optional[float]:
    """Mean over the first value seen for each key.

    Used for department ratings: a doctor contributes their rating once,
    however many consultations they took.
    """
    seen: dict[Hashable, float] = {}
    for key, value in pairs:
        seen.setdefault(key, value)
    return average(seen.values())


def occupancy_trend(snapshots: Iterable[Any], period: str) -> list[dict]:
    key_name = TREND_KEYS[period]
    rows = []
    for start, entries in bucketize(snapshots, period, instant=attrgetter('date')):
        counts = [e.occupied_bed_count for e in entries]
        rows.append({
            key_name: start.isoformat(),
            'occupiedBedCount': sum(counts),
            'days': len(counts),
            'averageOccupiedBedCount': round(average(counts), 2),
        })
    return rows


@dataclass
class MonthlyWeeklySeries:
    labels: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    counts: list[int] = field(default_factory=list)
    weekly: dict[str, dict[str, list]] = field(default_factory=dict)

    @property
    def total(self) -> float:
        return sum(self.values)

    @property
    def record_count(self) -> int:
        return sum(self.counts)

    def monthly_data(self) -> dict:
        return {'labels': list(self.labels), 'values': list(self.values), 'counts': list(self.counts)}


def monthly_weekly_series(
    records: Iterable[T],
    instant: Callable[[T], Any],
    quantity: Callable[[T], float],
) -> MonthlyWeeklySeries:
    """Sum ``quantity`` per month and per week-of-month within each month."""
    series = MonthlyWeeklySeries()
    for month_start, weeks in month_week_buckets(records, instant):
        label = month_label(month_start)
        month_records = [r for _, week_records in weeks for r in week_records]
        series.labels.append(label)
        series.values.append(total(month_records, quantity))
        series.counts.append(count(month_records))
        series.weekly[label] = {
            'labels': [week_label(week) for week, _ in weeks],
            'values': [total(week_records, quantity) for _, week_records in weeks],
        }
    return series
