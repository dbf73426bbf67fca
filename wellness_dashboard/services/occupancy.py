"""Slot occupancy against fixed daily capacities."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from wellness_dashboard.services.bucketing import DateBucket

CONSULTATION = "consultation"
TREATMENT = "treatment"


@dataclass(frozen=True)
class DailyOccupancy:
    date: date
    counts: dict[str, int]
    rates: dict[str, float]


def occupancy_rate(count: int, capacity: int) -> float:
    """Percentage of capacity used, rounded to 2 dp.

    Not clamped: values above 100 mean the day was overbooked.
    """
    if capacity <= 0:
        raise ValueError(f"capacity must be positive, got {capacity}")
    return round(count / capacity * 100, 2)


def occupancy_series(
    buckets: Sequence[DateBucket],
    capacities: Mapping[str, int],
) -> list[DailyOccupancy]:
    """Per-day counts and rates for every category in ``capacities``."""
    return [
        DailyOccupancy(
            date=bucket.date,
            counts={category: bucket.count(category) for category in capacities},
            rates={
                category: occupancy_rate(bucket.count(category), capacity)
                for category, capacity in capacities.items()
            },
        )
        for bucket in buckets
    ]
