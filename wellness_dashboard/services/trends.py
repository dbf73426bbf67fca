"""Scalar summaries of daily series."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class SeriesSummary:
    total: float
    mean: float
    trend: float


def series_total(values: Sequence[float]) -> float:
    return sum(values)


def series_mean(values: Sequence[float], ndigits: int = 2) -> float:
    """Arithmetic mean of the values; 0 for an empty series."""
    if not values:
        return 0.0
    return round(sum(values) / len(values), ndigits)


def day_over_day_trend(latest: float, previous: float, ndigits: int = 1) -> float:
    """Percentage change from ``previous`` to ``latest``.

    A non-positive baseline has no meaningful change and reports 0.
    """
    if previous <= 0:
        return 0.0
    return round((latest - previous) / previous * 100, ndigits)


def summarize(values: Sequence[float], mean_ndigits: int = 2, trend_ndigits: int = 1) -> SeriesSummary:
    """Total, mean and last-vs-previous trend of an ascending daily series."""
    trend = 0.0
    if len(values) >= 2:
        trend = day_over_day_trend(values[-1], values[-2], trend_ndigits)
    return SeriesSummary(
        total=series_total(values),
        mean=series_mean(values, mean_ndigits),
        trend=trend,
    )
