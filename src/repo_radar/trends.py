"""Growth trends from the monthly historical series."""

from __future__ import annotations

from collections.abc import Sequence

from .models import HistoricalPoint, TrendSet
from .rounding import round_half_up

WINDOW_MONTHS = 3


def _average(values: Sequence[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def growth_percentage(recent_avg: float, previous_avg: float) -> int:
    """Percentage change between two window averages.

    A zero previous average yields 0 rather than an infinite growth, which
    under-reports growth for brand-new repositories.
    """
    if previous_avg <= 0:
        return 0
    return round_half_up((recent_avg - previous_avg) / previous_avg * 100)


def calculate_trends(historical: Sequence[HistoricalPoint]) -> TrendSet:
    """Compare the last three months with the three before them."""
    if len(historical) < 2:
        return TrendSet()

    recent = historical[-WINDOW_MONTHS:]
    previous = historical[-2 * WINDOW_MONTHS : -WINDOW_MONTHS]

    def growth(metric: str) -> int:
        return growth_percentage(
            _average([getattr(p, metric) for p in recent]),
            _average([getattr(p, metric) for p in previous]),
        )

    return TrendSet(
        stars_growth=growth("stars"),
        forks_growth=growth("forks"),
        contributors_growth=0,
        commit_activity=growth("commits"),
    )
