"""Month-bucketed historical growth series."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from .config import DEFAULT_SETTINGS, Settings
from .dates import month_key, parse_timestamp, shift_months, utc_now
from .github.client import GitHubClient
from .models import HistoricalPoint, StarEvent, WeeklyActivity

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 12


def seed_months(now: datetime, months: int = HISTORY_MONTHS) -> list[HistoricalPoint]:
    """Contiguous zeroed month buckets, oldest first, ending at ``now``'s month."""
    first = now.replace(day=1)
    return [
        HistoricalPoint(date=month_key(shift_months(first, offset)))
        for offset in range(-(months - 1), 1)
    ]


def build_historical_series(
    star_events: Iterable[StarEvent],
    commit_weeks: Iterable[WeeklyActivity],
    now: datetime | None = None,
) -> list[HistoricalPoint]:
    """Fold star events and weekly commit totals into 12 monthly points.

    ``stars`` is the cumulative star count at the end of each month, so it
    never decreases from one point to the next. Stars given before the first
    bucket count towards the starting total. ``commits`` sums the weekly
    totals whose week starts inside the month.
    """
    points = seed_months(now or utc_now())
    by_month = {p.date: p for p in points}
    first_month = points[0].date

    stars_per_month: dict[str, int] = {}
    baseline = 0
    timestamps = sorted(parse_timestamp(e.starred_at) for e in star_events)
    for ts in timestamps:
        key = month_key(ts.astimezone(timezone.utc))
        if key < first_month:
            baseline += 1
        elif key in by_month:
            stars_per_month[key] = stars_per_month.get(key, 0) + 1

    cumulative = baseline
    for point in points:
        cumulative += stars_per_month.get(point.date, 0)
        point.stars = cumulative

    for week in commit_weeks:
        key = month_key(datetime.fromtimestamp(week.week_start, tz=timezone.utc))
        if key in by_month:
            by_month[key].commits += week.total

    return points


async def get_historical_data(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> list[HistoricalPoint]:
    """Historical growth for a repository; ``[]`` when upstream data is unavailable."""
    limits = (settings or DEFAULT_SETTINGS).limits
    try:
        star_events, commit_weeks = await asyncio.gather(
            client.list_stargazers(owner, name, limit=limits.star_events),
            client.get_commit_activity(owner, name),
        )
    except Exception as exc:
        logger.warning("Could not fetch historical data for %s/%s: %s", owner, name, exc)
        return []
    return build_historical_series(star_events, commit_weeks, now=now)
