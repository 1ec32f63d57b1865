"""Tests for the historical time series module."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from repo_radar.errors import RequestTimeout
from repo_radar.github.client import GitHubClient
from repo_radar.models import StarEvent, WeeklyActivity
from repo_radar.timeseries import build_historical_series, get_historical_data, seed_months

NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)


def _week(year, month, day, total):
    return WeeklyActivity(
        week_start=int(datetime(year, month, day, tzinfo=timezone.utc).timestamp()), total=total
    )


def test_seed_months_covers_twelve_months():
    points = seed_months(NOW)
    assert len(points) == 12
    assert points[0].date == "2023-07"
    assert points[-1].date == "2024-06"
    assert all(p.stars == 0 and p.commits == 0 for p in points)


def test_seed_months_on_month_end():
    points = seed_months(datetime(2024, 3, 31, tzinfo=timezone.utc))
    assert [p.date for p in points][-3:] == ["2024-01", "2024-02", "2024-03"]


def test_cumulative_stars_are_non_decreasing():
    events = [
        StarEvent("2024-05-02T00:00:00Z"),
        StarEvent("2023-09-10T00:00:00Z"),
        StarEvent("2024-05-20T00:00:00Z"),
        StarEvent("2024-01-01T00:00:00Z"),
    ]
    points = build_historical_series(events, [], now=NOW)
    stars = [p.stars for p in points]
    assert stars == sorted(stars)
    by_month = {p.date: p.stars for p in points}
    assert by_month["2023-08"] == 0
    assert by_month["2023-09"] == 1
    assert by_month["2024-01"] == 2
    assert by_month["2024-05"] == 4
    assert by_month["2024-06"] == 4


def test_stars_before_window_form_the_baseline():
    events = [StarEvent("2020-01-01T00:00:00Z"), StarEvent("2021-01-01T00:00:00Z")]
    points = build_historical_series(events, [], now=NOW)
    assert points[0].stars == 2
    assert points[-1].stars == 2


def test_commits_summed_by_month_of_week_start():
    weeks = [
        _week(2024, 5, 6, 3),
        _week(2024, 5, 27, 4),
        _week(2024, 6, 3, 5),
        _week(2022, 1, 3, 99),
    ]
    points = build_historical_series([], weeks, now=NOW)
    by_month = {p.date: p.commits for p in points}
    assert by_month["2024-05"] == 7
    assert by_month["2024-06"] == 5
    assert sum(by_month.values()) == 12


def test_forks_stay_zero():
    points = build_historical_series([StarEvent("2024-05-02T00:00:00Z")], [], now=NOW)
    assert all(p.forks == 0 for p in points)


@pytest.mark.asyncio
async def test_get_historical_data():
    client = AsyncMock(spec=GitHubClient)
    client.list_stargazers.return_value = [StarEvent("2024-06-01T00:00:00Z")]
    client.get_commit_activity.return_value = [_week(2024, 6, 3, 2)]

    points = await get_historical_data(client, "octocat", "Hello-World", now=NOW)
    assert len(points) == 12
    assert points[-1].stars == 1
    assert points[-1].commits == 2
    client.list_stargazers.assert_awaited_once_with("octocat", "Hello-World", limit=100)


@pytest.mark.asyncio
async def test_get_historical_data_empty_on_failure():
    client = AsyncMock(spec=GitHubClient)
    client.list_stargazers.return_value = []
    client.get_commit_activity.side_effect = RequestTimeout()

    assert await get_historical_data(client, "octocat", "Hello-World", now=NOW) == []
