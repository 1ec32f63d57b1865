"""Tests for the advanced analytics aggregator."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from repo_radar.aggregator import get_advanced_analytics
from repo_radar.config import Settings, Timeouts
from repo_radar.dates import format_timestamp
from repo_radar.errors import (
    InvalidRequestError,
    NotFoundError,
    RateLimitedError,
    RequestTimeout,
    UpstreamError,
)
from repo_radar.github.client import GitHubClient
from repo_radar.models import (
    CommitEntry,
    ContributorSummary,
    Repository,
    RepositoryOwner,
    StarEvent,
    WeeklyActivity,
)

REPOSITORY_NODE = {
    "id": "R_1",
    "name": "Hello-World",
    "nameWithOwner": "octocat/Hello-World",
    "stargazerCount": 2500,
    "forkCount": 2000,
    "primaryLanguage": {"name": "Python"},
    "releases": {"totalCount": 4},
    "issues": {"totalCount": 3},
    "mergedPullRequests": {"totalCount": 8},
    "defaultBranchRef": {
        "target": {"history": {"totalCount": 420}, "historyLastMonth": {"totalCount": 9}}
    },
}


def _recent(days):
    return format_timestamp(datetime.now(timezone.utc) - timedelta(days=days))


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=GitHubClient)
    client.graphql.return_value = {"repository": REPOSITORY_NODE}
    client.count_contributors.return_value = 3
    client.list_contributors.return_value = [
        ContributorSummary(login="alice", contributions=100),
        ContributorSummary(login="bob", contributions=50),
        ContributorSummary(login="carol", contributions=50),
    ]
    client.list_stargazers.return_value = [StarEvent(_recent(5)), StarEvent(_recent(40))]
    client.get_commit_activity.return_value = [
        WeeklyActivity(
            week_start=int((datetime.now(timezone.utc) - timedelta(days=7)).timestamp()),
            total=6,
        )
    ]
    client.get_languages.return_value = {"Python": 900, "Shell": 100}
    client.get_file_content.side_effect = NotFoundError()
    client.list_commits.return_value = [
        CommitEntry(sha=str(i), date=_recent(i)) for i in range(1, 20)
    ]
    return client


@pytest.mark.asyncio
async def test_full_analytics(mock_client):
    analytics = await get_advanced_analytics(mock_client, "octocat", "Hello-World")

    assert analytics.repository.full_name == "octocat/Hello-World"
    assert analytics.releases == 4
    assert analytics.pull_requests.merged == 8
    assert analytics.commits.total == 420
    assert [c.login for c in analytics.contributors] == ["alice", "bob", "carol"]
    assert len(analytics.historical) == 12
    assert analytics.historical[-1].stars == 2
    assert analytics.technology_stack.languages[0].name == "Python"
    assert analytics.technology_stack.frameworks == ["Python"]
    assert analytics.trends.contributors_growth == 0


@pytest.mark.asyncio
async def test_risk_uses_fetched_contributors(mock_client):
    analytics = await get_advanced_analytics(mock_client, "octocat", "Hello-World")

    risk = analytics.risk_assessment
    assert risk.bus_factor.score == 85
    assert risk.bus_factor.level == "low"
    assert risk.bus_factor.top_contributors == 3
    assert risk.maintenance_status.level == "active"
    mock_client.list_contributors.assert_awaited_once()


@pytest.mark.asyncio
async def test_enrichment_failures_fall_back_to_defaults(mock_client):
    mock_client.list_stargazers.side_effect = UpstreamError("boom")
    mock_client.list_contributors.side_effect = RateLimitedError()
    mock_client.get_languages.side_effect = RequestTimeout()
    mock_client.list_commits.side_effect = UpstreamError("boom")

    analytics = await get_advanced_analytics(mock_client, "octocat", "Hello-World")

    assert analytics.repository.stars == 2500
    assert analytics.historical == []
    assert analytics.contributors == []
    assert analytics.technology_stack.languages == []
    assert analytics.risk_assessment.bus_factor.description == "Unable to assess"
    assert analytics.trends.stars_growth == 0


@pytest.mark.asyncio
async def test_snapshot_failure_uses_minimal_data(mock_client):
    minimal = Repository(
        id="1", name="Hello-World", full_name="octocat/Hello-World", owner=RepositoryOwner("octocat")
    )
    mock_client.graphql.side_effect = UpstreamError("GraphQL down")
    mock_client.get_repository.return_value = minimal

    analytics = await get_advanced_analytics(mock_client, "octocat", "Hello-World")

    assert analytics.repository == minimal
    assert analytics.contributors == []
    assert analytics.historical == []
    assert analytics.risk_assessment.bus_factor.score == 0
    assert analytics.risk_assessment.maintenance_status.score == 0
    mock_client.list_stargazers.assert_not_called()


@pytest.mark.asyncio
async def test_not_found_when_everything_fails(mock_client):
    mock_client.graphql.side_effect = UpstreamError("down")
    mock_client.get_repository.side_effect = UpstreamError("down")

    with pytest.raises(NotFoundError, match="Failed to fetch any data"):
        await get_advanced_analytics(mock_client, "octocat", "Hello-World")


@pytest.mark.asyncio
async def test_rate_limit_survives_failed_fallback(mock_client):
    mock_client.graphql.side_effect = RateLimitedError()
    mock_client.get_repository.side_effect = RateLimitedError()

    with pytest.raises(RateLimitedError):
        await get_advanced_analytics(mock_client, "octocat", "Hello-World")


@pytest.mark.asyncio
async def test_invalid_name_is_rejected_before_fetching(mock_client):
    with pytest.raises(InvalidRequestError):
        await get_advanced_analytics(mock_client, "octocat", "bad name!")
    mock_client.graphql.assert_not_called()


@pytest.mark.asyncio
async def test_slow_snapshot_shrinks_enrichment_budget(mock_client):
    async def slow_graphql(query, variables):
        await asyncio.sleep(0.8)
        return {"repository": REPOSITORY_NODE}

    async def stalled_stargazers(owner, name, limit):
        await asyncio.sleep(10)
        return []

    mock_client.graphql.side_effect = slow_graphql
    mock_client.list_stargazers.side_effect = stalled_stargazers
    # snapshot 1.0s and enrichment 1.33s, more than the 2s left in total
    settings = Settings().with_analytics_timeout(2.0)

    analytics = await get_advanced_analytics(mock_client, "octocat", "Hello-World", settings)

    assert analytics.repository.full_name == "octocat/Hello-World"
    assert analytics.historical == []
    assert [c.login for c in analytics.contributors] == ["alice", "bob", "carol"]


@pytest.mark.asyncio
async def test_outer_deadline(mock_client):
    async def stalled(*args, **kwargs):
        await asyncio.sleep(5)

    mock_client.graphql.side_effect = stalled
    mock_client.get_repository.side_effect = stalled
    settings = Settings(
        timeouts=Timeouts(
            analytics=1.0,
            snapshot=0.5,
            contributor_count_rest=0.1,
            contributor_count_graphql=0.1,
            minimal_fetch=0.9,
            enrichment=0.9,
            insights_fetch=0.5,
            search=0.5,
        )
    )

    # the snapshot times out at 0.5s and the minimal fallback outlives the 1s budget
    with pytest.raises(RequestTimeout, match="analytics timed out"):
        await get_advanced_analytics(mock_client, "octocat", "Hello-World", settings)
