"""Advanced analytics: snapshot plus concurrently fetched enrichments."""

from __future__ import annotations

import asyncio
import logging

from .config import DEFAULT_SETTINGS, Settings
from .contributors import get_contributor_analysis
from .errors import (
    InvalidRequestError,
    NotFoundError,
    RateLimitedError,
    RequestTimeout,
)
from .github.client import GitHubClient
from .models import AdvancedAnalytics, ContributorSummary, TechnologyStack
from .resilience import remaining_budget, with_deadline
from .risk import get_risk_assessment, neutral_risk_assessment
from .snapshot import get_minimal_repository, get_repository_stats, validate_repository_name
from .techstack import get_technology_stack
from .timeseries import get_historical_data
from .trends import calculate_trends

logger = logging.getLogger(__name__)

# Share of the analytics budget kept back for assembling the response.
DEADLINE_MARGIN = 0.05


async def _minimal_analytics(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings,
    cause: Exception,
) -> AdvancedAnalytics:
    """Analytics with only the repository record, after the snapshot failed."""
    try:
        repository = await get_minimal_repository(client, owner, name, settings)
    except Exception as exc:
        logger.error("Even minimal data fetch failed for %s/%s: %s", owner, name, exc)
        if isinstance(cause, (RequestTimeout, RateLimitedError)):
            raise cause
        raise NotFoundError(
            f"Failed to fetch any data for {owner}/{name}. "
            "Repository may not exist or be inaccessible."
        ) from cause
    return AdvancedAnalytics(
        repository=repository, risk_assessment=neutral_risk_assessment(score=0)
    )


async def _collect_analytics(
    client: GitHubClient, owner: str, name: str, settings: Settings, deadline: float
) -> AdvancedAnalytics:
    try:
        stats = await get_repository_stats(client, owner, name, settings)
    except InvalidRequestError:
        raise
    except Exception as exc:
        logger.error("Error fetching repository stats for %s/%s: %s", owner, name, exc)
        return await _minimal_analytics(client, owner, name, settings, exc)

    # Enrichments must give up before the outer deadline so their defaults apply.
    budget = remaining_budget(
        deadline,
        settings.timeouts.enrichment,
        margin=settings.timeouts.analytics * DEADLINE_MARGIN,
    )
    if budget < settings.timeouts.enrichment:
        logger.debug(
            "Enrichment budget for %s/%s cut to %.2fs by the analytics deadline",
            owner,
            name,
            budget,
        )
    historical_task = asyncio.create_task(
        with_deadline(get_historical_data(client, owner, name, settings), budget, "historical data")
    )
    contributors_task = asyncio.create_task(
        with_deadline(
            get_contributor_analysis(client, owner, name, settings), budget, "contributor analysis"
        )
    )
    tech_task = asyncio.create_task(
        with_deadline(get_technology_stack(client, owner, name, settings), budget, "technology stack")
    )

    async def assess_risk():
        try:
            contributors: list[ContributorSummary] = await asyncio.shield(contributors_task)
        except Exception:
            contributors = []
        return await get_risk_assessment(client, owner, name, contributors, settings)

    risk_task = asyncio.create_task(with_deadline(assess_risk(), budget, "risk assessment"))

    results = await asyncio.gather(
        historical_task,
        contributors_task,
        tech_task,
        risk_task,
        return_exceptions=True,
    )
    historical, contributors, tech_stack, risk = results

    if isinstance(historical, Exception):
        logger.warning("Failed to fetch historical data: %s", historical)
        historical = []
    if isinstance(contributors, Exception):
        logger.warning("Failed to fetch contributor analysis: %s", contributors)
        contributors = []
    if isinstance(tech_stack, Exception):
        logger.warning("Failed to fetch technology stack: %s", tech_stack)
        tech_stack = TechnologyStack()
    if isinstance(risk, Exception):
        logger.warning("Failed to fetch risk assessment: %s", risk)
        risk = neutral_risk_assessment(score=0)

    return AdvancedAnalytics(
        repository=stats.repository,
        contributors=contributors,
        releases=stats.releases,
        issues=stats.issues,
        pull_requests=stats.pull_requests,
        commits=stats.commits,
        historical=historical,
        technology_stack=tech_stack,
        risk_assessment=risk,
        trends=calculate_trends(historical),
    )


async def get_advanced_analytics(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
) -> AdvancedAnalytics:
    """Full analytics for one repository, bounded by the analytics timeout.

    Every enrichment (history, contributors, technology stack, risk) fails
    soft to its empty default; only the repository snapshot, and the minimal
    fallback behind it, can fail the whole operation.
    """
    validate_repository_name(owner, name)
    settings = settings or DEFAULT_SETTINGS
    deadline = asyncio.get_running_loop().time() + settings.timeouts.analytics
    return await with_deadline(
        _collect_analytics(client, owner, name, settings, deadline),
        settings.timeouts.analytics,
        f"{owner}/{name} analytics",
    )
