"""Bus factor, maintenance and community health scoring.

All three scores are on a 0-100 scale and are advisory: when the upstream
data cannot be fetched a neutral assessment is returned instead of an error.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from .config import DEFAULT_SETTINGS, RiskThresholds, Settings
from .dates import format_timestamp, parse_timestamp, utc_now
from .github.client import GitHubClient
from .models import (
    BusFactor,
    CommitEntry,
    CommunityHealth,
    ContributorSummary,
    MaintenanceStatus,
    RiskAssessment,
)
from .rounding import round_tenth

logger = logging.getLogger(__name__)

UNABLE_TO_ASSESS = "Unable to assess"

_NO_COMMITS = datetime(1970, 1, 1, tzinfo=timezone.utc)


def bus_factor_for_share(
    top_share: float,
    contributor_count: int,
    thresholds: RiskThresholds | None = None,
) -> BusFactor:
    """Score contribution concentration from the top contributor's share (0-1)."""
    thresholds = thresholds or DEFAULT_SETTINGS.risk
    if top_share > thresholds.bus_high_share:
        return BusFactor(
            score=25,
            level="high",
            top_contributors=min(1, contributor_count),
            description="High risk: Single contributor dominates the project",
        )
    if top_share > thresholds.bus_medium_share:
        return BusFactor(
            score=50,
            level="medium",
            top_contributors=min(2, contributor_count),
            description="Medium risk: Few contributors handle most of the work",
        )
    return BusFactor(
        score=85,
        level="low",
        top_contributors=min(5, contributor_count),
        description="Low risk: Well-distributed contributor base",
    )


def assess_bus_factor(
    contributors: list[ContributorSummary],
    thresholds: RiskThresholds | None = None,
) -> BusFactor:
    total = sum(c.contributions for c in contributors)
    top = max((c.contributions for c in contributors), default=0)
    top_share = top / total if total else 0.0
    return bus_factor_for_share(top_share, len(contributors), thresholds)


def maintenance_for(
    days_since_last_commit: int,
    avg_commits_per_month: float,
    last_commit: str,
    thresholds: RiskThresholds | None = None,
) -> MaintenanceStatus:
    thresholds = thresholds or DEFAULT_SETTINGS.risk
    if days_since_last_commit > thresholds.inactive_days:
        score, level, description = 25, "inactive", "Inactive: No recent commits"
    elif (
        days_since_last_commit > thresholds.moderate_days
        or avg_commits_per_month < thresholds.min_monthly_commits
    ):
        score, level, description = 60, "moderate", "Moderate: Infrequent updates"
    else:
        score, level, description = 90, "active", "Active: Regular updates and maintenance"
    return MaintenanceStatus(
        score=score,
        level=level,
        last_commit=last_commit,
        avg_commits_per_month=avg_commits_per_month,
        description=description,
    )


def commit_recency(
    commits: list[CommitEntry],
    now: datetime,
    thresholds: RiskThresholds | None = None,
) -> tuple[datetime, int, float]:
    """Return (last commit time, whole days since it, average commits per month).

    The monthly average covers the trailing maintenance window (90 days by
    default, i.e. three months).
    """
    thresholds = thresholds or DEFAULT_SETTINGS.risk
    timestamps = [parse_timestamp(c.date) for c in commits]
    last_commit = max(timestamps, default=_NO_COMMITS)
    days_since = math.floor((now - last_commit).total_seconds() / 86400)
    window_start = now - timedelta(days=thresholds.maintenance_window_days)
    recent = sum(1 for ts in timestamps if ts > window_start)
    months = thresholds.maintenance_window_days / 30
    return last_commit, days_since, round_tenth(recent / months)


def assess_maintenance(
    commits: list[CommitEntry],
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> MaintenanceStatus:
    last_commit, days_since, avg = commit_recency(commits, now or utc_now(), thresholds)
    return maintenance_for(days_since, avg, format_timestamp(last_commit), thresholds)


def assess_community_health(
    contributor_count: int,
    avg_commits_per_month: float,
    days_since_last_commit: int,
    thresholds: RiskThresholds | None = None,
) -> CommunityHealth:
    thresholds = thresholds or DEFAULT_SETTINGS.risk
    factors = []
    if contributor_count > thresholds.healthy_contributors:
        factors.append("Active contributor community")
    if avg_commits_per_month > thresholds.healthy_monthly_commits:
        factors.append("Regular development activity")
    if days_since_last_commit < thresholds.recent_update_days:
        factors.append("Recent updates")

    if len(factors) >= 2:
        level = "healthy"
    elif len(factors) == 1:
        level = "moderate"
    else:
        level = "concerning"
    return CommunityHealth(score=min(90, len(factors) * 30), level=level, factors=factors)


def neutral_risk_assessment(score: int = 50, last_commit: str = "") -> RiskAssessment:
    """Assessment used when the inputs could not be fetched."""
    return RiskAssessment(
        bus_factor=BusFactor(
            score=score, level="medium", top_contributors=0, description=UNABLE_TO_ASSESS
        ),
        maintenance_status=MaintenanceStatus(
            score=score,
            level="moderate",
            last_commit=last_commit,
            avg_commits_per_month=0,
            description=UNABLE_TO_ASSESS,
        ),
        community_health=CommunityHealth(score=score, level="moderate", factors=[]),
    )


def assess_risk(
    contributors: list[ContributorSummary],
    commits: list[CommitEntry],
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> RiskAssessment:
    now = now or utc_now()
    last_commit, days_since, avg = commit_recency(commits, now, thresholds)
    return RiskAssessment(
        bus_factor=assess_bus_factor(contributors, thresholds),
        maintenance_status=maintenance_for(
            days_since, avg, format_timestamp(last_commit), thresholds
        ),
        community_health=assess_community_health(
            len(contributors), avg, days_since, thresholds
        ),
    )


async def get_risk_assessment(
    client: GitHubClient,
    owner: str,
    name: str,
    contributors: list[ContributorSummary],
    settings: Settings | None = None,
    now: datetime | None = None,
) -> RiskAssessment:
    """Assess risk from recent commits and a contributor list; neutral on failure."""
    settings = settings or DEFAULT_SETTINGS
    now = now or utc_now()
    try:
        commits = await client.list_commits(owner, name, limit=settings.limits.risk_commits)
    except Exception as exc:
        logger.warning("Could not perform risk assessment for %s/%s: %s", owner, name, exc)
        return neutral_risk_assessment(last_commit=format_timestamp(now))
    return assess_risk(contributors, commits, now, settings.risk)
