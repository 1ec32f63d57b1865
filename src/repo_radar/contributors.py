"""Contributor analysis and week-bucketed contributor insights.

Insights are computed from a capped sample: at most ``insight_contributors``
contributors and ``insight_commits`` commits in the requested window. On
large repositories the weekly histories are therefore an approximation of
recent activity, not an exhaustive scan. Additions and deletions stay at zero
in insights because per-commit diffs would need one extra request per commit;
``get_contributor_commit_activity`` makes those requests for a single
contributor.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from .config import DEFAULT_SETTINGS, Settings
from .dates import format_timestamp, parse_timestamp, shift_months, utc_now, week_key
from .errors import InvalidRequestError
from .github.client import GitHubClient
from .models import (
    CommitEntry,
    ContributorInsights,
    ContributorProfile,
    ContributorSummary,
    LanguageActivity,
    PeriodStats,
    WeeklyCommitBucket,
    WeeklyCommitTotal,
)
from .resilience import with_deadline
from .rounding import round_tenth
from .snapshot import validate_repository_name

logger = logging.getLogger(__name__)

PERIODS = ("week", "month", "quarter", "year", "all")

# Oldest date worth asking GitHub about.
EPOCH_FLOOR = datetime(2008, 1, 1, tzinfo=timezone.utc)


def period_window(period: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Map a period name to a ``[start, end)`` window ending now."""
    end = now or utc_now()
    if period == "week":
        start = end - timedelta(days=7)
    elif period == "month":
        start = shift_months(end, -1)
    elif period == "quarter":
        start = shift_months(end, -3)
    elif period == "year":
        start = shift_months(end, -12)
    elif period == "all":
        start = EPOCH_FLOOR
    else:
        raise InvalidRequestError(f"period must be one of {', '.join(PERIODS)}")
    return start, end


def _period_stats(
    start: datetime, end: datetime, total_commits: int, with_average: bool = True
) -> PeriodStats:
    weeks = math.ceil((end - start).total_seconds() / (7 * 24 * 3600))
    average = round_tenth(total_commits / weeks) if with_average and weeks > 0 else 0.0
    return PeriodStats(
        start_date=format_timestamp(start),
        end_date=format_timestamp(end),
        total_commits=total_commits,
        avg_commits_per_week=average,
    )


def empty_insights(start: datetime, end: datetime) -> ContributorInsights:
    return ContributorInsights(period_stats=_period_stats(start, end, 0))


def _profile(contributor: ContributorSummary) -> ContributorProfile:
    return ContributorProfile(
        login=contributor.login,
        avatar_url=contributor.avatar_url,
        contributions=contributor.contributions,
    )


def _by_contributions(profiles: Iterable[ContributorProfile]) -> list[ContributorProfile]:
    return sorted(profiles, key=lambda p: p.contributions, reverse=True)


def contributor_totals_only(
    contributors: list[ContributorSummary], start: datetime, end: datetime
) -> ContributorInsights:
    """Insights without weekly detail, for when the commit sample is unavailable."""
    profiles = _by_contributions(_profile(c) for c in contributors)
    total = sum(p.contributions for p in profiles)
    return ContributorInsights(
        period_stats=_period_stats(start, end, total, with_average=False),
        contributors=profiles,
        total_commits=total,
        total_contributors=len(profiles),
    )


def build_contributor_insights(
    contributors: list[ContributorSummary],
    commits: list[CommitEntry],
    start: datetime,
    end: datetime,
    now: datetime | None = None,
    languages: list[str] | None = None,
    active_days: int = 28,
) -> ContributorInsights:
    """Bucket a commit sample by Monday-aligned week, per contributor and overall.

    Commits whose author is not among ``contributors`` are counted in the
    sample total but not attributed. A contributor is active when any of
    their commits is newer than ``active_days`` before ``now``.
    """
    now = now or utc_now()
    active_since = now - timedelta(days=active_days)

    profiles = {c.login: _profile(c) for c in contributors}
    first_seen: dict[str, datetime] = {}
    last_seen: dict[str, datetime] = {}
    history: dict[str, dict[str, WeeklyCommitBucket]] = {}
    weekly_totals: dict[str, WeeklyCommitTotal] = {}
    weekly_authors: dict[str, set[str]] = {}

    for commit in commits:
        login = commit.author_login
        if not login or login not in profiles:
            continue
        profile = profiles[login]
        committed_at = parse_timestamp(commit.date)
        week = week_key(committed_at)

        if login not in first_seen or committed_at < first_seen[login]:
            first_seen[login] = committed_at
            profile.first_commit = commit.date
        # name and email follow the contributor's latest commit
        if login not in last_seen or committed_at > last_seen[login]:
            last_seen[login] = committed_at
            profile.last_commit = commit.date
            profile.name = commit.author_name
            profile.email = commit.author_email
        if committed_at > active_since:
            profile.is_active = True

        total = weekly_totals.setdefault(week, WeeklyCommitTotal(week=week))
        total.total += 1
        weekly_authors.setdefault(week, set()).add(login)

        buckets = history.setdefault(login, {})
        bucket = buckets.setdefault(week, WeeklyCommitBucket(week=week))
        bucket.commits += 1

    for login, buckets in history.items():
        profile = profiles[login]
        profile.commit_history = sorted(buckets.values(), key=lambda b: b.week)
        sampled = sum(b.commits for b in profile.commit_history)
        profile.weekly_average = round_tenth(sampled / len(profile.commit_history))

    for week, total in weekly_totals.items():
        total.contributors = len(weekly_authors[week])

    ranked = _by_contributions(profiles.values())
    return ContributorInsights(
        period_stats=_period_stats(start, end, len(commits)),
        contributors=ranked,
        total_commits=len(commits),
        total_contributors=len(ranked),
        active_contributors=sum(1 for p in ranked if p.is_active),
        commits_by_week=sorted(weekly_totals.values(), key=lambda w: w.week),
        # Commits are not attributed per language: that needs per-commit file lists.
        top_languages=[LanguageActivity(language=lang) for lang in languages or []],
    )


async def get_contributor_analysis(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
) -> list[ContributorSummary]:
    """Top contributors by commit count; ``[]`` when unavailable."""
    limits = (settings or DEFAULT_SETTINGS).limits
    try:
        return await client.list_contributors(
            owner, name, limit=limits.contributor_analysis
        )
    except Exception as exc:
        logger.warning("Could not fetch contributor analysis for %s/%s: %s", owner, name, exc)
        return []


async def get_contributor_insights(
    client: GitHubClient,
    owner: str,
    name: str,
    period: str = "year",
    settings: Settings | None = None,
    now: datetime | None = None,
) -> ContributorInsights:
    """Contributor insights for a period; degrades instead of failing on sub-fetch errors."""
    validate_repository_name(owner, name)
    start, end = period_window(period, now)
    settings = settings or DEFAULT_SETTINGS
    budget = settings.timeouts.insights_fetch
    limits = settings.limits

    try:
        contributors = await with_deadline(
            client.list_contributors(owner, name, limit=limits.insight_contributors),
            budget,
            f"{owner}/{name} contributors",
        )
    except Exception as exc:
        logger.warning("Failed to fetch contributors for %s/%s: %s", owner, name, exc)
        return empty_insights(start, end)

    commits, language_bytes = await asyncio.gather(
        with_deadline(
            client.list_commits(
                owner,
                name,
                since=format_timestamp(start),
                until=format_timestamp(end),
                limit=limits.insight_commits,
            ),
            budget,
            f"{owner}/{name} commits",
        ),
        with_deadline(client.get_languages(owner, name), budget, f"{owner}/{name} languages"),
        return_exceptions=True,
    )
    if isinstance(commits, Exception):
        logger.warning(
            "Failed to fetch commits for %s/%s, using contributor totals only: %s",
            owner,
            name,
            commits,
        )
        return contributor_totals_only(contributors, start, end)
    if isinstance(language_bytes, Exception):
        logger.warning("Failed to fetch languages for %s/%s: %s", owner, name, language_bytes)
        language_bytes = {}

    top_languages = [
        lang
        for lang, _ in sorted(language_bytes.items(), key=lambda x: x[1], reverse=True)
    ][: limits.top_languages]
    return build_contributor_insights(
        contributors,
        commits,
        start,
        end,
        now=now,
        languages=top_languages,
        active_days=settings.risk.active_window_days,
    )


async def get_contributor_commit_activity(
    client: GitHubClient,
    owner: str,
    name: str,
    login: str,
    period: str = "year",
    settings: Settings | None = None,
    now: datetime | None = None,
) -> list[WeeklyCommitBucket]:
    """Weekly commits, additions and deletions for one contributor; ``[]`` on failure."""
    validate_repository_name(owner, name)
    start, end = period_window(period, now)
    settings = settings or DEFAULT_SETTINGS

    async def collect() -> list[WeeklyCommitBucket]:
        commits = await client.list_commits(
            owner,
            name,
            since=format_timestamp(start),
            until=format_timestamp(end),
            author=login,
            limit=settings.limits.insight_commits,
        )
        details = await asyncio.gather(
            *(client.get_commit(owner, name, c.sha) for c in commits),
            return_exceptions=True,
        )
        weeks: dict[str, WeeklyCommitBucket] = {}
        for commit, detail in zip(commits, details):
            week = week_key(parse_timestamp(commit.date))
            bucket = weeks.setdefault(week, WeeklyCommitBucket(week=week))
            bucket.commits += 1
            if isinstance(detail, Exception):
                logger.debug("Skipping stats for commit %s: %s", commit.sha, detail)
                continue
            bucket.additions += detail.additions
            bucket.deletions += detail.deletions
        return sorted(weeks.values(), key=lambda b: b.week)

    try:
        return await with_deadline(
            collect(), settings.timeouts.enrichment, f"{owner}/{name} activity of {login}"
        )
    except Exception as exc:
        logger.warning(
            "Could not fetch commit activity of %s in %s/%s: %s", login, owner, name, exc
        )
        return []
