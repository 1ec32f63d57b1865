"""Repository snapshot: metadata, headline counts, search and comparison."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta

from .config import DEFAULT_SETTINGS, Settings
from .dates import format_timestamp, shift_months, utc_now
from .errors import (
    InvalidRequestError,
    NotFoundError,
    RateLimitedError,
    RequestTimeout,
    UpstreamError,
)
from .github import payloads
from .github.client import GitHubClient
from .github.queries import (
    CONTRIBUTOR_PROXY_QUERY,
    MINIMAL_REPOSITORY_QUERY,
    REPOSITORY_QUERY,
)
from .models import Repository, RepositoryStats, SearchResult
from .resilience import fallback_chain, with_deadline

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")

# Errors the caller must see as-is rather than as a generic failure.
PASSTHROUGH_ERRORS = (NotFoundError, RequestTimeout, RateLimitedError)

TRENDING_PERIODS = ("day", "week", "month")


def validate_repository_name(owner: str, name: str) -> None:
    if not owner or not name:
        raise InvalidRequestError("Owner and name parameters are required")
    if not _NAME_RE.match(owner) or not _NAME_RE.match(name):
        raise InvalidRequestError("Invalid repository owner or name format")


def parse_repository_slug(slug: str) -> tuple[str, str]:
    """Split ``owner/name`` and validate both halves."""
    owner, _, name = slug.partition("/")
    validate_repository_name(owner, name)
    return owner, name


async def count_contributors(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
) -> int:
    """Best-effort contributor count; never raises."""
    timeouts = (settings or DEFAULT_SETTINGS).timeouts

    async def mentionable_users() -> int:
        data = await client.graphql(
            CONTRIBUTOR_PROXY_QUERY, {"owner": owner, "name": name}
        )
        repository = data.get("repository") or {}
        return int((repository.get("mentionableUsers") or {}).get("totalCount") or 0)

    return await fallback_chain(
        [
            (
                "contributor listing",
                lambda: client.count_contributors(owner, name),
                timeouts.contributor_count_rest,
            ),
            ("mentionable users", mentionable_users, timeouts.contributor_count_graphql),
        ],
        default=0,
        label=f"{owner}/{name} contributor count",
    )


async def get_repository_stats(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> RepositoryStats:
    """Fetch a repository and its headline counts.

    Raises:
        NotFoundError: Repository is absent or private.
        RequestTimeout: The repository query exceeded its budget.
        RateLimitedError: Upstream quota is exhausted.
        UpstreamError: Any other failure, with repository context.
    """
    validate_repository_name(owner, name)
    settings = settings or DEFAULT_SETTINGS
    since = format_timestamp((now or utc_now()) - timedelta(days=30))

    try:
        data = await with_deadline(
            client.graphql(
                REPOSITORY_QUERY, {"owner": owner, "name": name, "since": since}
            ),
            settings.timeouts.snapshot,
            f"{owner}/{name} repository query",
        )
        node = data.get("repository")
        if not node:
            raise NotFoundError(f"Repository {owner}/{name} not found or is private")
        repository = payloads.repository_from_graphql(node)
        releases, issues, pull_requests, commits = payloads.counts_from_graphql(node)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as exc:
        logger.error("Error fetching repository stats for %s/%s: %s", owner, name, exc)
        raise UpstreamError(
            f"Failed to fetch repository stats for {owner}/{name}: {exc}"
        ) from exc

    contributors = await count_contributors(client, owner, name, settings)

    return RepositoryStats(
        repository=repository,
        contributors=contributors,
        releases=releases,
        issues=issues,
        pull_requests=pull_requests,
        commits=commits,
    )


async def get_minimal_repository(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
) -> Repository:
    """Fetch just the repository record: reduced GraphQL query, then REST."""
    timeouts = (settings or DEFAULT_SETTINGS).timeouts

    async def minimal_query() -> Repository:
        data = await client.graphql(
            MINIMAL_REPOSITORY_QUERY, {"owner": owner, "name": name}
        )
        node = data.get("repository")
        if not node:
            raise NotFoundError(f"Repository {owner}/{name} not found")
        return payloads.repository_from_graphql(node)

    repository = await fallback_chain(
        [
            ("minimal query", minimal_query, timeouts.minimal_fetch),
            ("REST", lambda: client.get_repository(owner, name), timeouts.minimal_fetch),
        ],
        default=None,
        label=f"{owner}/{name} minimal repository",
    )
    if repository is None:
        raise NotFoundError(f"Repository {owner}/{name} not found or inaccessible")
    return repository


async def search_repositories(
    client: GitHubClient,
    query: str,
    limit: int = 20,
    cursor: str | None = None,
) -> SearchResult:
    if not query.strip():
        raise InvalidRequestError("Query parameter is required")
    if not 1 <= limit <= 100:
        raise InvalidRequestError("limit must be between 1 and 100")
    try:
        return await client.search_repositories(query, first=limit, after=cursor)
    except (RateLimitedError, RequestTimeout):
        raise
    except Exception as exc:
        logger.error("Error searching repositories with %r: %s", query, exc)
        raise UpstreamError(f"Failed to search repositories with query: {query}") from exc


async def get_trending_repositories(
    client: GitHubClient,
    language: str | None = None,
    time_period: str = "week",
    limit: int = 20,
    now: datetime | None = None,
) -> list[Repository]:
    """Most-starred repositories created within the period."""
    now = now or utc_now()
    if time_period == "day":
        since = now - timedelta(days=1)
    elif time_period == "week":
        since = now - timedelta(days=7)
    elif time_period == "month":
        since = shift_months(now, -1)
    else:
        raise InvalidRequestError(
            f"period must be one of {', '.join(TRENDING_PERIODS)}"
        )

    query = f"created:>{since.date().isoformat()} sort:stars-desc"
    if language:
        query = f"language:{language} {query}"
    result = await search_repositories(client, query, limit)
    return result.repositories


async def compare_repositories(
    client: GitHubClient,
    repositories: list[tuple[str, str]],
    settings: Settings | None = None,
) -> list[RepositoryStats]:
    """Snapshot several repositories concurrently; any failure fails the comparison."""
    if not repositories:
        raise InvalidRequestError("At least one repository is required")
    for owner, name in repositories:
        validate_repository_name(owner, name)
    return list(
        await asyncio.gather(
            *(
                get_repository_stats(client, owner, name, settings)
                for owner, name in repositories
            )
        )
    )
