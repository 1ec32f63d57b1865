"""Narrow raw GitHub API payloads into typed records.

Every function here takes the decoded JSON exactly as the API returned it and
either produces a model instance or raises ``UpstreamError`` when a required
field is missing. Optional upstream fields (license, primary language,
default branch) map to ``None``/zero rather than failing.
"""

from __future__ import annotations

from typing import Any

from ..errors import UpstreamError
from ..models import (
    CommitCounts,
    CommitDetail,
    CommitEntry,
    ContributorSummary,
    IssueCounts,
    License,
    PullRequestCounts,
    Repository,
    RepositoryOwner,
    SearchResult,
    StarEvent,
    WeeklyActivity,
)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _total(node: dict[str, Any], key: str) -> int:
    return int(_as_dict(node.get(key)).get("totalCount") or 0)


def _require(node: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if node.get(k) is None]
    if missing:
        raise UpstreamError(f"Malformed repository payload: missing {', '.join(missing)}")


def _license(value: Any) -> License | None:
    data = _as_dict(value)
    if not data.get("name"):
        return None
    return License(name=data["name"], key=data.get("key") or "")


def repository_from_graphql(node: Any) -> Repository:
    """Build a Repository from a GraphQL ``Repository`` node."""
    node = _as_dict(node)
    _require(node, "id", "name", "nameWithOwner")
    owner = _as_dict(node.get("owner"))
    topics = tuple(
        _as_dict(t.get("topic")).get("name", "")
        for t in _as_list(_as_dict(node.get("repositoryTopics")).get("nodes"))
        if isinstance(t, dict)
    )
    return Repository(
        id=str(node["id"]),
        name=node["name"],
        full_name=node["nameWithOwner"],
        owner=RepositoryOwner(
            login=owner.get("login") or node["nameWithOwner"].split("/")[0],
            type=owner.get("__typename") or "User",
            avatar_url=owner.get("avatarUrl") or "",
        ),
        description=node.get("description"),
        url=node.get("url") or "",
        topics=tuple(t for t in topics if t),
        language=_as_dict(node.get("primaryLanguage")).get("name"),
        license=_license(node.get("licenseInfo")),
        stars=int(node.get("stargazerCount") or 0),
        forks=int(node.get("forkCount") or 0),
        watchers=_total(node, "watchers"),
        created_at=node.get("createdAt"),
        updated_at=node.get("updatedAt"),
        pushed_at=node.get("pushedAt"),
        is_archived=bool(node.get("isArchived")),
        is_private=bool(node.get("isPrivate")),
    )


def repository_from_rest(data: Any) -> Repository:
    """Build a Repository from the REST ``GET /repos/{owner}/{repo}`` body."""
    data = _as_dict(data)
    _require(data, "id", "name", "full_name")
    owner = _as_dict(data.get("owner"))
    return Repository(
        id=str(data["id"]),
        name=data["name"],
        full_name=data["full_name"],
        owner=RepositoryOwner(
            login=owner.get("login") or data["full_name"].split("/")[0],
            type=owner.get("type") or "User",
            avatar_url=owner.get("avatar_url") or "",
        ),
        description=data.get("description"),
        url=data.get("html_url") or "",
        topics=tuple(t for t in _as_list(data.get("topics")) if isinstance(t, str)),
        language=data.get("language"),
        license=_license(data.get("license")),
        stars=int(data.get("stargazers_count") or 0),
        forks=int(data.get("forks_count") or 0),
        watchers=int(data.get("watchers_count") or 0),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        pushed_at=data.get("pushed_at"),
        is_archived=bool(data.get("archived")),
        is_private=bool(data.get("private")),
    )


def counts_from_graphql(
    node: Any,
) -> tuple[int, IssueCounts, PullRequestCounts, CommitCounts]:
    """Extract (releases, issues, pull requests, commits) from a repository node."""
    node = _as_dict(node)
    target = _as_dict(_as_dict(node.get("defaultBranchRef")).get("target"))
    return (
        _total(node, "releases"),
        IssueCounts(open=_total(node, "issues"), closed=_total(node, "closedIssues")),
        PullRequestCounts(
            open=_total(node, "pullRequests"),
            closed=_total(node, "closedPullRequests"),
            merged=_total(node, "mergedPullRequests"),
        ),
        CommitCounts(
            total=_total(target, "history"),
            last_month=_total(target, "historyLastMonth"),
        ),
    )


def search_result_from_graphql(data: Any) -> SearchResult:
    search = _as_dict(_as_dict(data).get("search"))
    page_info = _as_dict(search.get("pageInfo"))
    repositories = [
        repository_from_graphql(node)
        for node in _as_list(search.get("nodes"))
        # Non-repository hits come back as empty objects.
        if isinstance(node, dict) and node.get("id")
    ]
    return SearchResult(
        repositories=repositories,
        total_count=int(search.get("repositoryCount") or 0),
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor"),
    )


def contributor_from_rest(data: Any) -> ContributorSummary | None:
    """Anonymous contributors have no login and are skipped."""
    data = _as_dict(data)
    if not data.get("login"):
        return None
    return ContributorSummary(
        login=data["login"],
        avatar_url=data.get("avatar_url") or "",
        contributions=int(data.get("contributions") or 0),
        type=data.get("type") or "User",
    )


def commit_from_rest(data: Any) -> CommitEntry | None:
    data = _as_dict(data)
    git_author = _as_dict(_as_dict(data.get("commit")).get("author"))
    if not git_author.get("date"):
        return None
    return CommitEntry(
        sha=data.get("sha") or "",
        date=git_author["date"],
        author_login=_as_dict(data.get("author")).get("login"),
        author_name=git_author.get("name"),
        author_email=git_author.get("email"),
    )


def commit_detail_from_rest(data: Any) -> CommitDetail:
    data = _as_dict(data)
    stats = _as_dict(data.get("stats"))
    return CommitDetail(
        sha=data.get("sha") or "",
        additions=int(stats.get("additions") or 0),
        deletions=int(stats.get("deletions") or 0),
    )


def star_event_from_rest(data: Any) -> StarEvent | None:
    starred_at = _as_dict(data).get("starred_at")
    return StarEvent(starred_at=starred_at) if starred_at else None


def weekly_activity_from_rest(data: Any) -> WeeklyActivity | None:
    data = _as_dict(data)
    if data.get("week") is None:
        return None
    return WeeklyActivity(week_start=int(data["week"]), total=int(data.get("total") or 0))


def language_bytes_from_rest(data: Any) -> dict[str, int]:
    return {
        str(lang): int(size)
        for lang, size in _as_dict(data).items()
        if isinstance(size, (int, float))
    }
