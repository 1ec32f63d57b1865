"""GitHub REST and GraphQL API client."""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from typing import Any

import httpx

from ..errors import NotFoundError, RateLimitedError, RequestTimeout, UpstreamError
from ..models import (
    CommitDetail,
    CommitEntry,
    ContributorSummary,
    Repository,
    SearchResult,
    StarEvent,
    WeeklyActivity,
)
from . import payloads
from .queries import SEARCH_REPOSITORIES_QUERY
from .rate_limit import RateLimitMonitor

logger = logging.getLogger(__name__)

BASE_URL = "https://api.github.com"
STAR_MEDIA_TYPE = "application/vnd.github.star+json"

_LAST_PAGE_RE = re.compile(r'[?&]page=(\d+)[^>]*>;\s*rel="last"')


class GitHubClient:
    """Async GitHub API client with capped pagination and error classification.

    Every call is a suspension point. HTTP failures are translated into the
    ``repo_radar.errors`` taxonomy: 404 becomes ``NotFoundError``, an exhausted
    quota becomes ``RateLimitedError``, transport timeouts become
    ``RequestTimeout`` and everything else ``UpstreamError``.
    """

    def __init__(
        self,
        token: str,
        concurrency: int = 5,
        base_url: str | None = None,
        graphql_url: str | None = None,
        verify_ssl: bool = True,
        timeout: float = 30.0,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        root = (base_url or BASE_URL).rstrip("/")
        self._graphql_url = graphql_url or f"{root}/graphql"
        self._client = httpx.AsyncClient(
            base_url=root,
            headers=headers,
            timeout=timeout,
            verify=verify_ssl,
        )
        self._rate_limit = RateLimitMonitor()
        self._semaphore = asyncio.Semaphore(concurrency)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise NotFoundError(f"Not found or inaccessible: {url}")
        if self._rate_limit.is_exhausted(response):
            reset_at = self._rate_limit.reset_at
            hint = f" Resets at {reset_at.isoformat()}." if reset_at else ""
            raise RateLimitedError(
                f"GitHub API rate limit exceeded. Please try again later.{hint}",
                reset_at=reset_at,
            )
        raise UpstreamError(
            f"GitHub API returned {status} for {url}", upstream_status=status
        )

    async def _send(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        async with self._semaphore:
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                raise RequestTimeout(f"GitHub API request timed out: {url}") from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(f"GitHub API request failed: {exc}") from exc
            self._rate_limit.update(response)
            self._raise_for_status(response, url)
            return response

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._send("GET", url, params=params, headers=headers)

    async def _paginate(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> list[Any]:
        """Follow Link headers, stopping once ``limit`` items are collected."""
        results: list[Any] = []
        params = dict(params or {})
        params.setdefault("per_page", min(100, limit) if limit else 100)
        next_url: str | None = url

        while next_url is not None:
            response = await self._get(next_url, params, headers)
            data = response.json()
            if isinstance(data, list):
                results.extend(data)
            else:
                results.append(data)
            if limit is not None and len(results) >= limit:
                return results[:limit]

            # Follow Link header for next page
            next_url = None
            link_header = response.headers.get("Link", "")
            for part in link_header.split(","):
                if 'rel="next"' in part:
                    next_url = part.split(";")[0].strip().strip("<>")
                    params = {}  # URL already contains params
                    break

        return results

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object."""
        response = await self._send(
            "POST", self._graphql_url, json={"query": query, "variables": variables}
        )
        body = response.json()
        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            types = {e.get("type") for e in errors if isinstance(e, dict)}
            messages = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e)
                for e in errors
            )
            if "RATE_LIMITED" in types:
                raise RateLimitedError(f"GitHub API rate limit exceeded: {messages}")
            if "NOT_FOUND" in types:
                raise NotFoundError(messages)
            raise UpstreamError(f"GitHub GraphQL errors: {messages}")
        data = body.get("data") if isinstance(body, dict) else None
        return data if isinstance(data, dict) else {}

    async def search_repositories(
        self, query: str, first: int = 20, after: str | None = None
    ) -> SearchResult:
        data = await self.graphql(
            SEARCH_REPOSITORIES_QUERY,
            {"searchQuery": query, "first": first, "after": after},
        )
        return payloads.search_result_from_graphql(data)

    async def get_repository(self, owner: str, repo: str) -> Repository:
        """Get repository metadata from the REST API."""
        response = await self._get(f"/repos/{owner}/{repo}")
        return payloads.repository_from_rest(response.json())

    async def list_contributors(
        self, owner: str, repo: str, limit: int = 50
    ) -> list[ContributorSummary]:
        """List contributors, most commits first, capped at ``limit``."""
        raw = await self._paginate(
            f"/repos/{owner}/{repo}/contributors", limit=limit
        )
        contributors = (payloads.contributor_from_rest(c) for c in raw)
        return [c for c in contributors if c is not None]

    async def count_contributors(self, owner: str, repo: str) -> int:
        """Infer the contributor count from pagination metadata of a 1-per-page listing."""
        response = await self._get(
            f"/repos/{owner}/{repo}/contributors", params={"per_page": 1}
        )
        link_header = response.headers.get("Link", "")
        if link_header:
            match = _LAST_PAGE_RE.search(link_header)
            if match:
                return int(match.group(1))
        data = response.json()
        return len(data) if isinstance(data, list) else 0

    async def list_commits(
        self,
        owner: str,
        repo: str,
        since: str | None = None,
        until: str | None = None,
        author: str | None = None,
        limit: int | None = 100,
    ) -> list[CommitEntry]:
        """List commits on the default branch, newest first."""
        params: dict[str, Any] = {}
        if since:
            params["since"] = since
        if until:
            params["until"] = until
        if author:
            params["author"] = author
        try:
            raw = await self._paginate(
                f"/repos/{owner}/{repo}/commits", params=params, limit=limit
            )
        except UpstreamError as exc:
            # Empty repository
            if exc.upstream_status == 409:
                return []
            raise
        commits = (payloads.commit_from_rest(c) for c in raw)
        return [c for c in commits if c is not None]

    async def get_commit(self, owner: str, repo: str, sha: str) -> CommitDetail:
        response = await self._get(f"/repos/{owner}/{repo}/commits/{sha}")
        return payloads.commit_detail_from_rest(response.json())

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Get language breakdown (bytes) for a repository."""
        response = await self._get(f"/repos/{owner}/{repo}/languages")
        return payloads.language_bytes_from_rest(response.json())

    async def get_file_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch and decode a file from the default branch."""
        response = await self._get(f"/repos/{owner}/{repo}/contents/{path}")
        data = response.json()
        if not isinstance(data, dict) or "content" not in data:
            raise UpstreamError(f"{owner}/{repo}: {path} is not a file")
        return base64.b64decode(data["content"]).decode("utf-8")

    async def list_stargazers(
        self, owner: str, repo: str, limit: int = 100
    ) -> list[StarEvent]:
        """List stargazers with the time each star was given."""
        raw = await self._paginate(
            f"/repos/{owner}/{repo}/stargazers",
            limit=limit,
            headers={"Accept": STAR_MEDIA_TYPE},
        )
        events = (payloads.star_event_from_rest(s) for s in raw)
        return [e for e in events if e is not None]

    async def get_commit_activity(
        self, owner: str, repo: str, retries: int = 4
    ) -> list[WeeklyActivity]:
        """Get the last year of weekly commit totals. Handles 202 (computing) with retries."""
        url = f"/repos/{owner}/{repo}/stats/commit_activity"

        for attempt in range(retries):
            response = await self._get(url)
            if response.status_code == 204:
                return []
            if response.status_code == 202:
                if attempt < retries - 1:
                    delay = min(2**attempt, 4)
                    logger.info(
                        "%s/%s: commit activity computing (attempt %d/%d), retry in %ds",
                        owner,
                        repo,
                        attempt + 1,
                        retries,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.warning(
                    "%s/%s: commit activity still computing after %d attempts, skipping",
                    owner,
                    repo,
                    retries,
                )
                return []
            data = response.json()
            weeks = (
                payloads.weekly_activity_from_rest(w)
                for w in (data if isinstance(data, list) else [])
            )
            return [w for w in weeks if w is not None]
        return []
