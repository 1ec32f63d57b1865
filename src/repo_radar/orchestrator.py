"""Orchestrator: wires together client, analytics services, and renderer."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from .aggregator import get_advanced_analytics
from .competitive import get_competitive_analysis
from .config import DEFAULT_SETTINGS, Settings
from .contributors import get_contributor_insights
from .github.client import GitHubClient
from .renderer import (
    render_analytics,
    render_comparison,
    render_competitive,
    render_insights,
    render_json,
    render_repositories,
    render_stats,
)
from .snapshot import (
    compare_repositories,
    get_repository_stats,
    get_trending_repositories,
    search_repositories,
)

T = TypeVar("T")


class Runner:
    """Runs one analytics operation per call against a fresh GitHub client."""

    def __init__(
        self,
        token: str,
        api_url: str | None = None,
        verify_ssl: bool = True,
        settings: Settings | None = None,
        output_format: str = "table",
        output_file: str | None = None,
    ) -> None:
        self.token = token
        self.api_url = api_url
        self.verify_ssl = verify_ssl
        self.settings = settings or DEFAULT_SETTINGS
        self.output_format = output_format
        self.output_file = output_file

    async def _fetch(self, operation: Callable[[GitHubClient], Awaitable[T]]) -> T:
        async with GitHubClient(
            token=self.token,
            base_url=self.api_url,
            verify_ssl=self.verify_ssl,
            timeout=self.settings.timeouts.analytics,
        ) as client:
            return await operation(client)

    def _as_json(self) -> bool:
        return self.output_format == "json"

    async def stats(self, owner: str, name: str) -> None:
        result = await self._fetch(
            lambda client: get_repository_stats(client, owner, name, self.settings)
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            render_stats(result, output_file=self.output_file)

    async def analytics(self, owner: str, name: str, top_n: int = 10) -> None:
        result = await self._fetch(
            lambda client: get_advanced_analytics(client, owner, name, self.settings)
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            render_analytics(result, top_n=top_n, output_file=self.output_file)

    async def contributors(
        self, owner: str, name: str, period: str = "year", top_n: int = 10
    ) -> None:
        result = await self._fetch(
            lambda client: get_contributor_insights(
                client, owner, name, period, self.settings
            )
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            render_insights(
                result, f"{owner}/{name}", top_n=top_n, output_file=self.output_file
            )

    async def competitors(self, owner: str, name: str, limit: int = 5) -> None:
        result = await self._fetch(
            lambda client: get_competitive_analysis(
                client, owner, name, limit, self.settings
            )
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            render_competitive(result, output_file=self.output_file)

    async def search(self, query: str, limit: int = 20, cursor: str | None = None) -> None:
        result = await self._fetch(
            lambda client: search_repositories(client, query, limit, cursor)
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            title = f"Search: {query} ({result.total_count:,} matches)"
            render_repositories(result.repositories, title, output_file=self.output_file)

    async def trending(
        self, language: str | None = None, period: str = "week", limit: int = 20
    ) -> None:
        result = await self._fetch(
            lambda client: get_trending_repositories(client, language, period, limit)
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            scope = f" in {language}" if language else ""
            render_repositories(
                result, f"Trending this {period}{scope}", output_file=self.output_file
            )

    async def compare(self, repositories: list[tuple[str, str]]) -> None:
        result = await self._fetch(
            lambda client: compare_repositories(client, repositories, self.settings)
        )
        if self._as_json():
            render_json(result, output_file=self.output_file)
        else:
            render_comparison(result, output_file=self.output_file)
