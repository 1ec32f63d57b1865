"""Rich-based terminal renderer with JSON support."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import (
    AdvancedAnalytics,
    CompetitiveAnalysis,
    ContributorInsights,
    Repository,
    RepositoryStats,
)

_LEVEL_STYLES = {
    "low": "green",
    "active": "green",
    "healthy": "green",
    "medium": "yellow",
    "moderate": "yellow",
    "high": "red",
    "inactive": "red",
    "concerning": "red",
}


def _format_number(n: int) -> str:
    return f"{n:,}"


def _format_date(iso: str | None) -> str:
    """Format an ISO 8601 date string to YYYY-MM-DD for display."""
    if not iso:
        return "-"
    return iso[:10] if len(iso) >= 10 else iso


def _format_growth(pct: int) -> str:
    style = "green" if pct > 0 else "red" if pct < 0 else "dim"
    return f"[{style}]{pct:+d}%[/{style}]"


def _make_bar(percentage: float, width: int = 20) -> str:
    filled = round(percentage / 100 * width)
    return "█" * filled + "░" * (width - filled)


def _make_inline_bar(count: int, max_count: int, width: int = 15) -> str:
    if max_count == 0:
        return ""
    filled = round(count / max_count * width)
    return "█" * filled


def _level(level: str) -> str:
    style = _LEVEL_STYLES.get(level, "white")
    return f"[{style}]{level.capitalize()}[/{style}]"


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def _render(draw: Callable[[Console], None], output_file: str | None) -> None:
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()
    draw(console)
    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def _header(console: Console, title: str, subtitle: str | None = None) -> None:
    body = title if subtitle is None else f"{title}\n{subtitle}"
    console.print(Panel(Text(body, justify="center"), style="bold cyan"))
    console.print()


def _repository_summary(console: Console, repo: Repository) -> None:
    if repo.description:
        console.print(f"[dim]{escape(repo.description)}[/dim]")
        console.print()
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row("Stars", _format_number(repo.stars))
    summary.add_row("Forks", _format_number(repo.forks))
    summary.add_row("Watchers", _format_number(repo.watchers))
    summary.add_row("Language", repo.language or "-")
    summary.add_row("License", repo.license.name if repo.license else "-")
    if repo.topics:
        summary.add_row("Topics", ", ".join(repo.topics))
    summary.add_row("Created", _format_date(repo.created_at))
    summary.add_row("Last Push", _format_date(repo.pushed_at))
    if repo.is_archived:
        summary.add_row("Archived", "yes")
    console.print(summary)
    console.print()


def _activity_summary(console: Console, stats: RepositoryStats | AdvancedAnalytics) -> None:
    console.print("[bold]Activity[/bold]")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("label", style="dim")
    table.add_column("value", style="bold")
    if isinstance(stats, RepositoryStats):
        table.add_row("Contributors", _format_number(stats.contributors))
    table.add_row("Releases", _format_number(stats.releases))
    table.add_row(
        "Issues",
        f"{_format_number(stats.issues.open)} open / {_format_number(stats.issues.closed)} closed",
    )
    prs = stats.pull_requests
    table.add_row(
        "Pull Requests",
        f"{_format_number(prs.open)} open / {_format_number(prs.closed)} closed"
        f" / {_format_number(prs.merged)} merged",
    )
    table.add_row(
        "Commits",
        f"{_format_number(stats.commits.total)} total / "
        f"{_format_number(stats.commits.last_month)} last 30 days",
    )
    console.print(table)
    console.print()


def render_stats(stats: RepositoryStats, output_file: str | None = None) -> None:
    """Render a repository snapshot."""

    def draw(console: Console) -> None:
        _header(console, f"repo-radar: {stats.repository.full_name}")
        _repository_summary(console, stats.repository)
        _activity_summary(console, stats)

    _render(draw, output_file)


def render_analytics(
    analytics: AdvancedAnalytics, top_n: int = 10, output_file: str | None = None
) -> None:
    """Render advanced analytics: growth, technology, risk and contributors."""

    def draw(console: Console) -> None:
        _header(console, f"repo-radar: {analytics.repository.full_name}", "Advanced analytics")
        _repository_summary(console, analytics.repository)
        _activity_summary(console, analytics)

        trends = analytics.trends
        console.print("[bold]Trends (last 3 months vs previous 3)[/bold]")
        trend_table = Table(show_header=False, box=None, padding=(0, 2))
        trend_table.add_column("label", style="dim")
        trend_table.add_column("value")
        trend_table.add_row("Stars", _format_growth(trends.stars_growth))
        trend_table.add_row("Forks", _format_growth(trends.forks_growth))
        trend_table.add_row("Commit Activity", _format_growth(trends.commit_activity))
        console.print(trend_table)
        console.print()

        if analytics.historical:
            console.print("[bold]Monthly History[/bold]")
            history = Table(show_header=True, header_style="bold")
            history.add_column("Month", no_wrap=True)
            history.add_column("Stars", justify="right")
            history.add_column("Commits", justify="right")
            history.add_column("")
            max_commits = max(p.commits for p in analytics.historical)
            for point in analytics.historical:
                history.add_row(
                    point.date,
                    _format_number(point.stars),
                    _format_number(point.commits),
                    _make_inline_bar(point.commits, max_commits),
                )
            console.print(history)
            console.print()

        stack = analytics.technology_stack
        if stack.languages:
            console.print("[bold]Language Distribution[/bold]")
            lang_table = Table(show_header=True, header_style="bold")
            lang_table.add_column("Language")
            lang_table.add_column("Bar")
            lang_table.add_column("Percentage", justify="right")
            lang_table.add_column("Bytes", justify="right")
            for lang in stack.languages[:15]:
                lang_table.add_row(
                    f"[{lang.color}]●[/{lang.color}] {lang.name}",
                    _make_bar(lang.percentage),
                    f"{lang.percentage}%",
                    _format_number(lang.bytes),
                )
            console.print(lang_table)
            console.print()
        if stack.frameworks:
            console.print(f"[dim]Frameworks:[/dim] {', '.join(stack.frameworks)}")
        if stack.dependencies:
            deps = ", ".join(d.name for d in stack.dependencies)
            console.print(f"[dim]Dependencies:[/dim] {deps}")
        if stack.frameworks or stack.dependencies:
            console.print()

        risk = analytics.risk_assessment
        if risk is not None:
            console.print("[bold]Risk Assessment[/bold]")
            risk_table = Table(show_header=True, header_style="bold")
            risk_table.add_column("Area")
            risk_table.add_column("Score", justify="right")
            risk_table.add_column("Level")
            risk_table.add_column("Details")
            bus = risk.bus_factor
            risk_table.add_row(
                "Bus Factor",
                str(bus.score),
                _level(bus.level),
                f"{bus.description} (top {bus.top_contributors})",
            )
            maint = risk.maintenance_status
            risk_table.add_row(
                "Maintenance",
                str(maint.score),
                _level(maint.level),
                f"{maint.description}; last commit {_format_date(maint.last_commit)}, "
                f"{maint.avg_commits_per_month}/month",
            )
            health = risk.community_health
            risk_table.add_row(
                "Community",
                str(health.score),
                _level(health.level),
                ", ".join(health.factors) or "-",
            )
            console.print(risk_table)
            console.print()

        if analytics.contributors:
            console.print(f"[bold]Top Contributors (top {top_n})[/bold]")
            contrib_table = Table(show_header=True, header_style="bold")
            contrib_table.add_column("#", justify="right")
            contrib_table.add_column("Username")
            contrib_table.add_column("Commits", justify="right")
            for i, c in enumerate(analytics.contributors[:top_n], 1):
                contrib_table.add_row(str(i), c.login, _format_number(c.contributions))
            console.print(contrib_table)
            console.print()

    _render(draw, output_file)


def render_insights(
    insights: ContributorInsights,
    full_name: str,
    top_n: int = 10,
    output_file: str | None = None,
) -> None:
    """Render contributor insights for a period."""

    def draw(console: Console) -> None:
        period = insights.period_stats
        _header(
            console,
            f"repo-radar: {full_name}",
            f"Period: {_format_date(period.start_date)} ~ {_format_date(period.end_date)}",
        )
        summary = Table(show_header=False, box=None, padding=(0, 2))
        summary.add_column("label", style="dim")
        summary.add_column("value", style="bold")
        summary.add_row("Commits (sampled)", _format_number(insights.total_commits))
        summary.add_row("Contributors", _format_number(insights.total_contributors))
        summary.add_row("Active (last 4 weeks)", _format_number(insights.active_contributors))
        summary.add_row("Avg Commits / Week", str(period.avg_commits_per_week))
        if insights.top_languages:
            summary.add_row(
                "Top Languages", ", ".join(lang.language for lang in insights.top_languages)
            )
        console.print(summary)
        console.print()

        if insights.contributors:
            console.print(f"[bold]Contributors (top {top_n})[/bold]")
            table = Table(show_header=True, header_style="bold")
            table.add_column("#", justify="right")
            table.add_column("Username")
            table.add_column("Commits", justify="right")
            table.add_column("First", no_wrap=True)
            table.add_column("Last", no_wrap=True)
            table.add_column("Wkly Avg", justify="right")
            table.add_column("Active")
            for i, c in enumerate(insights.contributors[:top_n], 1):
                table.add_row(
                    str(i),
                    c.login,
                    _format_number(c.contributions),
                    _format_date(c.first_commit),
                    _format_date(c.last_commit),
                    str(c.weekly_average),
                    "[green]yes[/green]" if c.is_active else "[dim]no[/dim]",
                )
            console.print(table)
            console.print()

        if insights.commits_by_week:
            console.print("[bold]Commits by Week[/bold]")
            week_table = Table(show_header=True, header_style="bold")
            week_table.add_column("Week of", no_wrap=True)
            week_table.add_column("Commits", justify="right")
            week_table.add_column("Authors", justify="right")
            week_table.add_column("")
            max_total = max(w.total for w in insights.commits_by_week)
            for week in insights.commits_by_week:
                week_table.add_row(
                    week.week,
                    _format_number(week.total),
                    str(week.contributors),
                    _make_inline_bar(week.total, max_total),
                )
            console.print(week_table)
            console.print()

    _render(draw, output_file)


def render_competitive(analysis: CompetitiveAnalysis, output_file: str | None = None) -> None:
    """Render the competitor ranking and the target's position."""

    def draw(console: Console) -> None:
        target = analysis.target_repository
        position = analysis.analysis.competitive_position
        _header(console, f"repo-radar: {target.full_name}", "Competitive analysis")
        console.print(
            f"Position: [bold]{position.position}[/bold] "
            f"({position.percentile}th percentile, more stars than "
            f"{position.better_than} of {position.total})"
        )
        console.print()

        if not analysis.competitors:
            console.print("[dim]No similar repositories found.[/dim]")
            return
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Repository", no_wrap=True)
        table.add_column("Similarity", justify="right")
        table.add_column("Stars", justify="right")
        table.add_column("Language")
        for i, c in enumerate(analysis.competitors, 1):
            table.add_row(
                str(i),
                c.repository.full_name,
                f"{c.similarity}%",
                _format_number(c.repository.stars),
                c.repository.language or "-",
            )
        console.print(table)
        console.print(
            f"[dim]Average stars:[/dim] {analysis.analysis.average_stars:,.0f}"
        )

    _render(draw, output_file)


def render_repositories(
    repositories: list[Repository], title: str, output_file: str | None = None
) -> None:
    """Render a list of repositories (search and trending results)."""

    def draw(console: Console) -> None:
        _header(console, title)
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Repository", no_wrap=True)
        table.add_column("Stars", justify="right")
        table.add_column("Forks", justify="right")
        table.add_column("Language")
        table.add_column("Description")
        for i, repo in enumerate(repositories, 1):
            table.add_row(
                str(i),
                repo.full_name,
                _format_number(repo.stars),
                _format_number(repo.forks),
                repo.language or "-",
                escape(repo.description or ""),
            )
        console.print(table)

    _render(draw, output_file)


def render_comparison(stats: list[RepositoryStats], output_file: str | None = None) -> None:
    """Render repository snapshots side by side."""

    def draw(console: Console) -> None:
        _header(console, "repo-radar: comparison")
        table = Table(show_header=True, header_style="bold")
        table.add_column("Metric", style="dim")
        for s in stats:
            table.add_column(s.repository.full_name, justify="right")
        rows: list[tuple[str, Callable[[RepositoryStats], Any]]] = [
            ("Stars", lambda s: s.repository.stars),
            ("Forks", lambda s: s.repository.forks),
            ("Contributors", lambda s: s.contributors),
            ("Releases", lambda s: s.releases),
            ("Open Issues", lambda s: s.issues.open),
            ("Merged PRs", lambda s: s.pull_requests.merged),
            ("Commits", lambda s: s.commits.total),
            ("Commits (30 days)", lambda s: s.commits.last_month),
        ]
        for label, value in rows:
            table.add_row(label, *(_format_number(value(s)) for s in stats))
        table.add_row("Language", *((s.repository.language or "-") for s in stats))
        console.print(table)

    _render(draw, output_file)


def to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


def render_json(value: Any, output_file: str | None = None) -> None:
    """Render any result model (or list of models) as JSON."""
    content = json.dumps(to_jsonable(value), indent=2, ensure_ascii=False)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)
