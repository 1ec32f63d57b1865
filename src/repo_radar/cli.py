"""CLI entrypoint for repo-radar."""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from collections.abc import Coroutine
from typing import Any

import click
from rich.logging import RichHandler

from . import __version__
from .config import DEFAULT_SETTINGS
from .contributors import PERIODS
from .errors import AnalyticsError, InvalidRequestError, to_error_response
from .orchestrator import Runner
from .snapshot import TRENDING_PERIODS, parse_repository_slug

EXIT_CODES = {400: 2, 404: 3, 408: 4, 429: 5}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)] if verbose else None,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def _execute(coro: Coroutine[Any, Any, None]) -> None:
    """Run a command coroutine and turn failures into an exit status."""
    try:
        asyncio.run(coro)
    except Exception as exc:
        error = to_error_response(exc)
        if not isinstance(exc, AnalyticsError):
            logging.getLogger(__name__).debug("Unexpected failure", exc_info=exc)
        click.echo(f"Error ({error.status}): {error.message}", err=True)
        sys.exit(EXIT_CODES.get(error.status, 1))


def _slug(value: str) -> tuple[str, str]:
    try:
        return parse_repository_slug(value)
    except InvalidRequestError as exc:
        raise click.BadParameter(f"{value!r}: {exc.message}") from exc


def output_options(func):
    """Attach --format and --output and build the Runner for the command."""

    @click.option(
        "--format",
        "output_format",
        type=click.Choice(["table", "json"], case_sensitive=False),
        default="table",
        show_default=True,
        help="Output format",
    )
    @click.option(
        "--output",
        "output_file",
        default=None,
        type=click.Path(),
        help="Save output to file instead of stdout",
    )
    @click.pass_obj
    @functools.wraps(func)
    def wrapper(obj: dict[str, Any], output_format: str, output_file: str | None, **kwargs):
        runner = Runner(
            token=obj["token"],
            api_url=obj["api_url"],
            verify_ssl=obj["verify_ssl"],
            settings=obj["settings"],
            output_format=output_format.lower(),
            output_file=output_file,
        )
        return func(runner, **kwargs)

    return wrapper


@click.group()
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    required=True,
    show_envvar=True,
    help="GitHub personal access token",
)
@click.option(
    "--api-url",
    default=None,
    help="GitHub Enterprise API base URL",
)
@click.option(
    "--no-ssl-verify",
    is_flag=True,
    default=False,
    help="Disable SSL verification (self-signed certs)",
)
@click.option(
    "--timeout",
    envvar="REPO_RADAR_TIMEOUT",
    type=click.FloatRange(min=1.0, max=600.0),
    default=DEFAULT_SETTINGS.timeouts.analytics,
    show_default=True,
    show_envvar=True,
    help="Overall time budget in seconds for one command",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    token: str,
    api_url: str | None,
    no_ssl_verify: bool,
    timeout: float,
    verbose: bool,
) -> None:
    """Analyze GitHub repositories: growth, contributors, risk and competitors.

    \b
    Examples:
      repo-radar stats octocat/Hello-World
      repo-radar analytics pallets/flask --format json --output flask.json
      repo-radar contributors encode/httpx --period quarter
      repo-radar competitors tiangolo/fastapi --limit 10
      repo-radar trending --language Python --period month
      repo-radar compare pallets/flask django/django
    """
    _configure_logging(verbose)
    ctx.obj = {
        "token": token,
        "api_url": api_url,
        "verify_ssl": not no_ssl_verify,
        "settings": DEFAULT_SETTINGS.with_analytics_timeout(timeout),
    }


@main.command()
@click.argument("repository")
@output_options
def stats(runner: Runner, repository: str) -> None:
    """Repository snapshot: metadata and headline counts for OWNER/NAME."""
    owner, name = _slug(repository)
    _execute(runner.stats(owner, name))


@main.command()
@click.argument("repository")
@click.option(
    "--top-n", default=10, show_default=True, help="Number of top contributors to show"
)
@output_options
def analytics(runner: Runner, repository: str, top_n: int) -> None:
    """Full analytics for OWNER/NAME: history, trends, technology and risk."""
    owner, name = _slug(repository)
    _execute(runner.analytics(owner, name, top_n=top_n))


@main.command()
@click.argument("repository")
@click.option(
    "--period",
    type=click.Choice(PERIODS),
    default="year",
    show_default=True,
    help="Analysis window ending now",
)
@click.option(
    "--top-n", default=10, show_default=True, help="Number of contributors to show"
)
@output_options
def contributors(runner: Runner, repository: str, period: str, top_n: int) -> None:
    """Contributor insights for OWNER/NAME over a period."""
    owner, name = _slug(repository)
    _execute(runner.contributors(owner, name, period=period, top_n=top_n))


@main.command()
@click.argument("repository")
@click.option(
    "--limit",
    type=click.IntRange(1, 50),
    default=5,
    show_default=True,
    help="Number of competitors to rank",
)
@output_options
def competitors(runner: Runner, repository: str, limit: int) -> None:
    """Similar repositories to OWNER/NAME and its position among them."""
    owner, name = _slug(repository)
    _execute(runner.competitors(owner, name, limit=limit))


@main.command()
@click.argument("query")
@click.option(
    "--limit",
    type=click.IntRange(1, 100),
    default=20,
    show_default=True,
    help="Number of results",
)
@click.option("--cursor", default=None, help="Continue after this page cursor")
@output_options
def search(runner: Runner, query: str, limit: int, cursor: str | None) -> None:
    """Search repositories with GitHub search syntax."""
    _execute(runner.search(query, limit=limit, cursor=cursor))


@main.command()
@click.option("--language", default=None, help="Restrict to a primary language")
@click.option(
    "--period",
    type=click.Choice(TRENDING_PERIODS),
    default="week",
    show_default=True,
    help="Creation window",
)
@click.option(
    "--limit",
    type=click.IntRange(1, 100),
    default=20,
    show_default=True,
    help="Number of results",
)
@output_options
def trending(runner: Runner, language: str | None, period: str, limit: int) -> None:
    """Most-starred repositories created recently."""
    _execute(runner.trending(language=language, period=period, limit=limit))


@main.command()
@click.argument("repositories", nargs=-1, required=True)
@output_options
def compare(runner: Runner, repositories: tuple[str, ...]) -> None:
    """Compare snapshots of several OWNER/NAME repositories side by side."""
    _execute(runner.compare([_slug(r) for r in repositories]))


if __name__ == "__main__":  # pragma: no cover
    main()
