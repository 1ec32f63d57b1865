"""Competitive analysis: find similar repositories and rank the target among them."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable

from .config import DEFAULT_SETTINGS, Settings, SimilarityWeights
from .errors import InvalidRequestError
from .github.client import GitHubClient
from .models import (
    CompetitiveAnalysis,
    CompetitivePosition,
    CompetitiveSummary,
    Competitor,
    Repository,
)
from .resilience import with_deadline
from .rounding import round_half_up
from .snapshot import get_repository_stats

logger = logging.getLogger(__name__)

MAX_LIMIT = 50

_WORD_SPLIT_RE = re.compile(r"\W+")


def _significant(word: str) -> bool:
    return len(word) > 3


def build_search_queries(target: Repository) -> list[str]:
    """Up to three searches: primary topic, language plus keywords, and several topics."""
    queries = []
    if target.topics:
        language = f" language:{target.language}" if target.language else ""
        queries.append(f"topic:{target.topics[0]}{language} sort:stars-desc")

    if target.language:
        keywords = [w for w in (target.description or "").split(" ") if _significant(w)][:2]
        if keywords:
            queries.append(
                f"{' '.join(keywords)} language:{target.language} sort:stars-desc"
            )
        else:
            queries.append(f"language:{target.language} sort:stars-desc")

    if len(target.topics) > 1:
        topic_query = " ".join(f"topic:{t}" for t in target.topics[:3])
        queries.append(f"{topic_query} sort:stars-desc")
    return queries


def _description_words(description: str) -> set[str]:
    return {w for w in _WORD_SPLIT_RE.split(description.lower()) if w}


def calculate_similarity(
    target: Repository,
    candidate: Repository,
    weights: SimilarityWeights | None = None,
) -> int:
    """Similarity of ``candidate`` to ``target`` on a 0-100 scale."""
    weights = weights or DEFAULT_SETTINGS.similarity
    score = 0.0

    if target.language == candidate.language:
        score += weights.language

    target_topics = set(target.topics)
    common_topics = target_topics & set(candidate.topics)
    score += len(common_topics) / max(len(target_topics), 1) * weights.topics

    if target.description and candidate.description:
        target_words = _description_words(target.description)
        candidate_words = _description_words(candidate.description)
        common_words = {w for w in target_words & candidate_words if _significant(w)}
        score += len(common_words) / max(len(target_words), 1) * weights.description

    star_ratio = min(target.stars, candidate.stars) / max(target.stars, candidate.stars, 1)
    score += star_ratio * weights.stars

    return round_half_up(score)


def rank_competitors(
    target: Repository,
    candidates: Iterable[Repository],
    limit: int,
    weights: SimilarityWeights | None = None,
) -> list[Competitor]:
    """Deduplicate by id, drop the target, order by (similarity, stars) descending."""
    unique: dict[str, Repository] = {}
    for repo in candidates:
        if repo.full_name != target.full_name:
            unique[repo.id] = repo
    scored = [
        Competitor(repository=repo, similarity=calculate_similarity(target, repo, weights))
        for repo in unique.values()
    ]
    scored.sort(key=lambda c: (c.similarity, c.repository.stars), reverse=True)
    return scored[:limit]


def position_label(percentile: float) -> str:
    if percentile >= 80:
        return "Leader"
    if percentile >= 60:
        return "Strong"
    if percentile >= 40:
        return "Competitive"
    if percentile >= 20:
        return "Emerging"
    return "Niche"


def competitive_position(
    target: Repository, competitors: list[Repository]
) -> CompetitivePosition:
    total = len(competitors)
    if total == 0:
        return CompetitivePosition()
    better_than = sum(1 for repo in competitors if repo.stars < target.stars)
    percentile = better_than / total * 100
    return CompetitivePosition(
        position=position_label(percentile),
        percentile=round_half_up(percentile),
        better_than=better_than,
        total=total,
    )


def language_distribution(repos: Iterable[Repository]) -> dict[str, int]:
    distribution: dict[str, int] = {}
    for repo in repos:
        if repo.language:
            distribution[repo.language] = distribution.get(repo.language, 0) + 1
    return distribution


def summarize(target: Repository, competitors: list[Competitor]) -> CompetitiveSummary:
    repos = [c.repository for c in competitors]
    return CompetitiveSummary(
        total_found=len(repos),
        average_stars=sum(r.stars for r in repos) / len(repos) if repos else 0.0,
        language_distribution=language_distribution(repos),
        competitive_position=competitive_position(target, repos),
    )


async def get_competitive_analysis(
    client: GitHubClient,
    owner: str,
    name: str,
    limit: int = 5,
    settings: Settings | None = None,
) -> CompetitiveAnalysis:
    """Find repositories similar to ``owner/name`` and position it against them.

    Search failures are skipped one query at a time; the analysis proceeds
    with whatever searches succeeded, possibly none.
    """
    if not 1 <= limit <= MAX_LIMIT:
        raise InvalidRequestError(f"limit must be between 1 and {MAX_LIMIT}")
    settings = settings or DEFAULT_SETTINGS
    target = (await get_repository_stats(client, owner, name, settings)).repository

    queries = build_search_queries(target)
    results = await asyncio.gather(
        *(
            with_deadline(
                client.search_repositories(query, first=limit * 2),
                settings.timeouts.search,
                f"search {query!r}",
            )
            for query in queries
        ),
        return_exceptions=True,
    )

    candidates: list[Repository] = []
    for query, result in zip(queries, results):
        if isinstance(result, Exception):
            logger.warning("Search query failed: %s: %s", query, result)
            continue
        candidates.extend(result.repositories)

    competitors = rank_competitors(target, candidates, limit, settings.similarity)
    return CompetitiveAnalysis(
        target_repository=target,
        competitors=competitors,
        analysis=summarize(target, competitors),
    )
