"""Tunable constants for fetch budgets, caps and scoring."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace


@dataclass(frozen=True)
class Timeouts:
    """Time budgets in seconds."""

    analytics: float = 30.0
    snapshot: float = 15.0
    contributor_count_rest: float = 8.0
    contributor_count_graphql: float = 5.0
    minimal_fetch: float = 10.0
    enrichment: float = 20.0
    insights_fetch: float = 10.0
    search: float = 10.0


@dataclass(frozen=True)
class FetchLimits:
    """Page caps bounding latency on large repositories."""

    contributor_analysis: int = 50
    insight_contributors: int = 50
    insight_commits: int = 100
    risk_commits: int = 100
    star_events: int = 100
    dependencies: int = 20
    top_languages: int = 3


@dataclass(frozen=True)
class RiskThresholds:
    bus_high_share: float = 0.70
    bus_medium_share: float = 0.50
    inactive_days: int = 180
    moderate_days: int = 60
    min_monthly_commits: float = 2.0
    healthy_contributors: int = 10
    healthy_monthly_commits: float = 5.0
    recent_update_days: int = 30
    active_window_days: int = 28
    maintenance_window_days: int = 90


@dataclass(frozen=True)
class SimilarityWeights:
    language: float = 40.0
    topics: float = 30.0
    description: float = 20.0
    stars: float = 10.0


@dataclass(frozen=True)
class Settings:
    timeouts: Timeouts = field(default_factory=Timeouts)
    limits: FetchLimits = field(default_factory=FetchLimits)
    risk: RiskThresholds = field(default_factory=RiskThresholds)
    similarity: SimilarityWeights = field(default_factory=SimilarityWeights)

    def __post_init__(self) -> None:
        outer = self.timeouts.analytics
        for f in fields(self.timeouts):
            if f.name == "analytics":
                continue
            budget = getattr(self.timeouts, f.name)
            if budget <= 0:
                raise ValueError(f"timeout '{f.name}' must be positive")
            if budget >= outer:
                raise ValueError(
                    f"timeout '{f.name}' ({budget}s) must be shorter than "
                    f"the analytics timeout ({outer}s)"
                )

    def with_analytics_timeout(self, seconds: float) -> Settings:
        """Return settings with a new outer budget, shrinking sub-budgets to fit."""
        scale = seconds / self.timeouts.analytics
        if scale >= 1:
            return replace(self, timeouts=replace(self.timeouts, analytics=seconds))
        scaled = {
            f.name: getattr(self.timeouts, f.name) * scale
            for f in fields(self.timeouts)
            if f.name != "analytics"
        }
        return replace(self, timeouts=Timeouts(analytics=seconds, **scaled))


DEFAULT_SETTINGS = Settings()
