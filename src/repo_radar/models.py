"""Data models for repo-radar."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RepositoryOwner:
    login: str
    type: str = "User"
    avatar_url: str = ""


@dataclass(frozen=True)
class License:
    name: str
    key: str


@dataclass(frozen=True)
class Repository:
    """Snapshot of upstream repository state at fetch time."""

    id: str
    name: str
    full_name: str
    owner: RepositoryOwner
    description: str | None = None
    url: str = ""
    topics: tuple[str, ...] = ()
    language: str | None = None
    license: License | None = None
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None
    is_archived: bool = False
    is_private: bool = False


@dataclass(frozen=True)
class IssueCounts:
    open: int = 0
    closed: int = 0


@dataclass(frozen=True)
class PullRequestCounts:
    open: int = 0
    closed: int = 0
    merged: int = 0


@dataclass(frozen=True)
class CommitCounts:
    total: int = 0
    last_month: int = 0


@dataclass(frozen=True)
class RepositoryStats:
    repository: Repository
    contributors: int = 0
    releases: int = 0
    issues: IssueCounts = field(default_factory=IssueCounts)
    pull_requests: PullRequestCounts = field(default_factory=PullRequestCounts)
    commits: CommitCounts = field(default_factory=CommitCounts)


@dataclass
class SearchResult:
    repositories: list[Repository] = field(default_factory=list)
    total_count: int = 0
    has_next_page: bool = False
    end_cursor: str | None = None


# Raw upstream events, narrowed from API payloads


@dataclass(frozen=True)
class StarEvent:
    starred_at: str


@dataclass(frozen=True)
class WeeklyActivity:
    """One week of the commit-activity series; week_start is a unix timestamp."""

    week_start: int
    total: int


@dataclass(frozen=True)
class CommitEntry:
    sha: str
    date: str
    author_login: str | None = None
    author_name: str | None = None
    author_email: str | None = None


@dataclass(frozen=True)
class CommitDetail:
    sha: str
    additions: int = 0
    deletions: int = 0


# Time series and contributors


@dataclass
class HistoricalPoint:
    """One calendar month of growth data."""

    date: str  # YYYY-MM
    stars: int = 0
    forks: int = 0
    commits: int = 0


@dataclass
class ContributorSummary:
    login: str
    avatar_url: str = ""
    contributions: int = 0
    type: str = "User"


@dataclass
class WeeklyCommitBucket:
    """A contributor's commits in one Monday-aligned week."""

    week: str
    commits: int = 0
    additions: int = 0
    deletions: int = 0


@dataclass
class WeeklyCommitTotal:
    """All commits in one Monday-aligned week, across contributors."""

    week: str
    total: int = 0
    contributors: int = 0


@dataclass
class ContributorProfile:
    login: str
    avatar_url: str = ""
    name: str | None = None
    email: str | None = None
    contributions: int = 0
    commit_history: list[WeeklyCommitBucket] = field(default_factory=list)
    total_additions: int = 0
    total_deletions: int = 0
    first_commit: str = ""
    last_commit: str = ""
    weekly_average: float = 0.0
    is_active: bool = False


@dataclass
class LanguageActivity:
    language: str
    commits: int = 0
    contributors: list[str] = field(default_factory=list)


@dataclass
class PeriodStats:
    start_date: str
    end_date: str
    total_commits: int = 0
    avg_commits_per_week: float = 0.0


@dataclass
class ContributorInsights:
    period_stats: PeriodStats
    contributors: list[ContributorProfile] = field(default_factory=list)
    total_commits: int = 0
    total_contributors: int = 0
    active_contributors: int = 0
    commits_by_week: list[WeeklyCommitTotal] = field(default_factory=list)
    top_languages: list[LanguageActivity] = field(default_factory=list)


# Technology stack


@dataclass
class LanguageShare:
    name: str
    bytes: int
    percentage: int
    color: str


@dataclass
class Dependency:
    name: str
    version: str
    type: str  # "dependency" | "devDependency"


@dataclass
class TechnologyStack:
    languages: list[LanguageShare] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)


# Risk


@dataclass
class BusFactor:
    score: int
    level: str  # "low" | "medium" | "high"
    top_contributors: int
    description: str


@dataclass
class MaintenanceStatus:
    score: int
    level: str  # "active" | "moderate" | "inactive"
    last_commit: str
    avg_commits_per_month: float
    description: str


@dataclass
class CommunityHealth:
    score: int
    level: str  # "healthy" | "moderate" | "concerning"
    factors: list[str] = field(default_factory=list)


@dataclass
class RiskAssessment:
    bus_factor: BusFactor
    maintenance_status: MaintenanceStatus
    community_health: CommunityHealth


@dataclass
class TrendSet:
    stars_growth: int = 0
    forks_growth: int = 0
    # Not computed: the upstream data has no contributor history.
    contributors_growth: int = 0
    commit_activity: int = 0


@dataclass
class AdvancedAnalytics:
    repository: Repository
    contributors: list[ContributorSummary] = field(default_factory=list)
    releases: int = 0
    issues: IssueCounts = field(default_factory=IssueCounts)
    pull_requests: PullRequestCounts = field(default_factory=PullRequestCounts)
    commits: CommitCounts = field(default_factory=CommitCounts)
    historical: list[HistoricalPoint] = field(default_factory=list)
    technology_stack: TechnologyStack = field(default_factory=TechnologyStack)
    risk_assessment: RiskAssessment | None = None
    trends: TrendSet = field(default_factory=TrendSet)


# Competitive analysis


@dataclass
class Competitor:
    repository: Repository
    similarity: int


@dataclass
class CompetitivePosition:
    position: str = "Unknown"
    percentile: int = 0
    better_than: int = 0
    total: int = 0


@dataclass
class CompetitiveSummary:
    total_found: int = 0
    average_stars: float = 0.0
    language_distribution: dict[str, int] = field(default_factory=dict)
    competitive_position: CompetitivePosition = field(
        default_factory=CompetitivePosition
    )


@dataclass
class CompetitiveAnalysis:
    target_repository: Repository
    competitors: list[Competitor] = field(default_factory=list)
    analysis: CompetitiveSummary = field(default_factory=CompetitiveSummary)
