"""
Review Dashboard Data Models
============================

Structured outputs of the aggregation pipeline:
    Group            - rows sharing one grouping-key value
    LocationStats    - read-only rollup over a Group
    AnalysesAggregate - rollup over stored AnalysisRecords
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from src.data.data_models import Row


def empty_rating_dist() -> Dict[int, int]:
    """Star buckets 0..5, all present."""
    return {star: 0 for star in range(6)}


@dataclass(frozen=True)
class ReviewComment:
    """A verbatim comment with the row context it came from."""
    text: str
    rating: str = ""
    date: str = ""
    source: str = ""


@dataclass
class Group:
    """All rows sharing one value of the grouping column."""
    name: str

    # Display-only annotations, taken from the first contributing row
    region: str = ""
    state: str = ""
    city: str = ""
    business: str = ""

    rows: List[Row] = field(default_factory=list)
    ratings: List[float] = field(default_factory=list)
    comments: List[ReviewComment] = field(default_factory=list)
    sources: Dict[str, int] = field(default_factory=dict)     # insertion-ordered
    rating_dist: Dict[int, int] = field(default_factory=empty_rating_dist)

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def comment_text(self) -> str:
        """All comment bodies, one per line."""
        return "\n".join(c.text for c in self.comments)


@dataclass(frozen=True)
class LocationStats:
    """
    Derived view over a Group.

    avg is None when the group has no valid rating; health_score is then 0
    and health_label reads "Insufficient data". Callers must not read that
    as a zero-star location.
    """
    avg: Optional[float]
    total: int
    rated_count: int
    comment_count: int
    negative: int
    positive: int
    pct_negative: int
    pct_positive: int
    health_score: int
    health_label: str
    top_source: Optional[str]
    rating_dist: Dict[int, int]
    comment_preview: Tuple[ReviewComment, ...] = ()

    @property
    def has_ratings(self) -> bool:
        return self.avg is not None


@dataclass(frozen=True)
class LocationReport:
    """A group paired with its stats, the unit rendered per location card."""
    group: Group
    stats: LocationStats

    @property
    def name(self) -> str:
        return self.group.name


@dataclass
class GroupingResult:
    """Groups plus the number of rows the noise filter removed."""
    groups: List[Group]
    dropped_rows: int = 0
    key: str = ""

    @property
    def grouped_rows(self) -> int:
        return sum(g.total for g in self.groups)


@dataclass(frozen=True)
class SourceAverage:
    """Per source_type rollup of stored analyses."""
    source: str
    count: int
    avg: Optional[float]
    sentiment_counts: Dict[str, int] = field(default_factory=dict)
    pct_negative: int = 0
    pct_positive: int = 0


@dataclass(frozen=True)
class CompetitorSummary:
    """Average score and dominant sentiment for one competitor."""
    competitor_id: str
    name: str
    count: int
    avg: Optional[float]
    dominant_sentiment: str


FrequencyTable = List[Tuple[str, int]]


@dataclass
class AnalysesAggregate:
    """Cross-record rollup of stored analyses."""
    total: int
    avg_score: Optional[float]
    sentiment_counts: Dict[str, int]
    top_themes: FrequencyTable = field(default_factory=list)
    top_pains: FrequencyTable = field(default_factory=list)
    top_praise: FrequencyTable = field(default_factory=list)
    top_competitors: FrequencyTable = field(default_factory=list)
    top_feature_requests: FrequencyTable = field(default_factory=list)
    source_averages: List[SourceAverage] = field(default_factory=list)
    key_quotes: List[str] = field(default_factory=list)
