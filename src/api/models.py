"""
Pulse API Models
================

Pydantic models for API request/response serialization.
Aligned with the dashboard's location cards and analyses panels.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Tuple

from src.reviews.review_models import (
    AnalysesAggregate,
    CompetitorSummary,
    LocationReport,
    SourceAverage,
)
from src.reviews.views import SortKey


class HealthResponse(BaseModel):
    """API health check."""
    status: str
    version: str
    database: Dict[str, Any] = Field(default_factory=dict)
    llm_enabled: bool = False


# =============================================================================
# Location dashboard
# =============================================================================

class GroupsRequest(BaseModel):
    """CSV upload grouped for the location dashboard."""
    csv_text: str
    group_by: str = "Region"
    preset: bool = False           # group_by names a preset (region, city, location, ...)
    filter_text: str = ""
    sort_key: SortKey = SortKey.AVG_ASC


class CommentModel(BaseModel):
    text: str
    rating: str = ""
    date: str = ""
    source: str = ""


class LocationModel(BaseModel):
    """One location card."""
    name: str
    region: str = ""
    state: str = ""
    city: str = ""
    business: str = ""
    avg: Optional[float] = None
    total: int
    rated_count: int
    comment_count: int
    negative: int
    positive: int
    pct_negative: int
    pct_positive: int
    health_score: int
    health_label: str
    top_source: Optional[str] = None
    rating_dist: Dict[int, int]
    sources: Dict[str, int]
    comment_preview: List[CommentModel] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: LocationReport) -> "LocationModel":
        group, stats = report.group, report.stats
        return cls(
            name=group.name,
            region=group.region,
            state=group.state,
            city=group.city,
            business=group.business,
            avg=stats.avg,
            total=stats.total,
            rated_count=stats.rated_count,
            comment_count=stats.comment_count,
            negative=stats.negative,
            positive=stats.positive,
            pct_negative=stats.pct_negative,
            pct_positive=stats.pct_positive,
            health_score=stats.health_score,
            health_label=stats.health_label,
            top_source=stats.top_source,
            rating_dist=stats.rating_dist,
            sources=dict(group.sources),
            comment_preview=[
                CommentModel(text=c.text, rating=c.rating, date=c.date, source=c.source)
                for c in stats.comment_preview
            ],
        )


class GroupsResponse(BaseModel):
    dataset_kind: str
    group_by: str
    total_rows: int
    dropped_rows: int
    group_count: int
    locations: List[LocationModel]


# =============================================================================
# Analyses dashboard
# =============================================================================

class AggregateRequest(BaseModel):
    """Either stored records or an analyses CSV export."""
    records: List[Dict[str, Any]] = Field(default_factory=list)
    csv_text: Optional[str] = None


class SourceAverageModel(BaseModel):
    source: str
    count: int
    avg: Optional[float] = None
    sentiment_counts: Dict[str, int] = Field(default_factory=dict)
    pct_negative: int = 0
    pct_positive: int = 0

    @classmethod
    def from_source(cls, source: SourceAverage) -> "SourceAverageModel":
        return cls(
            source=source.source,
            count=source.count,
            avg=source.avg,
            sentiment_counts=dict(source.sentiment_counts),
            pct_negative=source.pct_negative,
            pct_positive=source.pct_positive,
        )


class AggregateResponse(BaseModel):
    total: int
    avg_score: Optional[float] = None
    sentiment_counts: Dict[str, int]
    top_themes: List[Tuple[str, int]]
    top_pains: List[Tuple[str, int]]
    top_praise: List[Tuple[str, int]]
    top_competitors: List[Tuple[str, int]]
    top_feature_requests: List[Tuple[str, int]]
    source_averages: List[SourceAverageModel]
    key_quotes: List[str]

    @classmethod
    def from_aggregate(cls, aggregate: AnalysesAggregate) -> "AggregateResponse":
        return cls(
            total=aggregate.total,
            avg_score=aggregate.avg_score,
            sentiment_counts=aggregate.sentiment_counts,
            top_themes=aggregate.top_themes,
            top_pains=aggregate.top_pains,
            top_praise=aggregate.top_praise,
            top_competitors=aggregate.top_competitors,
            top_feature_requests=aggregate.top_feature_requests,
            source_averages=[SourceAverageModel.from_source(s) for s in aggregate.source_averages],
            key_quotes=aggregate.key_quotes,
        )


class CompetitorSummaryModel(BaseModel):
    competitor_id: str
    name: str
    count: int
    avg: Optional[float] = None
    dominant_sentiment: str

    @classmethod
    def from_summary(cls, summary: CompetitorSummary) -> "CompetitorSummaryModel":
        return cls(
            competitor_id=summary.competitor_id,
            name=summary.name,
            count=summary.count,
            avg=summary.avg,
            dominant_sentiment=summary.dominant_sentiment,
        )


class DashboardResponse(BaseModel):
    """One client's stored analyses: its own rollup plus one line per competitor."""
    client_id: str
    own: AggregateResponse
    competitor_analyses: int
    competitors: List[CompetitorSummaryModel]


# =============================================================================
# Analyze text
# =============================================================================

class AnalyzeTextRequest(BaseModel):
    text: str
    label: str = ""
    source: str = "csv_upload"
    review_count: Optional[int] = None


class AnalyzeTextResponse(BaseModel):
    success: bool = True
    location: str
    review_count: Optional[int] = None
    analysis: Dict[str, Any]
