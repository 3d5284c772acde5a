"""
Review Dashboard API Routes
===========================

POST /api/upload/groups       - CSV upload grouped into location cards
POST /api/analyses/aggregate  - rollup over posted analyses or an analyses export
GET  /api/analyses/dashboard  - one client's stored analyses, own vs competitors
POST /api/analyze-text        - LLM analysis of free text, stored when possible
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from src.ai.review_analyzer import DeepDiveService, LLMReviewAnalyzer
from src.data.config import get_settings
from src.data.csv_parser import parse_csv
from src.data.data_models import AnalysisRecord, DatasetKind
from src.data.schema_sniffer import sniff_kind
from src.reviews.analyses_aggregator import AnalysesAggregator, aggregate_analyses, split_by_owner
from src.reviews.grouping import GroupingEngine
from src.reviews.location_stats import build_reports
from src.reviews.views import view_reports
from src.orchestrator.logging_config import timed
from src.scoring.scoring_config import noise_filter_from_settings

from . import db
from .models import (
    AggregateRequest,
    AggregateResponse,
    AnalyzeTextRequest,
    AnalyzeTextResponse,
    CompetitorSummaryModel,
    DashboardResponse,
    GroupsRequest,
    GroupsResponse,
    LocationModel,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Reviews"])

_repository = None
_deep_dive_service: Optional[DeepDiveService] = None


def get_repository():
    """Shared analyses store (lazy)."""
    global _repository
    if _repository is None:
        _repository = db.get_repository()
    return _repository


def get_deep_dive_service(repository=Depends(get_repository)) -> DeepDiveService:
    """Shared deep-dive service backed by the configured LLM (lazy)."""
    global _deep_dive_service
    if _deep_dive_service is None:
        _deep_dive_service = DeepDiveService(
            LLMReviewAnalyzer(config=get_settings().llm),
            repository=repository,
        )
    return _deep_dive_service


@router.post("/upload/groups", response_model=GroupsResponse)
async def group_upload(request: GroupsRequest):
    """Parse a review export and return its location cards, filtered and sorted."""
    rows = parse_csv(request.csv_text)
    kind = sniff_kind(rows)

    if kind is not DatasetKind.RAW_REVIEWS:
        logger.info(f"Upload of {len(rows)} rows is {kind.value}, no location view")
        return GroupsResponse(
            dataset_kind=kind.value,
            group_by=request.group_by,
            total_rows=len(rows),
            dropped_rows=0,
            group_count=0,
            locations=[],
        )

    engine = GroupingEngine(noise_filter_from_settings())
    with timed(logger, "Grouped upload", dataset_kind=kind.value, group_by=request.group_by,
               rows=len(rows)) as fields:
        try:
            if request.preset:
                result = engine.group_by_preset(rows, request.group_by)
            else:
                result = engine.group(rows, request.group_by)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        reports = build_reports(result.groups, comment_preview=get_settings().aggregation.comment_preview)
        ordered = view_reports(reports, request.filter_text, request.sort_key)
        fields["groups"] = len(result.groups)
        fields["dropped"] = result.dropped_rows

    return GroupsResponse(
        dataset_kind=kind.value,
        group_by=request.group_by,
        total_rows=len(rows),
        dropped_rows=result.dropped_rows,
        group_count=len(result.groups),
        locations=[LocationModel.from_report(r) for r in ordered],
    )


@router.post("/analyses/aggregate", response_model=AggregateResponse)
async def aggregate(request: AggregateRequest):
    """Aggregate analyses posted as records, or as an analyses CSV export."""
    if request.csv_text is not None:
        rows = parse_csv(request.csv_text)
        kind = sniff_kind(rows)
        if rows and kind is not DatasetKind.ANALYSES_EXPORT:
            raise HTTPException(
                status_code=400,
                detail=f"CSV is not an analyses export (detected {kind.value})",
            )
        records = [AnalysisRecord.from_dict(r) for r in rows]
    else:
        records = [AnalysisRecord.from_dict(r) for r in request.records]

    return AggregateResponse.from_aggregate(aggregate_analyses(records))


def _competitor_names(values: List[str]) -> Dict[str, str]:
    """Map "id:Name" query values to {id: Name}; a bare id names itself."""
    names = {}
    for value in values:
        competitor_id, _, name = value.partition(":")
        competitor_id = competitor_id.strip()
        if not competitor_id:
            raise HTTPException(status_code=400, detail=f"Invalid competitor '{value}', expected id:Name")
        names[competitor_id] = name.strip() or competitor_id
    return names


@router.get("/analyses/dashboard", response_model=DashboardResponse)
def client_dashboard(
    client_id: str = Query(..., min_length=1),
    competitor: List[str] = Query(default=[]),
    repository=Depends(get_repository),
):
    """
    Rollup of one client's stored analyses.

    The client's own analyses are aggregated like an analyses export.
    Competitor analyses are summarized per competitor; ``competitor``
    values ("id:Name", repeatable) supply display names, competitors
    without one are listed under their id.
    """
    names = _competitor_names(competitor)
    records = repository.list_records(client_id=client_id)
    own, competitors = split_by_owner(records)
    for record in competitors:
        names.setdefault(record.competitor_id, record.competitor_id)

    aggregator = AnalysesAggregator()
    summaries = aggregator.summarize_competitors(competitors, names)
    logger.info(
        f"Dashboard for client {client_id}: {len(own)} own analyses, "
        f"{len(competitors)} competitor analyses across {len(summaries)} competitors"
    )
    return DashboardResponse(
        client_id=client_id,
        own=AggregateResponse.from_aggregate(aggregator.aggregate(own)),
        competitor_analyses=len(competitors),
        competitors=[CompetitorSummaryModel.from_summary(s) for s in summaries],
    )


@router.post("/analyze-text", response_model=AnalyzeTextResponse)
async def analyze_text(
    request: AnalyzeTextRequest,
    service: DeepDiveService = Depends(get_deep_dive_service),
):
    """Run the structured sentiment analysis over free text."""
    if not request.text or not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    try:
        record = await service.analyze_text(request.text, request.label, source_type=request.source)
    except Exception as e:
        logger.error(f"analyze-text failed for '{request.label}': {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return AnalyzeTextResponse(
        location=request.label,
        review_count=request.review_count,
        analysis=record.to_dict(),
    )
