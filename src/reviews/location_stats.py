"""
Location Statistics Aggregator
==============================

Per-group rollups for the location dashboard: rating distribution,
average, negative / positive shares, health score, top feedback source
and a bounded preview of verbatim comments.

Pure functions over a Group; nothing is cached or mutated.

Usage:
    stats = compute_stats(group)
    reports = build_reports(groups)
    overview = summarize_reports(reports)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from src.data.data_models import round_half_up
from src.scoring.health_score import compute_health_score, health_label
from src.scoring.scoring_config import DEFAULT_HEALTH_CONFIG, HealthScoreConfig

from .review_models import Group, LocationReport, LocationStats

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_PREVIEW = 3


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)


def top_source(sources: Dict[str, int]) -> Optional[str]:
    """Most frequent source; ties go to the first one encountered."""
    best: Optional[str] = None
    best_count = 0
    for source, count in sources.items():
        if count > best_count:
            best, best_count = source, count
    return best


def compute_stats(
    group: Group,
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
    comment_preview: int = DEFAULT_COMMENT_PREVIEW,
) -> LocationStats:
    """
    Compute the LocationStats of a group.

    A group without valid ratings yields avg=None and health_score=0
    ("Insufficient data"), never an error.
    """
    ratings = group.ratings
    rated = len(ratings)

    avg = round_half_up(sum(ratings) / rated, 1) if rated else None
    negative = sum(1 for r in ratings if r <= config.negative_max_rating)
    positive = sum(1 for r in ratings if r >= config.positive_min_rating)
    score = compute_health_score(avg, rated, config)

    return LocationStats(
        avg=avg,
        total=group.total,
        rated_count=rated,
        comment_count=len(group.comments),
        negative=negative,
        positive=positive,
        pct_negative=_percent(negative, rated),
        pct_positive=_percent(positive, rated),
        health_score=score,
        health_label=health_label(score, has_data=avg is not None, config=config),
        top_source=top_source(group.sources),
        rating_dist=dict(group.rating_dist),
        comment_preview=tuple(group.comments[:max(0, comment_preview)]),
    )


def build_reports(
    groups: Sequence[Group],
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
    comment_preview: int = DEFAULT_COMMENT_PREVIEW,
) -> List[LocationReport]:
    """Pair every group with its stats, preserving input order."""
    return [
        LocationReport(group=g, stats=compute_stats(g, config, comment_preview))
        for g in groups
    ]


@dataclass(frozen=True)
class LocationOverview:
    """Headline counts across all locations of a dashboard."""
    locations: int
    rows: int
    rated: int
    healthy: int
    needs_attention: int
    critical: int
    insufficient_data: int
    avg: Optional[float]


def summarize_reports(
    reports: Sequence[LocationReport],
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> LocationOverview:
    """KPI strip of the location dashboard."""
    labels = [r.stats.health_label for r in reports]
    all_ratings = [rating for r in reports for rating in r.group.ratings]

    overview = LocationOverview(
        locations=len(reports),
        rows=sum(r.stats.total for r in reports),
        rated=len(all_ratings),
        healthy=labels.count(config.label_healthy),
        needs_attention=labels.count(config.label_attention),
        critical=labels.count(config.label_critical),
        insufficient_data=labels.count(config.label_no_data),
        avg=round_half_up(sum(all_ratings) / len(all_ratings), 1) if all_ratings else None,
    )
    logger.debug(
        f"Overview: {overview.locations} locations, {overview.critical} critical, "
        f"{overview.insufficient_data} without ratings"
    )
    return overview
