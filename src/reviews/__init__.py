"""
Pulse Review Dashboards
=======================

Deterministic aggregation of review exports and stored analyses.

Modules:
    review_models        - Data models (Group, LocationStats, AnalysesAggregate)
    grouping             - Grouping engine with noise filter and presets
    location_stats       - Per-location rollups and health score
    analyses_aggregator  - Frequency tables and per-source averages over analyses
    views                - Sort / filter projection for display
"""

from .review_models import (
    ReviewComment,
    Group,
    GroupingResult,
    LocationStats,
    LocationReport,
    SourceAverage,
    CompetitorSummary,
    AnalysesAggregate,
)
from .grouping import GroupingEngine, GROUP_PRESETS, group_rows, group_rows_by_preset, is_noise_key
from .location_stats import compute_stats, build_reports, summarize_reports, LocationOverview
from .analyses_aggregator import (
    AnalysesAggregator,
    aggregate_analyses,
    parse_string_list,
    frequency_table,
    split_by_owner,
)
from .views import SortKey, view, view_reports
