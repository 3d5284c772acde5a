"""
Pulse Scoring Module
====================

Scoring policy for the location dashboards:
- scoring_config: frozen thresholds / weights / noise-filter rules
- health_score: location health score and triage label
"""

from .scoring_config import (
    HealthScoreConfig,
    NoiseFilterConfig,
    AnalysesConfig,
    DEFAULT_HEALTH_CONFIG,
    DEFAULT_NOISE_FILTER,
    DEFAULT_ANALYSES_CONFIG,
    noise_filter_from_settings,
)
from .health_score import compute_health_score, health_label

__all__ = [
    "HealthScoreConfig",
    "NoiseFilterConfig",
    "AnalysesConfig",
    "DEFAULT_HEALTH_CONFIG",
    "DEFAULT_NOISE_FILTER",
    "DEFAULT_ANALYSES_CONFIG",
    "noise_filter_from_settings",
    "compute_health_score",
    "health_label",
]
