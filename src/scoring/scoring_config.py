"""
Scoring and filtering policy for the Pulse dashboards.

This file centralizes every threshold and weight used by the location
rollups and the analyses aggregator. No magic numbers in the aggregation
code: tune the policy here (or pass a custom instance) without touching
the pipeline.

LOCATION HEALTH:
- Rating quality is worth up to 85 points (avg / 5 * 85)
- Review volume adds a confidence bonus of rated_count / 10, capped at 15
- A 5.0 average from a single review cannot outrank a 4.6 average
  backed by hundreds of reviews

NOISE FILTER:
Review exports from multi-site operators contain rollup rows and raw
database ids in the location columns. These keys are dropped before
grouping. The rules are inferred business heuristics and may
misclassify legitimate names; they are deliberately overridable.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Pattern, Tuple


@dataclass(frozen=True)
class HealthScoreConfig:
    """
    Configuration of the location health score (0-100).

    LABELS:
    - >= 75: Healthy
    - 55-75: Needs attention
    - < 55: Critical
    """
    max_points: int = 100

    rating_points: float = 85.0        # avg / max_rating * rating_points
    max_rating: float = 5.0
    volume_bonus_cap: float = 15.0     # min(cap, rated_count / divisor)
    volume_divisor: float = 10.0

    healthy_threshold: int = 75
    attention_threshold: int = 55

    label_healthy: str = "Healthy"
    label_attention: str = "Needs attention"
    label_critical: str = "Critical"
    label_no_data: str = "Insufficient data"

    # Rating buckets for negative / positive percentages
    negative_max_rating: float = 2.0   # rating <= 2 is negative
    positive_min_rating: float = 4.0   # rating >= 4 is positive

    def __post_init__(self):
        if self.attention_threshold > self.healthy_threshold:
            raise ValueError("attention_threshold cannot exceed healthy_threshold")
        if self.volume_divisor <= 0:
            raise ValueError("volume_divisor must be positive")
        if self.rating_points + self.volume_bonus_cap > self.max_points:
            raise ValueError("rating_points + volume_bonus_cap cannot exceed max_points")


@dataclass(frozen=True)
class NoiseFilterConfig:
    """
    Group keys that never form a group.

    A row is dropped when its key is empty (resolves to unknown_key), starts
    with min_id_digits or more digits (a numeric database id), or contains one
    of blocked_substrings (case-insensitive).
    """
    unknown_key: str = "Unknown"
    min_id_digits: int = 5
    blocked_substrings: Tuple[str, ...] = ("corporate rollup",)

    def __post_init__(self):
        if self.min_id_digits <= 0:
            raise ValueError("min_id_digits must be positive")

    @property
    def numeric_id_pattern(self) -> Pattern:
        return re.compile(r"^\d{%d,}" % self.min_id_digits)


@dataclass(frozen=True)
class AnalysesConfig:
    """
    Top-N sizes for the analyses dashboard frequency tables.
    """
    top_n: Dict[str, int] = field(default_factory=lambda: {
        "themes": 10,
        "pain_points": 8,
        "praise_points": 8,
        "competitor_mentions": 8,
        "feature_requests": 8,
    })
    key_quotes: int = 4

    # overall_sentiment values that are tallied; anything else is ignored
    sentiments: Tuple[str, ...] = ("positive", "negative", "mixed", "neutral")

    default_source: str = "other"


# Default instances
DEFAULT_HEALTH_CONFIG = HealthScoreConfig()
DEFAULT_NOISE_FILTER = NoiseFilterConfig()
DEFAULT_ANALYSES_CONFIG = AnalysesConfig()


def noise_filter_from_settings() -> NoiseFilterConfig:
    """Build the noise filter from the PULSE_NOISE_* environment settings."""
    from src.data.config import get_settings

    aggregation = get_settings().aggregation
    return NoiseFilterConfig(
        min_id_digits=aggregation.noise_min_id_digits,
        blocked_substrings=tuple(aggregation.noise_substrings),
    )
