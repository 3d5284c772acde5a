"""
Location health score policy.

    health = round(avg / 5 * 85 + min(15, rated_count / 10))

Kept behind two functions so the weighting can be replaced without
touching the aggregation pipeline. See HealthScoreConfig for the knobs.
"""

from typing import Optional

from src.data.data_models import round_half_up

from .scoring_config import DEFAULT_HEALTH_CONFIG, HealthScoreConfig


def compute_health_score(
    avg: Optional[float],
    rated_count: int,
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> int:
    """
    Composite 0-100 score of rating quality and review volume.

    Returns 0 when avg is None (no rating data). The result is clamped to
    [0, max_points] so out-of-range ratings cannot escape the scale.
    """
    if avg is None:
        return 0

    quality = (avg / config.max_rating) * config.rating_points
    volume = min(config.volume_bonus_cap, max(0, rated_count) / config.volume_divisor)
    score = round_half_up(quality + volume)
    return max(0, min(config.max_points, score))


def health_label(
    score: int,
    has_data: bool = True,
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> str:
    """Triage label of a health score."""
    if not has_data:
        return config.label_no_data
    if score >= config.healthy_threshold:
        return config.label_healthy
    if score >= config.attention_threshold:
        return config.label_attention
    return config.label_critical
