"""
Tests for location statistics and the health score policy.

Usage:
    pytest tests/test_location_stats.py -v
"""

import pytest

from src.reviews.grouping import GroupingEngine
from src.reviews.location_stats import (
    build_reports,
    compute_stats,
    summarize_reports,
    top_source,
)
from src.reviews.review_models import Group
from src.scoring.health_score import compute_health_score, health_label
from src.scoring.scoring_config import HealthScoreConfig


def make_group(ratings, name: str = "West", comments=None, sources=None) -> Group:
    """Helper to build a single group through the grouping engine."""
    rows = []
    for idx, rating in enumerate(ratings):
        row = {"Region": name, "Review Rating": rating, "Review Comment": ""}
        if comments and idx < len(comments):
            row["Review Comment"] = comments[idx]
        if sources and idx < len(sources):
            row["Review Source"] = sources[idx]
        rows.append(row)
    return GroupingEngine().group(rows, "Region").groups[0]


# ============================================================================
# HEALTH SCORE TESTS
# ============================================================================

class TestHealthScore:
    """Tests for compute_health_score() and health_label()."""

    def test_perfect_with_volume(self):
        assert compute_health_score(5.0, 150) == 100

    def test_volume_bonus_capped(self):
        assert compute_health_score(5.0, 10_000) == 100

    def test_low_average(self):
        # 3.0 / 5 * 85 + 2 / 10 = 51.2
        assert compute_health_score(3.0, 2) == 51

    def test_mid_average(self):
        # 4.0 / 5 * 85 + 20 / 10 = 70
        assert compute_health_score(4.0, 20) == 70

    def test_no_data(self):
        assert compute_health_score(None, 0) == 0

    def test_clamped_to_range(self):
        assert compute_health_score(7.0, 500) == 100
        assert compute_health_score(-3.0, 0) == 0

    def test_labels(self):
        assert health_label(75) == "Healthy"
        assert health_label(74) == "Needs attention"
        assert health_label(55) == "Needs attention"
        assert health_label(54) == "Critical"
        assert health_label(0, has_data=False) == "Insufficient data"

    def test_custom_thresholds(self):
        config = HealthScoreConfig(healthy_threshold=90, attention_threshold=60)
        assert health_label(80, config=config) == "Needs attention"

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            HealthScoreConfig(healthy_threshold=50, attention_threshold=60)
        with pytest.raises(ValueError):
            HealthScoreConfig(volume_divisor=0)


# ============================================================================
# LOCATION STATS TESTS
# ============================================================================

class TestComputeStats:
    """Tests for compute_stats()."""

    def test_basic_rollup(self):
        stats = compute_stats(make_group(["5", "4", "1"]))
        assert stats.avg == 3.3
        assert stats.total == 3
        assert stats.rated_count == 3
        assert stats.negative == 1
        assert stats.positive == 2
        assert stats.pct_negative == 33
        assert stats.pct_positive == 67

    def test_no_ratings(self):
        stats = compute_stats(make_group(["", "n/a"]))
        assert stats.avg is None
        assert not stats.has_ratings
        assert stats.total == 2
        assert stats.rated_count == 0
        assert stats.pct_negative == 0
        assert stats.pct_positive == 0
        assert stats.health_score == 0
        assert stats.health_label == "Insufficient data"

    def test_three_is_neither_negative_nor_positive(self):
        stats = compute_stats(make_group(["3"]))
        assert stats.negative == 0
        assert stats.positive == 0

    def test_health_within_range(self):
        for ratings in (["1"], ["5"] * 200, ["3", "4"], ["9"]):
            stats = compute_stats(make_group(ratings))
            assert 0 <= stats.health_score <= 100

    def test_comment_preview_bounded(self):
        group = make_group(["5"] * 5, comments=["a", "b", "c", "d", "e"])
        stats = compute_stats(group)
        assert stats.comment_count == 5
        assert [c.text for c in stats.comment_preview] == ["a", "b", "c"]

    def test_comment_preview_size(self):
        group = make_group(["5"] * 5, comments=["a", "b", "c", "d", "e"])
        assert len(compute_stats(group, comment_preview=1).comment_preview) == 1

    def test_top_source(self):
        group = make_group(["5", "4", "3"], sources=["Yelp", "Google", "Google"])
        assert compute_stats(group).top_source == "Google"

    def test_rating_dist_copied(self):
        group = make_group(["5"])
        stats = compute_stats(group)
        group.rating_dist[5] = 99
        assert stats.rating_dist[5] == 1


class TestTopSource:
    """Tests for top_source()."""

    def test_tie_goes_to_first_seen(self):
        assert top_source({"Google": 2, "Yelp": 2}) == "Google"
        assert top_source({"Yelp": 2, "Google": 2}) == "Yelp"

    def test_empty(self):
        assert top_source({}) is None


# ============================================================================
# REPORTS TESTS
# ============================================================================

class TestReports:
    """Tests for build_reports() and summarize_reports()."""

    def test_build_reports_preserves_order(self):
        groups = [make_group(["5"], "West"), make_group(["1"], "East")]
        reports = build_reports(groups)
        assert [r.name for r in reports] == ["West", "East"]
        assert reports[1].stats.avg == 1.0

    def test_summary_counts(self):
        groups = [
            make_group(["5"] * 150, "Healthy"),
            make_group(["4"] * 20, "Watch"),
            make_group(["1"], "Bad"),
            make_group([""], "Empty"),
        ]
        overview = summarize_reports(build_reports(groups))
        assert overview.locations == 4
        assert overview.rows == 172
        assert overview.rated == 171
        assert overview.healthy == 1
        assert overview.needs_attention == 1
        assert overview.critical == 1
        assert overview.insufficient_data == 1

    def test_empty_summary(self):
        overview = summarize_reports([])
        assert overview.locations == 0
        assert overview.avg is None
