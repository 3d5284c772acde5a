"""
Tests for the Pulse CLI and its configuration.

Usage:
    pytest tests/test_cli.py -v
"""

import json
import sys
from unittest.mock import patch

import pytest

from src.data.config import AggregationConfig, get_env_int, get_settings, reset_settings
from src.orchestrator import cli
from src.scoring.scoring_config import noise_filter_from_settings


REVIEW_CSV = (
    "Region,State,Review Rating,Review Comment,Review Source\n"
    "West,CA,5,Great,Google\n"
    "West,CA,1,Bad,Yelp\n"
    "East,NY,4,Fine,Google\n"
)

ANALYSES_CSV = (
    "overall_sentiment,sentiment_score,themes,pain_points,source_type\n"
    'positive,8,"[""speed""]","[]",google\n'
)


def run_cli(*argv):
    with patch.object(sys, "argv", ["pulse", *argv]):
        return cli.main()


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def review_file(tmp_path):
    path = tmp_path / "reviews.csv"
    path.write_text(REVIEW_CSV, encoding="utf-8")
    return path


@pytest.fixture
def analyses_file(tmp_path):
    path = tmp_path / "analyses.csv"
    path.write_text(ANALYSES_CSV, encoding="utf-8")
    return path


# ============================================================================
# COMMANDS
# ============================================================================

class TestCommands:

    def test_sniff(self, review_file, capsys):
        assert run_cli("sniff", str(review_file)) == 0
        assert "raw_reviews (3 rows)" in capsys.readouterr().out

    def test_locations_table(self, review_file, capsys):
        assert run_cli("locations", str(review_file)) == 0
        out = capsys.readouterr().out
        assert "LOCATIONS BY REGION" in out
        assert out.index("West") < out.index("East")

    def test_locations_json(self, review_file, capsys):
        assert run_cli("locations", str(review_file), "--sort", "avg_desc", "--json") == 0
        payload = json.loads(capsys.readouterr().out)
        assert [loc["name"] for loc in payload] == ["East", "West"]
        assert payload[1]["avg"] == 3.0

    def test_locations_preset(self, review_file, capsys):
        assert run_cli("locations", str(review_file), "--group-by", "state", "--preset", "--json") == 0
        payload = json.loads(capsys.readouterr().out)
        assert {loc["name"] for loc in payload} == {"CA", "NY"}

    def test_locations_wrong_kind(self, analyses_file):
        assert run_cli("locations", str(analyses_file)) == 1

    def test_locations_no_groups(self, review_file):
        assert run_cli("locations", str(review_file), "--group-by", "Territory") == 1

    def test_analyses(self, analyses_file, capsys):
        assert run_cli("analyses", str(analyses_file)) == 0
        assert "ANALYSES (1 records)" in capsys.readouterr().out

    def test_analyses_json(self, analyses_file, capsys):
        assert run_cli("analyses", str(analyses_file), "--json") == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["top_themes"] == [["speed", 1]]

    def test_analyses_wrong_kind(self, review_file):
        assert run_cli("analyses", str(review_file)) == 1

    def test_missing_file(self, tmp_path):
        assert run_cli("sniff", str(tmp_path / "missing.csv")) == 1

    def test_no_command(self):
        assert run_cli() == 1


# ============================================================================
# CONFIGURATION
# ============================================================================

class TestConfiguration:

    def test_noise_filter_from_environment(self, monkeypatch):
        monkeypatch.setenv("PULSE_NOISE_SUBSTRINGS", "test store, closed")
        monkeypatch.setenv("PULSE_NOISE_MIN_ID_DIGITS", "3")
        reset_settings()

        config = noise_filter_from_settings()
        assert config.blocked_substrings == ("test store", "closed")
        assert config.min_id_digits == 3

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PULSE_NOISE_SUBSTRINGS", raising=False)
        monkeypatch.delenv("PULSE_COMMENT_PREVIEW", raising=False)
        aggregation = AggregationConfig()
        assert aggregation.noise_substrings == ("corporate rollup",)
        assert aggregation.comment_preview == 3

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("PULSE_COMMENT_PREVIEW", "three")
        with pytest.raises(ValueError, match="must be an integer"):
            get_env_int("PULSE_COMMENT_PREVIEW", 3)

    def test_settings_singleton(self):
        assert get_settings() is get_settings()
