"""
Tests for the Pulse API routes.

Uses FastAPI's TestClient with dependency overrides: the analyses store is
in memory and the LLM is an async fake.

Usage:
    pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from src.ai.review_analyzer import DeepDiveService
from src.api.db import InMemoryAnalysisRepository
from src.data.data_models import AnalysisRecord
from src.api.main import app
from src.api.review_routes import get_deep_dive_service, get_repository


# ============================================================================
# TEST DATA
# ============================================================================

REVIEW_CSV = (
    "Region,State,Review Rating,Review Comment,Review Source\n"
    "West,CA,5,Great,Google\n"
    "West,CA,1,Bad,Yelp\n"
    "East,NY,4,Fine,Google\n"
    "000123456,,5,id row,\n"
)

ANALYSES_CSV = (
    "overall_sentiment,sentiment_score,themes,pain_points,source_type\n"
    'positive,8,"[""speed"",""price""]","[]",google\n'
    'negative,not-a-number,"[""price""]","[""wait""]",yelp\n'
)


async def fake_analyze(text, label):
    return {"overall_sentiment": "positive", "sentiment_score": 9, "themes": ["staff"]}


async def failing_analyze(text, label):
    raise RuntimeError("LLM unavailable")


@pytest.fixture
def repository():
    return InMemoryAnalysisRepository()


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_deep_dive_service] = \
        lambda: DeepDiveService(fake_analyze, repository=repository)
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# HEALTH
# ============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == {"status": "memory", "records": 0}


# ============================================================================
# LOCATION DASHBOARD
# ============================================================================

class TestUploadGroups:

    def test_groups_sorted_worst_first(self, client):
        response = client.post("/api/upload/groups", json={"csv_text": REVIEW_CSV})
        assert response.status_code == 200
        body = response.json()

        assert body["dataset_kind"] == "raw_reviews"
        assert body["total_rows"] == 4
        assert body["dropped_rows"] == 1
        assert body["group_count"] == 2
        assert [loc["name"] for loc in body["locations"]] == ["West", "East"]

        west = body["locations"][0]
        assert west["avg"] == 3.0
        assert west["pct_negative"] == 50
        assert west["top_source"] == "Google"
        assert west["rating_dist"]["5"] == 1
        assert west["rating_dist"]["1"] == 1
        assert [c["text"] for c in west["comment_preview"]] == ["Great", "Bad"]

    def test_filter_and_sort(self, client):
        response = client.post("/api/upload/groups", json={
            "csv_text": REVIEW_CSV,
            "filter_text": "ny",
            "sort_key": "avg_desc",
        })
        assert [loc["name"] for loc in response.json()["locations"]] == ["East"]

    def test_preset(self, client):
        response = client.post("/api/upload/groups", json={
            "csv_text": REVIEW_CSV, "group_by": "state", "preset": True,
        })
        assert response.status_code == 200
        assert {loc["name"] for loc in response.json()["locations"]} == {"CA", "NY"}

    def test_unknown_preset(self, client):
        response = client.post("/api/upload/groups", json={
            "csv_text": REVIEW_CSV, "group_by": "county", "preset": True,
        })
        assert response.status_code == 400

    def test_invalid_sort_key(self, client):
        response = client.post("/api/upload/groups", json={
            "csv_text": REVIEW_CSV, "sort_key": "alphabetical",
        })
        assert response.status_code == 422

    def test_non_review_upload(self, client):
        response = client.post("/api/upload/groups", json={"csv_text": ANALYSES_CSV})
        body = response.json()
        assert response.status_code == 200
        assert body["dataset_kind"] == "analyses_export"
        assert body["locations"] == []

    def test_unknown_column(self, client):
        response = client.post("/api/upload/groups", json={
            "csv_text": REVIEW_CSV, "group_by": "Territory",
        })
        body = response.json()
        assert body["group_count"] == 0
        assert body["dropped_rows"] == 4


# ============================================================================
# ANALYSES DASHBOARD
# ============================================================================

class TestAggregate:

    def test_from_csv(self, client):
        response = client.post("/api/analyses/aggregate", json={"csv_text": ANALYSES_CSV})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["avg_score"] == 8.0
        assert body["top_themes"] == [["price", 2], ["speed", 1]]
        assert body["sentiment_counts"]["negative"] == 1
        assert [s["source"] for s in body["source_averages"]] == ["google", "yelp"]

    def test_from_records(self, client):
        response = client.post("/api/analyses/aggregate", json={"records": [
            {"overall_sentiment": "mixed", "sentiment_score": 5, "themes": ["wait"]},
        ]})
        body = response.json()
        assert body["total"] == 1
        assert body["top_themes"] == [["wait", 1]]

    def test_review_csv_rejected(self, client):
        response = client.post("/api/analyses/aggregate", json={"csv_text": REVIEW_CSV})
        assert response.status_code == 400

    def test_empty(self, client):
        body = client.post("/api/analyses/aggregate", json={}).json()
        assert body["total"] == 0
        assert body["avg_score"] is None


STORED_ANALYSES = [
    {"client_id": "c1", "overall_sentiment": "positive", "sentiment_score": 8, "themes": ["speed"]},
    {"client_id": "c1", "overall_sentiment": "negative", "sentiment_score": 4, "themes": ["speed", "price"]},
    {"client_id": "c1", "competitor_id": "comp-a", "overall_sentiment": "negative", "sentiment_score": 3},
    {"client_id": "c1", "competitor_id": "comp-a", "overall_sentiment": "negative", "sentiment_score": 5},
    {"client_id": "c1", "competitor_id": "comp-b", "overall_sentiment": "positive", "sentiment_score": 9},
    {"client_id": "c2", "overall_sentiment": "positive", "sentiment_score": 10, "themes": ["other"]},
]


class TestClientDashboard:

    @pytest.fixture(autouse=True)
    def stored(self, repository):
        for data in STORED_ANALYSES:
            repository.save(AnalysisRecord.from_dict(data))

    def test_own_and_competitors(self, client):
        response = client.get(
            "/api/analyses/dashboard",
            params={"client_id": "c1", "competitor": ["comp-a:Acme Dental"]},
        )
        assert response.status_code == 200
        body = response.json()

        assert body["client_id"] == "c1"
        assert body["own"]["total"] == 2
        assert body["own"]["avg_score"] == 6.0
        assert body["own"]["top_themes"] == [["speed", 2], ["price", 1]]
        assert body["competitor_analyses"] == 3

        competitors = {c["competitor_id"]: c for c in body["competitors"]}
        assert competitors["comp-a"]["name"] == "Acme Dental"
        assert competitors["comp-a"]["count"] == 2
        assert competitors["comp-a"]["avg"] == 4.0
        assert competitors["comp-a"]["dominant_sentiment"] == "negative"
        assert competitors["comp-b"]["name"] == "comp-b"
        assert competitors["comp-b"]["avg"] == 9.0

    def test_other_clients_excluded(self, client):
        body = client.get("/api/analyses/dashboard", params={"client_id": "c2"}).json()
        assert body["own"]["total"] == 1
        assert body["own"]["top_themes"] == [["other", 1]]
        assert body["competitors"] == []

    def test_unknown_client_is_empty(self, client):
        body = client.get("/api/analyses/dashboard", params={"client_id": "nobody"}).json()
        assert body["own"]["total"] == 0
        assert body["competitor_analyses"] == 0

    def test_client_id_required(self, client):
        assert client.get("/api/analyses/dashboard").status_code == 422

    def test_invalid_competitor_name(self, client):
        response = client.get(
            "/api/analyses/dashboard",
            params={"client_id": "c1", "competitor": [":Acme"]},
        )
        assert response.status_code == 400


# ============================================================================
# ANALYZE TEXT
# ============================================================================

class TestAnalyzeText:

    def test_analyze_and_store(self, client, repository):
        response = client.post("/api/analyze-text", json={
            "text": "Great staff", "label": "West", "review_count": 1,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["location"] == "West"
        assert body["analysis"]["overall_sentiment"] == "positive"
        assert body["analysis"]["url"] == "csv_upload:West"
        assert len(repository) == 1

    def test_empty_text(self, client):
        response = client.post("/api/analyze-text", json={"text": "   "})
        assert response.status_code == 400

    def test_llm_failure(self, client):
        app.dependency_overrides[get_deep_dive_service] = lambda: DeepDiveService(failing_analyze)
        response = client.post("/api/analyze-text", json={"text": "x", "label": "West"})
        assert response.status_code == 502
