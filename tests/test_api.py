# tests/test_api.py

"""
API Endpoint Tests - Tests for all FastAPI endpoints
"""

import pytest
from fastapi import status

from app.config import Settings, get_settings
from app.main import app


# HEALTH ENDPOINT TESTS


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_ok(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert "environment" in data
        assert "semantic_scorer" in data["dependencies"]

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "running"


# SCORE ENDPOINT TESTS


class TestScoreEndpoint:
    """Tests for POST /api/v1/scoring/score endpoint."""

    def test_score_success(self, client, engagement_survey_data):
        response = client.post("/api/v1/scoring/score", json={
            "survey": engagement_survey_data,
            "answers": {"q1": "4", "q2": 1, "q3": "B"},
            "response_id": "resp-1",
        })
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["score"] == 50
        assert data["band_id"] == "developing"
        assert data["band_label"] == "Developing"
        assert data["result"]["meta"]["response_id"] == "resp-1"

        categories = {c["category_id"]: c for c in data["result"]["categories"]}
        assert categories["cat1"]["normalized_score"] == 80
        assert categories["cat2"]["normalized_score"] == 20

    def test_null_answers_are_unanswered(self, client, engagement_survey_data):
        response = client.post("/api/v1/scoring/score", json={
            "survey": engagement_survey_data,
            "answers": {"q1": None, "q2": None},
        })
        data = response.json()
        assert data["score"] is None
        assert "NoScorableData" in [e["code"] for e in data["result"]["errors"]]

    def test_disabled_scoring(self, client, engagement_survey_data):
        engagement_survey_data["scoreConfig"]["enabled"] = False
        response = client.post("/api/v1/scoring/score", json={
            "survey": engagement_survey_data,
            "answers": {"q1": "4"},
        })
        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert data["score"] is None
        assert data["result"]["errors"][0]["code"] == "ScoringDisabled"

    def test_category_without_id_still_scores(self, client, engagement_survey_data):
        engagement_survey_data["scoreConfig"]["categories"].append({"id": "", "name": "Draft"})
        response = client.post("/api/v1/scoring/score", json={
            "survey": engagement_survey_data,
            "answers": {"q1": "4", "q2": "1"},
        })
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["score"] == 50
        assert [c["category_id"] for c in data["result"]["categories"]] == ["cat1", "cat2"]
        assert any(
            e["code"] == "ConfigurationError" and "dropped" in e["message"]
            for e in data["result"]["errors"]
        )

    def test_routes_use_configured_prefix(self):
        prefix = get_settings().API_V1_PREFIX
        paths = {route.path for route in app.routes}
        assert f"{prefix}/scoring/score" in paths
        assert f"{prefix}/scoring/bands/default" in paths

    def test_missing_survey_returns_validation_error(self, client):
        response = client.post("/api/v1/scoring/score", json={"answers": {}})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["message"] == "Survey is required"
        assert "timestamp" in data

    def test_malformed_json_returns_400(self, client):
        response = client.post(
            "/api/v1/scoring/score",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_REQUEST"


# TRACE ENDPOINT TESTS


class TestTraceEndpoint:
    """Tests for POST /api/v1/scoring/trace endpoint."""

    @pytest.fixture
    def production_settings(self):
        app.dependency_overrides[get_settings] = lambda: Settings(APP_ENV="production")
        yield
        app.dependency_overrides.pop(get_settings, None)

    @pytest.fixture
    def production_with_dev_tools(self):
        app.dependency_overrides[get_settings] = lambda: Settings(APP_ENV="production", ENABLE_DEV_TOOLS=True)
        yield
        app.dependency_overrides.pop(get_settings, None)

    def test_trace_returns_full_result(self, client, engagement_survey_data):
        response = client.post("/api/v1/scoring/trace", json={
            "survey": engagement_survey_data,
            "answers": {"q1": "4", "q2": "1"},
        })
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["overall"]["score"] == 50
        assert [q["question_id"] for q in data["questions"]] == ["q1", "q2"]
        assert data["config"]["categories"][0]["id"] == "cat1"

    def test_trace_forbidden_in_production(self, client, engagement_survey_data, production_settings):
        response = client.post("/api/v1/scoring/trace", json={
            "survey": engagement_survey_data,
            "answers": {"q1": "4"},
        })
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_trace_allowed_with_dev_tools_flag(self, client, engagement_survey_data, production_with_dev_tools):
        response = client.post("/api/v1/scoring/trace", json={
            "survey": engagement_survey_data,
            "answers": {"q1": "4"},
        })
        assert response.status_code == status.HTTP_200_OK


# VALIDATE ENDPOINT TESTS


class TestValidateEndpoint:
    """Tests for POST /api/v1/scoring/validate endpoint."""

    def test_validate_reports_issues_and_repairs(self, client, engagement_survey_data):
        engagement_survey_data["scoreConfig"]["scoreRanges"] = [
            {"id": "a", "minScore": 0, "maxScore": 40, "label": "Low"},
            {"id": "b", "minScore": 60, "maxScore": 100, "label": "High"},
        ]
        response = client.post("/api/v1/scoring/validate", json={"survey": engagement_survey_data})
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert "BAND_GAP" in [i["code"] for i in data["issues"]]
        assert data["summary"]["is_valid"] is False
        repaired = [r for r in data["normalized_config"]["scoreRanges"] if r["category"] is None]
        assert [(r["min"], r["max"]) for r in repaired] == [(0, 59), (60, 100)]
        assert data["repairs"]

    def test_validate_without_config(self, client):
        response = client.post("/api/v1/scoring/validate", json={"survey": {"id": "s", "questions": []}})
        data = response.json()
        assert data["issues"] == []
        assert data["summary"]["is_valid"] is True
        assert data["normalized_config"] is None


# DEFAULT BANDS ENDPOINT TESTS


class TestDefaultBandsEndpoint:
    """Tests for GET /api/v1/scoring/bands/default endpoint."""

    def test_default_bands(self, client):
        response = client.get("/api/v1/scoring/bands/default")
        assert response.status_code == status.HTTP_200_OK

        bands = response.json()
        assert [b["band_id"] for b in bands] == [
            "critical", "needs-improvement", "developing", "effective", "highly-effective",
        ]
        assert bands[0]["min"] == 0
        assert bands[-1]["max"] == 100
