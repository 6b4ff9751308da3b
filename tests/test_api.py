"""
Tests for the FastAPI application.

Clients are swapped in through FastAPI dependency overrides; no test reaches
a real provider, model or datastore.

Test categories:
- Health and self-check
- Property data (400 on missing location, live, fallback, 503)
- Confidence analysis (contract enforcement, 500 on bad model output, history)
- Deal evaluation (location, metrics payload, buy box)
- History CRUD
"""

import json

import pytest
from fastapi.testclient import TestClient

from proppulse.api import (
    app,
    get_history_store,
    get_llm_client,
    get_property_client,
    get_property_settings,
)
from proppulse.config import PropertyDataConfig
from proppulse.history_store import InMemoryHistoryStore
from proppulse.llm import MockLLMClient
from proppulse.upstream import MockPropertyDataClient


# =============================================================================
# Test Client
# =============================================================================


@pytest.fixture
def history() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def client(history: InMemoryHistoryStore) -> TestClient:
    """Test client with the provider disabled, a mock model and a fresh history."""
    app.dependency_overrides[get_property_settings] = lambda: PropertyDataConfig()
    app.dependency_overrides[get_property_client] = lambda: None
    app.dependency_overrides[get_llm_client] = lambda: MockLLMClient()
    app.dependency_overrides[get_history_store] = lambda: history
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_analysis_request() -> dict:
    return {
        "t12Data": {"grossRent": 312_000, "expenses": 124_800},
        "rentRollData": [{"unit": "101", "rent": 2_600}],
        "propertyInfo": {"address": "6200 Hollywood Blvd, Los Angeles, CA"},
        "userCriteria": {"minCoCReturn": "9", "minDSCR": "1.4"},
    }


# =============================================================================
# System Endpoints
# =============================================================================


class TestHealthCheck:
    def test_health_check_returns_200(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSelfCheck:
    def test_reports_headline_metrics(self, client: TestClient) -> None:
        response = client.get("/api/test-property")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert set(body["data"]) == {"capRate", "cashOnCash", "irr", "propertyValue"}
        assert body["data"]["propertyValue"].startswith("$")

    def test_reports_failure(self, client: TestClient) -> None:
        app.dependency_overrides[get_property_settings] = lambda: PropertyDataConfig(
            fallback_enabled=False
        )

        response = client.get("/api/test-property")

        assert response.status_code == 500
        assert response.json()["success"] is False


# =============================================================================
# Property Data
# =============================================================================


class TestPropertyData:
    def test_missing_location_returns_400(self, client: TestClient) -> None:
        response = client.get("/api/property-data")

        assert response.status_code == 400
        assert response.json() == {
            "error": "Location parameter is required",
            "details": "Please provide a location parameter",
        }

    def test_blank_location_returns_400(self, client: TestClient) -> None:
        response = client.get("/api/property-data", params={"location": "   "})
        assert response.status_code == 400

    def test_fallback_payload(self, client: TestClient) -> None:
        response = client.get("/api/property-data", params={"location": "Los Angeles, CA"})

        assert response.status_code == 200
        body = response.json()
        assert body["dataOrigin"] == "fallback"
        assert body["propertyValue"].startswith("$")
        assert body["capRate"].endswith("%")
        assert body["ltv"] == "70%"
        assert len(body["comparableProperties"]) == 3
        assert body["recommendations"]
        assert body["marketInsights"]["occupancyRate"] == "96.2%"

    def test_same_location_same_numbers(self, client: TestClient) -> None:
        first = client.get("/api/property-data", params={"location": "Austin, TX"}).json()
        second = client.get("/api/property-data", params={"location": "Austin, TX"}).json()

        for key in ("propertyValue", "capRate", "cashOnCash", "irr", "noi", "units"):
            assert first[key] == second[key]

    def test_live_payload(self, client: TestClient) -> None:
        app.dependency_overrides[get_property_client] = lambda: MockPropertyDataClient()

        response = client.get("/api/property-data", params={"location": "Los Angeles, CA"})

        body = response.json()
        assert body["dataOrigin"] == "live"
        assert body["propertyValue"] == "$2,850,000"
        assert body["capRate"] == "5.2%"

    def test_failing_provider_falls_back(self, client: TestClient) -> None:
        app.dependency_overrides[get_property_client] = lambda: MockPropertyDataClient(
            fail_detail=True
        )

        response = client.get("/api/property-data", params={"location": "Los Angeles, CA"})

        assert response.status_code == 200
        assert response.json()["dataOrigin"] == "fallback"

    def test_failing_provider_without_fallback_returns_503(self, client: TestClient) -> None:
        app.dependency_overrides[get_property_settings] = lambda: PropertyDataConfig(
            fallback_enabled=False
        )
        app.dependency_overrides[get_property_client] = lambda: MockPropertyDataClient(
            fail_detail=True
        )

        response = client.get("/api/property-data", params={"location": "Los Angeles, CA"})

        assert response.status_code == 503
        assert response.json()["error"] == "Property data unavailable"


# =============================================================================
# Confidence Analysis
# =============================================================================


class TestGeminiAnalysis:
    def test_returns_assessment(self, client: TestClient) -> None:
        response = client.post("/api/gemini-analysis", json=make_analysis_request())

        assert response.status_code == 200
        body = response.json()
        assert body["confidenceScore"] == 95
        assert body["dealPasses"] is True
        assert body["summary"] == "Deal PASSES with 95% confidence."
        assert body["confidenceFactors"]["cocReturn"]["target"] == "9"
        assert body["confidenceFactors"]["dscr"]["target"] == "1.4"
        assert "financialMetrics" in body

    def test_inconsistent_pass_flag_overwritten(self, client: TestClient) -> None:
        app.dependency_overrides[get_llm_client] = lambda: MockLLMClient(
            confidence_score=65, deal_passes=True
        )

        body = client.post("/api/gemini-analysis", json=make_analysis_request()).json()

        assert body["dealPasses"] is False
        assert "FAILS" in body["summary"]

    def test_fenced_output_accepted(self, client: TestClient) -> None:
        app.dependency_overrides[get_llm_client] = lambda: MockLLMClient(fenced=True)

        response = client.post("/api/gemini-analysis", json=make_analysis_request())
        assert response.status_code == 200

    def test_unparseable_output_returns_500(self, client: TestClient) -> None:
        app.dependency_overrides[get_llm_client] = lambda: MockLLMClient(
            custom_response="The model is taking a break"
        )

        response = client.post("/api/gemini-analysis", json=make_analysis_request())

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to analyze data"
        assert "Invalid response" in body["details"]
        assert body["details"].startswith("invalid upstream response")

    def test_non_finite_score_returns_500(self, client: TestClient) -> None:
        app.dependency_overrides[get_llm_client] = lambda: MockLLMClient(
            custom_response='{"confidenceScore": NaN, "dealPasses": true}'
        )

        response = client.post("/api/gemini-analysis", json=make_analysis_request())

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to analyze data"

    def test_empty_body_accepted(self, client: TestClient) -> None:
        response = client.post("/api/gemini-analysis", json={})
        assert response.status_code == 200

    def test_user_id_saves_history(self, client: TestClient, history: InMemoryHistoryStore) -> None:
        response = client.post(
            "/api/gemini-analysis",
            params={"user_id": "user-1"},
            json=make_analysis_request(),
        )

        assert response.status_code == 200
        records = history.list_for_user("user-1")
        assert len(records) == 1
        assert records[0].property_address == "6200 Hollywood Blvd, Los Angeles, CA"
        assert records[0].confidence_score == 95
        assert records[0].gemini_analysis["dealPasses"] is True

    def test_non_string_address_does_not_fail_analysis(
        self, client: TestClient, history: InMemoryHistoryStore
    ) -> None:
        request = make_analysis_request()
        request["propertyInfo"] = {"address": 123}

        response = client.post("/api/gemini-analysis", params={"user_id": "u1"}, json=request)

        assert response.status_code == 200
        assert history.list_for_user("u1")[0].property_address == "123"

    def test_no_user_id_saves_nothing(self, client: TestClient, history: InMemoryHistoryStore) -> None:
        client.post("/api/gemini-analysis", json=make_analysis_request())
        assert history.list_for_user(None) == []


# =============================================================================
# Deal Evaluation
# =============================================================================


class TestDealEvaluation:
    def test_evaluates_location(self, client: TestClient) -> None:
        response = client.post("/api/deal-evaluation", json={"location": "Los Angeles, CA"})

        assert response.status_code == 200
        body = response.json()
        assert body["totalCriteria"] == 7
        assert body["dealPasses"] == (body["overallScore"] >= 80)
        assert set(body["evaluation"]) == {
            "capRate",
            "cashOnCash",
            "irr",
            "dscr",
            "yearBuilt",
            "occupancy",
            "maxPrice",
        }

    def test_evaluates_metrics_payload(self, client: TestClient) -> None:
        metrics = {
            "propertyValue": "$2,850,000",
            "capRate": "6.5%",
            "cashOnCash": "8.4%",
            "irr": "14.7%",
            "noi": "$187,200",
            "debtService": "$139,698",
            "buildYear": "1998",
            "marketInsights": {"occupancyRate": "96%"},
        }

        body = client.post("/api/deal-evaluation", json={"metrics": metrics}).json()

        assert body["overallScore"] == 100
        assert body["dealPasses"] is True

    def test_buy_box_overrides_thresholds(self, client: TestClient) -> None:
        metrics = {"capRate": "6.8%"}

        body = client.post(
            "/api/deal-evaluation",
            json={"metrics": metrics, "buyBox": ["Cap Rate > 7.0%"]},
        ).json()

        assert body["evaluation"]["capRate"]["required"] == 7.0
        assert body["evaluation"]["capRate"]["passed"] is False

    def test_explicit_criteria(self, client: TestClient) -> None:
        body = client.post(
            "/api/deal-evaluation",
            json={"metrics": {"capRate": "6.8%"}, "criteria": {"minCapRate": 6.0}},
        ).json()

        assert body["evaluation"]["capRate"]["passed"] is True

    def test_unpaired_surrogate_location(self, client: TestClient) -> None:
        response = client.post(
            "/api/deal-evaluation",
            content=json.dumps({"location": "Austin \ud800"}),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json()["totalCriteria"] == 7

    def test_missing_location_and_metrics_returns_400(self, client: TestClient) -> None:
        response = client.post("/api/deal-evaluation", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Location or metrics required"


# =============================================================================
# History
# =============================================================================


class TestHistory:
    def test_create_list_delete(self, client: TestClient) -> None:
        created = client.post(
            "/api/history",
            json={
                "user_id": "user-1",
                "property_address": "6200 Hollywood Blvd",
                "confidenceScore": 87,
                "resultUrl": "/results?location=Los%20Angeles",
            },
        )
        assert created.status_code == 201
        record_id = created.json()["id"]

        listed = client.get("/api/history", params={"user_id": "user-1"}).json()
        assert [r["id"] for r in listed] == [record_id]
        assert listed[0]["confidenceScore"] == 87

        deleted = client.delete(f"/api/history/{record_id}")
        assert deleted.status_code == 200
        assert client.get("/api/history", params={"user_id": "user-1"}).json() == []

    def test_get_single_record(self, client: TestClient) -> None:
        record_id = client.post("/api/history", json={"user_id": "user-1"}).json()["id"]

        response = client.get(f"/api/history/{record_id}")

        assert response.status_code == 200
        assert response.json()["id"] == record_id

    def test_get_missing_returns_404(self, client: TestClient) -> None:
        response = client.get("/api/history/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "History record not found"

    def test_delete_missing_returns_404(self, client: TestClient) -> None:
        response = client.delete("/api/history/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "History record not found"

    def test_default_property_address(self, client: TestClient) -> None:
        body = client.post("/api/history", json={"user_id": "user-1"}).json()
        assert body["property_address"] == "Unknown Property"
