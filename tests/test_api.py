"""Tests for the on-demand scan API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pharmascan.api import create_app

SUMMARY = {
    "product": "paralen",
    "location": "Bratislava",
    "scannedPharmacies": 1,
    "results": [{"pharmacyId": "benu", "status": "ok", "price": 4.2, "details": {}}],
}


@pytest.fixture
def orchestrator():
    orchestrator = MagicMock()
    orchestrator.check_single_product = AsyncMock(return_value=SUMMARY)
    return orchestrator


@pytest.fixture
def client(app_settings, orchestrator):
    app = create_app(app_settings, orchestrator)
    with TestClient(app) as test_client:
        yield test_client


class TestScrapeEndpoint:
    """Test POST /api/scrape."""

    def test_scan(self, client, orchestrator):
        response = client.post(
            "/api/scrape", json={"product": " paralen ", "location": "Bratislava"}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "product": " paralen ", "result": SUMMARY}
        orchestrator.check_single_product.assert_awaited_once_with(
            "paralen", "Bratislava", None
        )

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"product": "paralen"},
            {"product": "   ", "location": "Bratislava"},
            {"product": "paralen", "location": ""},
        ],
    )
    def test_incomplete_request(self, client, orchestrator, body):
        response = client.post("/api/scrape", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Product and Location are required"}
        orchestrator.check_single_product.assert_not_awaited()

    def test_target_filter(self, client, orchestrator):
        response = client.post(
            "/api/scrape?target_ids=benu&target_ids=dr-max",
            json={"product": "paralen", "location": "Bratislava"},
        )

        assert response.status_code == 200
        orchestrator.check_single_product.assert_awaited_once_with(
            "paralen", "Bratislava", ["benu", "dr-max"]
        )

    def test_scan_failure(self, app_settings, orchestrator):
        orchestrator.check_single_product.side_effect = RuntimeError("browser gone")
        app = create_app(app_settings, orchestrator)

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post(
                "/api/scrape", json={"product": "paralen", "location": "Bratislava"}
            )

        assert response.status_code == 500
        assert response.json()["error"] == "INTERNAL_ERROR"
        assert response.json()["message"] == "browser gone"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
