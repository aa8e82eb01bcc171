"""
Unit tests for the Pricing main service.
"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from service_pricing.app.main import PricingService
from service_pricing.app.pricing.state import encode_config_state


SAVED_DOCUMENT = {
    "id": "cfg-1",
    "userId": "user-1",
    "category": "garages",
    "config": {"bays": 2, "oakType": "reclaimed"},
    "price": 8500,
    "description": "Oak frame garage, Reclaimed Oak",
    "name": "Barn",
    "createdAt": "2026-01-05T10:00:00+00:00",
    "updatedAt": "2026-01-05T10:00:00+00:00"
}


class TestPricingService:
    """Test cases for PricingService."""

    @pytest.fixture
    def pricing_service(self):
        """Create PricingService with a mocked store."""
        service = PricingService()
        service.store.save_configuration = AsyncMock(return_value=SAVED_DOCUMENT)
        service.store.get_configuration = AsyncMock(return_value=SAVED_DOCUMENT)
        service.store.list_configurations = AsyncMock(return_value=[SAVED_DOCUMENT])
        service.store.delete_configuration = AsyncMock(return_value=True)
        service.store.health_check = AsyncMock(return_value=True)
        return service

    @pytest.fixture
    def client(self, pricing_service):
        """Create test client."""
        return TestClient(pricing_service.app)

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "pricing"

    def test_health_endpoint(self, client):
        """Test health endpoint reports Redis."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"redis": "ok"}

    def test_health_degraded(self, client, pricing_service):
        """Test an unreachable Redis degrades health."""
        pricing_service.store.health_check.return_value = False

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    def test_request_id_echoed(self, client):
        """Test the request id header is returned."""
        response = client.get("/", headers={"x-request-id": "req-42"})

        assert response.headers["x-request-id"] == "req-42"

    def test_list_categories(self, client):
        """Test category listing."""
        response = client.get("/pricing/categories")

        assert response.status_code == 200
        categories = {c["category"]: c for c in response.json()["categories"]}
        assert categories["garages"]["strategy"] == "configurable"
        assert categories["special-deals"]["configurable"] is False

    def test_get_category(self, client):
        """Test category options and defaults."""
        response = client.get("/pricing/categories/garages")

        assert response.status_code == 200
        data = response.json()
        assert data["default_configuration"]["bays"] == 2
        bays = next(o for o in data["options"] if o["id"] == "bays")
        assert bays["kind"] == "slider"
        assert (bays["min"], bays["max"]) == (1, 4)

    def test_get_unknown_category(self, client):
        """Test unknown categories return an error body."""
        response = client.get("/pricing/categories/sheds")

        assert response.status_code == 400
        assert response.json()["code"] == "UNKNOWN_CATEGORY"

    def test_quote(self, client):
        """Test quoting the two-bay reclaimed garage."""
        response = client.post("/pricing/quote", json={
            "category": "garages",
            "config": {
                "size": "medium",
                "trussType": "curved",
                "bays": 2,
                "catSlide": False,
                "oakType": "reclaimed"
            }
        })

        assert response.status_code == 200
        data = response.json()
        assert data["price"] == 8500
        assert data["purchasable"] is True
        assert data["matched_rule"] is True
        assert data["currency"] == "GBP"
        assert data["description"] == "Oak frame garage, Reclaimed Oak"

    def test_quote_invalid_beam(self, client):
        """Test invalid dimensions quote as not purchasable."""
        response = client.post("/pricing/quote", json={
            "category": "oak-beams",
            "config": {"dimensions": {"length": -1, "width": 15, "thickness": 15}}
        })

        assert response.status_code == 200
        assert response.json()["price"] == 0
        assert response.json()["purchasable"] is False

    @pytest.mark.parametrize("category, config", [
        ("oak-beams", {"dimensions": {"length": 1e200, "width": 1e200, "thickness": 1e200}}),
        ("oak-beams", {"dimensions": {"length": 10 ** 400, "width": 15, "thickness": 15}}),
        ("oak-flooring", {"area": {"length": 1e200, "width": 1e200}}),
    ])
    def test_quote_oversized_measures(self, client, category, config):
        """Test measures beyond float range quote as not purchasable."""
        response = client.post("/pricing/quote", json={"category": category, "config": config})

        assert response.status_code == 200
        assert response.json()["price"] == 0
        assert response.json()["purchasable"] is False

    def test_quote_huge_slider_value(self, client):
        """Test an oversized bay count is clamped, not rejected."""
        response = client.post("/pricing/quote", json={"category": "garages", "config": {"bays": 10 ** 400}})
        four_bays = client.post("/pricing/quote", json={"category": "garages", "config": {"bays": 4}})

        assert response.status_code == 200
        assert response.json()["price"] == four_bays.json()["price"]

    def test_preview_round_trip(self, client):
        """Test a preview token re-quotes to the same price."""
        created = client.post("/pricing/preview", json={
            "category": "gazebos",
            "config": {"size": "large"}
        }).json()

        response = client.get(f"/pricing/preview/{created['token']}", params={"category": "gazebos"})

        assert response.status_code == 200
        assert response.json()["price"] == created["price"] == 5800
        assert response.json()["config"] == {"size": "large"}

    def test_preview_malformed_token(self, client):
        """Test malformed preview tokens are rejected."""
        response = client.get("/pricing/preview/%25%25%25", params={"category": "gazebos"})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_preview_token_matches_encoder(self, client):
        """Test the preview token uses the shared encoding."""
        config = {"bays": 3}
        data = client.post("/pricing/preview", json={"category": "garages", "config": config}).json()

        assert data["token"] == encode_config_state(config)

    def test_save_configuration(self, client, pricing_service):
        """Test saving prices the configuration server-side."""
        response = client.post("/configurations", json={
            "user_id": "user-1",
            "category": "garages",
            "config": {"bays": 2, "oakType": "reclaimed"},
            "name": "Barn"
        })

        assert response.status_code == 201
        assert response.json()["user_id"] == "user-1"
        kwargs = pricing_service.store.save_configuration.call_args.kwargs
        assert kwargs["price"] == 8500
        assert kwargs["description"] == "Oak frame garage, Reclaimed Oak"

    def test_list_configurations(self, client):
        """Test listing saved configurations."""
        response = client.get("/configurations", params={"user_id": "user-1"})

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_get_missing_configuration(self, client, pricing_service):
        """Test a missing configuration returns 404."""
        pricing_service.store.get_configuration.return_value = None

        response = client.get("/configurations/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_delete_configuration(self, client, pricing_service):
        """Test deleting a configuration."""
        response = client.delete("/configurations/cfg-1")

        assert response.status_code == 200
        pricing_service.store.delete_configuration.assert_called_once_with("cfg-1")

    def test_stats(self, client):
        """Test engine statistics endpoint."""
        response = client.get("/pricing/stats")

        assert response.status_code == 200
        assert response.json()["engine"]["price_rules"] == 6

    def test_metrics_endpoint(self, client):
        """Test quotes are counted in metrics."""
        client.post("/pricing/quote", json={"category": "porches", "config": {}})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'price_quotes_total{category="porches",purchasable="true"} 1.0' in response.text
        assert 'catalog_categories{strategy="configurable"} 3.0' in response.text
        assert 'endpoint="/configurations/{config_id}"' not in response.text

    def test_error_metrics_use_route_template(self, client, pricing_service):
        """Test request metrics are labelled by route, not raw path."""
        client.get("/configurations/cfg-1")

        response = client.get("/metrics")

        assert 'endpoint="/configurations/{config_id}"' in response.text
        assert 'endpoint="/configurations/cfg-1"' not in response.text
