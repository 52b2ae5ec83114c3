"""Integration tests for standardized error responses."""

from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration


def _assert_standard(data, error_type):
    assert data["type"] == error_type
    assert isinstance(data["errors"], list)
    assert data["errors"]
    assert "code" in data["errors"][0]
    assert "detail" in data["errors"][0]
    assert "attr" in data["errors"][0]


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/cart/")
        assert response.status_code == 401
        _assert_standard(response.json(), "client_error")

    def test_validation_error_has_standard_format(self, customer_client):
        response = customer_client.post(
            "/api/v1/cart/items/", {"product_id": "nope", "quantity": 0}, format="json"
        )
        assert response.status_code == 400
        data = response.json()
        _assert_standard(data, "validation_error")
        assert {e["attr"] for e in data["errors"]} == {"product_id", "quantity"}

    def test_malformed_json_has_standard_format(self, customer_client):
        response = customer_client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        _assert_standard(response.json(), "client_error")

    def test_domain_not_found_maps_to_404(self, customer_client):
        response = customer_client.get(f"/api/v1/orders/{uuid4()}/")
        assert response.status_code == 404
        data = response.json()
        _assert_standard(data, "client_error")
        assert data["errors"][0]["code"] == "not_found"

    def test_domain_conflict_maps_to_409(self, customer_client, stocked):
        response = customer_client.post(
            "/api/v1/cart/items/", {"product_id": str(stocked.id), "quantity": 11}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "insufficient_stock"

    def test_permission_error_has_standard_format(self, customer_client):
        response = customer_client.get("/api/v1/drivers/")
        assert response.status_code == 403
        _assert_standard(response.json(), "client_error")
