"""Integration tests for the depot and inventory endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.inventory.constants import MovementKind
from modules.inventory.models import InventoryRecord

pytestmark = pytest.mark.integration


@pytest.fixture()
def record(stocked, depot_cmb):
    return InventoryRecord.objects.get(product=stocked, depot=depot_cmb)


class TestDepotEndpoints:
    def test_list_depots(self, customer_client, depot_cmb, depot_kdy):
        response = customer_client.get("/api/v1/depots/")

        assert response.status_code == 200
        assert [d["code"] for d in response.json()["results"]] == ["CMB", "KDY"]

    def test_depot_stock(self, customer_client, stocked, depot_cmb):
        response = customer_client.get(f"/api/v1/depots/{depot_cmb.id}/stock/")

        assert response.status_code == 200
        row = response.json()["results"][0]
        assert row["product_sku"] == "SKU-X"
        assert row["quantity_on_hand"] == 10
        assert row["stock_status"] == "LOW_STOCK"

    def test_unknown_depot(self, customer_client):
        response = customer_client.get(f"/api/v1/depots/{uuid4()}/stock/")
        assert response.status_code == 404

    def test_audit_endpoints_are_staff_only(self, customer_client, staff_client, stocked, depot_cmb):
        url = f"/api/v1/depots/{depot_cmb.id}/movements/"

        assert customer_client.get(url).status_code == 403
        response = staff_client.get(url)
        assert response.status_code == 200
        assert response.json()["count"] == 1

        low = staff_client.get(f"/api/v1/depots/{depot_cmb.id}/low-stock/")
        assert low.json()["count"] == 1


class TestInventoryEndpoints:
    def test_retrieve_record(self, customer_client, record):
        response = customer_client.get(f"/api/v1/inventory/{record.id}/")

        assert response.status_code == 200
        assert response.json()["depot_code"] == "CMB"

    def test_product_total(self, customer_client, stocked):
        response = customer_client.get(f"/api/v1/inventory/products/{stocked.id}/total/")

        assert response.status_code == 200
        assert response.json()["total_stock"] == 10

    def test_adjust(self, staff_client, staff_user, stocked, depot_cmb, record):
        response = staff_client.post(
            "/api/v1/inventory/adjust/",
            {
                "product_id": str(stocked.id),
                "depot_id": str(depot_cmb.id),
                "kind": MovementKind.DAMAGED,
                "quantity": 2,
                "reason": "Crushed bags",
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["quantity_on_hand"] == 8
        movements = staff_client.get(f"/api/v1/inventory/{record.id}/movements/").json()
        assert [m["kind"] for m in movements["results"]] == ["RECEIVED", "DAMAGED"]
        assert movements["results"][-1]["actor_id"] == staff_user.id

    def test_adjust_below_zero_is_conflict(self, staff_client, stocked, depot_cmb):
        response = staff_client.post(
            "/api/v1/inventory/adjust/",
            {
                "product_id": str(stocked.id),
                "depot_id": str(depot_cmb.id),
                "kind": MovementKind.SOLD,
                "quantity": 50,
            },
            format="json",
        )

        assert response.status_code == 409

    def test_adjust_is_staff_only(self, customer_client, stocked, depot_cmb):
        response = customer_client.post(
            "/api/v1/inventory/adjust/",
            {
                "product_id": str(stocked.id),
                "depot_id": str(depot_cmb.id),
                "kind": MovementKind.RECEIVED,
                "quantity": 5,
            },
            format="json",
        )

        assert response.status_code == 403

    def test_transfer(self, staff_client, stocked, depot_cmb, depot_kdy):
        response = staff_client.post(
            "/api/v1/inventory/transfer/",
            {
                "product_id": str(stocked.id),
                "from_depot_id": str(depot_cmb.id),
                "to_depot_id": str(depot_kdy.id),
                "quantity": 3,
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["source_quantity"] == 7
        assert response.json()["destination_quantity"] == 3

    def test_transfer_to_same_depot_is_rejected(self, staff_client, stocked, depot_cmb):
        response = staff_client.post(
            "/api/v1/inventory/transfer/",
            {
                "product_id": str(stocked.id),
                "from_depot_id": str(depot_cmb.id),
                "to_depot_id": str(depot_cmb.id),
                "quantity": 3,
            },
            format="json",
        )

        assert response.status_code == 400
