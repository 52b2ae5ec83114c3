"""Inventory API views.

Reads are open to authenticated users; every ledger write and the
movement audit trail are staff-only.  Domain errors propagate to
``api_exception_handler``.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.inventory.serializers import (
    AdjustStockSerializer,
    DepotSerializer,
    InventoryRecordSerializer,
    StockMovementSerializer,
    TransferStockSerializer,
)
from modules.inventory.services import build_inventory_ledger


def _paginated(request: Request, items, serializer_class) -> Response:
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(items, request)
    return paginator.get_paginated_response(serializer_class(page, many=True).data)


class DepotViewSet(GenericViewSet):
    """GET /api/v1/depots/ plus per-depot stock, low stock and movements."""

    serializer_class = DepotSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._ledger = build_inventory_ledger()

    def get_permissions(self):
        if self.action in {"movements", "low_stock"}:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def list(self, request: Request) -> Response:
        return _paginated(request, self._ledger.list_depots(), DepotSerializer)

    @action(detail=True, methods=["get"])
    def stock(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/depots/{pk}/stock/"""
        records = self._ledger.inventory_for_depot(pk)
        return _paginated(request, records, InventoryRecordSerializer)

    @action(detail=True, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/depots/{pk}/low-stock/"""
        records = self._ledger.low_stock(pk)
        return _paginated(request, records, InventoryRecordSerializer)

    @action(detail=True, methods=["get"])
    def movements(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/depots/{pk}/movements/"""
        movements = self._ledger.depot_movements(pk)
        return _paginated(request, movements, StockMovementSerializer)


class InventoryViewSet(GenericViewSet):
    """Ledger records, adjustments and transfers."""

    serializer_class = InventoryRecordSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._ledger = build_inventory_ledger()

    def get_permissions(self):
        if self.action in {"retrieve", "product_total"}:
            return [IsAuthenticated()]
        return [IsAdminUser()]

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/inventory/{pk}/"""
        record = self._ledger.get_record(pk)
        return Response(InventoryRecordSerializer(record).data)

    @action(detail=True, methods=["get"])
    def movements(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/inventory/{pk}/movements/ (oldest first)"""
        movements = self._ledger.movement_history(pk)
        return _paginated(request, movements, StockMovementSerializer)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request) -> Response:
        """GET /api/v1/inventory/low-stock/"""
        return _paginated(request, self._ledger.low_stock(), InventoryRecordSerializer)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"products/(?P<product_id>[^/.]+)/total",
    )
    def product_total(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/inventory/products/{product_id}/total/"""
        return Response(
            {
                "product_id": product_id,
                "total_stock": self._ledger.total_stock(product_id),
            }
        )

    @action(detail=False, methods=["post"])
    def adjust(self, request: Request) -> Response:
        """POST /api/v1/inventory/adjust/"""
        serializer = AdjustStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        new_quantity = self._ledger.adjust(
            product_id=data["product_id"],
            depot_id=data["depot_id"],
            kind=data["kind"],
            quantity=data["quantity"],
            actor_id=request.user.id,
            reason=data["reason"],
            reference=data["reference"],
        )
        return Response(
            {
                "product_id": str(data["product_id"]),
                "depot_id": str(data["depot_id"]),
                "quantity_on_hand": new_quantity,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"])
    def transfer(self, request: Request) -> Response:
        """POST /api/v1/inventory/transfer/"""
        serializer = TransferStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self._ledger.transfer(
            product_id=data["product_id"],
            from_depot_id=data["from_depot_id"],
            to_depot_id=data["to_depot_id"],
            quantity=data["quantity"],
            actor_id=request.user.id,
            reason=data.get("reason") or None,
            reference=data["reference"],
        )
        return Response(result.model_dump(mode="json"), status=status.HTTP_201_CREATED)
