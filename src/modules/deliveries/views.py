"""Delivery and Driver API views.

Every endpoint is staff-only.  Domain errors propagate to
``api_exception_handler``.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.deliveries.dtos import AssignDeliveryDTO, CreateDriverDTO, LocationDTO
from modules.deliveries.serializers import (
    AssignDeliverySerializer,
    CompleteDeliverySerializer,
    CreateDriverSerializer,
    DeliverySerializer,
    DeliveryStatusSerializer,
    DriverSerializer,
    DriverStatusSerializer,
    LocationSerializer,
    ReasonSerializer,
)
from modules.deliveries.services import build_delivery_service, build_driver_service
from modules.inventory.services import build_inventory_ledger


def _paginated(request: Request, items, serializer_class) -> Response:
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(items, request)
    return paginator.get_paginated_response(serializer_class(page, many=True).data)


class DeliveryViewSet(GenericViewSet):
    serializer_class = DeliverySerializer
    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_delivery_service()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/deliveries/{pk}/"""
        return Response(DeliverySerializer(self._service.get_delivery(pk)).data)

    @action(detail=False, methods=["post"])
    def assign(self, request: Request) -> Response:
        """POST /api/v1/deliveries/assign/"""
        serializer = AssignDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = self._service.assign(AssignDeliveryDTO(**serializer.validated_data))
        return Response(
            DeliverySerializer(delivery).data, status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=["post"])
    def pickup(self, request: Request, pk: str | None = None) -> Response:
        return Response(DeliverySerializer(self._service.pickup(pk)).data)

    @action(detail=True, methods=["post"])
    def start(self, request: Request, pk: str | None = None) -> Response:
        return Response(DeliverySerializer(self._service.start(pk)).data)

    @action(detail=True, methods=["post"])
    def arrive(self, request: Request, pk: str | None = None) -> Response:
        return Response(DeliverySerializer(self._service.arrive(pk)).data)

    @action(detail=True, methods=["post"])
    def complete(self, request: Request, pk: str | None = None) -> Response:
        serializer = CompleteDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = self._service.complete(
            pk, serializer.validated_data["proof_of_delivery_url"]
        )
        return Response(DeliverySerializer(delivery).data)

    @action(detail=True, methods=["post"])
    def fail(self, request: Request, pk: str | None = None) -> Response:
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = self._service.fail(pk, serializer.validated_data["reason"])
        return Response(DeliverySerializer(delivery).data)

    @action(detail=True, methods=["post"], url_path="return")
    def return_to_depot(self, request: Request, pk: str | None = None) -> Response:
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = self._service.return_to_depot(
            pk, serializer.validated_data["reason"]
        )
        return Response(DeliverySerializer(delivery).data)

    @action(detail=True, methods=["patch", "post"], url_path="status")
    def set_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/deliveries/{pk}/status/"""
        serializer = DeliveryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = self._service.update_status(
            pk,
            serializer.validated_data["status"],
            serializer.validated_data["notes"],
        )
        return Response(DeliverySerializer(delivery).data)

    @action(detail=False, methods=["get"])
    def active(self, request: Request) -> Response:
        return _paginated(request, self._service.list_active(), DeliverySerializer)

    @action(detail=False, methods=["get"], url_path=r"order/(?P<order_id>[^/.]+)")
    def by_order(self, request: Request, order_id: str | None = None) -> Response:
        return Response(DeliverySerializer(self._service.get_by_order(order_id)).data)

    @action(detail=False, methods=["get"], url_path=r"driver/(?P<driver_id>[^/.]+)")
    def by_driver(self, request: Request, driver_id: str | None = None) -> Response:
        driver = build_driver_service().get_driver(driver_id)
        return _paginated(
            request, self._service.list_by_driver(driver.id), DeliverySerializer
        )

    @action(detail=False, methods=["get"], url_path=r"depot/(?P<depot_id>[^/.]+)")
    def by_depot(self, request: Request, depot_id: str | None = None) -> Response:
        depot = build_inventory_ledger().get_depot(depot_id)
        return _paginated(
            request, self._service.list_by_depot(depot.id), DeliverySerializer
        )


class DriverViewSet(GenericViewSet):
    serializer_class = DriverSerializer
    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_driver_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/drivers/?depot=<id>"""
        drivers = self._service.list_drivers(request.query_params.get("depot") or None)
        return _paginated(request, drivers, DriverSerializer)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        return Response(DriverSerializer(self._service.get_driver(pk)).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/drivers/"""
        serializer = CreateDriverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = self._service.create_driver(
            CreateDriverDTO(**serializer.validated_data)
        )
        return Response(DriverSerializer(driver).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def available(self, request: Request) -> Response:
        """GET /api/v1/drivers/available/?depot=<id>"""
        drivers = self._service.list_available(
            request.query_params.get("depot") or None
        )
        return _paginated(request, drivers, DriverSerializer)

    @action(detail=True, methods=["patch", "post"], url_path="status")
    def set_status(self, request: Request, pk: str | None = None) -> Response:
        serializer = DriverStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = self._service.update_status(pk, serializer.validated_data["status"])
        return Response(DriverSerializer(driver).data)

    @action(detail=True, methods=["post"])
    def location(self, request: Request, pk: str | None = None) -> Response:
        serializer = LocationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = self._service.update_location(
            pk, LocationDTO(**serializer.validated_data)
        )
        return Response(DriverSerializer(driver).data)

    @action(detail=True, methods=["post"])
    def deactivate(self, request: Request, pk: str | None = None) -> Response:
        return Response(DriverSerializer(self._service.deactivate(pk)).data)
