"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions propagate to ``api_exception_handler``, which
renders them with their HTTP status; the view never swallows them.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    NotesSerializer,
    OrderListSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import build_order_service

STAFF_ACTIONS = {"confirm", "partial_update", "set_status", "by_number"}


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all writes go through the
    service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in STAFF_ACTIONS:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        queryset = OrderDjangoRepository().queryset()
        user = self.request.user
        if not user.is_staff:
            queryset = queryset.filter(user_id=user.id)
        return queryset

    # ------------------------------------------------------------------
    # Place
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Places an order from the caller's cart.
        """
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.place_order(
            request.user.id, PlaceOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Own orders for customers, every order for staff.  Filtering
        (status, depot, date range, total range) is handled by
        ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        if request.user.is_staff:
            order = self._service.get_order(pk)
        else:
            order = self._service.get_user_order(request.user.id, pk)
        return Response(OrderSerializer(order).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"number/(?P<order_number>[^/]+)",
    )
    def by_number(self, request: Request, order_number: str | None = None) -> Response:
        """GET /api/v1/orders/number/{order_number}/"""
        order = self._service.get_by_number(order_number)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm/"""
        order = self._service.confirm_order(pk, user_id=request.user.id)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels the caller's order and releases its reserved stock.
        """
        serializer = NotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel_order(
            request.user.id, pk, notes=serializer.validated_data["notes"]
        )
        return Response(OrderSerializer(order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates order status.  Cancellations are **not** allowed via
        this endpoint: use ``POST /orders/{id}/cancel/`` instead.
        """
        return self._update_status(request, pk)

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/status/"""
        return self._update_status(request, pk)

    def _update_status(self, request: Request, pk: str | None) -> Response:
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_status(
            order_id=pk,
            new_status=serializer.validated_data["status"],
            notes=serializer.validated_data["notes"],
            user_id=request.user.id,
        )
        return Response(OrderSerializer(order).data)
