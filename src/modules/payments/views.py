"""Payment API views.

``notify`` is the gateway's server-to-server callback: it is public and
answers 200 for every outcome except a bad signature, so the gateway does
not keep retrying notifications it cannot fix. A malformed body is logged
and acknowledged.
"""

from __future__ import annotations

import structlog
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle, ScopedRateThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import SecurityViolation
from modules.core.pagination import StandardResultsSetPagination
from modules.payments.dtos import InitiatePaymentDTO, PayHereNotificationDTO
from modules.payments.serializers import (
    InitiatePaymentSerializer,
    PayHereNotificationSerializer,
    PaymentInitiationSerializer,
    PaymentSerializer,
)
from modules.payments.services import build_payment_service

logger = structlog.get_logger(__name__)


class PaymentViewSet(GenericViewSet):
    serializer_class = PaymentSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_payment_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        self.throttle_scope = "payment_notify" if self.action == "notify" else None
        return super().get_throttles()

    def _owner_filter(self, request: Request) -> int | None:
        return None if request.user.is_staff else request.user.id

    @action(detail=False, methods=["post"])
    def initiate(self, request: Request) -> Response:
        """POST /api/v1/payments/initiate/"""
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self._service.initiate(
            request.user.id, InitiatePaymentDTO(**serializer.validated_data)
        )
        return Response(
            PaymentInitiationSerializer(result.model_dump()).data,
            status=status.HTTP_201_CREATED,
        )

    @action(
        detail=False,
        methods=["post"],
        permission_classes=[AllowAny],
        authentication_classes=[],
        throttle_classes=[ScopedRateThrottle],
    )
    def notify(self, request: Request) -> Response:
        """POST /api/v1/payments/notify/"""
        serializer = PayHereNotificationSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(
                "payment.notification_malformed",
                gateway_order_id=request.data.get("order_id"),
                errors=serializer.errors,
            )
            return Response({"status": "received"})
        dto = PayHereNotificationDTO(**serializer.validated_data)

        try:
            self._service.handle_notification(dto)
        except SecurityViolation:
            raise
        except Exception:
            logger.exception("payment.notification_failed", gateway_order_id=dto.order_id)
        return Response({"status": "received"})

    @action(
        detail=False,
        methods=["get"],
        url_path=r"reference/(?P<payment_reference>[^/]+)",
    )
    def by_reference(
        self, request: Request, payment_reference: str | None = None
    ) -> Response:
        """GET /api/v1/payments/reference/{payment_reference}/"""
        payment = self._service.get_by_reference(
            payment_reference, user_id=self._owner_filter(request)
        )
        return Response(PaymentSerializer(payment).data)

    @action(detail=False, methods=["get"], url_path=r"order/(?P<order_id>[^/.]+)")
    def by_order(self, request: Request, order_id: str | None = None) -> Response:
        """GET /api/v1/payments/order/{order_id}/"""
        payments = self._service.list_by_order(
            order_id, user_id=self._owner_filter(request)
        )
        return Response(PaymentSerializer(payments, many=True).data)

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """GET /api/v1/payments/mine/"""
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(
            self._service.list_by_user(request.user.id), request
        )
        return paginator.get_paginated_response(
            PaymentSerializer(page, many=True).data
        )
