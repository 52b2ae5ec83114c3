"""Django ORM implementation of the Payment repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.outbox import record_domain_events
from modules.payments.constants import PaymentStatus
from modules.payments.models import Payment
from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentDjangoRepository(IPaymentRepository):
    def get_by_id(self, id: str) -> Optional[Payment]:
        try:
            return Payment.objects.select_related("order").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_reference(self, payment_reference: str) -> Optional[Payment]:
        return (
            Payment.objects.select_related("order")
            .filter(payment_reference=payment_reference)
            .first()
        )

    def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Payment]:
        return Payment.objects.filter(gateway_order_id=gateway_order_id).first()

    def get_for_update(self, id: str) -> Optional[Payment]:
        try:
            return Payment.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def has_success_for_order(
        self, order_id: UUID, exclude_id: Optional[UUID] = None
    ) -> bool:
        queryset = Payment.objects.filter(
            order_id=order_id, status=PaymentStatus.SUCCESS
        )
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.exists()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Payment]:
        queryset = Payment.objects.select_related("order")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_order(self, order_id: UUID) -> List[Payment]:
        return self.list({"order_id": order_id})

    def list_by_user(self, user_id: int) -> List[Payment]:
        return self.list({"user_id": user_id})

    @transaction.atomic
    def save(self, entity: Payment) -> Payment:
        """Persist a payment and write its domain events to the outbox."""
        entity.save()
        event_count = record_domain_events(entity, topic="payments")
        logger.info(
            "payment.saved",
            payment_id=str(entity.id),
            status=entity.status,
            event_count=event_count,
        )
        return entity
