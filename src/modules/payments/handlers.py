"""Event handlers for Payments domain events."""

from __future__ import annotations

import structlog

from modules.payments.events import PaymentFailed, PaymentSucceeded
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class PaymentSucceededHandler(IEventHandler[PaymentSucceeded]):
    def handle(self, event: PaymentSucceeded) -> None:
        logger.info(
            "payment.event.succeeded",
            payment_id=str(event.aggregate_id),
            order_id=event.order_id,
            payment_reference=event.payment_reference,
            amount=event.amount,
        )


class PaymentFailedHandler(IEventHandler[PaymentFailed]):
    def handle(self, event: PaymentFailed) -> None:
        logger.warning(
            "payment.event.failed",
            payment_id=str(event.aggregate_id),
            order_id=event.order_id,
            payment_reference=event.payment_reference,
            status=event.status,
        )


payment_succeeded_handler = PaymentSucceededHandler()
payment_failed_handler = PaymentFailedHandler()
