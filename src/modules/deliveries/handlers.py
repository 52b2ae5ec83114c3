"""Event handlers for Deliveries domain events."""

from __future__ import annotations

import structlog

from modules.deliveries.events import (
    DeliveryAssigned,
    DeliveryCompleted,
    DeliveryFailed,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class DeliveryAssignedHandler(IEventHandler[DeliveryAssigned]):
    def handle(self, event: DeliveryAssigned) -> None:
        logger.info(
            "delivery.event.assigned",
            delivery_id=str(event.aggregate_id),
            order_id=event.order_id,
            driver_id=event.driver_id,
        )


class DeliveryCompletedHandler(IEventHandler[DeliveryCompleted]):
    def handle(self, event: DeliveryCompleted) -> None:
        logger.info(
            "delivery.event.completed",
            delivery_id=str(event.aggregate_id),
            order_id=event.order_id,
            driver_id=event.driver_id,
        )


class DeliveryFailedHandler(IEventHandler[DeliveryFailed]):
    def handle(self, event: DeliveryFailed) -> None:
        logger.warning(
            "delivery.event.failed",
            delivery_id=str(event.aggregate_id),
            order_id=event.order_id,
            status=event.status,
            reason=event.reason,
        )


delivery_assigned_handler = DeliveryAssignedHandler()
delivery_completed_handler = DeliveryCompletedHandler()
delivery_failed_handler = DeliveryFailedHandler()
