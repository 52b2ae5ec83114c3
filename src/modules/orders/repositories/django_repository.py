"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Writes are wrapped in ``transaction.atomic()`` so the Order aggregate
(Order + OrderItems + outbox rows) is persisted atomically.

Concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.outbox import record_domain_events
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_RELATIONS = ("items__product", "status_history")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            user_id=data["user_id"],
            delivery_address=data["delivery_address"],
            contact_number=data["contact_number"],
            payment_method=data["payment_method"],
            notes=data.get("notes", ""),
            estimated_delivery_date=data.get("estimated_delivery_date"),
        )
        order.save()

        total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                product_id=item_data["product_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            total += item.subtotal

        order.total_amount = total
        order.save(update_fields=["total_amount", "updated_at"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("user", "depot")
                .prefetch_related(*_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        return (
            Order.objects.select_related("user", "depot")
            .prefetch_related(*_RELATIONS)
            .filter(order_number=order_number)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters.

        Supported filter keys include ``status``, ``user_id``, ``depot_id``
        and ``created_at__range``.
        """
        queryset = Order.objects.select_related("user", "depot")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def queryset(self):
        """Base queryset for filterable list endpoints."""
        return Order.objects.select_related("user", "depot")

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Items (with product) are loaded so the caller can iterate over
        them while the row is locked.  Returns ``None`` for non-existent
        or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related("user")
                .prefetch_related(*_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and write its domain events to the outbox."""
        entity.save()
        event_count = record_domain_events(entity, topic="orders")
        logger.info("order.saved", order_id=str(entity.id), event_count=event_count)
        return entity

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        history.save()

        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history
