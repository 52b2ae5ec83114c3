"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``PlaceOrderDTO``: checkout input; line items come from the user's cart.
- ``OrderItemOutputDTO`` / ``StatusHistoryDTO`` / ``OrderOutputDTO``:
  read projections used by tasks and documents.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import PaymentMethod

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for checkout requests.

    Items are **not** part of the request: ``OrderService.place_order``
    reads them from the user's cart.
    """

    model_config = ConfigDict(frozen=True)

    delivery_address: str
    contact_number: str
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    notes: Optional[str] = ""

    @field_validator("delivery_address", "contact_number")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be blank.")
        return v.strip()


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class StatusHistoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_status: Optional[str]
    new_status: str
    notes: str
    created_at: datetime

    @classmethod
    def from_entity(cls, history: OrderStatusHistory) -> StatusHistoryDTO:
        return cls(
            old_status=history.old_status,
            new_status=history.new_status,
            notes=history.notes,
            created_at=history.created_at,
        )


class OrderOutputDTO(BaseModel):
    """Immutable snapshot of an order, consumed by the invoice renderer."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    customer_name: str
    customer_email: str
    status: str
    payment_method: str
    delivery_address: str
    contact_number: str
    total_amount: Decimal
    created_at: datetime
    estimated_delivery_date: Optional[datetime]
    items: List[OrderItemOutputDTO]
    history: List[StatusHistoryDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance.

        Assumes ``user``, ``items__product`` and ``status_history`` are
        loaded (``OrderDjangoRepository.get_by_id`` does so).
        """
        user = order.user
        items = [
            OrderItemOutputDTO(
                product_id=item.product_id,
                product_name=item.product.name,  # type: ignore[attr-defined]
                product_sku=item.product.sku,  # type: ignore[attr-defined]
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        history = [StatusHistoryDTO.from_entity(h) for h in order.status_history.all()]
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_name=user.get_full_name() or user.get_username(),
            customer_email=user.email or "",
            status=order.status,
            payment_method=order.payment_method,
            delivery_address=order.delivery_address,
            contact_number=order.contact_number,
            total_amount=order.total_amount,
            created_at=order.created_at,
            estimated_delivery_date=order.estimated_delivery_date,
            items=items,
            history=history,
        )
