"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when an order is placed and its stock reserved."""

    order_number: str = ""
    total_amount: str = "0.00"


@dataclass(frozen=True)
class OrderConfirmed(DomainEvent):
    """Raised when an order enters CONFIRMED."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled and its stock released."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every order status change."""

    old_status: str = ""
    new_status: str = ""
