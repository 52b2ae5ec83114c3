"""Domain events for the Deliveries bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class DeliveryAssigned(DomainEvent):
    order_id: str = ""
    driver_id: str = ""


@dataclass(frozen=True)
class DeliveryCompleted(DomainEvent):
    order_id: str = ""
    driver_id: str = ""


@dataclass(frozen=True)
class DeliveryFailed(DomainEvent):
    """Raised when a delivery ends FAILED or RETURNED."""

    order_id: str = ""
    status: str = ""
    reason: str = ""
