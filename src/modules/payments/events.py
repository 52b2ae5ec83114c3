"""Domain events for the Payments bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentSucceeded(DomainEvent):
    """Raised when a payment enters SUCCESS."""

    order_id: str = ""
    payment_reference: str = ""
    amount: str = "0.00"


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    """Raised when the gateway reports a cancelled, failed or charged back payment."""

    order_id: str = ""
    payment_reference: str = ""
    status: str = ""
