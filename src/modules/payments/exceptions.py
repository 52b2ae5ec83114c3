"""Payment domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BadRequest, Conflict, NotFound, SecurityViolation

__all__ = [
    "InvalidSignature",
    "PaymentAlreadyCompleted",
    "PaymentNotAllowed",
    "PaymentNotFound",
]


class PaymentNotFound(NotFound):
    """No payment matches the reference or gateway order id."""


class PaymentNotAllowed(BadRequest):
    """The order cannot be paid online in its current state."""

    default_code = "payment_not_allowed"


class PaymentAlreadyCompleted(Conflict, BadRequest):
    """The order already has a successful payment."""

    default_code = "payment_already_completed"
    default_detail = "A successful payment already exists for this order."


class InvalidSignature(SecurityViolation):
    """The notification signature does not match the recomputed hash."""

    default_detail = "Invalid payment notification hash."
