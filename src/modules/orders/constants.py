"""Order domain constants.

Defines status choices, payment methods and the valid status transitions
of the order state machine.  The happy path is forward-only; skipping
forward steps is allowed, going back never is.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PROCESSING = "PROCESSING", "Processing"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY", "Ready for delivery"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for delivery"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    FAILED_DELIVERY = "FAILED_DELIVERY", "Failed delivery"


class PaymentMethod(models.TextChoices):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY", "Cash on delivery"
    ONLINE_PAYMENT = "ONLINE_PAYMENT", "Online payment"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
    CHEQUE = "CHEQUE", "Cheque"


FORWARD_SEQUENCE: tuple[str, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

DELIVERY_FAILURE_STATES: set[str] = {
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY,
}

VALID_TRANSITIONS: dict[str, set[str]] = {
    status: set(FORWARD_SEQUENCE[index + 1 :])
    for index, status in enumerate(FORWARD_SEQUENCE)
}
for _status in CANCELLABLE_STATES:
    VALID_TRANSITIONS[_status].add(OrderStatus.CANCELLED)
for _status in DELIVERY_FAILURE_STATES:
    VALID_TRANSITIONS[_status].add(OrderStatus.FAILED_DELIVERY)
VALID_TRANSITIONS[OrderStatus.CANCELLED] = set()
VALID_TRANSITIONS[OrderStatus.FAILED_DELIVERY] = set()

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.FAILED_DELIVERY,
}

ORDER_NUMBER_MAX_RETRIES = 5
