"""Delivery domain constants.

The delivery lifecycle is strictly sequential: each forward step has a
single legal predecessor.  ``FAILED`` is reachable from every
non-terminal state, ``RETURNED`` once a driver holds the goods.
"""

from django.db import models


class DeliveryStatus(models.TextChoices):
    PENDING_ASSIGNMENT = "PENDING_ASSIGNMENT", "Pending assignment"
    ASSIGNED = "ASSIGNED", "Assigned"
    PICKED_UP = "PICKED_UP", "Picked up"
    IN_TRANSIT = "IN_TRANSIT", "In transit"
    ARRIVED = "ARRIVED", "Arrived"
    DELIVERED = "DELIVERED", "Delivered"
    FAILED = "FAILED", "Failed"
    RETURNED = "RETURNED", "Returned"


class DriverStatus(models.TextChoices):
    AVAILABLE = "AVAILABLE", "Available"
    ON_DELIVERY = "ON_DELIVERY", "On delivery"
    OFF_DUTY = "OFF_DUTY", "Off duty"
    ON_BREAK = "ON_BREAK", "On break"


VALID_TRANSITIONS: dict[str, set[str]] = {
    DeliveryStatus.PENDING_ASSIGNMENT: {DeliveryStatus.ASSIGNED, DeliveryStatus.FAILED},
    DeliveryStatus.ASSIGNED: {
        DeliveryStatus.PICKED_UP,
        DeliveryStatus.FAILED,
        DeliveryStatus.RETURNED,
    },
    DeliveryStatus.PICKED_UP: {
        DeliveryStatus.IN_TRANSIT,
        DeliveryStatus.FAILED,
        DeliveryStatus.RETURNED,
    },
    DeliveryStatus.IN_TRANSIT: {
        DeliveryStatus.ARRIVED,
        DeliveryStatus.FAILED,
        DeliveryStatus.RETURNED,
    },
    DeliveryStatus.ARRIVED: {
        DeliveryStatus.DELIVERED,
        DeliveryStatus.FAILED,
        DeliveryStatus.RETURNED,
    },
    DeliveryStatus.DELIVERED: set(),
    DeliveryStatus.FAILED: set(),
    DeliveryStatus.RETURNED: set(),
}

TERMINAL_STATES: set[str] = {
    DeliveryStatus.DELIVERED,
    DeliveryStatus.FAILED,
    DeliveryStatus.RETURNED,
}

ACTIVE_STATES: set[str] = {
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.ARRIVED,
}
