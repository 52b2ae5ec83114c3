"""Delivery domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, InvalidState, NotFound


class DeliveryNotFound(NotFound):
    """The requested delivery does not exist."""


class DriverNotFound(NotFound):
    """The requested driver does not exist."""


class InvalidDeliveryTransition(InvalidState):
    default_code = "invalid_delivery_transition"


class DriverUnavailable(InvalidState):
    """The driver is inactive or not AVAILABLE."""

    default_code = "driver_unavailable"


class DriverBusy(InvalidState):
    """The driver still has deliveries in progress."""

    default_code = "driver_busy"


class DriverAlreadyExists(Conflict):
    """Licence number or user already registered as a driver."""

    default_code = "driver_already_exists"
