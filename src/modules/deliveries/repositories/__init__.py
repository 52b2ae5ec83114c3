"""Delivery repositories package."""

from modules.deliveries.repositories.django_repository import (
    DeliveryDjangoRepository,
    DriverDjangoRepository,
)
from modules.deliveries.repositories.interfaces import (
    IDeliveryRepository,
    IDriverRepository,
)

__all__ = [
    "DeliveryDjangoRepository",
    "DriverDjangoRepository",
    "IDeliveryRepository",
    "IDriverRepository",
]
