"""Inventory repositories package."""

from modules.inventory.repositories.django_repository import (
    DepotDjangoRepository,
    InventoryDjangoRepository,
)
from modules.inventory.repositories.interfaces import (
    IDepotRepository,
    IInventoryRepository,
)

__all__ = [
    "DepotDjangoRepository",
    "IDepotRepository",
    "IInventoryRepository",
    "InventoryDjangoRepository",
]
