"""Inventory domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import InsufficientStock, InvalidArgument, NotFound

__all__ = [
    "DepotNotFound",
    "InsufficientStock",
    "InvalidArgument",
    "InventoryRecordNotFound",
    "SameDepotTransfer",
]


class DepotNotFound(NotFound):
    """The referenced depot does not exist."""


class InventoryRecordNotFound(NotFound):
    """No stock record exists for the (product, depot) pair."""


class SameDepotTransfer(InvalidArgument):
    """Source and destination depots of a transfer are the same."""

    default_code = "same_depot_transfer"
