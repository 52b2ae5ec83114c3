"""Inventory ledger constants.

Movement kinds and the sign each applies to ``quantity_on_hand``.
"""

from django.db import models


class MovementKind(models.TextChoices):
    RECEIVED = "RECEIVED", "Received"
    SOLD = "SOLD", "Sold"
    DAMAGED = "DAMAGED", "Damaged"
    RETURNED = "RETURNED", "Returned"
    TRANSFERRED_OUT = "TRANSFERRED_OUT", "Transferred out"
    TRANSFERRED_IN = "TRANSFERRED_IN", "Transferred in"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"


class StockStatus(models.TextChoices):
    OUT_OF_STOCK = "OUT_OF_STOCK", "Out of stock"
    LOW_STOCK = "LOW_STOCK", "Low stock"
    OK = "OK", "OK"


MOVEMENT_SIGN: dict[str, int] = {
    MovementKind.RECEIVED: 1,
    MovementKind.RETURNED: 1,
    MovementKind.TRANSFERRED_IN: 1,
    MovementKind.ADJUSTMENT: 1,
    MovementKind.SOLD: -1,
    MovementKind.DAMAGED: -1,
    MovementKind.TRANSFERRED_OUT: -1,
}

DEFAULT_REORDER_LEVEL = 50
