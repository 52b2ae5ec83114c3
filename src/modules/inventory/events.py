"""Domain events for the Inventory bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class StockBelowReorderLevel(DomainEvent):
    """Raised when a movement takes a record to or below its reorder level."""

    product_id: str = ""
    depot_id: str = ""
    quantity_on_hand: int = 0
    reorder_level: int = 0
