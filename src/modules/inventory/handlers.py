"""Event handlers for Inventory domain events."""

from __future__ import annotations

import structlog

from modules.inventory.events import StockBelowReorderLevel
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class StockBelowReorderLevelHandler(IEventHandler[StockBelowReorderLevel]):
    def handle(self, event: StockBelowReorderLevel) -> None:
        logger.warning(
            "inventory.reorder_needed",
            record_id=str(event.aggregate_id),
            product_id=event.product_id,
            depot_id=event.depot_id,
            quantity_on_hand=event.quantity_on_hand,
            reorder_level=event.reorder_level,
        )


stock_below_reorder_level_handler = StockBelowReorderLevelHandler()
