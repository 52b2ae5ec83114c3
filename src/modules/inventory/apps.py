from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.inventory"
    label = "inventory"

    def ready(self) -> None:
        from modules.inventory.events import StockBelowReorderLevel
        from modules.inventory.handlers import stock_below_reorder_level_handler
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(StockBelowReorderLevel, stock_below_reorder_level_handler)
