from django.apps import AppConfig


class DeliveriesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.deliveries"
    label = "deliveries"

    def ready(self) -> None:
        from modules.deliveries.events import (
            DeliveryAssigned,
            DeliveryCompleted,
            DeliveryFailed,
        )
        from modules.deliveries.handlers import (
            delivery_assigned_handler,
            delivery_completed_handler,
            delivery_failed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(DeliveryAssigned, delivery_assigned_handler)
        event_bus.subscribe(DeliveryCompleted, delivery_completed_handler)
        event_bus.subscribe(DeliveryFailed, delivery_failed_handler)
