from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"

    def ready(self) -> None:
        from modules.payments.events import PaymentFailed, PaymentSucceeded
        from modules.payments.handlers import (
            payment_failed_handler,
            payment_succeeded_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(PaymentSucceeded, payment_succeeded_handler)
        event_bus.subscribe(PaymentFailed, payment_failed_handler)
