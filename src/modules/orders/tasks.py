"""Tasks assíncronas do módulo de pedidos."""

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMessage

from modules.orders.dtos import OrderOutputDTO
from modules.orders.invoicing import (
    invoice_filename,
    invoice_subject,
    render_invoice,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository

logger = structlog.get_logger(__name__)


@shared_task(name="orders.send_order_invoice")
def send_order_invoice(order_id: str) -> dict:
    """Gera a fatura do pedido e envia por e-mail ao cliente.

    Falhas são apenas registradas em log: o envio é best-effort e nunca
    afeta o estado do pedido.
    """
    log = logger.bind(order_id=str(order_id))

    order = OrderDjangoRepository().get_by_id(str(order_id))
    if order is None:
        log.warning("order.invoice_skipped", reason="order_not_found")
        return {"status": "skipped", "reason": "order_not_found"}

    snapshot = OrderOutputDTO.from_entity(order)
    if not snapshot.customer_email:
        log.warning("order.invoice_skipped", reason="missing_email")
        return {"status": "skipped", "reason": "missing_email"}

    try:
        message = EmailMessage(
            subject=invoice_subject(snapshot),
            body=(
                f"Dear {snapshot.customer_name},\n\n"
                f"Please find attached the invoice for order "
                f"{snapshot.order_number}.\n"
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[snapshot.customer_email],
        )
        message.attach(
            invoice_filename(snapshot), render_invoice(snapshot), "text/plain"
        )
        message.send(fail_silently=False)
    except Exception as exc:
        log.exception("order.invoice_failed")
        return {"status": "failed", "error": str(exc)}

    log.info("order.invoice_sent", recipient=snapshot.customer_email)
    return {"status": "sent", "order_number": snapshot.order_number}
