"""Tasks assíncronas do módulo core."""

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Publica no event bus os eventos pendentes do outbox.

    Cada evento é reconstruído a partir do payload e entregue aos handlers
    registrados; falhas ficam registradas no próprio evento (``FAILED`` +
    ``retry_count``) e são reprocessadas até ``OUTBOX_MAX_RETRIES``.
    """
    max_retries = getattr(settings, "OUTBOX_MAX_RETRIES", 5)
    published = failed = 0

    with transaction.atomic():
        events = list(
            OutboxEvent.objects.relayable(max_retries)
            .select_for_update(skip_locked=True)[:batch_size]
        )
        for outbox_event in events:
            log = logger.bind(
                outbox_event_id=str(outbox_event.id),
                event_type=outbox_event.event_type,
            )
            event_class = event_bus.event_class_for(outbox_event.event_type)
            if event_class is None:
                log.warning("outbox.unknown_event_type")
                outbox_event.mark_as_failed(
                    f"No subscriber registered for {outbox_event.event_type}."
                )
                failed += 1
                continue
            try:
                event_bus.publish(event_class.from_payload(outbox_event.payload))
            except Exception as exc:
                log.exception("outbox.publish_failed")
                outbox_event.mark_as_failed(str(exc))
                failed += 1
            else:
                outbox_event.mark_as_published()
                published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
