"""Asynchronous tasks of the core module."""

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import EventStatus, OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Drain pending outbox rows into the in-process event bus.

    Each row is published in its own transaction so a failing handler
    only marks that row as ``FAILED`` and the rest of the batch proceeds.
    """
    published = failed = 0
    pending = list(
        OutboxEvent.objects.filter(status=EventStatus.PENDING).order_by("created_at")[
            :batch_size
        ]
    )
    for outbox_event in pending:
        log = logger.bind(
            outbox_id=str(outbox_event.id),
            event_type=outbox_event.event_type,
            aggregate_id=outbox_event.aggregate_id,
        )
        event_class = event_bus.event_class(outbox_event.event_type)
        if event_class is None:
            outbox_event.mark_as_failed(f"No handler for {outbox_event.event_type}")
            log.warning("outbox.unhandled_event")
            failed += 1
            continue
        try:
            with transaction.atomic():
                event_bus.publish(event_class.from_payload(outbox_event.payload))
                outbox_event.mark_as_published()
        except Exception as exc:
            outbox_event.mark_as_failed(str(exc))
            log.error("outbox.publish_failed", error=str(exc))
            failed += 1
            continue
        log.info("outbox.published")
        published += 1

    return {"published": published, "failed": failed}
