"""
Outbox dispatcher: enqueues the email tasks recorded by committed database
transactions (user created, email changed, user deleted).

Delivery is at-least-once. An event is stamped only after its enqueue
succeeded; when the queue is unavailable the event stays pending and the next
round tries again.
"""
from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select

from models.base_model import utc_now
from models.outbox_event import OutboxEvent
from worker.distributor import TaskDistributor, TaskEnqueueError
from worker.tasks import SendEmailPayload, SkipRetry

logger = logging.getLogger(__name__)


def record_email_event(session, task_name: str, payload: SendEmailPayload) -> OutboxEvent:
    """Add an outbox row to the caller's open transaction."""
    event = OutboxEvent(event_type=task_name, payload=payload.to_dict())
    session.add(event)
    session.flush()
    return event


class OutboxDispatcher:
    def __init__(self, storage, distributor: TaskDistributor, batch_size: int = 50):
        self.storage = storage
        self.distributor = distributor
        self.batch_size = batch_size
        self.scheduler = None

    def start(self, interval_seconds: float = 5.0) -> None:
        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self.dispatch_pending,
            IntervalTrigger(seconds=interval_seconds),
            id="outbox_dispatcher",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Outbox dispatcher started, polling every %ss", interval_seconds)

    def stop(self) -> None:
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Outbox dispatcher stopped")

    def dispatch_pending(self) -> int:
        """Enqueue pending events oldest first; returns how many were handed over."""
        session = self.storage.get_session()
        dispatched = 0
        try:
            events = session.scalars(
                select(OutboxEvent)
                .where(OutboxEvent.dispatched_at.is_(None))
                .order_by(OutboxEvent.created_at, OutboxEvent.id)
                .limit(self.batch_size)
            ).all()
            for event in events:
                event.attempts += 1
                try:
                    payload = SendEmailPayload.from_dict(event.payload)
                except SkipRetry:
                    logger.error("[outbox] dropping unreadable event id=%s", event.id)
                    event.dispatched_at = utc_now()
                    session.commit()
                    continue
                try:
                    self.distributor.distribute_send_email(payload, event.event_type)
                except TaskEnqueueError:
                    logger.exception("[outbox] enqueue failed for event id=%s, will retry", event.id)
                    session.commit()
                    break
                event.dispatched_at = utc_now()
                session.commit()
                dispatched += 1
        finally:
            self.storage.close()
        if dispatched:
            logger.info("[outbox] dispatched %s event(s)", dispatched)
        return dispatched
