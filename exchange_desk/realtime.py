"""
Real-time notification delivery.

Each connected client subscribes with its user id and gets its own
asyncio.Queue. Services never publish directly: they stage events on the
database session with ``stage_event`` and the ``after_commit`` hook below
publishes them once the transaction is durable. Work that is rolled back
publishes nothing.

Events are incremental and keyed by notification id:

    {"event": "INSERT" | "UPDATE", "notification": {...}}

so a client keeps a cache keyed by id and never has to refetch the list.
"""

import asyncio
import logging
import uuid
from collections import defaultdict

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

PENDING_EVENTS_KEY = "pending_notification_events"

INSERT = "INSERT"
UPDATE = "UPDATE"


class NotificationBroker:
    """Fan-out of notification events to per-user subscriber queues."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)

    def subscribe(self, user_id: uuid.UUID | str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[str(user_id)].add(queue)
        logger.debug("Subscriber added for user %s", user_id)
        return queue

    def unsubscribe(self, user_id: uuid.UUID | str, queue: asyncio.Queue) -> None:
        key = str(user_id)
        queues = self._subscribers.get(key)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[key]
        logger.debug("Subscriber removed for user %s", user_id)

    def subscriber_count(self, user_id: uuid.UUID | str) -> int:
        return len(self._subscribers.get(str(user_id), ()))

    def publish(self, user_id: uuid.UUID | str, payload: dict) -> int:
        """
        Deliver ``payload`` to every queue subscribed for ``user_id``.

        A subscriber whose queue is full is skipped for this event rather than
        blocking the publisher. Returns the number of queues that received it.
        """
        delivered = 0
        for queue in list(self._subscribers.get(str(user_id), ())):
            try:
                queue.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropping notification event for slow subscriber of user %s", user_id)
        return delivered


broker = NotificationBroker()


def stage_event(session, user_id: uuid.UUID, event_type: str, notification: dict) -> None:
    """Queue an event on ``session`` for publication after its commit."""
    session.info.setdefault(PENDING_EVENTS_KEY, []).append(
        (user_id, {"event": event_type, "notification": notification})
    )


@event.listens_for(Session, "after_commit")
def _publish_staged_events(session: Session) -> None:
    staged = session.info.pop(PENDING_EVENTS_KEY, [])
    for user_id, payload in staged:
        broker.publish(user_id, payload)
    if staged:
        logger.debug("Published %d notification event(s)", len(staged))


@event.listens_for(Session, "after_rollback")
def _discard_staged_events(session: Session) -> None:
    session.info.pop(PENDING_EVENTS_KEY, None)
