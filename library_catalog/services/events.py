"""
Event Broker for GraphQL Subscriptions

In-process fan-out of catalog events to subscription resolvers.

Every subscriber gets its own bounded asyncio.Queue. Publishing never
blocks: if a subscriber's queue is full, the event is dropped for that
subscriber only and a warning is logged. Events live only in this
process, there is no replay and no cross-instance delivery.

Usage:
    from library_catalog.services.events import Event, EventType, get_event_broker

    broker = get_event_broker()
    broker.publish(Event(type=EventType.BOOK_ADDED, payload=book))

    async for event in broker.listen(EventType.BOOK_ADDED):
        ...
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from library_catalog.config import get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================


class EventType(StrEnum):
    """Types of events that can be published."""

    BOOK_ADDED = "book.added"


@dataclass
class Event:
    """
    Represents an event to be published.

    Attributes:
        type: The event type
        payload: What subscribers receive (e.g. the GraphQL Book)
        timestamp: When the event occurred
    """

    type: EventType
    payload: Any
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


# =============================================================================
# Event Broker
# =============================================================================


class EventBroker:
    """
    Fans events out to every open subscriber queue for their type.

    publish() is synchronous so it can be called from sync resolvers
    running on the event loop thread.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        # Map of event type -> open subscriber queues
        self._subscribers: dict[EventType, set[asyncio.Queue]] = {}

    def open_queue(self, event_type: EventType) -> asyncio.Queue:
        """Register a new subscriber queue for `event_type`."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.setdefault(event_type, set()).add(queue)
        logger.debug(f"Subscriber added for {event_type.value}")
        return queue

    def close_queue(self, event_type: EventType, queue: asyncio.Queue) -> None:
        """Unregister a subscriber queue. Unknown queues are ignored."""
        queues = self._subscribers.get(event_type)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[event_type]
        logger.debug(f"Subscriber removed for {event_type.value}")

    def publish(self, event: Event) -> int:
        """
        Deliver an event to every subscriber of its type.

        Returns:
            Number of subscribers the event was queued for
        """
        delivered = 0
        for queue in list(self._subscribers.get(event.type, ())):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    f"Dropped {event.type.value} event for a slow subscriber "
                    f"(queue size {self.queue_size})"
                )
        logger.debug(f"Published {event.type.value} to {delivered} subscribers")
        return delivered

    async def listen(self, event_type: EventType) -> AsyncGenerator[Event, None]:
        """
        Yield events of `event_type` as they are published.

        The subscriber queue is removed when the consumer stops iterating
        (client disconnects or the generator is closed).
        """
        queue = self.open_queue(event_type)
        try:
            while True:
                yield await queue.get()
        finally:
            self.close_queue(event_type, queue)

    def subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, ()))


# =============================================================================
# Singleton Instance
# =============================================================================

event_broker = EventBroker(queue_size=get_settings().event_queue_size)


def get_event_broker() -> EventBroker:
    """Get the shared event broker instance."""
    return event_broker
