"""
shiptrack.realtime.broadcaster

In-memory event broadcaster for shipment changes.

Responsibilities:
- Track active subscriptions per event kind.
- Fan out each published event to every subscription registered at publish time.
- Stay best-effort: no persistence, no replay, no acknowledgements or retries.
"""

from __future__ import annotations

import asyncio
import enum
import itertools
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from typing import Any

from shiptrack.observability.logging import get_logger

log = get_logger(__name__)


class EventKind(enum.StrEnum):
    shipment_added = "shipment_added"
    shipment_updated = "shipment_updated"
    shipment_deleted = "shipment_deleted"


@dataclass(frozen=True, slots=True)
class Event:
    kind: EventKind
    # Formatted shipment for added/updated; the shipment id for deleted.
    payload: Any

    def to_message(self) -> dict[str, Any]:
        return {"type": "event", "event": self.kind.value, "data": self.payload}


class Subscription:
    """
    One listener's inbox. Iterate it to receive events in publish order.
    """

    _ids = itertools.count(1)

    def __init__(self, kinds: frozenset[EventKind], *, queue_size: int) -> None:
        self.id = next(self._ids)
        self.kinds = kinds
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=queue_size)

    def offer(self, event: Event) -> bool:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def get(self) -> Event:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> AsyncIterator[Event]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[Event]:
        while True:
            yield await self._queue.get()


class EventBroadcaster:
    def __init__(self, *, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: dict[EventKind, set[Subscription]] = {k: set() for k in EventKind}

    def subscribe(self, kinds: Iterable[EventKind] | None = None) -> Subscription:
        selected = frozenset(kinds) if kinds else frozenset(EventKind)
        sub = Subscription(selected, queue_size=self._queue_size)
        for kind in selected:
            self._subscribers[kind].add(sub)
        log.debug("subscription_opened", subscription_id=sub.id, kinds=sorted(selected))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        for kind in sub.kinds:
            self._subscribers[kind].discard(sub)
        log.debug("subscription_closed", subscription_id=sub.id)

    def subscription_count(self, kind: EventKind) -> int:
        return len(self._subscribers[kind])

    def publish(self, kind: EventKind, payload: Any) -> int:
        event = Event(kind=kind, payload=payload)
        delivered = 0
        # Snapshot: listeners joining during delivery do not see this event.
        for sub in list(self._subscribers[kind]):
            if sub.offer(event):
                delivered += 1
            else:
                log.warning("event_dropped", subscription_id=sub.id, event_kind=kind.value)
        log.debug("event_published", event_kind=kind.value, delivered=delivered)
        return delivered


# --- Module Notes -----------------------------------------------------------
# Publishing never awaits, so a slow WebSocket cannot stall the mutation that
# produced the event; its bounded queue overflows instead.
