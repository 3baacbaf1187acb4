"""
tests.test_broadcaster

Fan-out semantics of the in-memory event broadcaster.
"""

from __future__ import annotations

import pytest

from shiptrack.realtime.broadcaster import EventBroadcaster, EventKind


@pytest.mark.asyncio
async def test_every_current_subscriber_receives_each_event_once() -> None:
    b = EventBroadcaster(queue_size=10)
    first = b.subscribe([EventKind.shipment_added])
    second = b.subscribe()

    assert b.publish(EventKind.shipment_added, {"id": 1}) == 2

    for sub in (first, second):
        event = await sub.get()
        assert event.kind is EventKind.shipment_added
        assert event.payload == {"id": 1}
        assert sub.pending() == 0


@pytest.mark.asyncio
async def test_subscribers_only_receive_their_kinds() -> None:
    b = EventBroadcaster(queue_size=10)
    added_only = b.subscribe([EventKind.shipment_added])

    assert b.publish(EventKind.shipment_deleted, 5) == 0
    assert added_only.pending() == 0
    assert b.subscription_count(EventKind.shipment_deleted) == 0
    assert b.subscription_count(EventKind.shipment_added) == 1


@pytest.mark.asyncio
async def test_late_subscriber_gets_no_replay_and_unsubscribe_stops_delivery() -> None:
    b = EventBroadcaster(queue_size=10)
    early = b.subscribe()
    b.publish(EventKind.shipment_updated, {"id": 1})

    late = b.subscribe()
    assert late.pending() == 0

    b.unsubscribe(early)
    assert b.publish(EventKind.shipment_updated, {"id": 2}) == 1
    assert early.pending() == 1
    assert (await late.get()).payload == {"id": 2}


@pytest.mark.asyncio
async def test_full_subscriber_drops_events_without_blocking_others() -> None:
    b = EventBroadcaster(queue_size=1)
    slow = b.subscribe()
    fast = b.subscribe()

    assert b.publish(EventKind.shipment_added, {"id": 1}) == 2
    await fast.get()
    assert b.publish(EventKind.shipment_added, {"id": 2}) == 1

    assert (await slow.get()).payload == {"id": 1}
    assert slow.pending() == 0
    assert (await fast.get()).payload == {"id": 2}


@pytest.mark.asyncio
async def test_event_message_shape() -> None:
    b = EventBroadcaster(queue_size=1)
    sub = b.subscribe()
    b.publish(EventKind.shipment_deleted, 42)
    event = await sub.get()
    assert event.to_message() == {"type": "event", "event": "shipment_deleted", "data": 42}
