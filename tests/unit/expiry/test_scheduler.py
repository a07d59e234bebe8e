import asyncio
from datetime import timedelta

import pytest

from src.imagehost.events.event_hub import EventHub
from src.imagehost.events.event_models import EventKind
from src.imagehost.expiry.scheduler import ExpiryScheduler
from src.imagehost.utils.clock import utcnow
from tests.mocks.stores import FrozenClock, RecordingTransport


def _subscribed_hub(resource_id: str = "img-1") -> tuple[EventHub, RecordingTransport]:
    hub = EventHub()
    transport = RecordingTransport()
    hub.subscribe(resource_id, transport)
    return hub, transport


@pytest.mark.unit
@pytest.mark.asyncio
async def test_timer_fires_expired_at_deadline() -> None:
    hub, transport = _subscribed_hub()
    scheduler = ExpiryScheduler(hub)
    expires_at = utcnow() + timedelta(milliseconds=50)

    scheduler.schedule("img-1", expires_at)
    assert scheduler.is_scheduled("img-1")
    await asyncio.sleep(0.15)

    assert transport.events[-1] == (EventKind.EXPIRED, {"resourceId": "img-1", "expires_at": expires_at})
    assert scheduler.is_scheduled("img-1") is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reschedule_supersedes_earlier_timer() -> None:
    hub, transport = _subscribed_hub()
    scheduler = ExpiryScheduler(hub)
    start = utcnow()

    scheduler.schedule("img-1", start + timedelta(milliseconds=50))
    scheduler.schedule("img-1", start + timedelta(milliseconds=300))

    await asyncio.sleep(0.15)
    assert EventKind.EXPIRED not in transport.kinds()
    assert scheduler.pending_count() == 1

    await asyncio.sleep(0.3)
    assert transport.kinds().count(EventKind.EXPIRED) == 1
    assert transport.events[-1][1]["expires_at"] == start + timedelta(milliseconds=300)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_past_deadline_publishes_immediately() -> None:
    clock = FrozenClock()
    hub, transport = _subscribed_hub()
    scheduler = ExpiryScheduler(hub, clock=clock)

    scheduler.schedule("img-1", clock.now)

    assert transport.kinds() == [EventKind.CONNECTED, EventKind.EXPIRED]
    assert scheduler.pending_count() == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_null_deadline_only_cancels() -> None:
    hub, transport = _subscribed_hub()
    scheduler = ExpiryScheduler(hub)
    scheduler.schedule("img-1", utcnow() + timedelta(milliseconds=30))

    scheduler.schedule("img-1", None)
    await asyncio.sleep(0.08)

    assert transport.kinds() == [EventKind.CONNECTED]
    assert scheduler.pending_count() == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancel_prevents_publish() -> None:
    hub, transport = _subscribed_hub()
    scheduler = ExpiryScheduler(hub)
    scheduler.schedule("img-1", utcnow() + timedelta(milliseconds=30))

    assert scheduler.cancel("img-1") is True
    assert scheduler.cancel("img-1") is False
    await asyncio.sleep(0.08)

    assert transport.kinds() == [EventKind.CONNECTED]
