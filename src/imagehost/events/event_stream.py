"""Async generator feeding ``text/event-stream`` responses."""

from __future__ import annotations

from collections.abc import AsyncIterator

from .event_hub import EventHub, Subscription
from .event_models import TERMINAL_EVENTS, format_sse_frame
from .transports import QueueTransport


async def stream_events(
    hub: EventHub,
    resource_id: str,
    transport: QueueTransport,
    *,
    subscription: Subscription | None = None,
) -> AsyncIterator[str]:
    """Yield SSE frames from ``transport`` until a terminal event or close.

    ``subscription`` is an already registered subscription of ``transport``;
    without one the generator subscribes on its first iteration.
    Cancellation (client disconnect) unsubscribes through ``finally``.
    """
    if subscription is None:
        subscription = hub.subscribe(resource_id, transport)
    try:
        while True:
            event = await transport.receive()
            if event is None:
                break
            yield format_sse_frame(event.kind, event.payload)
            if event.kind in TERMINAL_EVENTS:
                break
    finally:
        hub.unsubscribe(subscription)
