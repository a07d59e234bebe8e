"""Long-lived event stream for viewers of a single resource."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ..events.event_hub import EventHub, Subscription
from ..events.event_stream import stream_events
from ..events.transports import QueueTransport
from ..exceptions import NotFoundError, ResourceExpiredError, StoreUnavailableError
from ..resources.resource_service import ResourceService
from .dependencies import expired, get_event_hub, get_resource_service, not_found, store_unavailable

router = APIRouter(tags=["stream"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def subscribe_active(
    hub: EventHub,
    service: ResourceService,
    resource_id: str,
    transport: QueueTransport,
) -> Subscription:
    """Subscribe first, then check the resource is still viewable.

    A deletion committed before the check fails it; one committed after
    publishes into the already registered subscription.
    """
    subscription = hub.subscribe(resource_id, transport)
    try:
        await service.get_active(resource_id)
    except Exception:
        hub.unsubscribe(subscription)
        raise
    return subscription


@router.get("/stream/resource/{resource_id}")
async def stream_resource(
    resource_id: str,
    request: Request,
    hub: EventHub = Depends(get_event_hub),
    service: ResourceService = Depends(get_resource_service),
) -> StreamingResponse:
    transport = QueueTransport(max_size=request.app.state.config.settings.subscriber_queue_size)
    # refuse gone resources so EventSource clients stop reconnecting
    try:
        subscription = await subscribe_active(hub, service, resource_id, transport)
    except NotFoundError:
        raise not_found() from None
    except ResourceExpiredError:
        raise expired() from None
    except StoreUnavailableError as exc:
        raise store_unavailable() from exc

    return StreamingResponse(
        stream_events(hub, resource_id, transport, subscription=subscription),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
