"""Per-resource live notifications."""

from .event_hub import EventHub, Subscription
from .event_models import EventKind, ServerEvent, format_sse_frame
from .transports import QueueTransport, Transport, TransportClosedError

__all__ = [
    "EventHub",
    "EventKind",
    "QueueTransport",
    "ServerEvent",
    "Subscription",
    "Transport",
    "TransportClosedError",
    "format_sse_frame",
]
