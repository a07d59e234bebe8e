"""Event kinds and the event-stream wire format."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class EventKind(str, Enum):
    CONNECTED = "connected"
    UPDATED = "updated"
    EXPIRED = "expired"
    DELETED = "deleted"
    PING = "ping"


TERMINAL_EVENTS = frozenset({EventKind.EXPIRED, EventKind.DELETED})


@dataclass(frozen=True, slots=True)
class ServerEvent:
    kind: EventKind
    payload: Mapping[str, Any]


def _json_default(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def format_sse_frame(kind: EventKind | str, payload: Mapping[str, Any]) -> str:
    """Render ``event: <kind>\\ndata: <json>\\n\\n``."""
    name = kind.value if isinstance(kind, EventKind) else kind
    data = json.dumps(dict(payload), default=_json_default, separators=(",", ":"))
    return f"event: {name}\ndata: {data}\n\n"
