"""Transports that carry hub events to a single subscriber."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Protocol

from .event_models import EventKind, ServerEvent


class TransportClosedError(Exception):
    """Raised when sending to a transport that was already closed."""


class Transport(Protocol):
    def send(self, kind: EventKind, payload: Mapping[str, Any]) -> None: ...

    def close(self) -> None: ...


class QueueTransport:
    """Buffer events in a bounded queue drained by a streaming response.

    ``send`` never blocks: a full queue raises :class:`asyncio.QueueFull`,
    which the hub treats as a failed delivery.
    """

    def __init__(self, max_size: int = 100) -> None:
        self._queue: asyncio.Queue[ServerEvent | None] = asyncio.Queue(maxsize=max_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, kind: EventKind, payload: Mapping[str, Any]) -> None:
        if self._closed:
            raise TransportClosedError("transport is closed")
        self._queue.put_nowait(ServerEvent(kind=kind, payload=dict(payload)))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # the close marker must fit even if the consumer stalled
        while True:
            try:
                self._queue.put_nowait(None)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()

    async def receive(self) -> ServerEvent | None:
        """Return the next event or ``None`` once the transport is closed."""
        return await self._queue.get()
