"""Per-resource one-shot timers announcing expiry to live viewers."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..events.event_hub import EventHub
from ..events.event_models import EventKind
from ..utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """Fire an ``expired`` event at the instant ``expires_at`` elapses.

    The scheduler never deletes anything; the sweeper owns deletion. At most
    one timer exists per resource id and the latest ``schedule`` call wins.
    """

    def __init__(self, hub: EventHub, *, clock: Clock | None = None) -> None:
        self._hub = hub
        self._clock = clock or utcnow
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def schedule(self, resource_id: str, expires_at: datetime | None) -> None:
        self.cancel(resource_id)
        if expires_at is None:
            return
        delay = (expires_at - self._clock()).total_seconds()
        if delay <= 0:
            self._publish_expired(resource_id, expires_at)
            return
        loop = asyncio.get_running_loop()
        self._timers[resource_id] = loop.call_later(delay, self._fire, resource_id, expires_at)
        logger.debug(
            "scheduler.armed",
            extra={"resource_id": resource_id, "expires_at": expires_at.isoformat(), "delay_s": delay},
        )

    def cancel(self, resource_id: str) -> bool:
        handle = self._timers.pop(resource_id, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for resource_id in list(self._timers):
            self.cancel(resource_id)

    def is_scheduled(self, resource_id: str) -> bool:
        return resource_id in self._timers

    def pending_count(self) -> int:
        return len(self._timers)

    def _fire(self, resource_id: str, expires_at: datetime) -> None:
        self._timers.pop(resource_id, None)
        self._publish_expired(resource_id, expires_at)

    def _publish_expired(self, resource_id: str, expires_at: datetime) -> None:
        delivered = self._hub.publish(resource_id, EventKind.EXPIRED, {"expires_at": expires_at})
        logger.info(
            "scheduler.expired",
            extra={"resource_id": resource_id, "expires_at": expires_at.isoformat(), "delivered": delivered},
        )
