"""In-process publish/subscribe fan-out keyed by resource id.

Delivery is best effort and at most once: ``publish`` writes synchronously
to every open transport of a resource and never raises. A transport whose
``send`` fails is dropped from the registry on the spot.

Subscriptions live only in this process; viewers connected to another
instance are not reached.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .event_models import EventKind
from .transports import Transport

logger = logging.getLogger(__name__)


@dataclass(eq=False, slots=True)
class Subscription:
    id: int
    resource_id: str
    transport: Transport


class EventHub:
    """Registry of ``resource_id -> subscriptions`` with keep-alive pings."""

    def __init__(self, *, keepalive_seconds: float = 25.0) -> None:
        self._keepalive_seconds = keepalive_seconds
        self._subscribers: dict[str, dict[int, Subscription]] = {}
        self._ids = itertools.count(1)
        self._keepalive_task: asyncio.Task[None] | None = None

    def subscribe(self, resource_id: str, transport: Transport) -> Subscription:
        """Register ``transport`` and push ``connected`` to it alone."""
        subscription = Subscription(id=next(self._ids), resource_id=resource_id, transport=transport)
        self._subscribers.setdefault(resource_id, {})[subscription.id] = subscription
        logger.debug(
            "hub.subscribed",
            extra={"resource_id": resource_id, "subscription_id": subscription.id},
        )
        if not self._deliver(subscription, EventKind.CONNECTED, {"resourceId": resource_id}):
            self.unsubscribe(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        bucket = self._subscribers.get(subscription.resource_id)
        if bucket is None or bucket.pop(subscription.id, None) is None:
            return
        if not bucket:
            del self._subscribers[subscription.resource_id]
        try:
            subscription.transport.close()
        except Exception:
            logger.debug("hub.close_failed", extra={"subscription_id": subscription.id}, exc_info=True)
        logger.debug(
            "hub.unsubscribed",
            extra={"resource_id": subscription.resource_id, "subscription_id": subscription.id},
        )

    def publish(self, resource_id: str, kind: EventKind, payload: Mapping[str, Any] | None = None) -> int:
        """Deliver ``kind`` to every subscriber of ``resource_id``; return the delivered count."""
        bucket = self._subscribers.get(resource_id)
        if not bucket:
            return 0
        data = {"resourceId": resource_id, **(payload or {})}
        delivered = 0
        for subscription in list(bucket.values()):
            if self._deliver(subscription, kind, data):
                delivered += 1
            else:
                self.unsubscribe(subscription)
        logger.debug(
            "hub.published",
            extra={"resource_id": resource_id, "kind": kind.value, "delivered": delivered},
        )
        return delivered

    def subscriber_count(self, resource_id: str | None = None) -> int:
        if resource_id is not None:
            return len(self._subscribers.get(resource_id, {}))
        return sum(len(bucket) for bucket in self._subscribers.values())

    def has_registry(self, resource_id: str) -> bool:
        return resource_id in self._subscribers

    def ping_all(self) -> None:
        """Send a no-op ``ping`` to every open subscription."""
        for resource_id in list(self._subscribers):
            bucket = self._subscribers.get(resource_id, {})
            for subscription in list(bucket.values()):
                if not self._deliver(subscription, EventKind.PING, {"resourceId": resource_id}):
                    self.unsubscribe(subscription)

    def start_keepalive(self) -> None:
        if self._keepalive_task is not None and not self._keepalive_task.done():
            return
        self._keepalive_task = asyncio.create_task(self._keepalive_loop(), name="event-hub-keepalive")

    async def stop_keepalive(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def close_all(self) -> None:
        for bucket in list(self._subscribers.values()):
            for subscription in list(bucket.values()):
                self.unsubscribe(subscription)

    async def _keepalive_loop(self) -> None:
        while True:
            await asyncio.sleep(self._keepalive_seconds)
            self.ping_all()

    @staticmethod
    def _deliver(subscription: Subscription, kind: EventKind, data: Mapping[str, Any]) -> bool:
        try:
            subscription.transport.send(kind, data)
        except Exception:
            logger.warning(
                "hub.delivery_failed",
                extra={
                    "resource_id": subscription.resource_id,
                    "subscription_id": subscription.id,
                    "kind": kind.value,
                },
                exc_info=True,
            )
            return False
        return True
