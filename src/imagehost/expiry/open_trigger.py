"""Start the countdown of an on-open resource on its first external view."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from ..domain.expiry_policy import calculate_open_expiry
from ..events.event_hub import EventHub
from ..events.event_models import EventKind
from ..repositories.resource_repository import ResourceRepository
from ..resources.resource_models import Resource
from ..utils.clock import Clock, utcnow
from .scheduler import ExpiryScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OpenResult:
    expires_at: datetime | None
    already_opened: bool
    expires_on_open: bool


class OpenTriggerHandler:
    def __init__(
        self,
        *,
        repo: ResourceRepository,
        scheduler: ExpiryScheduler,
        hub: EventHub,
        open_windows: Mapping[str, int],
        clock: Clock | None = None,
    ) -> None:
        self._repo = repo
        self._scheduler = scheduler
        self._hub = hub
        self._open_windows = dict(open_windows)
        self._clock = clock or utcnow

    def window_for(self, resource: Resource) -> int:
        try:
            return self._open_windows[resource.family]
        except KeyError:
            raise ValueError(f"no open window configured for family '{resource.family}'") from None

    async def trigger(self, resource_id: str, *, viewer_id: str | None = None) -> OpenResult:
        """Arm the countdown once; repeat calls return the committed deadline.

        Raises :class:`NotFoundError` for unknown ids and
        :class:`StoreUnavailableError` when the store cannot be reached.
        """
        resource = await self._repo.get(resource_id)
        if not resource.expires_on_open or resource.opened_at is not None:
            return self._unchanged(resource)
        if viewer_id is not None and viewer_id == resource.owner_id:
            logger.debug("open_trigger.owner_view", extra={"resource_id": resource_id})
            return self._unchanged(resource)

        now = self._clock()
        expires_at = calculate_open_expiry(now, window_seconds=self.window_for(resource))
        committed = await self._repo.mark_opened(resource_id, opened_at=now, expires_at=expires_at)
        if not committed:
            # another request won the compare-and-set; report its deadline
            current = await self._repo.get(resource_id)
            logger.info("open_trigger.lost_race", extra={"resource_id": resource_id})
            return self._unchanged(current)

        self._scheduler.schedule(resource_id, expires_at)
        self._hub.publish(resource_id, EventKind.UPDATED, {"expires_at": expires_at})
        logger.info(
            "open_trigger.armed",
            extra={"resource_id": resource_id, "expires_at": expires_at.isoformat()},
        )
        return OpenResult(expires_at=expires_at, already_opened=False, expires_on_open=True)

    @staticmethod
    def _unchanged(resource: Resource) -> OpenResult:
        return OpenResult(
            expires_at=resource.expires_at,
            already_opened=resource.opened_at is not None,
            expires_on_open=resource.expires_on_open,
        )
