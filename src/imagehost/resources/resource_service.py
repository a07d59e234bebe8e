"""Resource lifecycle operations outside the sweep.

Uploads register a record with its initial expiry and arm the scheduler.
Explicit deletion and moves into private collections are the only other
writers of expiry state; both cancel pending timers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..domain.expiry_policy import ExpiryPolicy, calculate_initial_expiry
from ..events.event_hub import EventHub
from ..events.event_models import EventKind
from ..exceptions import NotFoundError, ResourceExpiredError
from ..media.blob_store import LocalBlobStore
from ..repositories.resource_repository import ResourceRepository
from ..utils.clock import Clock, utcnow
from ..expiry.scheduler import ExpiryScheduler
from ..expiry.sweeper import delete_blobs
from .resource_models import NewResource, Resource, ResourceFamily
from .upload_validation import ValidatedUpload

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeleteOutcome:
    resource_id: str
    storage_failures: list[str] = field(default_factory=list)


class ResourceService:
    def __init__(
        self,
        *,
        repo: ResourceRepository,
        blob_store: LocalBlobStore,
        hub: EventHub,
        scheduler: ExpiryScheduler,
        blob_batch_size: int = 50,
        clock: Clock | None = None,
    ) -> None:
        self._repo = repo
        self._blob_store = blob_store
        self._hub = hub
        self._scheduler = scheduler
        self._blob_batch_size = blob_batch_size
        self._clock = clock or utcnow

    async def upload(
        self,
        upload: ValidatedUpload,
        *,
        policy: ExpiryPolicy,
        owner_id: str | None = None,
        collection_id: str | None = None,
        shareable: bool = True,
    ) -> Resource:
        """Store the blob, then the record; private collections never expire."""
        now = self._clock()
        initial = calculate_initial_expiry(policy if shareable else ExpiryPolicy.never(), now)
        storage_path = self._blob_store.new_storage_path(upload.filename)
        await self._blob_store.save(storage_path, upload.data)
        try:
            resource = await self._repo.create(
                NewResource(
                    storage_path=storage_path,
                    owner_id=owner_id,
                    collection_id=collection_id,
                    family=(ResourceFamily.ALBUM if owner_id else ResourceFamily.GUEST).value,
                    original_name=upload.filename,
                    content_type=upload.content_type,
                    size_bytes=len(upload.data),
                    created_at=now,
                    expires_at=initial.expires_at,
                    expires_on_open=initial.expires_on_open,
                )
            )
        except Exception:
            # no record will ever point at the blob
            await delete_blobs(self._blob_store, [storage_path], batch_size=1)
            raise

        self._scheduler.schedule(resource.id, resource.expires_at)
        logger.info(
            "resource.uploaded",
            extra={
                "resource_id": resource.id,
                "policy": policy.kind.value,
                "expires_at": resource.expires_at.isoformat() if resource.expires_at else None,
                "expires_on_open": resource.expires_on_open,
            },
        )
        return resource

    async def get_active(self, resource_id: str) -> Resource:
        """Return a viewable resource; raise :class:`ResourceExpiredError` past its deadline."""
        resource = await self._repo.get(resource_id)
        if resource.is_expired(self._clock()):
            raise ResourceExpiredError(f"resource '{resource.id}' has expired")
        return resource

    async def delete(self, resource_id: str) -> DeleteOutcome:
        """Explicitly remove a resource before its deadline."""
        removed = await self._repo.delete_many([resource_id])
        if not removed:
            raise NotFoundError(f"resource '{resource_id}' not found")
        self._scheduler.cancel(resource_id)
        self._hub.publish(resource_id, EventKind.DELETED, {"reason": "removed"})
        failures = await delete_blobs(
            self._blob_store,
            [item.storage_path for item in removed],
            batch_size=self._blob_batch_size,
        )
        if failures:
            logger.warning("resource.delete.storage_failures", extra={"resource_id": resource_id, "paths": failures})
        logger.info("resource.deleted", extra={"resource_id": resource_id})
        return DeleteOutcome(resource_id=resource_id, storage_failures=failures)

    async def move_to_collection(
        self,
        resource_ids: Sequence[str],
        *,
        collection_id: str | None,
        shareable: bool,
    ) -> list[str]:
        """Reassign resources; a non-shareable target clears every expiry field."""
        if shareable:
            return await self._repo.move(resource_ids, collection_id=collection_id)

        moved = await self._repo.clear_expiry(resource_ids, collection_id=collection_id)
        for resource_id in moved:
            self._scheduler.cancel(resource_id)
            self._hub.publish(resource_id, EventKind.UPDATED, {"expires_at": None})
        logger.info(
            "resource.moved_private",
            extra={"collection_id": collection_id, "count": len(moved)},
        )
        return moved

    async def rearm_timers(self) -> int:
        """Re-create scheduler timers lost by a process restart."""
        pending = await self._repo.list_pending(self._clock())
        for resource in pending:
            self._scheduler.schedule(resource.id, resource.expires_at)
        if pending:
            logger.info("resource.timers_rearmed", extra={"count": len(pending)})
        return len(pending)
