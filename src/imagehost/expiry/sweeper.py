"""Batched deletion of expired resources.

One pass repeatedly fetches a batch of expired records, deletes their
metadata in a single statement, notifies subscribers and then removes the
blobs in sub-batches. A metadata failure aborts the pass before any blob of
that batch is touched; blob failures are collected and never roll back the
metadata deletion.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ..events.event_hub import EventHub
from ..events.event_models import EventKind
from ..exceptions import PartialStorageFailure, StorageError
from ..repositories.resource_repository import ResourceRepository
from ..utils.clock import Clock, utcnow
from .scheduler import ExpiryScheduler

logger = logging.getLogger(__name__)


class BlobDeleter(Protocol):
    async def delete_many(self, storage_paths: Sequence[str]) -> None: ...


@dataclass(slots=True)
class SweepSummary:
    deleted: int = 0
    storage_failures: list[str] = field(default_factory=list)
    elapsed_ms: int = 0


def chunked(items: Sequence[str], size: int) -> list[list[str]]:
    return [list(items[index : index + size]) for index in range(0, len(items), size)]


async def delete_blobs(
    blob_store: BlobDeleter,
    storage_paths: Sequence[str],
    *,
    batch_size: int,
) -> list[str]:
    """Delete ``storage_paths`` in sub-batches and return the paths that failed."""
    failures: list[str] = []
    for chunk in chunked(storage_paths, batch_size):
        try:
            await blob_store.delete_many(chunk)
        except PartialStorageFailure as exc:
            logger.warning("sweeper.blob_batch_partial", extra={"failed": len(exc.paths), "batch": len(chunk)})
            failures.extend(exc.paths)
        except StorageError:
            logger.warning("sweeper.blob_batch_failed", extra={"batch": len(chunk)}, exc_info=True)
            failures.extend(chunk)
    return failures


class ReconciliationSweeper:
    def __init__(
        self,
        *,
        repo: ResourceRepository,
        blob_store: BlobDeleter,
        hub: EventHub,
        scheduler: ExpiryScheduler,
        batch_size: int = 500,
        blob_batch_size: int = 50,
        clock: Clock | None = None,
    ) -> None:
        if batch_size <= 0 or blob_batch_size <= 0:
            raise ValueError("batch sizes must be positive")
        self._repo = repo
        self._blob_store = blob_store
        self._hub = hub
        self._scheduler = scheduler
        self._batch_size = batch_size
        self._blob_batch_size = blob_batch_size
        self._clock = clock or utcnow
        self._task: asyncio.Task[None] | None = None
        self._shutdown: asyncio.Event | None = None

    async def run_pass(self) -> SweepSummary:
        """Delete every resource expired at call time.

        :class:`StoreUnavailableError` from the metadata store propagates;
        batches already committed stay deleted.
        """
        started = time.perf_counter()
        summary = SweepSummary()
        while True:
            batch = await self._repo.list_expired(self._clock(), limit=self._batch_size)
            if not batch:
                break
            try:
                removed = await self._repo.delete_many([resource.id for resource in batch])
            except Exception:
                logger.error(
                    "sweeper.metadata_delete_failed",
                    extra={"batch": len(batch), "deleted_so_far": summary.deleted},
                    exc_info=True,
                )
                raise
            summary.deleted += len(removed)

            for resource in removed:
                self._scheduler.cancel(resource.id)
                self._hub.publish(resource.id, EventKind.DELETED, {"reason": "expired"})

            summary.storage_failures.extend(
                await delete_blobs(
                    self._blob_store,
                    [resource.storage_path for resource in removed],
                    batch_size=self._blob_batch_size,
                )
            )
            if len(batch) < self._batch_size:
                break

        summary.elapsed_ms = int((time.perf_counter() - started) * 1000)
        if summary.deleted or summary.storage_failures:
            logger.info(
                "sweeper.pass.completed",
                extra={
                    "deleted": summary.deleted,
                    "storage_failures": len(summary.storage_failures),
                    "elapsed_ms": summary.elapsed_ms,
                },
            )
        return summary

    async def run_periodic(self, *, interval_seconds: float, shutdown_event: asyncio.Event) -> None:
        """Run passes every ``interval_seconds`` until ``shutdown_event`` is set."""
        while not shutdown_event.is_set():
            try:
                await self.run_pass()
            except Exception:
                logger.exception("sweeper.pass.failed", extra={"interval_s": interval_seconds})
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue

    def start(self, interval_seconds: float | None) -> bool:
        """Start the background loop; ``None`` or a non-positive interval leaves it manual-only."""
        if interval_seconds is None or interval_seconds <= 0:
            logger.info("sweeper.automatic_disabled")
            return False
        if self._task is not None and not self._task.done():
            return True
        self._shutdown = asyncio.Event()
        self._task = asyncio.create_task(
            self.run_periodic(interval_seconds=interval_seconds, shutdown_event=self._shutdown),
            name="reconciliation-sweeper",
        )
        return True

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        if self._shutdown is not None:
            self._shutdown.set()
        try:
            await asyncio.wait_for(task, timeout=5)
        except asyncio.TimeoutError:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
