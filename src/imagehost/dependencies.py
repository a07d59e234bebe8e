"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import FastAPI

from .api.cleanup_api import router as cleanup_router
from .api.health_api import router as health_router
from .api.resources_api import router as resources_router
from .api.stream_api import router as stream_router
from .config import AppConfig
from .events.event_hub import EventHub
from .expiry.open_trigger import OpenTriggerHandler
from .expiry.scheduler import ExpiryScheduler
from .expiry.sweeper import ReconciliationSweeper
from .media.blob_store import LocalBlobStore
from .repositories.resource_repository import ResourceRepository
from .resources.resource_service import ResourceService
from .resources.upload_validation import UploadValidator
from .utils.clock import Clock


def include_routers(app: FastAPI, config: AppConfig, *, clock: Clock | None = None) -> None:
    """Build the process-wide services, attach them to ``app.state`` and mount routers."""
    settings = config.settings
    repo = ResourceRepository(config.session_factory)
    blob_store = LocalBlobStore(config.media_paths)
    hub = EventHub(keepalive_seconds=settings.keepalive_seconds)
    scheduler = ExpiryScheduler(hub, clock=clock)

    open_trigger = OpenTriggerHandler(
        repo=repo,
        scheduler=scheduler,
        hub=hub,
        open_windows=config.open_windows,
        clock=clock,
    )
    sweeper = ReconciliationSweeper(
        repo=repo,
        blob_store=blob_store,
        hub=hub,
        scheduler=scheduler,
        batch_size=settings.sweep_batch_size,
        blob_batch_size=settings.blob_delete_batch_size,
        clock=clock,
    )
    resource_service = ResourceService(
        repo=repo,
        blob_store=blob_store,
        hub=hub,
        scheduler=scheduler,
        blob_batch_size=settings.blob_delete_batch_size,
        clock=clock,
    )
    validator = UploadValidator(
        allowed_content_types=settings.allowed_content_types,
        max_bytes=settings.max_upload_bytes,
    )

    app.state.config = config
    app.state.resource_repo = repo
    app.state.blob_store = blob_store
    app.state.event_hub = hub
    app.state.scheduler = scheduler
    app.state.open_trigger = open_trigger
    app.state.sweeper = sweeper
    app.state.resource_service = resource_service
    app.state.upload_validator = validator

    app.include_router(health_router)
    app.include_router(resources_router)
    app.include_router(stream_router)
    app.include_router(cleanup_router)
