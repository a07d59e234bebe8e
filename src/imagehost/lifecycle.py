"""Lifecycle helpers wiring background tasks for FastAPI startup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from starlette.datastructures import State

from .db.db_init import init_db
from .exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


async def start_background_services(state: State) -> None:
    """Create the schema, restore timers, start keep-alive and the periodic sweep."""
    config = state.config
    await init_db(config.engine)
    try:
        await state.resource_service.rearm_timers()
    except StoreUnavailableError:
        logger.warning("lifecycle.rearm_failed", exc_info=True)
    state.event_hub.start_keepalive()
    state.sweeper.start(config.sweep_interval_seconds)
    logger.info(
        "lifecycle.started",
        extra={"sweep_interval_s": config.sweep_interval_seconds},
    )


async def stop_background_services(state: State) -> None:
    await state.sweeper.stop()
    await state.event_hub.stop_keepalive()
    state.scheduler.cancel_all()
    state.event_hub.close_all()
    await state.config.engine.dispose()
    logger.info("lifecycle.stopped")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await start_background_services(app.state)
    try:
        yield
    finally:
        await stop_background_services(app.state)


__all__ = [
    "lifespan",
    "start_background_services",
    "stop_background_services",
]
