"""Resolve services stored on ``app.state``."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..events.event_hub import EventHub
from ..expiry.open_trigger import OpenTriggerHandler
from ..expiry.sweeper import ReconciliationSweeper
from ..resources.resource_service import ResourceService
from ..resources.upload_validation import UploadValidator


def _state(request: Request, name: str):
    try:
        return getattr(request.app.state, name)
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError(f"{name} is not configured") from exc


def get_resource_service(request: Request) -> ResourceService:
    return _state(request, "resource_service")


def get_upload_validator(request: Request) -> UploadValidator:
    return _state(request, "upload_validator")


def get_open_trigger(request: Request) -> OpenTriggerHandler:
    return _state(request, "open_trigger")


def get_sweeper(request: Request) -> ReconciliationSweeper:
    return _state(request, "sweeper")


def get_event_hub(request: Request) -> EventHub:
    return _state(request, "event_hub")


def error(status_code: int, failure_reason: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"status": "error", "failure_reason": failure_reason},
    )


def not_found() -> HTTPException:
    return error(status.HTTP_404_NOT_FOUND, "resource_not_found")


def expired() -> HTTPException:
    return error(status.HTTP_410_GONE, "resource_expired")


def store_unavailable() -> HTTPException:
    return error(status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable")
