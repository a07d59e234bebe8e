"""HTTP routes for resource upload, viewing, opening and removal."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile, status

from ..domain.expiry_policy import parse_expiry_option
from ..exceptions import (
    InvalidExpiryError,
    NotFoundError,
    PayloadTooLargeError,
    ResourceExpiredError,
    StorageError,
    StoreUnavailableError,
    UnsupportedMediaError,
)
from ..expiry.open_trigger import OpenTriggerHandler
from ..resources.resource_service import ResourceService
from ..resources.upload_validation import UploadValidator
from .dependencies import (
    error,
    expired,
    get_open_trigger,
    get_resource_service,
    get_upload_validator,
    not_found,
    store_unavailable,
)
from .schemas import DeleteResponse, MoveRequest, MoveResponse, OpenRequest, OpenResponse, ResourceResponse

router = APIRouter(tags=["resources"])
logger = logging.getLogger(__name__)


@router.post("/resources", status_code=status.HTTP_201_CREATED, response_model=ResourceResponse)
async def upload_resource(
    file: UploadFile = File(...),
    expiry: str = Form("never"),
    duration_seconds: int | None = Form(None),
    owner_id: str | None = Form(None),
    collection_id: str | None = Form(None),
    shareable: bool = Form(True),
    validator: UploadValidator = Depends(get_upload_validator),
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    """Store an image together with its expiry policy."""
    try:
        policy = parse_expiry_option(expiry, duration_seconds=duration_seconds)
    except InvalidExpiryError as exc:
        logger.warning("upload.invalid_expiry", extra={"expiry": expiry, "duration_seconds": duration_seconds})
        raise error(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_expiry") from exc

    try:
        validated = await validator.validate(file)
    except UnsupportedMediaError as exc:
        raise error(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, "unsupported_media_type") from exc
    except PayloadTooLargeError as exc:
        raise error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "payload_too_large") from exc

    try:
        resource = await service.upload(
            validated,
            policy=policy,
            owner_id=owner_id or None,
            collection_id=collection_id or None,
            shareable=shareable,
        )
    except (StoreUnavailableError, StorageError) as exc:
        logger.error("upload.store_unavailable", exc_info=exc)
        raise store_unavailable() from exc
    return ResourceResponse.from_resource(resource)


@router.get("/resource/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    resource_id: str,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    try:
        resource = await service.get_active(resource_id)
    except NotFoundError:
        raise not_found() from None
    except ResourceExpiredError:
        raise expired() from None
    except StoreUnavailableError as exc:
        raise store_unavailable() from exc
    return ResourceResponse.from_resource(resource)


@router.delete("/resource/{resource_id}", response_model=DeleteResponse)
async def delete_resource(
    resource_id: str,
    service: ResourceService = Depends(get_resource_service),
) -> DeleteResponse:
    try:
        outcome = await service.delete(resource_id)
    except NotFoundError:
        raise not_found() from None
    except StoreUnavailableError as exc:
        raise store_unavailable() from exc
    return DeleteResponse(id=outcome.resource_id, storage_failures=outcome.storage_failures)


@router.post("/resource/{resource_id}/open", response_model=OpenResponse)
async def open_resource(
    resource_id: str,
    payload: OpenRequest | None = Body(default=None),
    handler: OpenTriggerHandler = Depends(get_open_trigger),
) -> OpenResponse:
    """Start the on-open countdown for the first non-owner viewer."""
    viewer_id = payload.viewer_id if payload else None
    try:
        result = await handler.trigger(resource_id, viewer_id=viewer_id)
    except NotFoundError:
        raise not_found() from None
    except StoreUnavailableError as exc:
        logger.warning("open_trigger.store_unavailable", extra={"resource_id": resource_id})
        raise store_unavailable() from exc
    return OpenResponse(
        expires_at=result.expires_at,
        already_opened=result.already_opened,
        expires_on_open=result.expires_on_open,
    )


@router.post("/resources/move", response_model=MoveResponse)
async def move_resources(
    payload: MoveRequest,
    service: ResourceService = Depends(get_resource_service),
) -> MoveResponse:
    """Reassign resources to another collection."""
    try:
        moved = await service.move_to_collection(
            payload.resource_ids,
            collection_id=payload.collection_id,
            shareable=payload.shareable,
        )
    except StoreUnavailableError as exc:
        raise store_unavailable() from exc
    return MoveResponse(moved=moved)
