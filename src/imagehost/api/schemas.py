"""Request and response models exposed over HTTP."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..resources.resource_models import Resource


class ResourceResponse(BaseModel):
    id: str
    owner_id: str | None
    collection_id: str | None
    original_name: str
    content_type: str
    size_bytes: int
    created_at: datetime
    expires_at: datetime | None
    expires_on_open: bool
    opened_at: datetime | None

    @classmethod
    def from_resource(cls, resource: Resource) -> "ResourceResponse":
        return cls(
            id=resource.id,
            owner_id=resource.owner_id,
            collection_id=resource.collection_id,
            original_name=resource.original_name,
            content_type=resource.content_type,
            size_bytes=resource.size_bytes,
            created_at=resource.created_at,
            expires_at=resource.expires_at,
            expires_on_open=resource.expires_on_open,
            opened_at=resource.opened_at,
        )


class OpenRequest(BaseModel):
    viewer_id: str | None = None


class OpenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expires_at: datetime | None
    already_opened: bool = Field(serialization_alias="alreadyOpened")
    expires_on_open: bool


class CleanupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deleted: int
    storage_failures: list[str] = Field(serialization_alias="storageFailures")
    ms: int


class DeleteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    storage_failures: list[str] = Field(serialization_alias="storageFailures")


class MoveRequest(BaseModel):
    resource_ids: list[str] = Field(min_length=1)
    collection_id: str | None = None
    shareable: bool = True


class MoveResponse(BaseModel):
    moved: list[str]
