"""Resource data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ResourceFamily(str, Enum):
    """Selects which on-open window applies to a resource."""

    ALBUM = "album"
    GUEST = "guest"


@dataclass(slots=True)
class Resource:
    id: str
    storage_path: str
    owner_id: str | None
    collection_id: str | None
    family: str
    original_name: str
    content_type: str
    size_bytes: int
    created_at: datetime
    expires_at: datetime | None
    expires_on_open: bool
    opened_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(slots=True)
class DeletedResource:
    """Identifier and blob locator of a record removed from the store."""

    id: str
    storage_path: str


@dataclass(slots=True)
class NewResource:
    """Fields supplied when registering an uploaded resource."""

    storage_path: str
    owner_id: str | None
    collection_id: str | None
    family: str
    original_name: str
    content_type: str
    size_bytes: int
    created_at: datetime
    expires_at: datetime | None
    expires_on_open: bool
    id: str | None = None
