"""Domain level exceptions and helpers for store layers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "RepositoryError",
    "NotFoundError",
    "StoreUnavailableError",
    "ResourceExpiredError",
    "StorageError",
    "BlobStoreUnavailableError",
    "PartialStorageFailure",
    "UploadRejectedError",
    "UnsupportedMediaError",
    "PayloadTooLargeError",
    "InvalidExpiryError",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for application specific errors."""


class RepositoryError(AppError):
    """Base class for resource store failures."""


class NotFoundError(RepositoryError):
    """Raised when a resource could not be located."""


class StoreUnavailableError(RepositoryError):
    """Raised when the resource store cannot be reached; callers may retry."""


class ResourceExpiredError(AppError):
    """Raised when a resource is still stored but its deadline has passed."""


class StorageError(AppError):
    """Base class for blob store failures."""


class BlobStoreUnavailableError(StorageError):
    """Raised when a whole blob store call failed."""


class PartialStorageFailure(StorageError):
    """Raised when some of the paths in a blob delete call were not removed."""

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        super().__init__(f"failed to delete {len(self.paths)} blob(s)")


class UploadRejectedError(AppError):
    """Base class for uploads refused at the request boundary."""


class UnsupportedMediaError(UploadRejectedError):
    """Raised when Content-Type is not allowed."""


class PayloadTooLargeError(UploadRejectedError):
    """Raised when an uploaded file exceeds the configured cap."""


class InvalidExpiryError(UploadRejectedError):
    """Raised for unknown expiry presets or non-positive durations."""


@asynccontextmanager
async def handle_sqlalchemy_errors(*, entity: str | None = None) -> AsyncIterator[None]:
    """Translate driver level SQLAlchemy errors into :class:`StoreUnavailableError`."""

    try:
        yield
    except sa_exc.DBAPIError as exc:
        prefix = f"{entity}: " if entity else ""
        raise StoreUnavailableError(f"{prefix}database operation failed") from exc
