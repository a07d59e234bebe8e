"""Filesystem backed blob storage for uploaded images."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from ..config import MediaPaths
from ..exceptions import BlobStoreUnavailableError, PartialStorageFailure

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocalBlobStore:
    """Keep uploaded objects under ``MEDIA_ROOT/images`` keyed by a relative path."""

    paths: MediaPaths
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def resolve(self, storage_path: str) -> Path:
        relative = PurePosixPath(storage_path)
        if relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"invalid storage path '{storage_path}'")
        return self.paths.images / Path(*relative.parts)

    @staticmethod
    def new_storage_path(filename: str | None) -> str:
        suffix = Path(filename).suffix.lower() if filename else ""
        return f"{uuid.uuid4().hex}{suffix or '.bin'}"

    async def save(self, storage_path: str, data: bytes) -> None:
        target = self.resolve(storage_path)
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            raise BlobStoreUnavailableError(f"failed to write '{storage_path}'") from exc
        self.log.info("blob.saved", extra={"storage_path": storage_path, "size_bytes": len(data)})

    async def exists(self, storage_path: str) -> bool:
        return await asyncio.to_thread(self.resolve(storage_path).is_file)

    async def delete_many(self, storage_paths: Sequence[str]) -> None:
        """Delete ``storage_paths``; missing files count as deleted.

        Raises :class:`PartialStorageFailure` listing the paths that could
        not be removed.
        """
        if not storage_paths:
            return
        if not self.paths.images.is_dir():
            raise BlobStoreUnavailableError(f"blob root '{self.paths.images}' is not available")
        failed = await asyncio.to_thread(self._remove_all, list(storage_paths))
        if failed:
            raise PartialStorageFailure(failed)

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def _remove_all(self, storage_paths: list[str]) -> list[str]:
        failed: list[str] = []
        for storage_path in storage_paths:
            try:
                self.resolve(storage_path).unlink(missing_ok=True)
            except (OSError, ValueError):
                logger.warning("blob.delete_failed", extra={"storage_path": storage_path}, exc_info=True)
                failed.append(storage_path)
        return failed
