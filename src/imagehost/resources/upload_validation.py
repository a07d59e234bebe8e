"""Upload validation utilities."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from fastapi import UploadFile

from ..exceptions import PayloadTooLargeError, UnsupportedMediaError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB


@dataclass(slots=True)
class ValidatedUpload:
    filename: str
    content_type: str
    data: bytes


@dataclass(slots=True)
class UploadValidator:
    """Check content type and size cap while reading the upload into memory."""

    allowed_content_types: Sequence[str]
    max_bytes: int

    async def validate(self, upload: UploadFile) -> ValidatedUpload:
        if upload.content_type not in set(self.allowed_content_types):
            logger.warning(
                "upload.unsupported_media",
                extra={"content_type": upload.content_type},
            )
            raise UnsupportedMediaError(upload.content_type)

        chunks: list[bytes] = []
        size = 0
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > self.max_bytes:
                logger.warning(
                    "upload.payload_too_large",
                    extra={"size_bytes": size, "limit_bytes": self.max_bytes},
                )
                raise PayloadTooLargeError(size)
            chunks.append(chunk)

        return ValidatedUpload(
            filename=upload.filename or "upload",
            content_type=upload.content_type or "application/octet-stream",
            data=b"".join(chunks),
        )
