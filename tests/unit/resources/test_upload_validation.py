import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from src.imagehost.exceptions import PayloadTooLargeError, UnsupportedMediaError
from src.imagehost.resources.upload_validation import UploadValidator


def _upload(data: bytes, content_type: str) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename="cat.png", headers=Headers({"content-type": content_type}))


@pytest.fixture
def validator() -> UploadValidator:
    return UploadValidator(allowed_content_types=("image/png", "image/jpeg"), max_bytes=8)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_accepts_allowed_image(validator: UploadValidator) -> None:
    validated = await validator.validate(_upload(b"12345678", "image/png"))

    assert validated.data == b"12345678"
    assert validated.filename == "cat.png"
    assert validated.content_type == "image/png"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rejects_unlisted_content_type(validator: UploadValidator) -> None:
    with pytest.raises(UnsupportedMediaError):
        await validator.validate(_upload(b"gif", "image/gif"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rejects_payload_over_limit(validator: UploadValidator) -> None:
    with pytest.raises(PayloadTooLargeError):
        await validator.validate(_upload(b"123456789", "image/jpeg"))
