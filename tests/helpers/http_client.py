"""Request helpers shared by the HTTP tests."""

from __future__ import annotations

from fastapi.testclient import TestClient


def upload(client: TestClient, *, content: bytes = b"\x89PNG", content_type: str = "image/png", **form: str):
    return client.post(
        "/resources",
        files={"file": ("cat.png", content, content_type)},
        data=form,
    )
