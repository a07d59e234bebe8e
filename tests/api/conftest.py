from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from src.imagehost.config import AppSettings, load_config
from src.imagehost.main import create_app
from tests.mocks.stores import FrozenClock


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        media_root=tmp_path / "media",
        cleanup_interval_ms=0,
        max_upload_bytes=1024,
        log_level="WARNING",
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def app(settings: AppSettings, clock: FrozenClock):
    return create_app(load_config(settings), clock=clock)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client

