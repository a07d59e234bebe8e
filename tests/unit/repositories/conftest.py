from __future__ import annotations

from dataclasses import dataclass

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.imagehost.db.db_init import init_db
from src.imagehost.repositories.resource_repository import ResourceRepository


@dataclass
class DatabaseFixture:
    url: str

    def __post_init__(self) -> None:
        self.engine = create_async_engine(self.url, future=True)
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def dispose(self) -> None:
        await self.engine.dispose()


@pytest_asyncio.fixture
async def database(tmp_path):
    fixture = DatabaseFixture(url=f"sqlite+aiosqlite:///{tmp_path / 'resources.db'}")
    await init_db(fixture.engine)
    yield fixture
    await fixture.dispose()


@pytest_asyncio.fixture
async def repo(database: DatabaseFixture) -> ResourceRepository:
    return ResourceRepository(database.session_factory)
