"""Database initialization helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from .db_models import Base


async def init_db(engine: AsyncEngine) -> None:
    """Create tables when they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
