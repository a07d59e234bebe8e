"""Persistence layer for resource records."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db.db_models import ResourceModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors
from ..resources.resource_models import DeletedResource, NewResource, Resource
from ..utils.clock import as_utc


class ResourceRepository:
    """Store resource metadata and expiry fields."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, data: NewResource) -> Resource:
        resource_id = data.id or uuid.uuid4().hex
        model = ResourceModel(
            id=resource_id,
            storage_path=data.storage_path,
            owner_id=data.owner_id,
            collection_id=data.collection_id,
            family=data.family,
            original_name=data.original_name,
            content_type=data.content_type,
            size_bytes=data.size_bytes,
            created_at=data.created_at,
            expires_at=data.expires_at,
            expires_on_open=data.expires_on_open,
            opened_at=None,
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                session.add(model)
                await session.commit()
        return self._to_domain(model)

    async def get(self, resource_id: str) -> Resource:
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                model = await session.get(ResourceModel, resource_id)
                if model is None:
                    raise NotFoundError(f"resource '{resource_id}' not found")
                return self._to_domain(model)

    async def update(
        self,
        resource_id: str,
        fields: dict[str, object],
        *,
        only_if_unopened: bool = False,
    ) -> bool:
        """Apply ``fields``; return ``False`` when the predicate matched no row.

        ``only_if_unopened`` turns the statement into a compare-and-set on
        ``opened_at IS NULL`` so concurrent first-opens commit exactly once.
        """
        stmt = update(ResourceModel).where(ResourceModel.id == resource_id)
        if only_if_unopened:
            stmt = stmt.where(
                ResourceModel.expires_on_open.is_(True),
                ResourceModel.opened_at.is_(None),
            )
        stmt = stmt.values(**fields).execution_options(synchronize_session=False)
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        return bool(result.rowcount)

    async def mark_opened(self, resource_id: str, *, opened_at: datetime, expires_at: datetime) -> bool:
        return await self.update(
            resource_id,
            {"opened_at": opened_at, "expires_at": expires_at},
            only_if_unopened=True,
        )

    async def clear_expiry(self, resource_ids: Sequence[str], *, collection_id: str | None) -> list[str]:
        """Move resources into a non-expiring collection and null every expiry field."""
        if not resource_ids:
            return []
        stmt = (
            update(ResourceModel)
            .where(ResourceModel.id.in_(list(resource_ids)))
            .values(collection_id=collection_id, expires_at=None, expires_on_open=False, opened_at=None)
            .returning(ResourceModel.id)
            .execution_options(synchronize_session=False)
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                moved = list(result.scalars().all())
                await session.commit()
        return moved

    async def move(self, resource_ids: Sequence[str], *, collection_id: str | None) -> list[str]:
        """Reassign the collection while leaving expiry untouched."""
        if not resource_ids:
            return []
        stmt = (
            update(ResourceModel)
            .where(ResourceModel.id.in_(list(resource_ids)))
            .values(collection_id=collection_id)
            .returning(ResourceModel.id)
            .execution_options(synchronize_session=False)
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                moved = list(result.scalars().all())
                await session.commit()
        return moved

    async def delete_many(self, resource_ids: Sequence[str]) -> list[DeletedResource]:
        """Delete the given ids in one statement and return what was removed."""
        if not resource_ids:
            return []
        stmt = (
            delete(ResourceModel)
            .where(ResourceModel.id.in_(list(resource_ids)))
            .returning(ResourceModel.id, ResourceModel.storage_path)
            .execution_options(synchronize_session=False)
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
                await session.commit()
        return [DeletedResource(id=row.id, storage_path=row.storage_path) for row in rows]

    async def list_expired(self, reference_time: datetime, *, limit: int) -> list[Resource]:
        """Return up to ``limit`` records with ``expires_at < reference_time``, oldest first."""
        stmt = (
            select(ResourceModel)
            .where(
                ResourceModel.expires_at.is_not(None),
                ResourceModel.expires_at < reference_time,
            )
            .order_by(ResourceModel.expires_at)
            .limit(limit)
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
                return [self._to_domain(row) for row in rows]

    async def count_expired(self, reference_time: datetime) -> int:
        stmt = select(func.count()).select_from(ResourceModel).where(
            ResourceModel.expires_at.is_not(None),
            ResourceModel.expires_at < reference_time,
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                return int((await session.execute(stmt)).scalar_one())

    async def list_pending(self, reference_time: datetime) -> list[Resource]:
        """Return records whose deadline is still ahead of ``reference_time``."""
        stmt = select(ResourceModel).where(
            ResourceModel.expires_at.is_not(None),
            ResourceModel.expires_at >= reference_time,
        )
        async with handle_sqlalchemy_errors(entity="resource"):
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
                return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_domain(model: ResourceModel) -> Resource:
        return Resource(
            id=model.id,
            storage_path=model.storage_path,
            owner_id=model.owner_id,
            collection_id=model.collection_id,
            family=model.family,
            original_name=model.original_name,
            content_type=model.content_type,
            size_bytes=model.size_bytes,
            created_at=as_utc(model.created_at),
            expires_at=as_utc(model.expires_at),
            expires_on_open=bool(model.expires_on_open),
            opened_at=as_utc(model.opened_at),
        )
