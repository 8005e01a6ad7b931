"""Generic repository contract and its SQLAlchemy implementation.

Every read excludes soft-deleted records. The filter is part of query
construction and no method accepts a way to switch it off.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carepath.models.base import AuditMixin

T = TypeVar("T", bound=AuditMixin)


class Repository(ABC, Generic[T]):
    """Persistence contract for one entity type.

    ``add``, ``update`` and ``delete`` only stage changes; they become durable
    when the owning unit of work saves. Predicates are filter expressions
    evaluated by the store.
    """

    @abstractmethod
    async def get_by_id(self, entity_id: UUID) -> T | None:
        """Get a non-deleted record by id."""

    @abstractmethod
    async def get_all(self) -> Sequence[T]:
        """Get all non-deleted records, oldest first."""

    @abstractmethod
    async def find(self, predicate: ColumnElement[bool]) -> Sequence[T]:
        """Get non-deleted records matching a predicate, oldest first."""

    @abstractmethod
    async def add(self, entity: T) -> T:
        """Stage a new record."""

    @abstractmethod
    async def update(self, entity: T) -> None:
        """Stage changes to an existing record."""

    @abstractmethod
    async def delete(self, entity: T) -> None:
        """Stage a soft delete."""

    @abstractmethod
    async def exists(self, predicate: ColumnElement[bool]) -> bool:
        """Check for a non-deleted record matching a predicate."""

    @abstractmethod
    async def count(self, predicate: ColumnElement[bool] | None = None) -> int:
        """Count non-deleted records, optionally matching a predicate."""


class SqlAlchemyRepository(Repository[T]):
    """Repository over an ``AsyncSession`` owned by a unit of work."""

    def __init__(self, session: AsyncSession, model: type[T]):
        self.session = session
        self.model = model

    def _not_deleted(self) -> ColumnElement[bool]:
        return self.model.is_deleted.is_(False)

    def _select(self, *criteria: ColumnElement[bool]) -> Select[tuple[T]]:
        return (
            select(self.model)
            .where(self._not_deleted(), *criteria)
            .order_by(self.model.created_at, self.model.id)
            # Reload rows and eager collections over stale identity-map state
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, entity_id: UUID) -> T | None:
        result = await self.session.execute(self._select(self.model.id == entity_id))
        entity = result.scalar_one_or_none()
        # The identity map may hold a newer in-memory state than the row
        if entity is not None and entity.is_deleted:
            return None
        return entity

    async def get_all(self) -> list[T]:
        return await self._fetch(self._select())

    async def find(self, predicate: ColumnElement[bool]) -> list[T]:
        return await self._fetch(self._select(predicate))

    async def add(self, entity: T) -> T:
        self.session.add(entity)
        return entity

    async def update(self, entity: T) -> None:
        if entity not in self.session:
            entity = await self.session.merge(entity)
        self.session.add(entity)

    async def delete(self, entity: T) -> None:
        """Soft delete: flag the record, never remove the row."""
        entity.is_deleted = True
        await self.update(entity)

    async def exists(self, predicate: ColumnElement[bool]) -> bool:
        stmt = select(self.model.id).where(self._not_deleted(), predicate).limit(1)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def count(self, predicate: ColumnElement[bool] | None = None) -> int:
        stmt = select(func.count()).select_from(self.model).where(self._not_deleted())
        if predicate is not None:
            stmt = stmt.where(predicate)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def _fetch(self, stmt: Select[tuple[T]]) -> list[T]:
        result = await self.session.execute(stmt)
        return [entity for entity in result.scalars().all() if not entity.is_deleted]
