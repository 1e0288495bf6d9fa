"""Typed persistence primitives shared by entity repositories."""

from __future__ import annotations

from typing import Any, ClassVar, Generic, Sequence, TypeVar

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.interfaces import ORMOption

from legends_api.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """find/create/update access to one mapped entity."""

    model: ClassVar[type[Base]]

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def find_many(
        self,
        *filters: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        limit: int | None = None,
        options: Sequence[ORMOption] = (),
    ) -> list[ModelT]:
        stmt = select(self.model).where(*filters)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if options:
            stmt = stmt.options(*options)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def find_first(self, *filters: ColumnElement[bool], **kwargs: Any) -> ModelT | None:
        rows = await self.find_many(*filters, limit=1, **kwargs)
        return rows[0] if rows else None

    async def exists(self, *filters: ColumnElement[bool]) -> bool:
        return await self.find_first(*filters) is not None

    async def find_one(self, entity_id: Any) -> ModelT | None:
        return await self._db.get(self.model, entity_id)  # type: ignore[return-value]

    async def create(self, **data: Any) -> ModelT:
        entity = self.model(**data)
        self._db.add(entity)
        await self._db.flush()
        return entity  # type: ignore[return-value]

    async def update(self, entity: ModelT, **data: Any) -> ModelT:
        for key, value in data.items():
            setattr(entity, key, value)
        await self._db.flush()
        return entity
