from __future__ import annotations

from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


def apply_filters(stmt: Select, model, where: dict[str, Any] | None) -> Select:
    if not where:
        return stmt
    return stmt.where(and_(*[(getattr(model, k) == v) for k, v in where.items()]))


class Repository(Generic[T]):
    """Generic async SQLAlchemy repository.

    - Exposes common CRUD helpers over an AsyncSession and SQLAlchemy model class.
    - Subclasses add the domain queries and translate missing rows into errors.
    """

    def __init__(self, session: AsyncSession, model: Type[T]):
        self.session = session
        self.model = model

    def _select(self, *, where: Optional[dict[str, Any]] = None) -> Select:
        return apply_filters(select(self.model), self.model, where)

    async def count_of(self, stmt: Select) -> int:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return int((await self.session.execute(count_stmt)).scalar_one())

    async def get(self, id: Any) -> Optional[T]:
        return await self.session.get(self.model, id)

    async def list(self, *, where: Optional[dict[str, Any]] = None, limit: int | None = None) -> Sequence[T]:
        stmt = self._select(where=where)
        if limit:
            stmt = stmt.limit(limit)
        return (await self.session.execute(stmt)).scalars().all()

    async def create(self, **data) -> T:
        obj = self.model(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def update(self, id: Any, **data) -> Optional[T]:
        obj = await self.get(id)
        if obj is None:
            return None
        for k, v in data.items():
            setattr(obj, k, v)
        await self.session.flush()
        return obj

    async def delete(self, id: Any) -> int:
        stmt = delete(self.model).where(self.model.id == id).execution_options(synchronize_session=False)
        res = await self.session.execute(stmt)
        return int(res.rowcount or 0)
