from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from .engine import DBEngine


class UnitOfWork:
    """Session scope that commits on success and rolls back on error."""

    def __init__(self, engine: DBEngine):
        self._engine = engine
        self.session: AsyncSession | None = None
        self._session_cm = None

    async def __aenter__(self) -> "UnitOfWork":
        self._session_cm = self._engine.session()
        self.session = await self._session_cm.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        try:
            if exc_type is None:
                await self.session.commit()
            else:
                await self.session.rollback()
        finally:
            await self._session_cm.__aexit__(exc_type, exc, tb)
