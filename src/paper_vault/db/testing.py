from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from .engine import DBEngine
from .settings import DBSettings


def make_sqlite_engine(url: str = "sqlite+aiosqlite:///:memory:", *, echo: bool = False) -> DBEngine:
    return DBEngine(DBSettings(database_url=url, echo=echo))


@asynccontextmanager
async def ephemeral_db(url: str = "sqlite+aiosqlite:///:memory:") -> AsyncIterator[DBEngine]:
    """Yield an engine with the full schema created; disposed on exit."""
    # models must be imported so their tables register on Base.metadata
    from paper_vault.papers import models  # noqa: F401

    engine = make_sqlite_engine(url)
    await engine.create_all()
    try:
        yield engine
    finally:
        await engine.dispose()
