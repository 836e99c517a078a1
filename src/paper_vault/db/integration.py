from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .engine import DBEngine
from .settings import get_db_settings

logger = logging.getLogger(__name__)


def attach_db(app: FastAPI, engine: Optional[DBEngine] = None) -> DBEngine:
    """
    Attach a DBEngine to the FastAPI app, composing with any existing lifespan.

    The engine is published on ``app.state`` immediately so that in-process
    transports that skip lifespan events still resolve it.
    """
    engine = engine or DBEngine(get_db_settings())
    settings = engine.settings
    app.state.db_engine = engine  # type: ignore[attr-defined]

    existing = getattr(app.router, "lifespan_context", None)  # type: ignore[attr-defined]

    @asynccontextmanager
    async def composed_lifespan(_app: FastAPI):
        try:
            url = engine.engine.url
            logger.info(
                "DB attached: url=%s driver=%s pool_size=%s max_overflow=%s",
                url.render_as_string(hide_password=True),
                url.get_backend_name(),
                settings.pool_size,
                settings.max_overflow,
            )
            if settings.create_all_on_startup:
                await engine.create_all()
                logger.info("DB schema ensured via metadata.create_all")
            if existing:
                async with existing(_app):  # type: ignore[misc]
                    yield
            else:
                yield
        finally:
            await engine.dispose()

    app.router.lifespan_context = composed_lifespan  # type: ignore[attr-defined]
    return engine
