from __future__ import annotations

import asyncio
import logging
import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import create_async_engine

# --- Ensure project root and src/ on sys.path ---
ROOT = Path(__file__).resolve().parents[1]  # migrations/ -> project root
for p in (ROOT, ROOT / "src"):
    s = str(p)
    if p.exists() and s not in sys.path:
        sys.path.insert(0, s)

from paper_vault.app.core.logging import setup_logging  # noqa: E402
from paper_vault.db.base import Base  # noqa: E402
from paper_vault.db.settings import get_db_settings  # noqa: E402
from paper_vault.papers import models  # noqa: E402,F401

config = context.config

# --- Logging: the app's setup unless an ini file asks for its own ---
if config.attributes.get("configure_logger", True) and config.config_file_name is not None:
    fileConfig(config.config_file_name)
else:
    setup_logging(level=os.getenv("LOG_LEVEL"), fmt=os.getenv("LOG_FORMAT"))
logger = logging.getLogger("alembic.env")

# --- Database URL: explicit option wins, then DB settings ---
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", get_db_settings().resolved_database_url)

target_metadata = Base.metadata


def _url() -> str:
    return config.get_main_option("sqlalchemy.url") or ""


def run_migrations_offline() -> None:
    context.configure(
        url=_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        compare_server_default=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = _url()
    logger.info("Running migrations against %s", make_url(url).render_as_string(hide_password=True))
    connectable = create_async_engine(url, poolclass=pool.NullPool)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
