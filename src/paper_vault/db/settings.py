from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DBSettings(BaseSettings):
    """
    Database settings.

    Env support:
      - DB_* variables: DB_DATABASE_URL, DB_ECHO, DB_POOL_SIZE, DB_MAX_OVERFLOW, ...
      - DATABASE_URL is accepted as a fallback for convenience.
    """

    database_url: Optional[str] = Field(default=None)
    echo: bool = Field(default=False)
    pool_size: int = Field(default=10)
    max_overflow: int = Field(default=20)
    pool_recycle: Optional[int] = Field(default=None)  # seconds; None -> 1800
    statement_cache_size: int = Field(default=1000)
    create_all_on_startup: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url or os.getenv("DATABASE_URL")
        if not url:
            raise ValueError(
                "DATABASE_URL or DB_DATABASE_URL must be set for database connectivity"
            )
        # normalize legacy postgres:// to SQLAlchemy async driver url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url


@lru_cache
def get_db_settings(**kwargs) -> DBSettings:
    filtered = {k: v for k, v in kwargs.items() if v is not None}
    return DBSettings(**filtered)
