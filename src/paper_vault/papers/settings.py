from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB


class StorageSettings(BaseSettings):
    """Where uploaded PDFs live and what the store accepts."""

    root_dir: str = Field(default="uploads")
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)
    allowed_content_types: list[str] = Field(default_factory=lambda: ["application/pdf"])
    chunk_size: int = Field(default=64 * 1024, gt=0)

    model_config = SettingsConfigDict(env_prefix="STORAGE_", env_file=".env", extra="ignore")


class CatalogSettings(BaseSettings):
    """Enumerations offered to clients and enforced on upload."""

    courses: list[str] = Field(default_factory=lambda: ["bsc", "bcom", "bba", "ba"])
    semesters: list[str] = Field(default_factory=lambda: [str(n) for n in range(1, 9)])
    academic_years: list[str] = Field(
        default_factory=lambda: ["2024-25", "2023-24", "2022-23", "2021-22", "2020-21"]
    )

    model_config = SettingsConfigDict(env_prefix="CATALOG_", env_file=".env", extra="ignore")


@lru_cache
def get_storage_settings(**kwargs) -> StorageSettings:
    filtered = {k: v for k, v in kwargs.items() if v is not None}
    return StorageSettings(**filtered)


@lru_cache
def get_catalog_settings() -> CatalogSettings:
    return CatalogSettings()
