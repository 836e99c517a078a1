from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    jwt_secret: SecretStr = Field(default=SecretStr("dev-secret-change-me"))
    jwt_algorithm: str = "HS256"
    jwt_lifetime_seconds: int = 60 * 60 * 8
    jwt_audience: str = "paper-vault:admin"

    admin_email: str = "admin@example.com"
    # Produced by `paper-vault hash-password`; login is refused while unset.
    admin_password_hash: Optional[SecretStr] = None

    cookie_name: str = "paper_vault_token"
    cookie_secure: bool = False

    model_config = SettingsConfigDict(env_prefix="AUTH_", env_file=".env", extra="ignore")


@lru_cache
def get_auth_settings() -> AuthSettings:
    return AuthSettings()
