from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Request

from paper_vault.exceptions import Unauthorized

from .settings import AuthSettings, get_auth_settings
from .tokens import decode_token


@dataclass(frozen=True)
class Actor:
    """An authenticated caller, rebuilt from its token on every request."""

    id: str
    email: str
    roles: tuple[str, ...] = field(default_factory=tuple)


def request_auth_settings(request: Request) -> AuthSettings:
    return getattr(request.app.state, "auth_settings", None) or get_auth_settings()


def _token_from_request(request: Request, settings: AuthSettings) -> str | None:
    auth = (request.headers.get("authorization") or "").strip()
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return request.cookies.get(settings.cookie_name) or None


async def current_actor(request: Request) -> Actor:
    settings = request_auth_settings(request)
    token = _token_from_request(request, settings)
    if not token:
        raise Unauthorized("Missing credentials")
    return decode_token(token, settings)

