from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

import jwt

from paper_vault.exceptions import Unauthorized

from .settings import AuthSettings

if TYPE_CHECKING:
    from .principal import Actor


def issue_token(actor: "Actor", settings: AuthSettings, *, now: dt.datetime | None = None) -> str:
    now = now or dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": actor.id,
        "email": actor.email,
        "roles": list(actor.roles),
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + dt.timedelta(seconds=settings.jwt_lifetime_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: AuthSettings) -> "Actor":
    from .principal import Actor

    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise Unauthorized("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthorized("Invalid token") from exc

    roles = claims.get("roles") or []
    if not isinstance(roles, list):
        raise Unauthorized("Invalid token")
    return Actor(id=str(claims["sub"]), email=str(claims.get("email") or ""), roles=tuple(map(str, roles)))
