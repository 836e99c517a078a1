from __future__ import annotations

from fastapi import APIRouter, Request, Response

from paper_vault.db.deps import EngineDep
from paper_vault.papers.schemas import ActorOut, LoginIn, MessageOut, TokenOut
from paper_vault.security.login import authenticate_admin
from paper_vault.security.permissions import RequirePermission
from paper_vault.security.principal import Actor, request_auth_settings
from paper_vault.security.tokens import issue_token

ROUTER_PREFIX = "/admin"
ROUTER_TAG = "auth"

router = APIRouter()


@router.post("/login", response_model=TokenOut)
async def login(body: LoginIn, request: Request, response: Response, engine: EngineDep):
    settings = request_auth_settings(request)
    actor = await authenticate_admin(engine, body.email, body.password, settings)
    token = issue_token(actor, settings)
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.jwt_lifetime_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return TokenOut(access_token=token, expires_in=settings.jwt_lifetime_seconds)


@router.post("/logout", response_model=MessageOut)
async def logout(request: Request, response: Response):
    settings = request_auth_settings(request)
    response.delete_cookie(settings.cookie_name, httponly=True, secure=settings.cookie_secure, samesite="lax")
    return MessageOut(message="Logged out")


@router.get("/me", response_model=ActorOut)
async def me(actor: Actor = RequirePermission()):
    return ActorOut(id=actor.id, email=actor.email, roles=list(actor.roles))
