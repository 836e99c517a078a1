from __future__ import annotations

from typing import Dict, Iterable, Set

from fastapi import Depends, Request

from paper_vault.exceptions import Forbidden

from .principal import Actor, current_actor, request_auth_settings

ADMIN_ROLE = "admin"

# Central role -> permissions mapping.
PERMISSION_REGISTRY: Dict[str, Set[str]] = {
    ADMIN_ROLE: {
        "paper.upload",
        "paper.list",
        "paper.delete",
        "stats.read",
    },
}


def get_permissions_for_roles(roles: Iterable[str]) -> Set[str]:
    perms: Set[str] = set()
    for r in roles:
        perms |= PERMISSION_REGISTRY.get(r, set())
    return perms


def principal_permissions(actor: Actor) -> Set[str]:
    return get_permissions_for_roles(actor.roles)


def ensure_permission(actor: Actor | None, *needed: str) -> Actor:
    """Reject unless ``actor`` holds every permission in ``needed``."""
    if actor is None:
        raise Forbidden("Admin privileges required")
    perms = principal_permissions(actor)
    missing = [p for p in needed if p not in perms]
    if missing:
        raise Forbidden(f"missing_permissions:{','.join(missing)}")
    return actor


def RequirePermission(*needed: str):
    """FastAPI dependency enforcing all listed permissions are present.

    The actor's email must also still match the configured admin email, so
    rotating ``AUTH_ADMIN_EMAIL`` revokes outstanding tokens.
    """

    async def _guard(request: Request, actor: Actor = Depends(current_actor)) -> Actor:
        settings = request_auth_settings(request)
        if actor.email.lower() != settings.admin_email.lower():
            raise Forbidden("Access denied. Admin privileges required.")
        return ensure_permission(actor, *needed)

    return Depends(_guard)


__all__ = [
    "ADMIN_ROLE",
    "PERMISSION_REGISTRY",
    "get_permissions_for_roles",
    "principal_permissions",
    "ensure_permission",
    "RequirePermission",
]
