from __future__ import annotations

import logging

from paper_vault.db.engine import DBEngine
from paper_vault.db.uow import UnitOfWork
from paper_vault.exceptions import Unauthorized
from paper_vault.papers.repository import UserRepository

from .passwords import verify_password
from .permissions import ADMIN_ROLE
from .principal import Actor
from .settings import AuthSettings

logger = logging.getLogger(__name__)


def check_admin_credentials(email: str, password: str, settings: AuthSettings) -> bool:
    configured_hash = settings.admin_password_hash
    if configured_hash is None:
        logger.warning("Admin login attempted but AUTH_ADMIN_PASSWORD_HASH is not set")
        return False
    if email.strip().lower() != settings.admin_email.lower():
        return False
    return verify_password(password, configured_hash.get_secret_value())


async def authenticate_admin(
    engine: DBEngine, email: str, password: str, settings: AuthSettings
) -> Actor:
    """Verify the admin credentials and make sure the admin has a user row."""
    if not check_admin_credentials(email, password, settings):
        logger.info("Rejected admin login for %s", email, extra={"actor": email})
        raise Unauthorized("Invalid credentials")

    async with UnitOfWork(engine) as uow:
        user = await UserRepository(uow.session).upsert_by_email(settings.admin_email)
        actor = Actor(id=user.id, email=user.email, roles=(ADMIN_ROLE,))

    logger.info("Admin signed in", extra={"actor": actor.email})
    return actor


__all__ = ["authenticate_admin", "check_admin_credentials"]
