from __future__ import annotations

import logging

from fastapi_users.password import PasswordHelper

logger = logging.getLogger(__name__)

_password_helper = PasswordHelper()


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    return _password_helper.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed or not password:
        return False
    try:
        verified, _ = _password_helper.verify_and_update(password, hashed)
    except Exception as exc:  # pwdlib raises its own error types for unknown hashes
        logger.warning("Password hash could not be verified: %s", exc)
        return False
    return verified


__all__ = ["hash_password", "verify_password"]
