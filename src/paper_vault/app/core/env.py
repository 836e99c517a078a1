from __future__ import annotations

import os
import warnings
from enum import StrEnum
from functools import cache
from typing import NamedTuple


class Env(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


SYNONYMS: dict[str, Env] = {
    "development": Env.DEV,
    "dev": Env.DEV,
    "local": Env.LOCAL,
    "test": Env.TEST,
    "testing": Env.TEST,
    "preview": Env.TEST,
    "prod": Env.PROD,
    "production": Env.PROD,
}


def normalize_env(raw: str | None) -> Env | None:
    if not raw:
        return None
    val = raw.strip().lower()
    if val in (e.value for e in Env):
        return Env(val)
    return SYNONYMS.get(val)


@cache
def get_env() -> Env:
    """
    Resolve the deployment environment once.

    Precedence: APP_ENV, then RAILWAY_ENVIRONMENT_NAME, then "local".
    Unknown values fall back to LOCAL with a one-time warning.
    """
    raw = os.getenv("APP_ENV") or os.getenv("RAILWAY_ENVIRONMENT_NAME")
    env = normalize_env(raw)
    if env is None:
        if raw:
            warnings.warn(
                f"Unrecognized environment '{raw}', defaulting to 'local'.",
                RuntimeWarning,
                stacklevel=2,
            )
        env = Env.LOCAL
    return env


class EnvFlags(NamedTuple):
    env: Env
    is_local: bool
    is_dev: bool
    is_test: bool
    is_prod: bool


def get_env_flags(env: Env | None = None) -> EnvFlags:
    e = env or get_env()
    return EnvFlags(
        env=e,
        is_local=(e == Env.LOCAL),
        is_dev=(e == Env.DEV),
        is_test=(e == Env.TEST),
        is_prod=(e == Env.PROD),
    )


def pick(*, prod, nonprod, dev=None, test=None, local=None, env: Env | None = None):
    """
    Choose a value based on the active environment.

    Example:
        cookie_secure = pick(prod=True, nonprod=False)
    """
    e = env or get_env()
    if e is Env.PROD:
        return prod
    if e is Env.DEV and dev is not None:
        return dev
    if e is Env.TEST and test is not None:
        return test
    if e is Env.LOCAL and local is not None:
        return local
    return nonprod
