from __future__ import annotations

import importlib
import logging
import pkgutil
from types import ModuleType
from typing import Optional, Set

from fastapi import FastAPI

from paper_vault.app.core.env import Env, get_env

logger = logging.getLogger(__name__)


def _should_skip_module(module_name: str, exclude_segments: Set[str]) -> bool:
    """True for private modules (leading underscore) and excluded path segments."""
    parts = module_name.split(".")
    if parts[-1].startswith("_"):
        return True
    return any(seg in exclude_segments for seg in parts)


def register_all_routers(
    app: FastAPI,
    *,
    base_package: Optional[str] = None,
    prefix: str = "",
    exclude: Optional[dict[Env | str, set[str]]] = None,
    env: Optional[Env | str] = None,
) -> list[str]:
    """
    Discover and include every module-level ``router`` under ``base_package``.

    Args:
        app: FastAPI application instance.
        base_package: Import path of the routers package. Defaults to this package.
        prefix: Prefix applied to every discovered router (e.g. "/api").
        exclude: Env (or "all") -> path segments to skip in that environment.
        env: Environment used to evaluate ``exclude`` (defaults to get_env()).

    Per-module options:
        ROUTER_PREFIX             appended to ``prefix``
        ROUTER_TAG                OpenAPI tag for the router
        INCLUDE_ROUTER_IN_SCHEMA  False hides the routes from OpenAPI

    Returns the names of the modules whose routers were included. A module
    that fails to import is an error, not a silent gap in the API.
    """
    base_package = base_package or __package__
    package_module: ModuleType = importlib.import_module(base_package)
    if not hasattr(package_module, "__path__"):
        raise RuntimeError(f"Provided base_package '{base_package}' is not a package (no __path__).")

    env = get_env() if env is None else (env if isinstance(env, Env) else Env(env))
    exclude_set: Set[str] = set()
    for key, segments in (exclude or {}).items():
        if key == "all" or (key if isinstance(key, Env) else Env(key)) == env:
            exclude_set.update(segments)
    if exclude_set:
        logger.debug("Router discovery exclusions active for env '%s': %s", env, sorted(exclude_set))

    included: list[str] = []
    for _, module_name, _ in pkgutil.walk_packages(package_module.__path__, prefix=f"{base_package}."):
        if _should_skip_module(module_name, exclude_set):
            logger.debug("Skipping router module: %s", module_name)
            continue
        module = importlib.import_module(module_name)
        router = getattr(module, "router", None)
        if router is None:
            continue
        router_prefix = getattr(module, "ROUTER_PREFIX", None)
        router_tag = getattr(module, "ROUTER_TAG", None)
        include_kwargs: dict = {
            "prefix": prefix.rstrip("/") + router_prefix if router_prefix else prefix,
            "include_in_schema": getattr(module, "INCLUDE_ROUTER_IN_SCHEMA", True),
        }
        if router_tag:
            include_kwargs["tags"] = [router_tag]
        app.include_router(router, **include_kwargs)
        included.append(module_name)
        logger.debug(
            "Included router from module: %s (prefix=%s, tag=%s)",
            module_name,
            include_kwargs["prefix"],
            router_tag,
        )
    return included
