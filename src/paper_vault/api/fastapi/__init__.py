import logging
import os
from collections import defaultdict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from paper_vault.api.fastapi.middleware.errors.catchall import CatchAllExceptionMiddleware
from paper_vault.api.fastapi.middleware.errors.handlers import register_error_handlers
from paper_vault.api.fastapi.middleware.request_size_limit import RequestSizeLimitMiddleware
from paper_vault.api.fastapi.routers import register_all_routers
from paper_vault.api.fastapi.settings import ApiConfig
from paper_vault.app import CURRENT_ENVIRONMENT
from paper_vault.app.settings import AppSettings, get_app_settings
from paper_vault.db.engine import DBEngine
from paper_vault.db.integration import attach_db
from paper_vault.papers.settings import CatalogSettings, get_catalog_settings, get_storage_settings
from paper_vault.papers.storage import DocumentStore, attach_storage
from paper_vault.security.settings import AuthSettings, get_auth_settings

logger = logging.getLogger(__name__)


def _gen_operation_id_factory():
    used: dict[str, int] = defaultdict(int)

    def _normalize(s: str) -> str:
        return "_".join(x for x in s.strip().replace(" ", "_").split("_") if x)

    def _gen(route: APIRoute) -> str:
        base = _normalize(route.name or getattr(route.endpoint, "__name__", "op"))
        tag = _normalize(route.tags[0]) if route.tags else ""
        method = next(iter(route.methods or ["GET"])).lower()

        candidate = base
        if used[candidate]:
            if tag and not base.startswith(tag):
                candidate = f"{tag}_{base}"
            if used[candidate]:
                if not candidate.endswith(f"_{method}"):
                    candidate = f"{candidate}_{method}"
                if used[candidate]:
                    candidate = f"{candidate}_{used[candidate] + 1}"

        used[candidate] += 1
        return candidate

    return _gen


def _cors_origins(api_config: ApiConfig) -> list[str]:
    if api_config.cors_origins:
        return list(api_config.cors_origins)
    raw = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(
    app_config: AppSettings | None = None,
    api_config: ApiConfig | None = None,
    *,
    db_engine: DBEngine | None = None,
    store: DocumentStore | None = None,
    auth_settings: AuthSettings | None = None,
    catalog_settings: CatalogSettings | None = None,
) -> FastAPI:
    """Build the paper-vault application.

    Every collaborator can be injected; anything omitted is built from the
    environment through its settings getter.
    """
    app_settings = app_config or get_app_settings()
    api_config = api_config or ApiConfig()
    store = store or DocumentStore.from_settings(get_storage_settings())

    app = FastAPI(
        title=app_settings.name,
        version=app_settings.version,
        generate_unique_id_function=_gen_operation_id_factory(),
    )
    app.state.api_config = api_config
    app.state.auth_settings = auth_settings or get_auth_settings()
    app.state.catalog_settings = catalog_settings or get_catalog_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(api_config),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=store.max_bytes + api_config.multipart_overhead_bytes,
    )
    app.add_middleware(CatchAllExceptionMiddleware)
    register_error_handlers(app)

    attach_db(app, db_engine)
    attach_storage(app, store)

    register_all_routers(app, base_package="paper_vault.api.fastapi.routers", prefix=api_config.prefix)
    register_all_routers(app, base_package="paper_vault.api.fastapi.ops", prefix="")

    logger.info(
        "%s version of %s initialized [env: %s]",
        app_settings.version,
        app_settings.name,
        CURRENT_ENVIRONMENT,
    )
    return app


__all__ = ["create_app"]
