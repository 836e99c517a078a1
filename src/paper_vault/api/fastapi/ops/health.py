from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from paper_vault.db.health import db_healthcheck

router = APIRouter(tags=["internal"])


@router.get("/_health", include_in_schema=False)
async def health():
    return {"status": "ok"}


@router.get("/_db/health", include_in_schema=False)
async def db_health(request: Request, verbose: int = 0):
    engine = request.app.state.db_engine  # type: ignore[attr-defined]
    async with engine.session() as s:
        ok = await db_healthcheck(s)
    if not verbose:
        return Response(status_code=200 if ok else 503)
    url = engine.engine.url
    return JSONResponse(
        status_code=200 if ok else 503,
        content={
            "ok": ok,
            "driver": url.get_backend_name(),
            "database": url.render_as_string(hide_password=True),
        },
    )
