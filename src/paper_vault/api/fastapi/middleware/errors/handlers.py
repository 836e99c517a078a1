from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from paper_vault.exceptions import PaperVaultError

logger = logging.getLogger(__name__)


def _problem(status: int, detail: str, code: str, **extra) -> dict:
    try:
        title = HTTPStatus(status).phrase
    except ValueError:
        title = "Error"
    return {"title": title, "status": status, "detail": detail, "code": code, **extra}


def _field_name(loc) -> str:
    # ("body", "academicYear") -> "academicYear"; query params keep their own name
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form", "header")]
    return ".".join(parts) or "request"


def register_error_handlers(app: FastAPI) -> None:
    """Render every known error as ``{title, status, detail, code[, errors]}``."""

    @app.exception_handler(PaperVaultError)
    async def _paper_vault_error(request: Request, exc: PaperVaultError):
        http = {"http_method": request.method, "path": request.url.path, "status_code": exc.status_code}
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.detail, exc_info=exc, extra=http)
        else:
            logger.info("%s: %s", type(exc).__name__, exc.detail, extra=http)
        return JSONResponse(status_code=exc.status_code, content=exc.to_problem())

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        errors: dict[str, str] = {}
        for err in exc.errors():
            errors.setdefault(_field_name(err.get("loc", ())), err.get("msg", "is invalid"))
        detail = "Invalid fields: " + ", ".join(sorted(errors))
        return JSONResponse(
            status_code=400,
            content=_problem(400, detail, "VALIDATION_ERROR", errors=errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(request: Request, exc: StarletteHTTPException):
        code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
        return JSONResponse(
            status_code=exc.status_code,
            content=_problem(exc.status_code, str(exc.detail), code),
            headers=getattr(exc, "headers", None),
        )
