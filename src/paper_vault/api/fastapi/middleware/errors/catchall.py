from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    """Last line of defence: anything the error handlers did not render becomes a 500."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "%s on %s %s (500): %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
                exc_info=True,
                extra={"http_method": request.method, "path": request.url.path, "status_code": 500},
            )
            return JSONResponse(
                status_code=500,
                content={
                    "title": "Internal Server Error",
                    "status": 500,
                    "detail": "An unexpected error occurred.",
                    "code": "INTERNAL_ERROR",
                },
            )
