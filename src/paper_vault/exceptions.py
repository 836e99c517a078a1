from __future__ import annotations

from typing import Any, Mapping


class PaperVaultError(Exception):
    """Base error for everything raised by paper-vault.

    Each subclass carries the HTTP status, problem title and machine code
    used by the FastAPI error handlers.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    title: str = "Internal Server Error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.title
        super().__init__(self.detail)

    def to_problem(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
            "code": self.code,
        }


class ValidationError(PaperVaultError):
    status_code = 400
    code = "VALIDATION_ERROR"
    title = "Validation Error"

    def __init__(self, detail: str | None = None, errors: Mapping[str, str] | None = None):
        self.errors = dict(errors or {})
        if detail is None and self.errors:
            detail = "Invalid fields: " + ", ".join(sorted(self.errors))
        super().__init__(detail)

    def to_problem(self) -> dict[str, Any]:
        problem = super().to_problem()
        if self.errors:
            problem["errors"] = self.errors
        return problem


class UnsupportedMediaType(PaperVaultError):
    status_code = 415
    code = "UNSUPPORTED_MEDIA_TYPE"
    title = "Unsupported Media Type"


class PayloadTooLarge(PaperVaultError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    title = "Payload Too Large"

    def __init__(self, limit: int, received: int | None = None):
        self.limit = limit
        self.received = received
        detail = f"Upload exceeds the {limit} byte limit"
        if received is not None:
            detail += f" (received {received} bytes)"
        super().__init__(detail)


class NotFound(PaperVaultError):
    status_code = 404
    code = "NOT_FOUND"
    title = "Not Found"


class PaperNotFound(NotFound):
    def __init__(self, paper_id: str):
        self.paper_id = paper_id
        super().__init__(f"Paper {paper_id} not found")


class FileMissing(NotFound):
    def __init__(self, path: str):
        self.path = path
        super().__init__("File not found")


class StorageFailure(PaperVaultError):
    status_code = 500
    code = "STORAGE_FAILURE"
    title = "Storage Failure"


class Unauthorized(PaperVaultError):
    status_code = 401
    code = "UNAUTHORIZED"
    title = "Unauthorized"


class Forbidden(PaperVaultError):
    status_code = 403
    code = "FORBIDDEN"
    title = "Forbidden"


__all__ = [
    "PaperVaultError",
    "ValidationError",
    "UnsupportedMediaType",
    "PayloadTooLarge",
    "NotFound",
    "PaperNotFound",
    "FileMissing",
    "StorageFailure",
    "Unauthorized",
    "Forbidden",
]
