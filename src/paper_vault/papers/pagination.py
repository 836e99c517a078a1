from __future__ import annotations

from dataclasses import dataclass

from paper_vault.exceptions import ValidationError


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 20

    def __post_init__(self) -> None:
        errors = {}
        if self.page < 1:
            errors["page"] = "must be >= 1"
        if self.limit < 1:
            errors["limit"] = "must be >= 1"
        if errors:
            raise ValidationError(errors=errors)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageInfo:
    page: int
    limit: int
    total: int
    pages: int


def paginate(total: int, page: int, limit: int) -> PageInfo:
    """Envelope for a listing page.

    ``page`` is not clamped to ``pages``; callers detect overrun from an
    empty item list alongside a non-zero page count.
    """
    if limit < 1:
        raise ValidationError(errors={"limit": "must be >= 1"})
    total = max(int(total), 0)
    pages = -(-total // limit)  # ceil without floats
    return PageInfo(page=page, limit=limit, total=total, pages=pages)
