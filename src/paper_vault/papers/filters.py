"""Turn sparse request parameters into one reusable predicate.

``PaperFilter.apply`` is the only place a filter touches a statement, and
both the listing and the counting query go through it, so a page of results
and its total are always computed from the same WHERE clause.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy import Select

from .models import Paper

ALL_SENTINEL = "all"

# Accepted request keys per filter field; camelCase is what the web client sends.
_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "course": ("course",),
    "semester": ("semester",),
    "academic_year": ("academicYear", "academic_year"),
    "subject": ("subject",),
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == ALL_SENTINEL:
        return None
    return text


@dataclass(frozen=True)
class PaperFilter:
    course: Optional[str] = None
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    subject: Optional[str] = None

    def criteria(self) -> list[Any]:
        clauses: list[Any] = []
        if self.course is not None:
            clauses.append(Paper.course == self.course)
        if self.semester is not None:
            clauses.append(Paper.semester == self.semester)
        if self.academic_year is not None:
            clauses.append(Paper.academic_year == self.academic_year)
        if self.subject is not None:
            clauses.append(Paper.subject.ilike(f"%{_escape_like(self.subject)}%", escape="\\"))
        return clauses

    def apply(self, stmt: Select) -> Select:
        clauses = self.criteria()
        return stmt.where(*clauses) if clauses else stmt


def compose_filter(raw: Mapping[str, Any] | None) -> PaperFilter:
    """Build a PaperFilter from raw parameters. Never raises.

    Absent, blank and ``"all"`` values mean "no constraint".
    """
    if not raw:
        return PaperFilter()
    values: dict[str, Optional[str]] = {}
    for field, keys in _FIELD_KEYS.items():
        for key in keys:
            cleaned = _clean(raw.get(key))
            if cleaned is not None:
                values[field] = cleaned
                break
    return PaperFilter(**values)


__all__ = ["PaperFilter", "compose_filter", "ALL_SENTINEL"]
