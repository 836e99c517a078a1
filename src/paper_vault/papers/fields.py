from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from paper_vault.exceptions import ValidationError

from .settings import CatalogSettings, get_catalog_settings

REQUIRED_FIELDS = ("title", "course", "semester", "academic_year", "subject", "department")

_YEAR_RE = re.compile(r"^(\d{4})-(\d{2})$")

# Request keys that differ from the attribute name
_ALIASES = {"academicYear": "academic_year", "subjectCode": "subject_code"}


@dataclass
class PaperFields:
    """Descriptive attributes supplied by the uploader, as received."""

    title: Optional[str] = None
    course: Optional[str] = None
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    subject: Optional[str] = None
    subject_code: Optional[str] = None
    department: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PaperFields":
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _ALIASES.get(key, key)
            if name in known and value is not None:
                values[name] = str(value)
        return cls(**values)


def is_academic_year(value: str) -> bool:
    """``YYYY-YY`` where the second year immediately follows the first."""
    m = _YEAR_RE.match(value)
    if not m:
        return False
    start, end = int(m.group(1)), int(m.group(2))
    return (start + 1) % 100 == end


def validate_paper_fields(
    data: PaperFields, catalog: CatalogSettings | None = None
) -> dict[str, Optional[str]]:
    """Return cleaned column values or raise ValidationError listing every bad field."""
    catalog = catalog or get_catalog_settings()
    cleaned = {f.name: (getattr(data, f.name) or "").strip() for f in fields(data)}
    errors: dict[str, str] = {}

    for name in REQUIRED_FIELDS:
        if not cleaned[name]:
            errors[name] = "is required"

    course = cleaned["course"].lower()
    if course and course not in catalog.courses:
        errors["course"] = f"must be one of {', '.join(catalog.courses)}"
    cleaned["course"] = course

    if cleaned["semester"] and cleaned["semester"] not in catalog.semesters:
        errors["semester"] = f"must be one of {', '.join(catalog.semesters)}"

    if cleaned["academic_year"] and not is_academic_year(cleaned["academic_year"]):
        errors["academic_year"] = "must look like 2023-24"

    if errors:
        raise ValidationError(errors=errors)

    result: dict[str, Optional[str]] = dict(cleaned)
    result["subject_code"] = cleaned["subject_code"] or None
    return result


__all__ = ["PaperFields", "REQUIRED_FIELDS", "is_academic_year", "validate_paper_fields"]
