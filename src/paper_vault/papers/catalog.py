from __future__ import annotations

from .settings import CatalogSettings, get_catalog_settings


def catalog_options(catalog: CatalogSettings | None = None) -> dict[str, list[dict[str, str]]]:
    """Value/label pairs for every enumeration a client can filter on."""
    catalog = catalog or get_catalog_settings()
    return {
        "courses": [{"value": c, "label": c.upper()} for c in catalog.courses],
        "semesters": [{"value": s, "label": f"Semester {s}"} for s in catalog.semesters],
        "academic_years": [{"value": y, "label": y} for y in catalog.academic_years],
    }


__all__ = ["catalog_options"]
