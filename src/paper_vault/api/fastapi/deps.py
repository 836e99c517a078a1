from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Query, Request

from paper_vault.exceptions import ValidationError
from paper_vault.papers.filters import PaperFilter, compose_filter
from paper_vault.papers.pagination import PageRequest
from paper_vault.papers.service import PaperService
from paper_vault.papers.settings import CatalogSettings, get_catalog_settings
from paper_vault.papers.storage import DocumentStore

from .settings import ApiConfig


def get_api_config(request: Request) -> ApiConfig:
    return getattr(request.app.state, "api_config", None) or ApiConfig()


def get_catalog(request: Request) -> CatalogSettings:
    return getattr(request.app.state, "catalog_settings", None) or get_catalog_settings()


def get_store(request: Request) -> DocumentStore:
    return request.app.state.document_store  # type: ignore[attr-defined]


def get_paper_service(request: Request) -> PaperService:
    return PaperService(
        request.app.state.db_engine,  # type: ignore[attr-defined]
        get_store(request),
        get_catalog(request),
    )


def get_paper_filter(
    course: Optional[str] = Query(None, description='Course code, or "all"'),
    semester: Optional[str] = Query(None, description='Semester number, or "all"'),
    academic_year: Optional[str] = Query(None, alias="academicYear", description='e.g. 2023-24, or "all"'),
    subject: Optional[str] = Query(None, description="Case-insensitive substring of the subject"),
) -> PaperFilter:
    return compose_filter(
        {
            "course": course,
            "semester": semester,
            "academic_year": academic_year,
            "subject": subject,
        }
    )


def _page_request(config: ApiConfig, page: int, limit: Optional[int], default: int) -> PageRequest:
    limit = default if limit is None else limit
    if limit > config.max_page_size:
        raise ValidationError(errors={"limit": f"must be <= {config.max_page_size}"})
    return PageRequest(page=page, limit=limit)


def public_page(
    request: Request,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> PageRequest:
    config = get_api_config(request)
    return _page_request(config, page, limit, config.public_page_size)


def admin_page(
    request: Request,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> PageRequest:
    config = get_api_config(request)
    return _page_request(config, page, limit, config.admin_page_size)


PaperServiceDep = Annotated[PaperService, Depends(get_paper_service)]
PaperFilterDep = Annotated[PaperFilter, Depends(get_paper_filter)]
PublicPageDep = Annotated[PageRequest, Depends(public_page)]
AdminPageDep = Annotated[PageRequest, Depends(admin_page)]
CatalogDep = Annotated[CatalogSettings, Depends(get_catalog)]
