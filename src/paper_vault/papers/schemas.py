from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaperOut(CamelModel):
    """Public view of a paper. The server-side file path is never included."""

    id: str
    title: str
    course: str
    semester: str
    academic_year: str
    subject: str
    subject_code: Optional[str] = None
    department: str
    file_name: str
    file_size: int
    download_count: int
    uploaded_by: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class PaginationOut(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class PaperListOut(CamelModel):
    items: list[PaperOut]
    pagination: PaginationOut


class StatsOut(CamelModel):
    total_papers: int
    this_month: int
    total_downloads: int
    active_courses: int


class CatalogOption(CamelModel):
    value: str
    label: str


class CatalogOut(CamelModel):
    courses: list[CatalogOption]
    semesters: list[CatalogOption]
    academic_years: list[CatalogOption]


class MessageOut(BaseModel):
    message: str


class LoginIn(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class TokenOut(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ActorOut(CamelModel):
    id: str
    email: str
    roles: list[str]
