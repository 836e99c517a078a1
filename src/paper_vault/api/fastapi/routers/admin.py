from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile, status

from paper_vault.papers.fields import PaperFields
from paper_vault.papers.schemas import MessageOut, PaperListOut, PaperOut, StatsOut
from paper_vault.security.permissions import RequirePermission
from paper_vault.security.principal import Actor

from ..deps import AdminPageDep, PaperFilterDep, PaperServiceDep
from ..responses import paper_list

ROUTER_PREFIX = "/admin"
ROUTER_TAG = "admin"

router = APIRouter()


@router.post("/papers", response_model=PaperOut, status_code=status.HTTP_201_CREATED)
async def upload_paper(
    service: PaperServiceDep,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    course: Optional[str] = Form(None),
    semester: Optional[str] = Form(None),
    academic_year: Optional[str] = Form(None, alias="academicYear"),
    subject: Optional[str] = Form(None),
    subject_code: Optional[str] = Form(None, alias="subjectCode"),
    department: Optional[str] = Form(None),
    actor: Actor = RequirePermission("paper.upload"),
):
    fields = PaperFields(
        title=title,
        course=course,
        semester=semester,
        academic_year=academic_year,
        subject=subject,
        subject_code=subject_code,
        department=department,
    )
    # One byte past the ceiling is enough to know the upload is too large
    payload = await file.read(service.store.max_bytes + 1)
    try:
        return await service.upload(
            fields,
            payload,
            file_name=file.filename,
            content_type=file.content_type,
            actor=actor,
        )
    finally:
        await file.close()


@router.get("/papers", response_model=PaperListOut)
async def list_admin_papers(
    service: PaperServiceDep,
    flt: PaperFilterDep,
    page: AdminPageDep,
    actor: Actor = RequirePermission("paper.list"),
):
    items, info = await service.list_papers(flt, page)
    return paper_list(items, info)


@router.delete("/papers/{paper_id}", response_model=MessageOut)
async def delete_paper(
    paper_id: str,
    service: PaperServiceDep,
    actor: Actor = RequirePermission("paper.delete"),
):
    await service.delete_paper(paper_id, actor=actor)
    return MessageOut(message="Paper deleted successfully")


@router.get("/stats", response_model=StatsOut)
async def get_stats(service: PaperServiceDep, actor: Actor = RequirePermission("stats.read")):
    return await service.stats(actor=actor)
