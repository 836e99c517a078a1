from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from paper_vault.papers.schemas import PaperListOut, PaperOut

from ..deps import PaperFilterDep, PaperServiceDep, PublicPageDep
from ..responses import content_disposition, paper_list

ROUTER_PREFIX = "/papers"
ROUTER_TAG = "papers"

router = APIRouter()


@router.get("", response_model=PaperListOut)
async def list_papers(service: PaperServiceDep, flt: PaperFilterDep, page: PublicPageDep):
    items, info = await service.list_papers(flt, page)
    return paper_list(items, info)


@router.get("/{paper_id}", response_model=PaperOut)
async def get_paper(paper_id: str, service: PaperServiceDep):
    return await service.get_paper(paper_id)


@router.get(
    "/{paper_id}/download",
    response_class=StreamingResponse,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_paper(paper_id: str, service: PaperServiceDep):
    paper, stream = await service.open_download(paper_id)
    return StreamingResponse(
        stream,
        media_type="application/pdf",
        headers={
            "Content-Disposition": content_disposition(paper.file_name),
        },
        background=BackgroundTask(stream.close),
    )
