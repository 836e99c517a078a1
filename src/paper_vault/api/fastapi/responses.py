from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from paper_vault.papers.models import Paper
from paper_vault.papers.pagination import PageInfo
from paper_vault.papers.schemas import PaginationOut, PaperListOut, PaperOut


def paper_list(items: Sequence[Paper], info: PageInfo) -> PaperListOut:
    return PaperListOut(
        items=[PaperOut.model_validate(p) for p in items],
        pagination=PaginationOut.model_validate(info),
    )


def content_disposition(file_name: str) -> str:
    """``attachment`` header carrying the original name, with an RFC 5987 form for non-ASCII."""
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace('"', "'").replace("?", "_")
    header = f'attachment; filename="{fallback}"'
    if fallback != file_name:
        header += f"; filename*=UTF-8''{quote(file_name)}"
    return header
