from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paper_vault.db.base import utcnow
from paper_vault.db.repository import Repository
from paper_vault.exceptions import PaperNotFound

from .fields import PaperFields, validate_paper_fields
from .filters import PaperFilter
from .models import Paper, User
from .pagination import PageRequest
from .settings import CatalogSettings
from .storage import StoredRef

# Largest OFFSET a 64-bit SQL integer can carry; no table gets that deep
MAX_SQL_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PaperStats:
    total_papers: int
    this_month: int
    total_downloads: int
    active_courses: int


class PaperRepository(Repository[Paper]):
    """Queries over the question_papers table."""

    def __init__(self, session: AsyncSession, catalog: CatalogSettings | None = None):
        super().__init__(session, Paper)
        self.catalog = catalog

    def _matching(self, flt: PaperFilter) -> Select:
        return flt.apply(select(Paper))

    async def create_paper(
        self,
        data: PaperFields,
        stored: StoredRef,
        *,
        file_name: str,
        uploaded_by: Optional[str] = None,
    ) -> Paper:
        values = validate_paper_fields(data, self.catalog)
        return await self.create(
            **values,
            file_name=file_name,
            file_path=stored.path,
            file_size=stored.size,
            download_count=0,
            uploaded_by=uploaded_by,
        )

    async def list_papers(self, flt: PaperFilter, page: PageRequest) -> Sequence[Paper]:
        if page.offset > MAX_SQL_OFFSET:
            return []
        stmt = (
            self._matching(flt)
            .order_by(Paper.created_at.desc(), Paper.id.desc())
            .offset(page.offset)
            .limit(page.limit)
        )
        return (await self.session.execute(stmt)).scalars().all()

    async def count_papers(self, flt: PaperFilter) -> int:
        return await self.count_of(self._matching(flt))

    async def get_by_id(self, paper_id: str) -> Paper:
        paper = await self.get(paper_id)
        if paper is None:
            raise PaperNotFound(paper_id)
        return paper

    async def increment_download(self, paper_id: str) -> None:
        # Single UPDATE so concurrent downloads never lose an increment
        stmt = (
            update(Paper)
            .where(Paper.id == paper_id)
            .values(download_count=Paper.download_count + 1)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        if not res.rowcount:
            raise PaperNotFound(paper_id)

    async def delete_paper(self, paper_id: str) -> None:
        if not await self.delete(paper_id):
            raise PaperNotFound(paper_id)

    async def all_file_paths(self) -> dict[str, str]:
        rows = await self.session.execute(select(Paper.id, Paper.file_path))
        return {paper_id: path for paper_id, path in rows.all()}

    async def stats(self, now: dt.datetime | None = None) -> PaperStats:
        now = now or utcnow()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        stmt = select(
            func.count(Paper.id),
            func.coalesce(func.sum(Paper.download_count), 0),
            func.count(func.distinct(Paper.course)),
        )
        total, downloads, courses = (await self.session.execute(stmt)).one()
        this_month = await self.session.scalar(
            select(func.count(Paper.id)).where(Paper.created_at >= month_start)
        )
        return PaperStats(
            total_papers=int(total or 0),
            this_month=int(this_month or 0),
            total_downloads=int(downloads or 0),
            active_courses=int(courses or 0),
        )


class UserRepository(Repository[User]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        found = await self.list(where={"email": email.lower()}, limit=1)
        return found[0] if found else None

    async def upsert_by_email(self, email: str, **data) -> User:
        user = await self.get_by_email(email)
        if user is not None:
            return await self.update(user.id, **data)
        return await self.create(email=email.lower(), **data)
