"""Paper workflows spanning the document store and the metadata table.

Each flow keeps a file and its row consistent on its own: a failed insert
removes the file it just wrote, and a missing file never bumps a counter.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from paper_vault.db.engine import DBEngine
from paper_vault.db.uow import UnitOfWork
from paper_vault.exceptions import FileMissing, PaperNotFound
from paper_vault.security.permissions import ensure_permission
from paper_vault.security.principal import Actor

from .fields import PaperFields, validate_paper_fields
from .filters import PaperFilter, compose_filter
from .models import Paper
from .pagination import PageInfo, PageRequest, paginate
from .repository import PaperRepository, PaperStats, UserRepository
from .settings import CatalogSettings, get_catalog_settings
from .storage import DocumentStore, FileStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageReport:
    """Differences between the table and the storage root."""

    orphaned_files: list[str] = field(default_factory=list)
    missing_files: dict[str, str] = field(default_factory=dict)

    @property
    def consistent(self) -> bool:
        return not self.orphaned_files and not self.missing_files


class PaperService:
    def __init__(
        self,
        engine: DBEngine,
        store: DocumentStore,
        catalog: CatalogSettings | None = None,
    ):
        self.engine = engine
        self.store = store
        self.catalog = catalog or get_catalog_settings()

    def _papers(self, session) -> PaperRepository:
        return PaperRepository(session, self.catalog)

    async def upload(
        self,
        data: PaperFields,
        payload: bytes,
        *,
        file_name: Optional[str],
        content_type: Optional[str],
        actor: Actor | None,
    ) -> Paper:
        ensure_permission(actor, "paper.upload")
        # Reject bad metadata before anything touches the disk
        validate_paper_fields(data, self.catalog)

        stored = await self.store.put(payload, file_name, content_type)
        try:
            async with UnitOfWork(self.engine) as uow:
                uploader = await UserRepository(uow.session).get(actor.id)
                paper = await self._papers(uow.session).create_paper(
                    data,
                    stored,
                    file_name=file_name or stored.path,
                    uploaded_by=uploader.id if uploader is not None else None,
                )
        except BaseException:
            await self._discard_upload(stored.path)
            raise

        logger.info(
            "Uploaded paper %s (%d bytes)",
            paper.id,
            stored.size,
            extra={"paper_id": paper.id, "file_path": stored.path, "actor": actor.email},
        )
        return paper

    async def _discard_upload(self, path: str) -> None:
        try:
            await self.store.delete(path)
        except FileMissing:
            pass
        except Exception as exc:
            logger.error(
                "Orphaned file %s left behind after failed upload: %s",
                path,
                exc,
                extra={"file_path": path},
            )

    async def _count(self, flt: PaperFilter) -> int:
        async with self.engine.session() as session:
            return await self._papers(session).count_papers(flt)

    async def _page(self, flt: PaperFilter, page: PageRequest) -> Sequence[Paper]:
        async with self.engine.session() as session:
            return await self._papers(session).list_papers(flt, page)

    async def list_papers(
        self,
        raw: PaperFilter | Mapping[str, Any] | None,
        page: PageRequest,
    ) -> tuple[Sequence[Paper], PageInfo]:
        flt = raw if isinstance(raw, PaperFilter) else compose_filter(raw)
        items, total = await asyncio.gather(self._page(flt, page), self._count(flt))
        return items, paginate(total, page.page, page.limit)

    async def get_paper(self, paper_id: str) -> Paper:
        async with self.engine.session() as session:
            return await self._papers(session).get_by_id(paper_id)

    async def open_download(self, paper_id: str) -> tuple[Paper, FileStream]:
        """Open the paper's file and count the download.

        The file is opened first, so a missing file raises before the
        counter moves.
        """
        paper = await self.get_paper(paper_id)
        stream = await self.store.get(paper.file_path)
        try:
            async with UnitOfWork(self.engine) as uow:
                await self._papers(uow.session).increment_download(paper_id)
        except BaseException:
            stream.close()
            raise
        logger.info("Download of paper %s", paper_id, extra={"paper_id": paper_id})
        return paper, stream

    async def delete_paper(self, paper_id: str, *, actor: Actor | None) -> Paper:
        ensure_permission(actor, "paper.delete")
        paper = await self.get_paper(paper_id)

        try:
            await self.store.delete(paper.file_path)
        except FileMissing:
            logger.warning(
                "File for paper %s was already gone; removing the row anyway",
                paper_id,
                extra={"paper_id": paper_id, "file_path": paper.file_path},
            )

        try:
            async with UnitOfWork(self.engine) as uow:
                await self._papers(uow.session).delete_paper(paper_id)
        except PaperNotFound:
            # a concurrent delete got there first
            raise
        except Exception as exc:
            logger.error(
                "Row for paper %s survived but its file is gone: %s",
                paper_id,
                exc,
                extra={"paper_id": paper_id, "file_path": paper.file_path},
            )
            raise

        logger.info(
            "Deleted paper %s",
            paper_id,
            extra={"paper_id": paper_id, "file_path": paper.file_path, "actor": actor.email},
        )
        return paper

    async def stats(self, *, actor: Actor | None) -> PaperStats:
        ensure_permission(actor, "stats.read")
        async with self.engine.session() as session:
            return await self._papers(session).stats()

    async def check_storage(self) -> StorageReport:
        """Compare stored rows with files on disk. Changes nothing."""
        self.store.ensure_root()
        async with self.engine.session() as session:
            paths = await self._papers(session).all_file_paths()
        on_disk = set(self.store.list_names())
        referenced = set(paths.values())
        missing = {pid: path for pid, path in paths.items() if not await self.store.exists(path)}
        return StorageReport(
            orphaned_files=sorted(on_disk - referenced),
            missing_files=missing,
        )


__all__ = ["PaperService", "StorageReport"]
