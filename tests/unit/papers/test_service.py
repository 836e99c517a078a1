from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import IntegrityError

from paper_vault.db.uow import UnitOfWork
from paper_vault.exceptions import (
    FileMissing,
    Forbidden,
    PaperNotFound,
    PayloadTooLarge,
    StorageFailure,
    UnsupportedMediaType,
    ValidationError,
)
from paper_vault.papers.pagination import PageRequest
from paper_vault.papers.repository import PaperRepository, UserRepository
from paper_vault.security.principal import Actor

from conftest import PDF_BYTES, insert_paper, make_fields


async def _upload(service, actor, **overrides):
    return await service.upload(
        make_fields(**overrides),
        PDF_BYTES,
        file_name="Exam Paper.pdf",
        content_type="application/pdf",
        actor=actor,
    )


@pytest.mark.asyncio
async def test_upload_stores_file_and_row(service, store, admin_actor):
    paper = await _upload(service, admin_actor)
    assert paper.file_name == "Exam Paper.pdf"
    assert paper.file_size == len(PDF_BYTES)
    assert store.list_names() == [paper.file_path]
    assert (store.root / paper.file_path).read_bytes() == PDF_BYTES
    # the actor has no user row yet, so the weak reference stays empty
    assert paper.uploaded_by is None


@pytest.mark.asyncio
async def test_upload_links_existing_uploader(service, db_engine):
    async with UnitOfWork(db_engine) as uow:
        user = await UserRepository(uow.session).upsert_by_email("admin@example.com")
    actor = Actor(id=user.id, email=user.email, roles=("admin",))
    paper = await _upload(service, actor)
    assert paper.uploaded_by == user.id


@pytest.mark.asyncio
async def test_invalid_fields_fail_before_anything_is_written(service, store, admin_actor):
    with pytest.raises(ValidationError):
        await _upload(service, admin_actor, semester="")
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_non_pdf_upload_leaves_no_file(service, store, admin_actor):
    with pytest.raises(UnsupportedMediaType):
        await service.upload(
            make_fields(), b"plain text", file_name="notes.txt", content_type="text/plain", actor=admin_actor
        )
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected(service, store, admin_actor):
    payload = b"x" * (10 * 1024 * 1024 + 1)
    with pytest.raises(PayloadTooLarge):
        await service.upload(
            make_fields(), payload, file_name="big.pdf", content_type="application/pdf", actor=admin_actor
        )
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_failed_insert_removes_the_stored_file(service, store, admin_actor, monkeypatch):
    async def boom(self, *args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("constraint failed"))

    monkeypatch.setattr(PaperRepository, "create_paper", boom)
    with pytest.raises(IntegrityError):
        await _upload(service, admin_actor)
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_failed_cleanup_is_logged_and_original_error_kept(service, store, admin_actor, monkeypatch, caplog):
    async def boom(self, *args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("constraint failed"))

    async def broken_delete(path):
        raise StorageFailure("disk gone")

    monkeypatch.setattr(PaperRepository, "create_paper", boom)
    monkeypatch.setattr(store, "delete", broken_delete)
    with caplog.at_level(logging.ERROR, logger="paper_vault.papers.service"):
        with pytest.raises(IntegrityError):
            await _upload(service, admin_actor)
    assert any("Orphaned file" in r.getMessage() for r in caplog.records)
    assert len(store.list_names()) == 1


@pytest.mark.asyncio
async def test_upload_requires_permission(service, store):
    outsider = Actor(id="u1", email="someone@example.com", roles=("viewer",))
    with pytest.raises(Forbidden):
        await _upload(service, outsider)
    with pytest.raises(Forbidden):
        await _upload(service, None)
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_list_returns_items_and_envelope(service, db_engine, store):
    for _ in range(3):
        await insert_paper(db_engine, store, with_file=False, course="bsc")
    await insert_paper(db_engine, store, with_file=False, course="ba")

    items, info = await service.list_papers({"course": "bsc"}, PageRequest(page=1, limit=2))
    assert len(items) == 2
    assert (info.page, info.limit, info.total, info.pages) == (1, 2, 3, 2)


@pytest.mark.asyncio
async def test_download_increments_counter_and_streams_bytes(service, db_engine, store):
    paper = await insert_paper(db_engine, store)
    found, stream = await service.open_download(paper.id)
    assert b"".join(stream) == PDF_BYTES
    assert (await service.get_paper(paper.id)).download_count == 1
    assert found.file_name == "paper.pdf"


@pytest.mark.asyncio
async def test_download_with_missing_file_leaves_counter_alone(service, db_engine, store):
    paper = await insert_paper(db_engine, store, with_file=False)
    with pytest.raises(FileMissing):
        await service.open_download(paper.id)
    assert (await service.get_paper(paper.id)).download_count == 0


@pytest.mark.asyncio
async def test_download_unknown_paper(service):
    with pytest.raises(PaperNotFound):
        await service.open_download("missing")


@pytest.mark.asyncio
async def test_delete_removes_file_and_row(service, db_engine, store, admin_actor):
    paper = await insert_paper(db_engine, store)
    await service.delete_paper(paper.id, actor=admin_actor)
    assert store.list_names() == []
    with pytest.raises(PaperNotFound):
        await service.get_paper(paper.id)


@pytest.mark.asyncio
async def test_delete_unknown_paper_has_no_side_effects(service, db_engine, store, admin_actor):
    other = await insert_paper(db_engine, store)
    with pytest.raises(PaperNotFound):
        await service.delete_paper("missing", actor=admin_actor)
    assert store.list_names() == [other.file_path]
    assert (await service.get_paper(other.id)).id == other.id


@pytest.mark.asyncio
async def test_delete_with_missing_file_still_removes_row(service, db_engine, store, admin_actor, caplog):
    paper = await insert_paper(db_engine, store, with_file=False)
    with caplog.at_level(logging.WARNING, logger="paper_vault.papers.service"):
        await service.delete_paper(paper.id, actor=admin_actor)
    assert any(r.levelno == logging.WARNING for r in caplog.records)
    with pytest.raises(PaperNotFound):
        await service.get_paper(paper.id)


@pytest.mark.asyncio
async def test_delete_keeps_row_when_storage_fails(service, db_engine, store, admin_actor, monkeypatch):
    paper = await insert_paper(db_engine, store)

    async def broken_delete(path):
        raise StorageFailure("permission denied")

    monkeypatch.setattr(store, "delete", broken_delete)
    with pytest.raises(StorageFailure):
        await service.delete_paper(paper.id, actor=admin_actor)
    assert (await service.get_paper(paper.id)).id == paper.id


@pytest.mark.asyncio
async def test_stats_requires_permission(service, admin_actor):
    stats = await service.stats(actor=admin_actor)
    assert stats.total_papers == 0
    with pytest.raises(Forbidden):
        await service.stats(actor=Actor(id="x", email="x@example.com"))


@pytest.mark.asyncio
async def test_check_storage_reports_both_directions(service, db_engine, store):
    kept = await insert_paper(db_engine, store)
    ghost = await insert_paper(db_engine, store, with_file=False)
    stray = await store.put(PDF_BYTES, "stray.pdf", "application/pdf")

    report = await service.check_storage()
    assert report.orphaned_files == [stray.path]
    assert report.missing_files == {ghost.id: ghost.file_path}
    assert not report.consistent
    # nothing was touched
    assert sorted(store.list_names()) == sorted([kept.file_path, stray.path])


@pytest.mark.asyncio
async def test_row_delete_failure_after_file_removal_is_logged(
    service, db_engine, store, admin_actor, monkeypatch, caplog
):
    paper = await insert_paper(db_engine, store)

    async def boom(self, paper_id):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(PaperRepository, "delete_paper", boom)
    with caplog.at_level(logging.ERROR, logger="paper_vault.papers.service"):
        with pytest.raises(RuntimeError):
            await service.delete_paper(paper.id, actor=admin_actor)
    assert any(paper.id in r.getMessage() for r in caplog.records if r.levelno == logging.ERROR)
    assert store.list_names() == []
