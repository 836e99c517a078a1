from __future__ import annotations

import re

import pytest

from paper_vault.exceptions import FileMissing, PayloadTooLarge, StorageFailure, UnsupportedMediaType
from paper_vault.papers.storage import DocumentStore, normalize_content_type

from conftest import PDF_BYTES


def test_generated_names_keep_lowercased_extension(store):
    assert re.fullmatch(r"\d+-\d{9}\.pdf", store.make_name("Exam.PDF"))
    assert store.make_name("no-extension").endswith(".pdf")
    assert store.make_name(None).endswith(".pdf")


def test_content_type_parameters_are_ignored():
    assert normalize_content_type("Application/PDF; charset=binary") == "application/pdf"
    assert normalize_content_type("") is None


def test_ensure_root_is_idempotent(tmp_path):
    store = DocumentStore(tmp_path / "a" / "b")
    assert not store.root.exists()
    store.ensure_root()
    store.ensure_root()
    assert store.root.is_dir()


@pytest.mark.asyncio
async def test_put_then_read_round_trip(store):
    ref = await store.put(PDF_BYTES, "exam.pdf", "application/pdf")
    assert ref.size == len(PDF_BYTES)
    assert "/" not in ref.path
    assert (store.root / ref.path).read_bytes() == PDF_BYTES
    assert await store.exists(ref.path)


@pytest.mark.asyncio
async def test_non_pdf_is_rejected_before_any_write(store):
    with pytest.raises(UnsupportedMediaType):
        await store.put(b"hello", "notes.txt", "text/plain")
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_payload_over_ceiling_is_rejected_before_any_write(tmp_path):
    store = DocumentStore(tmp_path, max_bytes=16)
    with pytest.raises(PayloadTooLarge) as exc:
        await store.put(b"x" * 17, "big.pdf", "application/pdf")
    assert exc.value.limit == 16
    assert store.list_names() == []
    # exactly at the ceiling is fine
    await store.put(b"x" * 16, "ok.pdf", "application/pdf")


@pytest.mark.asyncio
async def test_get_streams_in_chunks_and_closes_at_eof(tmp_path):
    store = DocumentStore(tmp_path, chunk_size=4)
    ref = await store.put(b"0123456789", "a.pdf", "application/pdf")
    stream = await store.get(ref.path)
    assert list(stream) == [b"0123", b"4567", b"89"]
    assert stream.closed


@pytest.mark.asyncio
async def test_get_missing_file_raises_not_found(store):
    with pytest.raises(FileMissing):
        await store.get("1700000000000-000000001.pdf")


@pytest.mark.asyncio
async def test_delete_twice_reports_missing_the_second_time(store):
    ref = await store.put(PDF_BYTES, "exam.pdf", "application/pdf")
    await store.delete(ref.path)
    assert not await store.exists(ref.path)
    with pytest.raises(FileMissing):
        await store.delete(ref.path)


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["../outside.pdf", "/etc/passwd", "", "."])
async def test_paths_outside_the_root_are_refused(store, path):
    with pytest.raises(FileMissing):
        await store.get(path)
    assert not await store.exists(path)


@pytest.mark.asyncio
async def test_write_failure_raises_storage_failure_and_leaves_nothing(tmp_path):
    store = DocumentStore(tmp_path / "missing-root")
    # root was never created, so open() fails with FileNotFoundError
    with pytest.raises(StorageFailure):
        await store.put(PDF_BYTES, "exam.pdf", "application/pdf")
    assert store.list_names() == []


@pytest.mark.asyncio
async def test_name_collisions_are_retried(store, monkeypatch):
    taken = await store.put(PDF_BYTES, "a.pdf", "application/pdf")
    names = iter([taken.path, "1700000000000-123456789.pdf"])
    monkeypatch.setattr(store, "make_name", lambda original: next(names))
    ref = await store.put(PDF_BYTES, "b.pdf", "application/pdf")
    assert ref.path == "1700000000000-123456789.pdf"
    assert sorted(store.list_names()) == sorted([taken.path, ref.path])
