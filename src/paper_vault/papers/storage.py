"""Filesystem-backed storage for uploaded papers.

Stored paths are always relative to the store root and every access goes
through :meth:`DocumentStore.resolve`, which refuses paths that escape it.
"""

from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path, PurePath
from collections.abc import Iterable, Iterator
from typing import BinaryIO

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

from paper_vault.exceptions import FileMissing, PayloadTooLarge, StorageFailure, UnsupportedMediaType

from .settings import MAX_UPLOAD_BYTES, StorageSettings

logger = logging.getLogger(__name__)

_NAME_ATTEMPTS = 5


@dataclass(frozen=True)
class StoredRef:
    path: str
    size: int


def normalize_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


class FileStream(Iterator[bytes]):
    """Chunked reader over an open file; closes itself at EOF or on ``close()``."""

    def __init__(self, handle: BinaryIO, chunk_size: int):
        self._handle = handle
        self._chunk_size = chunk_size

    def __iter__(self) -> "FileStream":
        return self

    def __next__(self) -> bytes:
        if self._handle.closed:
            raise StopIteration
        chunk = self._handle.read(self._chunk_size)
        if not chunk:
            self.close()
            raise StopIteration
        return chunk

    def close(self) -> None:
        self._handle.close()

    @property
    def closed(self) -> bool:
        return self._handle.closed


class DocumentStore:
    def __init__(
        self,
        root_dir: str | os.PathLike[str],
        *,
        max_bytes: int = MAX_UPLOAD_BYTES,
        allowed_content_types: Iterable[str] = ("application/pdf",),
        chunk_size: int = 64 * 1024,
    ):
        self._root = Path(root_dir).expanduser().resolve()
        self.max_bytes = max_bytes
        self.allowed_content_types = frozenset(ct.lower() for ct in allowed_content_types)
        self.chunk_size = chunk_size

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "DocumentStore":
        return cls(
            settings.root_dir,
            max_bytes=settings.max_upload_bytes,
            allowed_content_types=settings.allowed_content_types,
            chunk_size=settings.chunk_size,
        )

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def resolve(self, path: str) -> Path:
        candidate = (self._root / path).resolve()
        if candidate == self._root or not candidate.is_relative_to(self._root):
            raise FileMissing(path)
        return candidate

    def make_name(self, original_name: str | None) -> str:
        ext = PurePath(original_name or "").suffix.lower() or ".pdf"
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9):09d}{ext}"

    def check_upload(self, size: int, content_type: str | None) -> None:
        """Raise before any write if the payload cannot be stored."""
        if normalize_content_type(content_type) not in self.allowed_content_types:
            raise UnsupportedMediaType("Only PDF files are allowed")
        if size > self.max_bytes:
            raise PayloadTooLarge(limit=self.max_bytes, received=size)

    async def put(self, data: bytes, original_name: str | None, content_type: str | None) -> StoredRef:
        self.check_upload(len(data), content_type)
        ref = await run_in_threadpool(self._write_new, data, original_name)
        logger.debug("Stored %s (%d bytes)", ref.path, ref.size, extra={"file_path": ref.path})
        return ref

    def _write_new(self, data: bytes, original_name: str | None) -> StoredRef:
        for _ in range(_NAME_ATTEMPTS):
            name = self.make_name(original_name)
            target = self._root / name
            try:
                handle = open(target, "xb")
            except FileExistsError:
                continue
            except OSError as exc:
                logger.error("Cannot create %s: %s", target, exc)
                raise StorageFailure(f"Could not store file: {exc.strerror or exc}") from exc
            try:
                with handle:
                    handle.write(data)
            except OSError as exc:
                self._discard(target)
                logger.error("Write to %s failed: %s", target, exc)
                raise StorageFailure(f"Could not store file: {exc.strerror or exc}") from exc
            return StoredRef(path=name, size=len(data))
        raise StorageFailure("Could not allocate a unique file name")

    def _discard(self, target: Path) -> None:
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Partial file %s could not be removed: %s", target, exc)

    def _open(self, path: str) -> BinaryIO:
        target = self.resolve(path)
        try:
            return open(target, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise FileMissing(path) from exc
        except OSError as exc:
            logger.error("Read of %s failed: %s", target, exc)
            raise StorageFailure(f"Could not read file: {exc.strerror or exc}") from exc

    async def get(self, path: str) -> "FileStream":
        """Open ``path`` now and return an iterator over its bytes.

        Opening eagerly means a missing file is reported before the caller
        commits to a response or bumps the download counter.
        """
        handle = await run_in_threadpool(self._open, path)
        return FileStream(handle, self.chunk_size)

    def _unlink(self, path: str) -> None:
        target = self.resolve(path)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise FileMissing(path) from exc
        except OSError as exc:
            logger.error("Delete of %s failed: %s", target, exc)
            raise StorageFailure(f"Could not delete file: {exc.strerror or exc}") from exc

    async def delete(self, path: str) -> None:
        await run_in_threadpool(self._unlink, path)
        logger.debug("Deleted %s", path, extra={"file_path": path})

    async def exists(self, path: str) -> bool:
        try:
            target = self.resolve(path)
        except FileMissing:
            return False
        return await run_in_threadpool(target.is_file)

    def list_names(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(p.name for p in self._root.iterdir() if p.is_file())


def attach_storage(app: FastAPI, store: DocumentStore) -> DocumentStore:
    """Register ``store`` on ``app.state`` and create its root directory."""
    store.ensure_root()
    app.state.document_store = store  # type: ignore[attr-defined]
    logger.info("Document store attached: root=%s max_bytes=%d", store.root, store.max_bytes)
    return store


__all__ = ["DocumentStore", "FileStream", "StoredRef", "attach_storage", "normalize_content_type"]
