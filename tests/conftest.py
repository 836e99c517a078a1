"""
Root conftest.py for paper-vault tests.

This file provides:
1. Common pytest markers for test categorization
2. Shared fixtures: a file-backed SQLite engine, a temporary document store,
   auth settings with a known admin password, and an in-process API client
3. Small builders for paper metadata and seeded rows
"""

from __future__ import annotations

import datetime as dt
from typing import Any, AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from paper_vault.api.fastapi import create_app
from paper_vault.api.fastapi.settings import ApiConfig
from paper_vault.app.settings import AppSettings
from paper_vault.db.engine import DBEngine
from paper_vault.db.testing import ephemeral_db
from paper_vault.db.uow import UnitOfWork
from paper_vault.papers.fields import PaperFields
from paper_vault.papers.models import Paper
from paper_vault.papers.service import PaperService
from paper_vault.papers.settings import CatalogSettings
from paper_vault.papers.storage import DocumentStore
from paper_vault.security.passwords import hash_password
from paper_vault.security.permissions import ADMIN_ROLE
from paper_vault.security.principal import Actor
from paper_vault.security.settings import AuthSettings
from paper_vault.security.tokens import issue_token

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"
PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Tag tests under ``tests/unit/security/`` so ``-m security`` selects them."""
    for item in items:
        norm = str(item.fspath).replace("\\", "/")
        if "/tests/unit/security/" in norm:
            item.add_marker(pytest.mark.security)
        if "/tests/acceptance/" in norm:
            item.add_marker(pytest.mark.acceptance)


def pytest_configure(config):
    # Ensure custom markers are registered even if pyproject.toml isn't picked up in some contexts
    for name, desc in [
        ("security", "Security and auth hardening tests"),
        ("concurrency", "Concurrency control tests"),
        ("acceptance", "End-to-end scenarios over the HTTP API"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


# =============================================================================
# BUILDERS
# =============================================================================


def make_fields(**overrides: Any) -> PaperFields:
    values = {
        "title": "Organic Chemistry Final",
        "course": "bsc",
        "semester": "3",
        "academic_year": "2023-24",
        "subject": "Organic Chemistry",
        "subject_code": "CHEM301",
        "department": "Chemistry",
    }
    values.update(overrides)
    return PaperFields(**values)


def form_data(**overrides: Any) -> dict[str, str]:
    """Multipart form fields as the web client sends them."""
    data = {
        "title": "Organic Chemistry Final",
        "course": "bsc",
        "semester": "3",
        "academicYear": "2023-24",
        "subject": "Organic Chemistry",
        "subjectCode": "CHEM301",
        "department": "Chemistry",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


async def insert_paper(
    engine: DBEngine,
    store: DocumentStore,
    *,
    created_at: dt.datetime | None = None,
    with_file: bool = True,
    **overrides: Any,
) -> Paper:
    """Insert a row directly, optionally with a matching file on disk."""
    fields = make_fields(**overrides)
    if with_file:
        stored = await store.put(PDF_BYTES, "paper.pdf", "application/pdf")
        path, size = stored.path, stored.size
    else:
        path, size = store.make_name("paper.pdf"), len(PDF_BYTES)
    async with UnitOfWork(engine) as uow:
        paper = Paper(
            title=fields.title,
            course=fields.course,
            semester=fields.semester,
            academic_year=fields.academic_year,
            subject=fields.subject,
            subject_code=fields.subject_code,
            department=fields.department,
            file_name="paper.pdf",
            file_path=path,
            file_size=size,
        )
        if created_at is not None:
            paper.created_at = created_at
            paper.updated_at = created_at
        uow.session.add(paper)
        await uow.session.flush()
    return paper


# =============================================================================
# CORE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    # hashing is deliberately slow; do it once per run
    return hash_password(ADMIN_PASSWORD)


@pytest.fixture
def auth_settings(admin_password_hash: str) -> AuthSettings:
    return AuthSettings(
        jwt_secret=SecretStr("test-secret"),
        admin_email=ADMIN_EMAIL,
        admin_password_hash=SecretStr(admin_password_hash),
    )


@pytest.fixture
def catalog() -> CatalogSettings:
    return CatalogSettings()


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(id="00000000-0000-4000-8000-000000000001", email=ADMIN_EMAIL, roles=(ADMIN_ROLE,))


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncIterator[DBEngine]:
    # File-backed so concurrent sessions get their own connections
    async with ephemeral_db(f"sqlite+aiosqlite:///{tmp_path / 'papers.db'}") as engine:
        yield engine


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    s = DocumentStore(tmp_path / "uploads")
    s.ensure_root()
    return s


@pytest.fixture
def service(db_engine: DBEngine, store: DocumentStore, catalog: CatalogSettings) -> PaperService:
    return PaperService(db_engine, store, catalog)


@pytest.fixture
def app(db_engine, store, auth_settings, catalog):
    return create_app(
        AppSettings(name="Paper Vault (test)", version="0.0.0"),
        ApiConfig(cors_origins=["http://testserver"]),
        db_engine=db_engine,
        store=store,
        auth_settings=auth_settings,
        catalog_settings=catalog,
    )


@pytest_asyncio.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


@pytest.fixture
def admin_headers(admin_actor: Actor, auth_settings: AuthSettings) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(admin_actor, auth_settings)}"}
