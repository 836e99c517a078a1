from __future__ import annotations

import pytest
from sqlalchemy import select

from paper_vault.papers.filters import PaperFilter, compose_filter
from paper_vault.papers.models import Paper
from paper_vault.papers.pagination import PageRequest
from paper_vault.papers.repository import PaperRepository

from conftest import insert_paper


def test_compose_filter_drops_blank_and_all_values():
    flt = compose_filter({"course": "All", "semester": "  ", "academicYear": "", "subject": None})
    assert flt == PaperFilter()
    assert flt.criteria() == []


def test_compose_filter_strips_and_accepts_both_key_styles():
    assert compose_filter({"academicYear": " 2023-24 "}).academic_year == "2023-24"
    assert compose_filter({"academic_year": "2022-23"}).academic_year == "2022-23"
    # camelCase wins when both are present
    assert compose_filter({"academicYear": "2024-25", "academic_year": "2020-21"}).academic_year == "2024-25"


def test_compose_filter_ignores_unknown_keys_and_never_raises():
    assert compose_filter({"page": "2", "limit": "x", "course": 5}) == PaperFilter(course="5")
    assert compose_filter(None) == PaperFilter()


def test_apply_leaves_statement_untouched_when_empty():
    stmt = select(Paper)
    assert PaperFilter().apply(stmt) is stmt


@pytest.mark.asyncio
async def test_subject_matches_substring_ignoring_case(db_engine, store):
    await insert_paper(db_engine, store, subject="Organic Chemistry")
    await insert_paper(db_engine, store, subject="Physical chemistry")
    await insert_paper(db_engine, store, subject="Mathematics")

    async with db_engine.session() as session:
        repo = PaperRepository(session)
        flt = compose_filter({"subject": "CHEM"})
        items = await repo.list_papers(flt, PageRequest(limit=10))
        assert sorted(p.subject for p in items) == ["Organic Chemistry", "Physical chemistry"]
        assert await repo.count_papers(flt) == 2


@pytest.mark.asyncio
async def test_like_wildcards_in_subject_match_literally(db_engine, store):
    await insert_paper(db_engine, store, subject="Stats 100% review")
    await insert_paper(db_engine, store, subject="Stats 1000 review")

    async with db_engine.session() as session:
        repo = PaperRepository(session)
        items = await repo.list_papers(compose_filter({"subject": "100%"}), PageRequest(limit=10))
        assert [p.subject for p in items] == ["Stats 100% review"]
