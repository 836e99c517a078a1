from __future__ import annotations

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from paper_vault.db.base import Base, StringIDMixin, TimestampMixin


class User(StringIDMixin, TimestampMixin, Base):
    """An actor that can upload papers. Only the admin signs in today."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(120), default=None)
    last_name: Mapped[Optional[str]] = mapped_column(String(120), default=None)


class Paper(StringIDMixin, TimestampMixin, Base):
    """One catalogued exam paper and the location of its PDF.

    ``file_path`` is relative to the storage root and must always point at
    an existing file while the row exists.
    """

    __tablename__ = "question_papers"
    __table_args__ = (
        CheckConstraint("download_count >= 0", name="ck_question_papers_download_count"),
        CheckConstraint("file_size >= 0", name="ck_question_papers_file_size"),
        Index("ix_question_papers_created_at", "created_at"),
        Index("ix_question_papers_course_semester_year", "course", "semester", "academic_year"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    course: Mapped[str] = mapped_column(String(32), nullable=False)
    semester: Mapped[str] = mapped_column(String(8), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(16), nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    subject_code: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    department: Mapped[str] = mapped_column(Text, nullable=False)

    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)

    download_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    uploaded_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), default=None
    )

    def __repr__(self) -> str:
        return f"<Paper id={self.id} course={self.course} subject={self.subject!r}>"
