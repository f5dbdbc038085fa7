"""
OneSim Backend: Case, Assignment and Answer Models
==================================================

What:  ORM models for `cases`, `case_assignments` and `student_answers`.
How:   `scenarios` and `questions` are stored as serialized JSON text. They
       are decoded leniently on the way out (see services/case_service.py),
       so a malformed stored value never fails a request.
Who:   Used by CaseService.

Relationships (by value, not foreign keys, as in the existing schema):
    case_assignments.case_id       ← the assigned case key
    case_assignments.student_name  ← users.name
    student_answers.case_id        ← the answered case key
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from onesim.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Case(Base):
    """A clinical case template. Read-only in this service."""

    __tablename__ = "cases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    scenarios: Mapped[str | None] = mapped_column(Text, nullable=True)
    questions: Mapped[str | None] = mapped_column(Text, nullable=True)


class CaseAssignment(Base):
    """
    One case assigned to one student.

    Lifecycle:
        Created by POST /api/assign-case (one row per assigned student),
        before the assignment event is broadcast. Never updated.
    """

    __tablename__ = "case_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    case_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    scenarios: Mapped[str | None] = mapped_column(Text, nullable=True)
    questions: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class StudentAnswer(Base):
    """One submitted answer for one (student, case, question). Append-only."""

    __tablename__ = "student_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    case_id: Mapped[str] = mapped_column(String(100), nullable=False)
    question_id: Mapped[str] = mapped_column(String(100), nullable=False)
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
