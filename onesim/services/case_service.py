"""
OneSim Backend: Case Service
============================

What:  Cases, case assignments, submitted answers and the teacher view.
How:   Parameterized SQLAlchemy statements. Writes are flushed into the
       request transaction; get_db_session commits or rolls back.
Who:   Called by routes/cases.py.
When:  Case browsing, assignment, answer submission, teacher dashboards.

Structured columns:
    `scenarios` and `questions` are JSON text in the database. Writers
    serialize with json.dumps; readers go through decode_structured():

        stored JSON list          → that list
        stored JSON, not a list   → []
        unparseable / not JSON    → the raw stored string (logged, never fatal)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from onesim.exceptions import NotFoundError, StorageError, ValidationError
from onesim.models.case import Case, CaseAssignment, StudentAnswer
from onesim.models.patient import Patient
from onesim.models.user import User
from onesim.schemas.case import (
    ActivityEvent,
    AssignCaseRequest,
    AssignmentItem,
    CaseItem,
    StructuredList,
    SubmitAnswersRequest,
    TeacherDataRow,
)

logger = logging.getLogger(__name__)


def decode_structured(raw: Optional[str], column: str = "value") -> StructuredList:
    """
    Lenient decode of a stored scenarios/questions value.

    Never raises: a value that does not parse is handed back unchanged.
    """
    if raw is None:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Error parsing %s, returning as raw: %r", column, raw)
        return raw
    return value if isinstance(value, list) else []


def encode_structured(value: Any) -> str:
    """Serialize for storage. Strings are assumed to already be JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, dict)) and not value)


class CaseService:
    """
    Business logic for cases and everything hanging off them.

    Responsibilities:
        - list_cases(): all case templates, structured fields decoded
        - validate_assignment() / assign_case(): persist one row per student
          and produce the Activity Event to broadcast
        - list_student_assignments(): one student's assignments
        - submit_answers(): atomic batch of answers
        - teacher_data(): joined student / assignment / patient view

    Database errors are wrapped in StorageError with the client-facing
    message; driver text only goes to the log.
    """

    async def list_cases(self, db: AsyncSession) -> List[CaseItem]:
        try:
            result = await db.execute(select(Case).order_by(Case.id))
            cases = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching cases: %s", str(e))
            raise StorageError(
                message="Failed to fetch cases.",
                context={"error_type": type(e).__name__},
            )

        return [
            CaseItem(
                id=case.id,
                key=case.key,
                title=case.title,
                scenarios=decode_structured(case.scenarios, "scenarios"),
                questions=decode_structured(case.questions, "questions"),
            )
            for case in cases
        ]

    # ── Assignment ────────────────────────────────────────────────────────

    def validate_assignment(self, payload: AssignCaseRequest) -> None:
        """
        Reject an assignment with any missing or empty field.

        Runs before anything is written or broadcast.
        """
        required = (
            payload.case_key,
            payload.title,
            payload.scenarios,
            payload.questions,
            payload.assigned_students,
        )
        if any(_is_blank(value) for value in required):
            raise ValidationError(
                message=(
                    "Invalid payload. Case ID, title, scenarios, questions, "
                    "and assigned students are required."
                ),
            )

    async def assign_case(self, db: AsyncSession, payload: AssignCaseRequest) -> ActivityEvent:
        """
        Persist the assignment for every student and build its Activity Event.

        The caller commits, then broadcasts the returned event.

        Raises:
            ValidationError: missing field or empty student list.
            StorageError: the inserts failed.
        """
        self.validate_assignment(payload)

        scenarios = encode_structured(payload.scenarios)
        questions = encode_structured(payload.questions)
        try:
            for student_name in payload.assigned_students:
                db.add(
                    CaseAssignment(
                        case_id=payload.case_key,
                        student_name=student_name,
                        title=payload.title,
                        scenarios=scenarios,
                        questions=questions,
                    )
                )
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error saving case assignment: %s", str(e))
            raise StorageError(
                message="Failed to assign case.",
                context={"case_key": payload.case_key, "error_type": type(e).__name__},
            )

        logger.info(
            "Case %s assigned to %d student(s)",
            payload.case_key,
            len(payload.assigned_students),
        )
        return ActivityEvent(
            case_key=payload.case_key,
            title=payload.title,
            assigned_students=list(payload.assigned_students),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def list_student_assignments(
        self,
        db: AsyncSession,
        student_name: str,
    ) -> List[AssignmentItem]:
        """
        Raises:
            ValidationError: blank student name.
            NotFoundError: the student has no assignments.
            StorageError: the query failed.
        """
        if not student_name or not student_name.strip():
            raise ValidationError(message="Student name is required.")

        try:
            result = await db.execute(
                select(CaseAssignment)
                .where(CaseAssignment.student_name == student_name)
                .order_by(CaseAssignment.id)
            )
            rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching assignments: %s", str(e))
            raise StorageError(
                message="Failed to fetch assignments.",
                context={"error_type": type(e).__name__},
            )

        if not rows:
            raise NotFoundError(message="No assignments found for this student.")

        return [
            AssignmentItem(
                case_id=row.case_id,
                title=row.title,
                scenarios=decode_structured(row.scenarios, "scenarios"),
                questions=decode_structured(row.questions, "questions"),
                assigned_at=row.assigned_at,
            )
            for row in rows
        ]

    # ── Answers ───────────────────────────────────────────────────────────

    async def submit_answers(self, db: AsyncSession, payload: SubmitAnswersRequest) -> int:
        """
        Store one row per question/answer pair, all or nothing.

        Every row is flushed in the request transaction; a failure on any
        of them rolls the whole submission back.

        Returns:
            Number of answers stored.
        """
        if _is_blank(payload.student_name) or _is_blank(payload.case_id) or _is_blank(payload.answers):
            raise ValidationError(message="Invalid payload. All fields are required.")

        try:
            for question_id, answer in payload.answers.items():
                db.add(
                    StudentAnswer(
                        student_name=payload.student_name,
                        case_id=payload.case_id,
                        question_id=question_id,
                        answer=answer if isinstance(answer, str) or answer is None else json.dumps(answer),
                    )
                )
            await db.flush()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Error saving answers: %s", str(e))
            raise StorageError(
                message="Failed to save answers. Please try again.",
                context={"case_id": payload.case_id, "error_type": type(e).__name__},
            )

        logger.info(
            "Stored %d answer(s) for case %s",
            len(payload.answers),
            payload.case_id,
        )
        return len(payload.answers)

    # ── Teacher view ──────────────────────────────────────────────────────

    async def teacher_data(
        self,
        db: AsyncSession,
        student_name: Optional[str] = None,
        case_id: Optional[str] = None,
    ) -> List[TeacherDataRow]:
        """
        Students joined to their assignments and to the patients of each case.

        Join plan:
            users u
              JOIN case_assignments ca ON u.name = ca.student_name
              JOIN patients p          ON p.caseId = ca.case_id
            [WHERE u.name LIKE %:student_name%] [AND ca.case_id = :case_id]
            ORDER BY ca.id, p.id
        """
        query = (
            select(
                User.name.label("student_name"),
                User.email.label("student_email"),
                CaseAssignment.title.label("case_title"),
                CaseAssignment.scenarios.label("case_scenarios"),
                CaseAssignment.questions.label("case_questions"),
                Patient.name.label("patient_name"),
                Patient.age.label("patient_age"),
                Patient.gender.label("patient_gender"),
                Patient.contact.label("patient_contact"),
                Patient.medical_history.label("patient_medical_history"),
                Patient.allergies.label("patient_allergies"),
                Patient.blood_group.label("patient_blood_group"),
            )
            .join(CaseAssignment, User.name == CaseAssignment.student_name)
            .join(Patient, Patient.case_id == CaseAssignment.case_id)
        )
        if student_name:
            query = query.where(User.name.like(f"%{student_name}%"))
        if case_id:
            query = query.where(CaseAssignment.case_id == case_id)
        query = query.order_by(CaseAssignment.id, Patient.id)

        try:
            result = await db.execute(query)
            rows = result.mappings().all()
        except SQLAlchemyError as e:
            logger.error("Error fetching case details: %s", str(e))
            raise StorageError(
                message="Failed to fetch case details.",
                context={"error_type": type(e).__name__},
            )

        return [
            TeacherDataRow(
                **{
                    **row,
                    "case_scenarios": decode_structured(row["case_scenarios"], "scenarios"),
                    "case_questions": decode_structured(row["case_questions"], "questions"),
                }
            )
            for row in rows
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
case_service = CaseService()
