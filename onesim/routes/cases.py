"""
OneSim Backend: Case Route Handlers
===================================

What:  Case listing, assignment, student assignments, answer submission,
       and the teacher aggregate view.
How:   Thin handlers over CaseService. POST /api/assign-case is the only one
       with a side channel: after its rows are committed it publishes an
       Activity Event through the NotificationBroadcaster.

Assignment flow:
    validate ──▶ insert one row per student ──▶ commit ──▶ broadcast ──▶ 200
       │
       └── invalid: 400, nothing written, nothing broadcast
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from onesim.database import get_db_session
from onesim.dependencies import get_broadcaster
from onesim.schemas.case import (
    AssignCaseRequest,
    AssignCaseResponse,
    AssignmentItem,
    CaseItem,
    SubmitAnswersRequest,
    TeacherDataRow,
)
from onesim.schemas.common import ErrorResponse, MessageResponse
from onesim.services.broadcaster import NotificationBroadcaster
from onesim.services.case_service import case_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Cases"])


@router.get(
    "/cases",
    response_model=List[CaseItem],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List case templates",
)
async def list_cases(db: AsyncSession = Depends(get_db_session)) -> List[CaseItem]:
    return await case_service.list_cases(db)


@router.post(
    "/assign-case",
    response_model=AssignCaseResponse,
    response_model_by_alias=True,
    responses={
        400: {"description": "Missing field or no students", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Assign a case to students and notify real-time clients",
)
async def assign_case(
    payload: AssignCaseRequest,
    db: AsyncSession = Depends(get_db_session),
    broadcaster: NotificationBroadcaster = Depends(get_broadcaster),
) -> AssignCaseResponse:
    """
    Persist the assignment, then broadcast it.

    The response does not depend on how many clients received the event.
    """
    event = await case_service.assign_case(db, payload)
    # Rows must be durable before any client hears about them
    await db.commit()

    logger.info("Broadcasting new activity: case=%s", event.case_key)
    await broadcaster.broadcast(event)
    return AssignCaseResponse(new_activity=event)


@router.get(
    "/student-assignments/{student_name}",
    response_model=List[AssignmentItem],
    response_model_by_alias=True,
    responses={
        400: {"description": "Blank student name", "model": ErrorResponse},
        404: {"description": "No assignments for this student", "model": ErrorResponse},
    },
    summary="List one student's assignments",
)
async def list_student_assignments(
    student_name: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[AssignmentItem]:
    return await case_service.list_student_assignments(db, student_name)


@router.post(
    "/submit-answers",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing field or empty answer set", "model": ErrorResponse},
        500: {"description": "Answers could not be saved; none were stored", "model": ErrorResponse},
    },
    summary="Submit a student's answers for a case",
)
async def submit_answers(
    payload: SubmitAnswersRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await case_service.submit_answers(db, payload)
    return MessageResponse(message="Answers submitted successfully!")


@router.get(
    "/teacher-data",
    response_model=List[TeacherDataRow],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Students joined with their assignments and case patients",
)
async def teacher_data(
    student_name: Optional[str] = Query(
        default=None,
        alias="studentName",
        description="Substring match on the student's name",
    ),
    case_id: Optional[str] = Query(
        default=None,
        alias="caseId",
        description="Exact case key",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[TeacherDataRow]:
    return await case_service.teacher_data(db, student_name=student_name, case_id=case_id)
