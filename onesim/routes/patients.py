"""
OneSim Backend: Patient Route Handlers
======================================

What:  Patient registration and the filtered patient list.
How:   POST /api/patients and the legacy POST /register share one
       registration operation and one validation; only their success
       bodies differ, matching what existing clients expect.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from onesim.database import get_db_session
from onesim.schemas.common import ErrorResponse, MessageResponse
from onesim.schemas.patient import PatientCreate, PatientCreatedResponse, PatientResponse
from onesim.services.patient_service import patient_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Patients"])

_REGISTER_RESPONSES = {
    400: {"description": "Required fields are missing", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "/api/patients",
    status_code=201,
    response_model=PatientCreatedResponse,
    response_model_by_alias=True,
    responses=_REGISTER_RESPONSES,
    summary="Register a patient",
)
async def register_patient(
    payload: PatientCreate,
    db: AsyncSession = Depends(get_db_session),
) -> PatientCreatedResponse:
    inserted_id = await patient_service.register_patient(db, payload)
    return PatientCreatedResponse(inserted_id=inserted_id)


@router.post(
    "/register",
    response_model=MessageResponse,
    responses=_REGISTER_RESPONSES,
    summary="Register a patient (legacy path)",
)
async def register_patient_legacy(
    payload: PatientCreate,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await patient_service.register_patient(db, payload)
    return MessageResponse(message="Patient registered successfully")


@router.get(
    "/api/patients",
    response_model=List[PatientResponse],
    response_model_by_alias=True,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List patients",
)
async def list_patients(
    student_name: Optional[str] = Query(
        default=None,
        alias="studentName",
        description="Substring match on the patient's name",
    ),
    case_id: Optional[str] = Query(default=None, alias="caseId"),
    db: AsyncSession = Depends(get_db_session),
) -> List[PatientResponse]:
    return await patient_service.list_patients(db, student_name=student_name, case_id=case_id)
