"""
OneSim Backend: Patient Service
===============================

What:  Patient registration and filtered listing.
How:   One canonical registration operation serves both POST /api/patients
       and the legacy POST /register; the body is always read by field name.
Who:   Called by routes/patients.py.

Query plan (listing):
    SELECT * FROM patients
    [WHERE name LIKE %:student_name%] [AND caseId = :case_id]
    ORDER BY id
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from onesim.exceptions import StorageError, ValidationError
from onesim.models.patient import Patient
from onesim.schemas.patient import (
    REQUIRED_PATIENT_FIELDS,
    PatientCreate,
    PatientFields,
    PatientResponse,
)

logger = logging.getLogger(__name__)


class PatientService:
    """Patients are created once and never modified."""

    async def register_patient(self, db: AsyncSession, payload: PatientCreate) -> int:
        """
        Insert one patient; returns the new id.

        Optional fields the client omitted are stored as NULL.

        Raises:
            ValidationError: a required identity field is absent or empty.
            StorageError: the insert failed.
        """
        missing = [
            field
            for field in REQUIRED_PATIENT_FIELDS
            if getattr(payload, field) is None or getattr(payload, field) == ""
        ]
        if missing:
            raise ValidationError(
                message="Required fields are missing.",
                context={"missing": missing},
            )

        patient = Patient(**payload.model_dump())
        try:
            db.add(patient)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error inserting patient: %s", str(e))
            raise StorageError(
                message="Failed to register patient. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Patient registered: id=%s case=%s", patient.id, patient.case_id)
        return patient.id

    async def list_patients(
        self,
        db: AsyncSession,
        student_name: Optional[str] = None,
        case_id: Optional[str] = None,
    ) -> List[PatientResponse]:
        query = select(Patient)
        if student_name:
            query = query.where(Patient.name.like(f"%{student_name}%"))
        if case_id:
            query = query.where(Patient.case_id == case_id)
        query = query.order_by(Patient.id)

        try:
            result = await db.execute(query)
            patients = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching patients: %s", str(e))
            raise StorageError(
                message="Failed to fetch patients.",
                context={"error_type": type(e).__name__},
            )

        return [
            PatientResponse(
                id=patient.id,
                **{field: getattr(patient, field) for field in PatientFields.model_fields},
            )
            for patient in patients
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
patient_service = PatientService()
