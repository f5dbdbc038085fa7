"""
OneSim Backend: Patient SQLAlchemy Model
========================================

What:  ORM model for the `patients` table.
How:   The existing table uses camelCase column names (caseId, medicalHistory,
       spO2, ...). Attributes are snake_case and mapped onto those columns
       explicitly.
Who:   Used by PatientService and by the teacher aggregate view.
When:  Created once per registration; immutable afterwards.
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from onesim.database import Base


class Patient(Base):
    """
    A simulated patient record attached to a case.

    Required identity fields: case_id, registration_id, name, age, gender,
    contact. Every clinical and vital field is optional and stored as NULL
    when the client omits it.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ── Identity (required) ───────────────────────────────────────────────
    case_id: Mapped[str] = mapped_column("caseId", String(100), nullable=False, index=True)
    registration_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    contact: Mapped[str] = mapped_column(String(50), nullable=False)

    # ── Clinical (optional) ───────────────────────────────────────────────
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    medical_history: Mapped[str | None] = mapped_column("medicalHistory", Text, nullable=True)
    allergies: Mapped[str | None] = mapped_column(Text, nullable=True)
    blood_group: Mapped[str | None] = mapped_column("bloodGroup", String(10), nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(
        "emergencyContact", String(255), nullable=True
    )
    date_of_admission: Mapped[str | None] = mapped_column(
        "dateOfAdmission", String(50), nullable=True
    )

    # ── Vitals (optional) ─────────────────────────────────────────────────
    height: Mapped[str | None] = mapped_column(String(20), nullable=True)
    weight: Mapped[str | None] = mapped_column(String(20), nullable=True)
    temperature: Mapped[str | None] = mapped_column(String(20), nullable=True)
    blood_pressure: Mapped[str | None] = mapped_column("bloodPressure", String(20), nullable=True)
    pulse_rate: Mapped[str | None] = mapped_column("pulseRate", String(20), nullable=True)
    respiratory_rate: Mapped[str | None] = mapped_column(
        "respiratoryRate", String(20), nullable=True
    )
    sp_o2: Mapped[str | None] = mapped_column("spO2", String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, case_id='{self.case_id}', name='{self.name}')>"
