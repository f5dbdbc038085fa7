"""
OneSim Backend: Patient Schemas
===============================

What:  Request and response contracts for patient registration and listing.
How:   Wire names match the `patients` table columns (caseId, medicalHistory,
       spO2, ...); attributes are snake_case with explicit aliases.
       Numbers sent for text fields (e.g. contact, vitals) are coerced to str.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_PATIENT_FIELDS = ("case_id", "registration_id", "name", "age", "gender", "contact")


class PatientFields(BaseModel):
    """Every patient column except the primary key."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    case_id: Optional[str] = Field(default=None, alias="caseId")
    registration_id: Optional[str] = Field(default=None, alias="registration_id")
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    medical_history: Optional[str] = Field(default=None, alias="medicalHistory")
    allergies: Optional[str] = None
    blood_group: Optional[str] = Field(default=None, alias="bloodGroup")
    emergency_contact: Optional[str] = Field(default=None, alias="emergencyContact")
    date_of_admission: Optional[str] = Field(default=None, alias="dateOfAdmission")
    height: Optional[str] = None
    weight: Optional[str] = None
    temperature: Optional[str] = None
    blood_pressure: Optional[str] = Field(default=None, alias="bloodPressure")
    pulse_rate: Optional[str] = Field(default=None, alias="pulseRate")
    respiratory_rate: Optional[str] = Field(default=None, alias="respiratoryRate")
    sp_o2: Optional[str] = Field(default=None, alias="spO2")


class PatientCreate(PatientFields):
    """Body of POST /api/patients and POST /register."""


class PatientResponse(PatientFields):
    """Row of GET /api/patients."""
    id: int


class PatientCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="Patient registered successfully!")
    inserted_id: int = Field(alias="insertedId")
