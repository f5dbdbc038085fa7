"""
OneSim Backend: Case, Assignment and Answer Schemas
===================================================

What:  API contracts for case listing, assignment, answers and the teacher view.
How:   Wire names stay as the frontend sends them (caseKey, assignedStudents,
       studentName, ...). Python attributes are snake_case with explicit
       aliases; `populate_by_name` lets services build models by attribute name.

Structured columns:
    `scenarios` / `questions` are typed `List[Any] | str`. A list is the
    normal decoded form; a str is the raw stored value returned when the
    stored JSON could not be parsed.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

StructuredList = Union[List[Any], str]


class CaseItem(BaseModel):
    """Row of GET /api/cases."""
    id: int
    key: str
    title: str
    scenarios: StructuredList
    questions: StructuredList


class AssignCaseRequest(BaseModel):
    """Body of POST /api/assign-case."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    case_key: Optional[str] = Field(default=None, alias="caseKey")
    title: Optional[str] = None
    scenarios: Optional[Any] = None
    questions: Optional[Any] = None
    assigned_students: Optional[List[str]] = Field(default=None, alias="assignedStudents")


class ActivityEvent(BaseModel):
    """
    Message pushed to every open real-time connection on assignment.

    Wire form:
        {"type": "assignment", "caseKey": "C-12", "title": "Chest pain",
         "assignedStudents": ["alice", "bob"], "timestamp": "2026-...Z"}
    """
    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(default="assignment")
    case_key: str = Field(alias="caseKey")
    title: str
    assigned_students: List[str] = Field(alias="assignedStudents", min_length=1)
    timestamp: str


class AssignCaseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="Case assigned successfully!")
    new_activity: ActivityEvent = Field(alias="newActivity")


class AssignmentItem(BaseModel):
    """Row of GET /api/student-assignments/{studentName}."""
    model_config = ConfigDict(populate_by_name=True)

    case_id: str = Field(alias="caseId")
    title: str
    scenarios: StructuredList
    questions: StructuredList
    assigned_at: Optional[datetime] = Field(default=None, alias="assignedAt")


class SubmitAnswersRequest(BaseModel):
    """Body of POST /api/submit-answers: {questionId: answer}."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    student_name: Optional[str] = Field(default=None, alias="studentName")
    case_id: Optional[str] = Field(default=None, alias="caseId")
    answers: Optional[Dict[str, Any]] = None


class TeacherDataRow(BaseModel):
    """One joined student/assignment/patient row of GET /api/teacher-data."""
    student_name: str
    student_email: str
    case_title: str
    case_scenarios: StructuredList
    case_questions: StructuredList
    patient_name: str
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    patient_contact: Optional[str] = None
    patient_medical_history: Optional[str] = None
    patient_allergies: Optional[str] = None
    patient_blood_group: Optional[str] = None
