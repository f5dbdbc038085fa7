"""
OneSim Backend: User Request/Response Schemas
=============================================

What:  API contracts for signup, login and the student listing.
How:   Request fields are all optional at the schema level; UserService
       reports missing ones as ValidationError (400) with the legacy
       messages instead of FastAPI's 422.
"""

from typing import Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class UserProfile(BaseModel):
    """Public view of a user. The password hash is never part of it."""
    id: int
    name: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    message: str = Field(default="Login successful")
    user: UserProfile


class StudentItem(BaseModel):
    """Row of GET /api/students."""
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}
