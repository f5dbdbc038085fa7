"""
OneSim Backend: Shared Response Schemas
=======================================

What:  Error, message and health payloads shared by every router.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement used by write endpoints."""
    message: str = Field(description="Human-readable success message")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "Required fields are missing.",
            "code": "validation_error",
            "details": {"missing": ["gender"]},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Liveness plus database reachability and real-time client count."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    connected_clients: int = Field(description="Open real-time connections")
    uptime_seconds: float = Field(description="Seconds since service started")
