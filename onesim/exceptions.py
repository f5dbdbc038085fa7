"""
OneSim Backend: Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return JSON error bodies with a human-readable `error` field.
Who:   Raised by services and routes; caught by global handlers.
When:  During request processing, whenever a request cannot be fulfilled.

Exception Hierarchy:
    OneSimError (base)
    ├── ValidationError          → 400 Bad Request
    ├── InvalidCredentialsError  → 401 Unauthorized
    ├── UserNotFoundError        → 404 Not Found (legacy login mode only)
    ├── NotFoundError            → 404 Not Found
    ├── DuplicateUserError       → 400 Bad Request
    ├── MissingFileError         → 400 Bad Request
    ├── RelayError               → 500 Internal Server Error
    ├── FileStorageError         → 500 Internal Server Error
    └── StorageError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class OneSimError(Exception):
    """
    Base exception for all OneSim application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(OneSimError):
    """
    Raised when client input is missing or malformed.

    When:    Empty required fields, empty assignment list, empty answer set.
    HTTP:    400 Bad Request
    """

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidCredentialsError(OneSimError):
    """Login failed: wrong password, or unknown user when disclosure is off."""

    status_code = 401
    code = "invalid_credentials"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid email or password.", context=context)


class UserNotFoundError(OneSimError):
    """No account for (email, role). Only raised with LOGIN_REVEAL_UNKNOWN_USER."""

    status_code = 404
    code = "user_not_found"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="User not found.", context=context)


class NotFoundError(OneSimError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/student-assignments/{name} for a student with no rows.
    HTTP:    404 Not Found
    """

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        message: str = "The requested resource was not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateUserError(OneSimError):
    """Signup with an email that already has an account."""

    status_code = 400
    code = "duplicate_user"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="User already exists with this email.", context=context)


class MissingFileError(OneSimError):
    """Upload endpoint called without a `file` part."""

    status_code = 400
    code = "missing_file"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="No file uploaded", context=context)


class RelayError(OneSimError):
    """
    Raised when the external comparison service cannot be used.

    What:    Transport error, timeout, or non-2xx response from the service.
    HTTP:    500 Internal Server Error

    The message is the original error text; `details` carries the
    service's own error payload when it sent one, and is returned to the
    client alongside the message.
    """

    status_code = 500
    code = "relay_error"

    def __init__(
        self,
        message: str = "Comparison service request failed",
        details: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.details = details if details is not None else {}


class FileStorageError(OneSimError):
    """
    Raised when the upload staging directory cannot be written.

    When:    Disk full, permission denied, directory not writable.
    HTTP:    500 Internal Server Error
    """

    status_code = 500
    code = "file_storage_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(OneSimError):
    """
    Raised when database operations fail.

    The message returned to the client is always generic. Driver error
    text is logged server-side only.
    """

    status_code = 500
    code = "storage_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
