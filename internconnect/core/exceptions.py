"""Custom exceptions for the application.

Stores return these errors to their callers instead of raising them, and keep
the most recent one as their ``error`` attribute. Routers turn them into HTTP
responses with :func:`http_exception_for`.
"""

from typing import Any

from fastapi import HTTPException, status

ROW_NOT_FOUND_CODE = "PGRST116"


class InternConnectError(Exception):
    """Base exception for application errors."""

    code: str = "error"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


class BackendError(InternConnectError):
    """Raised when the hosted backend rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        status_code: int | None = None,
    ):
        self.details = details
        self.hint = hint
        self.status_code = status_code
        super().__init__(message, code or (str(status_code) if status_code else None))

    @property
    def is_row_not_found(self) -> bool:
        return self.code == ROW_NOT_FOUND_CODE

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({"details": self.details, "hint": self.hint})
        return data


class AuthorizationError(InternConnectError):
    """Raised when the actor lacks the role an action requires."""

    code = "401"

    def __init__(self, detail: str = "Unauthorized"):
        self.detail = detail
        super().__init__(detail)


class NotFoundError(InternConnectError):
    """Raised when a row the caller expects is missing."""

    code = "404"


class ConflictError(InternConnectError):
    """Raised when a write would clash with existing state."""

    code = "409"


class DuplicateApplicationError(ConflictError):
    """Raised when a student applies twice to the same internship."""

    def __init__(self, internship_id: str, student_id: str):
        self.internship_id = internship_id
        self.student_id = student_id
        super().__init__("Already applied")


class InvalidStatusTransitionError(InternConnectError):
    """Raised when an application status change skips the allowed order."""

    code = "422"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move application from '{current}' to '{target}'")


class ValidationError(InternConnectError):
    """Raised when user input fails local validation."""

    code = "400"


def unauthorized_exception(detail: str = "Not authenticated") -> HTTPException:
    """Return a 401 Unauthorized exception."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_exception(detail: str = "Not enough permissions") -> HTTPException:
    """Return a 403 Forbidden exception."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def not_found_exception(detail: str = "Resource not found") -> HTTPException:
    """Return a 404 Not Found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def http_exception_for(error: InternConnectError) -> HTTPException:
    """Map a store error onto the HTTP exception a router should raise."""
    if isinstance(error, AuthorizationError):
        return forbidden_exception(error.message)
    if isinstance(error, NotFoundError):
        return not_found_exception(error.message)
    if isinstance(error, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, InvalidStatusTransitionError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error.message
        )
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, BackendError):
        if error.status_code == status.HTTP_401_UNAUTHORIZED:
            return unauthorized_exception(error.message)
        if error.is_row_not_found:
            return not_found_exception(error.message)
        if error.status_code and 400 <= error.status_code < 500:
            return HTTPException(status_code=error.status_code, detail=error.message)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
