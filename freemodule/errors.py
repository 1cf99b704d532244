"""
freemodule/errors.py
Centralized error taxonomy

Every failure that reaches a client is rendered with one envelope:

{
    "error": {
        "code": "MACHINE_READABLE_CODE",
        "message": "Human-readable description",
        "details": [...]            (optional)
    }
}

HTTP STATUS CODE DISCIPLINE:
- 400: Invalid input, unknown references, rejected uploads
- 401: Authentication missing, invalid or expired
- 403: Access forbidden
- 404: Resource does not exist, or exists but is not owned by the caller
       on a mutation path
- 409: Uniqueness conflicts
- 429: Rate limit exceeded
- 500: Never caused by user input
- 503: Database pool exhausted, retry later
"""

import logging
import uuid
from typing import Any, List, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION = "VALIDATION"
    NO_FIELDS = "NO_FIELDS"

    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"

    EMAIL_CONFLICT = "EMAIL_CONFLICT"
    UNIQUE_CONSTRAINT = "UNIQUE_CONSTRAINT"
    FOREIGN_KEY = "FOREIGN_KEY"

    UPLOAD_FAILED = "UPLOAD_FAILED"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    TOO_LARGE = "TOO_LARGE"

    RATE_LIMITED = "RATE_LIMITED"

    SERVER_ERROR = "SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


def error_body(code: str, message: str, details: Optional[List[Any]] = None) -> dict:
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return {"error": body}


class APIError(Exception):
    """Base API exception with consistent structure"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = ErrorCode.SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[List[Any]] = None,
        status_code: Optional[int] = None,
        headers: Optional[dict] = None,
    ):
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        self.details = details
        self.headers = headers
        super().__init__(message)

    def to_dict(self) -> dict:
        return error_body(self.code, self.message, self.details)

    def to_response(self) -> JSONResponse:
        """Convert to FastAPI JSONResponse"""
        return JSONResponse(
            status_code=self.status_code,
            content=self.to_dict(),
            headers=self.headers,
        )


class ValidationError(APIError):
    """400 Bad Request - Invalid input"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.VALIDATION


class NoFieldsError(ValidationError):
    code = ErrorCode.NO_FIELDS

    def __init__(self, message: str = "No fields to update"):
        super().__init__(message)


class UnauthorizedError(APIError):
    """401 Unauthorized - Authentication required"""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.UNAUTHENTICATED

    def __init__(self, message: str = "Authentication required", code: Optional[str] = None):
        super().__init__(message, code=code, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self):
        super().__init__("Invalid email or password", code=ErrorCode.INVALID_CREDENTIALS)


class NotFoundError(APIError):
    """404 Not Found - missing, or not owned by the caller on a mutation"""
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(message)


class ConflictError(APIError):
    """409 Conflict - uniqueness violated"""
    status_code = status.HTTP_409_CONFLICT
    code = ErrorCode.UNIQUE_CONSTRAINT


class EmailConflictError(ConflictError):
    code = ErrorCode.EMAIL_CONFLICT

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


class ForeignKeyError(APIError):
    """400 - references a row that does not exist"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.FOREIGN_KEY


class UploadError(APIError):
    """400 - uploaded file was rejected"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.UPLOAD_FAILED


class UnsupportedTypeError(UploadError):
    code = ErrorCode.UNSUPPORTED_TYPE


class TooLargeError(UploadError):
    code = ErrorCode.TOO_LARGE


class ServiceUnavailableError(APIError):
    """503 - transient, the caller should retry"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Service temporarily unavailable. Please retry.", retry_after: int = 1):
        super().__init__(message, headers={"Retry-After": str(retry_after)})


class InternalError(APIError):
    """500 Internal Server Error - only for true internal failures"""

    def __init__(self, message: str = "An unexpected error occurred. Please try again later.",
                 log_id: Optional[str] = None):
        details = [{"log_id": log_id}] if log_id else None
        super().__init__(message, details=details)


def new_log_id() -> str:
    return str(uuid.uuid4())[:8]


def is_unique_violation(exc: IntegrityError) -> bool:
    """Classify an IntegrityError raised by PostgreSQL or SQLite."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == "23505"
    message = str(orig)
    return "UNIQUE constraint failed" in message or "violates unique constraint" in message


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == "23503"
    message = str(orig)
    return "FOREIGN KEY constraint failed" in message or "violates foreign key constraint" in message


def translate_integrity_error(
    exc: IntegrityError,
    conflict_message: str = "Resource already exists",
    reference_message: str = "Referenced resource does not exist",
) -> APIError:
    """Map a database constraint failure onto the error taxonomy."""
    if is_unique_violation(exc):
        return ConflictError(conflict_message)
    if is_foreign_key_violation(exc):
        return ForeignKeyError(reference_message)
    log_id = new_log_id()
    logger.error(f"[{log_id}] Unclassified integrity error: {exc.orig}")
    return InternalError(log_id=log_id)
