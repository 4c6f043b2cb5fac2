"""
HTTP exceptions carrying machine-readable error codes.

Every exception renders as the standard error envelope through the
handlers registered in api.py:

    {"success": false, "error": {"message": "...", "code": "..."}}

Subclasses only pin the status and the defaults; message and code can be
overridden per raise.

Example:
    from common.utils import ConflictException

    if await store.find_by_email(email):
        raise ConflictException("Email already registered", code="EMAIL_ALREADY_REGISTERED")
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception with error code support.

    The detail is always a dict so the error handler can build the envelope
    without inspecting the exception type.
    """

    status: int = 500
    default_message: str = "Internal server error"
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        detail: Dict[str, Any] = {
            "message": message or self.default_message,
            "code": code or self.default_code,
        }
        if details is not None:
            detail["details"] = details

        super().__init__(status_code=self.status, detail=detail, headers=headers)

    @property
    def message(self) -> str:
        return self.detail["message"]

    @property
    def code(self) -> str:
        return self.detail["code"]


class BadRequestException(APIException):
    """400 - missing or malformed input."""

    status = 400
    default_message = "Bad request"
    default_code = "BAD_REQUEST"


class ValidationException(APIException):
    """400 - input present but rejected by a rule."""

    status = 400
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        errors: Optional[list] = None,
    ):
        if errors:
            details = {"errors": errors, **(details or {})}
        super().__init__(message, code, details)


class UnauthorizedException(APIException):
    """401 - missing, invalid or expired credentials or token."""

    status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenException(APIException):
    """403 - authenticated but not entitled."""

    status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    """404."""

    status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictException(APIException):
    """409 - resource already exists."""

    status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class _RetryableException(APIException):
    """Adds an optional Retry-After header and mirrors it in the details."""

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        if retry_after:
            super().__init__(
                message,
                code,
                details={"retryAfter": retry_after},
                headers={"Retry-After": str(retry_after)},
            )
        else:
            super().__init__(message, code)


class RateLimitException(_RetryableException):
    """429."""

    status = 429
    default_message = "Rate limit exceeded"
    default_code = "RATE_LIMIT_EXCEEDED"


class InternalServerException(APIException):
    """500."""


class ServiceUnavailableException(_RetryableException):
    """503 - an optional collaborator is not configured."""

    status = 503
    default_message = "Service unavailable"
    default_code = "SERVICE_UNAVAILABLE"
