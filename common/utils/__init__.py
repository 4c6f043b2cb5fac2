"""
Utilities module - Common helpers for API responses, exceptions, passwords and rate limits.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    APIException,
    BadRequestException,
    ValidationException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    RateLimitException,
    InternalServerException,
    ServiceUnavailableException,
)
from common.utils.password import PasswordHasher, validate_password
from common.utils.rate_limit import (
    SlidingWindowRateLimiter,
    create_rate_limit_dependency,
    get_client_ip,
)

__all__ = [
    "success_response",
    "error_response",
    "APIException",
    "BadRequestException",
    "ValidationException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "RateLimitException",
    "InternalServerException",
    "ServiceUnavailableException",
    "PasswordHasher",
    "validate_password",
    "SlidingWindowRateLimiter",
    "create_rate_limit_dependency",
    "get_client_ip",
]
