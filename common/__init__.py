"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection (Motor)
- auth: JWT issuer, federated identity verifiers (Firebase), FastAPI dependencies
- utils: Standard responses, exceptions, password hashing, rate limiting
- config: Base settings class
"""

from common.database import MongoDB, StoreUnavailableError
from common.auth import (
    IdentityVerifier,
    FederatedIdentity,
    JWTAuth,
    FirebaseAuth,
    create_auth_dependency,
)
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
    PasswordHasher,
    validate_password,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    "StoreUnavailableError",
    # Auth
    "IdentityVerifier",
    "FederatedIdentity",
    "JWTAuth",
    "FirebaseAuth",
    "create_auth_dependency",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "PasswordHasher",
    "validate_password",
    # Config
    "BaseAppSettings",
]
