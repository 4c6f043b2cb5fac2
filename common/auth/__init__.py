"""
Authentication module - local JWT issuer and pluggable federated verifiers.
"""

from common.auth.base import FederatedIdentity, IdentityVerifier
from common.auth.jwt_auth import JWTAuth
from common.auth.firebase_auth import FirebaseAuth
from common.auth.dependencies import (
    create_auth_dependency,
    create_bearer_token_dependency,
    extract_bearer_token,
)
from common.auth.exceptions import (
    TokenError,
    InvalidTokenError,
    TokenExpiredError,
    InvalidCredentialsError,
    NoPasswordSetError,
)

__all__ = [
    "FederatedIdentity",
    "IdentityVerifier",
    "JWTAuth",
    "FirebaseAuth",
    "create_auth_dependency",
    "create_bearer_token_dependency",
    "extract_bearer_token",
    "TokenError",
    "InvalidTokenError",
    "TokenExpiredError",
    "InvalidCredentialsError",
    "NoPasswordSetError",
]
