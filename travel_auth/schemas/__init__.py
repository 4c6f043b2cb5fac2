"""
Request schemas for the accounts API.
"""

from travel_auth.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    UpdateProfileRequest,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "UpdateProfileRequest",
]
