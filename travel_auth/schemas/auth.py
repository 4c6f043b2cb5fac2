"""
Pydantic models for account request validation.

Fields that the flows report on themselves (missing email, weak password)
stay optional here so the pipelines can answer with their own messages.
"""

from typing import Optional
from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request body for account registration."""
    email: Optional[str] = Field(None, max_length=254)
    password: Optional[str] = Field(None, max_length=128)
    fullName: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    photoUrl: Optional[str] = Field(None, max_length=2048)
    federatedUid: Optional[str] = Field(None, max_length=128)


class LoginRequest(BaseModel):
    """Request body for email/password login."""
    email: Optional[str] = Field(None, max_length=254)
    password: Optional[str] = Field(None, max_length=128)


class RefreshTokenRequest(BaseModel):
    """Request body for refresh-token rotation."""
    refreshToken: Optional[str] = Field(None, max_length=4096)


class UpdateProfileRequest(BaseModel):
    """Request body for updating the caller's own account."""
    fullName: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    photoUrl: Optional[str] = Field(None, max_length=2048)
    password: Optional[str] = Field(None, max_length=128)
