"""
Authentication request/response schemas.
Pydantic models for signup, login, profile updates and the user resource.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import Password, Url
from ...db.enums import SubscriptionTier, UserRole


class SignupRequest(BaseModel):
    """Request schema for user registration."""

    full_name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    phone: Optional[str] = Field(None, max_length=20, description="Phone number")
    password: Password = Field(..., description="User password (8 characters, at most 72 bytes)")
    role: Literal["SEEKER", "EMPLOYER", "LEARNER"] = Field(
        default="SEEKER", description="Self-service roles only; admins are created by admins"
    )
    company_name: Optional[str] = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ProfileUpdateRequest(BaseModel):
    """Request schema for updating the caller's profile."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    company_name: Optional[str] = Field(None, max_length=255)
    website_url: Optional[Url] = None
    password: Optional[Password] = Field(None, description="New password (8 characters, at most 72 bytes)")


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class UserResponse(BaseModel):
    """Safe user response schema (no password or sensitive data)."""

    id: UUID = Field(..., description="User unique identifier")
    full_name: str
    email: str = Field(..., description="User email address")
    phone: Optional[str] = None
    role: UserRole
    subscription_tier: SubscriptionTier
    credits: int = 0
    company_name: Optional[str] = None
    website_url: Optional[str] = None
    created_at: datetime = Field(..., description="Account creation timestamp")

    model_config = {"from_attributes": True}  # Allow ORM model conversion


class AuthResponse(BaseModel):
    """Signup/login response: user plus bearer token."""

    message: str
    user: UserResponse
    token: str = Field(..., description="Bearer access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")


class UserEnvelope(BaseModel):
    user: UserResponse


class ProfileResponse(BaseModel):
    message: str
    user: UserResponse
