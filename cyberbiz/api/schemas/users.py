"""
Admin User Schemas
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import Password, Url, UserSummary
from ...db.enums import PasswordResetStatus, SubscriptionTier, UserRole


class AdminUserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[UserRole] = None
    subscription_tier: Optional[SubscriptionTier] = None
    credits: Optional[int] = Field(None, ge=0)
    company_name: Optional[str] = Field(None, max_length=255)
    website_url: Optional[Url] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class AdminPasswordReset(BaseModel):
    password: Password


class PasswordResetRequestOut(BaseModel):
    id: UUID
    user_id: UUID
    email: str
    status: PasswordResetStatus
    user: Optional[UserSummary] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_request(cls, reset_request) -> "PasswordResetRequestOut":
        return cls(
            id=reset_request.id,
            user_id=reset_request.user_id,
            email=reset_request.email,
            status=reset_request.status,
            user=UserSummary.from_user(reset_request.user),
            processed_at=reset_request.processed_at,
            created_at=reset_request.created_at,
        )
