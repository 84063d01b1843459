"""
Service Schemas
Consulting services and the inquiries visitors submit for them.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import Url, UserSummary
from ...db.enums import InquiryStatus


class ServiceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: str = Field(..., min_length=1)
    content: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=255)
    image_url: Optional[Url] = None
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=255)
    image_url: Optional[Url] = None
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class ServiceOut(BaseModel):
    id: int
    title: str
    slug: str
    description: Optional[str] = None
    content: Optional[str] = None
    icon: Optional[str] = None
    image_url: Optional[str] = None
    order: int = 0
    is_active: bool = True
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InquiryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    message: str = Field(..., min_length=10, max_length=5000)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class InquiryLookup(BaseModel):
    """Identifies a visitor's inquiry by email."""

    email: EmailStr = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class InquiryUpdate(BaseModel):
    status: Optional[InquiryStatus] = None
    admin_notes: Optional[str] = Field(None, max_length=5000)
    assigned_to: Optional[UUID] = None


class ServiceSummary(BaseModel):
    id: int
    title: str
    slug: str

    model_config = {"from_attributes": True}


class InquiryOut(BaseModel):
    id: int
    service_id: int
    service: Optional[ServiceSummary] = None
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    message: str
    status: InquiryStatus
    admin_notes: Optional[str] = None
    assigned_to: Optional[UUID] = None
    assignee: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_inquiry(cls, inquiry) -> "InquiryOut":
        return cls(
            id=inquiry.id,
            service_id=inquiry.service_id,
            service=ServiceSummary.model_validate(inquiry.service) if inquiry.service else None,
            name=inquiry.name,
            email=inquiry.email,
            phone=inquiry.phone,
            company=inquiry.company,
            message=inquiry.message,
            status=inquiry.status,
            admin_notes=inquiry.admin_notes,
            assigned_to=inquiry.assigned_to,
            assignee=UserSummary.from_user(inquiry.assignee),
            created_at=inquiry.created_at,
            updated_at=inquiry.updated_at,
        )


class InquiryStatusOut(BaseModel):
    id: int
    status: InquiryStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class InquiryCheckResponse(BaseModel):
    exists: bool
    inquiry: Optional[InquiryStatusOut] = None
