"""
Newsletter Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import UserSummary
from ...db.enums import SubscriberStatus


class SubscribeRequest(BaseModel):
    email: EmailStr = Field(..., max_length=255)
    name: Optional[str] = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UnsubscribeRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SubscriberOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    status: SubscriberStatus
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NewsletterCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)


class NewsletterSendRequest(BaseModel):
    """Recipients default to every subscribed address."""

    subscriber_ids: Optional[List[int]] = None


class NewsletterOut(BaseModel):
    id: int
    subject: str
    content: str
    created_by: Optional[UserSummary] = None
    sent_at: Optional[datetime] = None
    recipient_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_newsletter(cls, newsletter) -> "NewsletterOut":
        return cls(
            id=newsletter.id,
            subject=newsletter.subject,
            content=newsletter.content,
            created_by=UserSummary.from_user(newsletter.creator),
            sent_at=newsletter.sent_at,
            recipient_count=newsletter.recipient_count,
            created_at=newsletter.created_at,
            updated_at=newsletter.updated_at,
        )


class SendResult(BaseModel):
    recipient_count: int
    failed_count: int
