"""
Site Schemas
Site settings, dashboard statistics and the contact form.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .common import Url


class SiteSettingsUpdate(BaseModel):
    """Every field is optional; blanks clear the stored value."""

    address: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=100)
    facebook_url: Optional[Url] = None
    twitter_url: Optional[Url] = None
    linkedin_url: Optional[Url] = None
    instagram_url: Optional[Url] = None
    youtube_url: Optional[Url] = None
    faq_q1: Optional[str] = None
    faq_a1: Optional[str] = None
    faq_q2: Optional[str] = None
    faq_a2: Optional[str] = None
    faq_q3: Optional[str] = None
    faq_a3: Optional[str] = None
    privacy_policy: Optional[str] = None


class SiteSettingsOut(BaseModel):
    id: int
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    facebook_url: Optional[str] = None
    twitter_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None
    youtube_url: Optional[str] = None
    faq_q1: Optional[str] = None
    faq_a1: Optional[str] = None
    faq_q2: Optional[str] = None
    faq_a2: Optional[str] = None
    faq_q3: Optional[str] = None
    faq_a3: Optional[str] = None
    privacy_policy: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RecentActivity(BaseModel):
    type: str
    action: str
    user: str
    time: str
    created_at: datetime


class AdminStats(BaseModel):
    total_users: int
    active_jobs: int
    revenue_etb: int
    conversion_rate: float
    pending_payments: int
    active_ads: int
    recent_activities: List[RecentActivity]


class PublicStats(BaseModel):
    active_jobs: int
    companies: int
    job_seekers: int
    success_rate: int


class ContactRequest(BaseModel):
    firstName: str = Field(..., min_length=1, max_length=255)
    lastName: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    message: str = Field(..., min_length=10, max_length=5000)
