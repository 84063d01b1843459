"""
Sponsorship Post Schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import Url, UserSummary, UtcDatetime
from ...db.enums import SponsorshipStatus


class SponsorshipCreate(BaseModel):
    """Image fields may be replaced by `featured_image` / `sponsor_logo` uploads."""

    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=1000)
    featured_image_url: Optional[Url] = None
    sponsor_name: str = Field(..., min_length=1, max_length=255)
    sponsor_logo_url: Optional[Url] = None
    sponsor_website: Optional[Url] = None
    sponsor_description: Optional[str] = Field(None, max_length=2000)
    status: SponsorshipStatus
    published_at: Optional[UtcDatetime] = None
    expires_at: Optional[UtcDatetime] = None
    priority: Optional[int] = Field(None, ge=0, le=100)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class SponsorshipUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=1000)
    featured_image_url: Optional[Url] = None
    sponsor_name: Optional[str] = Field(None, min_length=1, max_length=255)
    sponsor_logo_url: Optional[Url] = None
    sponsor_website: Optional[Url] = None
    sponsor_description: Optional[str] = Field(None, max_length=2000)
    status: Optional[SponsorshipStatus] = None
    published_at: Optional[UtcDatetime] = None
    expires_at: Optional[UtcDatetime] = None
    priority: Optional[int] = Field(None, ge=0, le=100)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class SponsorshipOut(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    sponsor_name: str
    sponsor_logo_url: Optional[str] = None
    sponsor_website: Optional[str] = None
    sponsor_description: Optional[str] = None
    status: SponsorshipStatus
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    priority: int = 0
    is_active: bool = False
    creator: Optional[UserSummary] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post) -> "SponsorshipOut":
        return cls(
            id=post.id,
            title=post.title,
            slug=post.slug,
            content=post.content,
            excerpt=post.excerpt,
            featured_image_url=post.featured_image_url,
            sponsor_name=post.sponsor_name,
            sponsor_logo_url=post.sponsor_logo_url,
            sponsor_website=post.sponsor_website,
            sponsor_description=post.sponsor_description,
            status=post.status,
            published_at=post.published_at,
            expires_at=post.expires_at,
            priority=post.priority,
            is_active=post.is_active,
            creator=UserSummary.from_user(post.creator),
            meta_title=post.meta_title,
            meta_description=post.meta_description,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
