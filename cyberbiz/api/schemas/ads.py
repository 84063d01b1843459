"""
Advertising Schemas
Banner ad slots and native (in-content) ads.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import Url, UtcDatetime
from ...db.enums import AdPosition, NativeAdPosition, NativeAdType


class AdSlotCreate(BaseModel):
    """`image_url` may be replaced by an uploaded `image` file."""

    position: AdPosition
    image_url: Optional[Url] = None
    target_url: Url
    is_active: bool = True


class AdSlotUpdate(BaseModel):
    position: Optional[AdPosition] = None
    image_url: Optional[Url] = None
    target_url: Optional[Url] = None
    is_active: Optional[bool] = None


class AdSlotOut(BaseModel):
    id: int
    position: AdPosition
    image_url: str
    target_url: str
    is_active: bool
    impressions: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PublicAdSlotOut(BaseModel):
    id: int
    position: AdPosition
    image_url: str
    target_url: str
    impressions: int

    model_config = {"from_attributes": True}


class NativeAdCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[Url] = None
    link_url: Url
    position: NativeAdPosition
    type: NativeAdType
    advertiser_name: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    priority: Optional[int] = Field(None, ge=0, le=100)


class NativeAdUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[Url] = None
    link_url: Optional[Url] = None
    position: Optional[NativeAdPosition] = None
    type: Optional[NativeAdType] = None
    advertiser_name: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    priority: Optional[int] = Field(None, ge=0, le=100)


class NativeAdOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    link_url: str
    position: NativeAdPosition
    type: NativeAdType
    advertiser_name: Optional[str] = None
    is_active: bool
    impressions: int
    clicks: int
    ctr: float
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    priority: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
