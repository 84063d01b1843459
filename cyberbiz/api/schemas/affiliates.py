"""
Affiliate Schemas
Programs, referral links, conversions and the dashboard payload.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import Url, UserSummary
from ...db.enums import CommissionType, ConversionStatus


class ProgramCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: CommissionType
    commission_rate: Decimal = Field(..., ge=0)
    impression_rate: Optional[Decimal] = Field(None, ge=0)
    impression_unit: Optional[int] = Field(None, ge=1)
    click_rate: Optional[Decimal] = Field(None, ge=0)
    click_unit: Optional[int] = Field(None, ge=1)
    target_url: Url
    is_active: Optional[bool] = None
    cookie_duration: Optional[int] = Field(None, ge=1, le=365)


class ProgramUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[CommissionType] = None
    commission_rate: Optional[Decimal] = Field(None, ge=0)
    impression_rate: Optional[Decimal] = Field(None, ge=0)
    impression_unit: Optional[int] = Field(None, ge=1)
    click_rate: Optional[Decimal] = Field(None, ge=0)
    click_unit: Optional[int] = Field(None, ge=1)
    target_url: Optional[Url] = None
    is_active: Optional[bool] = None
    cookie_duration: Optional[int] = Field(None, ge=1, le=365)


class ProgramOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    type: CommissionType
    commission_rate: Decimal
    impression_rate: Optional[Decimal] = None
    impression_unit: Optional[int] = None
    click_rate: Optional[Decimal] = None
    click_unit: Optional[int] = None
    target_url: str
    is_active: bool
    cookie_duration: int
    links_count: Optional[int] = None
    active_links_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LinkOut(BaseModel):
    id: int
    program_id: int
    affiliate_id: UUID
    code: str
    url: Optional[str] = None
    is_active: bool
    program: Optional[ProgramOut] = None
    affiliate: Optional[UserSummary] = None
    clicks_count: Optional[int] = None
    impressions_count: Optional[int] = None
    conversions_count: Optional[int] = None
    click_earnings: Optional[float] = None
    impression_earnings: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_link(cls, link, with_affiliate: bool = False, **counts) -> "LinkOut":
        return cls(
            id=link.id,
            program_id=link.program_id,
            affiliate_id=link.affiliate_id,
            code=link.code,
            url=link.url,
            is_active=link.is_active,
            program=ProgramOut.model_validate(link.program) if link.program else None,
            affiliate=UserSummary.from_user(link.affiliate) if with_affiliate else None,
            created_at=link.created_at,
            updated_at=link.updated_at,
            **counts,
        )


class ConversionOut(BaseModel):
    id: int
    link_id: int
    click_id: Optional[int] = None
    transaction_id: Optional[str] = None
    amount: Decimal
    commission: Decimal
    status: ConversionStatus
    notes: Optional[str] = None
    converted_at: datetime
    link: Optional[LinkOut] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_conversion(cls, conversion, with_link: bool = False) -> "ConversionOut":
        return cls(
            id=conversion.id,
            link_id=conversion.link_id,
            click_id=conversion.click_id,
            transaction_id=conversion.transaction_id,
            amount=conversion.amount,
            commission=conversion.commission,
            status=conversion.status,
            notes=conversion.notes,
            converted_at=conversion.converted_at,
            link=LinkOut.from_link(conversion.link, with_affiliate=True) if with_link else None,
            created_at=conversion.created_at,
            updated_at=conversion.updated_at,
        )


class ConversionRequest(BaseModel):
    """Conversion reported by a checkout; the code falls back to the tracking cookie."""

    transaction_id: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0)
    affiliate_code: Optional[str] = Field(None, max_length=64)


class ConversionUpdate(BaseModel):
    status: ConversionStatus
    notes: Optional[str] = Field(None, max_length=1000)


class DashboardStats(BaseModel):
    total_links: int
    total_clicks: int
    total_impressions: int
    total_conversions: int
    total_commission: float
    pending_commission: float
    paid_commission: float


class DashboardOut(BaseModel):
    links: List[LinkOut]
    stats: DashboardStats


class TrackClickResponse(BaseModel):
    message: str
    redirect_url: str
    link_id: int
