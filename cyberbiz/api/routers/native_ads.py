"""
Native ad routes.

Public delivery for a page position (each delivery counts an impression),
click tracking and admin management with stats reset.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...db.enums import NativeAdPosition, NativeAdType
from ...db.models import NativeAd
from ..dependencies import get_db, require_admin
from ..errors import ValidationFailedError
from ..lookups import get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.ads import NativeAdCreate, NativeAdOut, NativeAdUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/native-ads", tags=["Native Ads"])
admin_router = APIRouter(
    prefix="/api/admin/native-ads",
    tags=["Admin: Native Ads"],
    dependencies=[Depends(require_admin)],
)


def _check_date_window(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationFailedError.for_field(
            "end_date", "The end date must be a date after or equal to start date."
        )


@router.get("")
async def list_native_ads(
    position: NativeAdPosition = Query(NativeAdPosition.CONTENT_INLINE),
    limit: int = Query(1, ge=1, le=20),
    db: Session = Depends(get_db),
):
    """Highest priority active ads for a position inside their date window."""
    now = datetime.utcnow()
    ads = (
        db.query(NativeAd)
        .filter(
            NativeAd.is_active.is_(True),
            NativeAd.position == position,
            or_(NativeAd.start_date.is_(None), NativeAd.start_date <= now),
            or_(NativeAd.end_date.is_(None), NativeAd.end_date >= now),
        )
        .order_by(NativeAd.priority.desc(), NativeAd.created_at.desc(), NativeAd.id.desc())
        .limit(limit)
        .all()
    )

    for ad in ads:
        ad.impressions = NativeAd.impressions + 1
    db.commit()

    return {"data": [NativeAdOut.model_validate(ad) for ad in ads]}


@router.post("/{ad_id}/click")
async def track_native_ad_click(ad_id: int, db: Session = Depends(get_db)):
    ad = get_or_404(db, NativeAd, ad_id, "Native ad not found")
    ad.clicks = NativeAd.clicks + 1
    db.commit()
    return {"message": "Click tracked", "redirect_url": ad.link_url}


@admin_router.get("")
async def admin_list_native_ads(
    position: Optional[NativeAdPosition] = Query(None),
    type: Optional[NativeAdType] = Query(None),
    is_active: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, description="Search title, description and advertiser"),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = db.query(NativeAd)
    if position is not None:
        query = query.filter(NativeAd.position == position)
    if type is not None:
        query = query.filter(NativeAd.type == type)
    if is_active is not None:
        query = query.filter(NativeAd.is_active.is_(is_active))
    if q:
        query = query.filter(
            or_(
                NativeAd.title.ilike(like(q)),
                NativeAd.description.ilike(like(q)),
                NativeAd.advertiser_name.ilike(like(q)),
            )
        )
    query = query.order_by(NativeAd.priority.desc(), NativeAd.created_at.desc())
    return page.of(query, NativeAdOut.model_validate)


@admin_router.get("/{ad_id}")
async def admin_get_native_ad(ad_id: int, db: Session = Depends(get_db)):
    ad = get_or_404(db, NativeAd, ad_id, "Native ad not found")
    return {"data": NativeAdOut.model_validate(ad)}


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_native_ad(request: NativeAdCreate, db: Session = Depends(get_db)):
    _check_date_window(request.start_date, request.end_date)

    ad = NativeAd(
        title=request.title,
        description=request.description,
        image_url=request.image_url,
        link_url=request.link_url,
        position=request.position,
        type=request.type,
        advertiser_name=request.advertiser_name,
        is_active=True if request.is_active is None else request.is_active,
        start_date=request.start_date,
        end_date=request.end_date,
        priority=request.priority or 0,
    )
    db.add(ad)
    db.commit()
    db.refresh(ad)

    logger.info(f"Native ad {ad.id} created")
    return {"message": "Native ad created successfully", "data": NativeAdOut.model_validate(ad)}


@admin_router.api_route("/{ad_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{ad_id}/update")
async def admin_update_native_ad(ad_id: int, request: NativeAdUpdate, db: Session = Depends(get_db)):
    ad = get_or_404(db, NativeAd, ad_id, "Native ad not found")
    updates = request.model_dump(exclude_unset=True)

    start_date = updates["start_date"] if "start_date" in updates else ad.start_date
    end_date = updates["end_date"] if "end_date" in updates else ad.end_date
    _check_date_window(start_date, end_date)

    for field, value in updates.items():
        if value is None and field in ("title", "link_url", "position", "type", "is_active", "priority"):
            continue
        setattr(ad, field, value)

    db.commit()
    db.refresh(ad)
    return {"message": "Native ad updated successfully", "data": NativeAdOut.model_validate(ad)}


@admin_router.delete("/{ad_id}")
async def admin_delete_native_ad(ad_id: int, db: Session = Depends(get_db)):
    ad = get_or_404(db, NativeAd, ad_id, "Native ad not found")
    db.delete(ad)
    db.commit()
    return {"message": "Native ad deleted successfully"}


@admin_router.post("/{ad_id}/reset-stats")
async def admin_reset_native_ad_stats(ad_id: int, db: Session = Depends(get_db)):
    """Zero the impression and click counters."""
    ad = get_or_404(db, NativeAd, ad_id, "Native ad not found")
    ad.impressions = 0
    ad.clicks = 0
    db.commit()
    db.refresh(ad)
    return {"message": "Stats reset successfully", "data": NativeAdOut.model_validate(ad)}
