"""
Ad slot routes.
Public banner listing (counts impressions) and admin management.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ...db.enums import AdPosition
from ...db.models import AdSlot
from ..dependencies import get_db, get_file_storage, require_admin
from ..errors import ValidationFailedError
from ..forms import read_payload, validate_image
from ..lookups import get_or_404
from ..pagination import Page, PageParams
from ..schemas.ads import AdSlotCreate, AdSlotOut, AdSlotUpdate, PublicAdSlotOut
from ..services.storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ads", tags=["Ads"])
admin_router = APIRouter(prefix="/api/admin/ads", tags=["Admin: Ads"], dependencies=[Depends(require_admin)])

AD_IMAGE_DIR = "ads"


@router.get("")
async def list_active_ads(
    position: Optional[AdPosition] = Query(None),
    db: Session = Depends(get_db),
):
    """Active ads, newest first. Every ad returned counts one impression."""
    query = db.query(AdSlot).filter(AdSlot.is_active.is_(True))
    if position is not None:
        query = query.filter(AdSlot.position == position)
    ads = query.order_by(AdSlot.created_at.desc(), AdSlot.id.desc()).all()

    for ad in ads:
        ad.impressions = AdSlot.impressions + 1
    db.commit()

    return {"data": [PublicAdSlotOut.model_validate(ad) for ad in ads]}


@admin_router.get("")
async def admin_list_ads(
    position: Optional[AdPosition] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = db.query(AdSlot)
    if position is not None:
        query = query.filter(AdSlot.position == position)
    if is_active is not None:
        query = query.filter(AdSlot.is_active.is_(is_active))
    query = query.order_by(AdSlot.created_at.desc(), AdSlot.id.desc())
    return page.of(query, AdSlotOut.model_validate)


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_ad(
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Create an ad from an `image_url` or an uploaded `image`."""
    payload = await read_payload(request)
    data = payload.validate(AdSlotCreate)
    image = validate_image(payload.file("image"), "image")

    image_url = data.image_url
    if image is not None:
        image_url = storage.store_public_image(image, AD_IMAGE_DIR)
    if not image_url:
        raise ValidationFailedError.for_field("image_url", "The image url field is required.")

    ad = AdSlot(
        position=data.position,
        image_url=image_url,
        target_url=data.target_url,
        is_active=data.is_active,
    )
    db.add(ad)
    db.commit()
    db.refresh(ad)

    logger.info(f"Ad slot {ad.id} created at {ad.position.value}")
    return {"message": "Ad slot created successfully", "data": AdSlotOut.model_validate(ad)}


@admin_router.get("/{ad_id}")
async def admin_get_ad(ad_id: int, db: Session = Depends(get_db)):
    ad = get_or_404(db, AdSlot, ad_id, "Ad slot not found")
    return {"data": AdSlotOut.model_validate(ad)}


@admin_router.api_route("/{ad_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{ad_id}/update")
async def admin_update_ad(
    ad_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    ad = get_or_404(db, AdSlot, ad_id, "Ad slot not found")
    payload = await read_payload(request)
    updates = payload.validate(AdSlotUpdate).model_dump(exclude_unset=True)
    image = validate_image(payload.file("image"), "image")

    for field, value in updates.items():
        if value is not None:
            setattr(ad, field, value)

    if image is not None:
        old_url = ad.image_url
        ad.image_url = storage.store_public_image(image, AD_IMAGE_DIR)
        storage.delete_url(old_url)

    db.commit()
    db.refresh(ad)
    return {"message": "Ad slot updated successfully", "data": AdSlotOut.model_validate(ad)}


@admin_router.delete("/{ad_id}")
async def admin_delete_ad(
    ad_id: int,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    ad = get_or_404(db, AdSlot, ad_id, "Ad slot not found")
    storage.delete_url(ad.image_url)
    db.delete(ad)
    db.commit()
    return {"message": "Ad slot deleted successfully"}
