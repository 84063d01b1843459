"""
Site settings routes.
A single settings row, created on first access.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...db.models import SiteSetting
from ..dependencies import get_db, require_admin
from ..forms import read_payload
from ..schemas.site import SiteSettingsOut, SiteSettingsUpdate

router = APIRouter(prefix="/api/settings", tags=["Settings"])
admin_router = APIRouter(prefix="/api/admin/settings", tags=["Admin: Settings"], dependencies=[Depends(require_admin)])


def current_settings(db: Session) -> SiteSetting:
    """The settings row, inserted empty when missing."""
    settings = db.query(SiteSetting).order_by(SiteSetting.id).first()
    if settings is None:
        settings = SiteSetting()
        db.add(settings)
        db.commit()
        db.refresh(settings)
    return settings


@router.get("")
async def get_public_settings(db: Session = Depends(get_db)):
    return {"data": SiteSettingsOut.model_validate(current_settings(db))}


@admin_router.get("")
async def get_settings_admin(db: Session = Depends(get_db)):
    return {"data": SiteSettingsOut.model_validate(current_settings(db))}


@admin_router.put("")
async def update_settings(request: Request, db: Session = Depends(get_db)):
    """Update the fields present in the body; blank strings clear a field."""
    payload = await read_payload(request)
    updates = payload.validate(SiteSettingsUpdate).model_dump(exclude_unset=True)

    settings = current_settings(db)
    for field, value in updates.items():
        setattr(settings, field, value)
    db.commit()
    db.refresh(settings)

    return {"message": "Settings updated successfully", "data": SiteSettingsOut.model_validate(settings)}
