"""
Service routes.

Public service catalogue with visitor inquiries, and admin management of
services and the inquiries they receive.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import InquiryStatus
from ...db.models import Service, ServiceInquiry, User
from ..dependencies import get_db, get_file_storage, require_admin
from ..errors import ConflictError, NotFoundError, ValidationFailedError
from ..forms import read_payload, validate_image
from ..lookups import find_by_id_or_slug, get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.services import (
    InquiryCheckResponse,
    InquiryCreate,
    InquiryLookup,
    InquiryOut,
    InquiryStatusOut,
    InquiryUpdate,
    ServiceCreate,
    ServiceOut,
    ServiceUpdate,
)
from ..services.content import unique_slug
from ..services.storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["Services"])
admin_router = APIRouter(prefix="/api/admin/services", tags=["Admin: Services"], dependencies=[Depends(require_admin)])

SERVICE_IMAGE_DIR = "services"


def _ordered(query):
    return query.order_by(Service.order.asc(), Service.created_at.desc(), Service.id.desc())


def _open_inquiry(db: Session, service: Service, email: str) -> Optional[ServiceInquiry]:
    """Latest inquiry for the service from `email` that is not cancelled."""
    return (
        db.query(ServiceInquiry)
        .filter(
            ServiceInquiry.service_id == service.id,
            ServiceInquiry.email == email,
            ServiceInquiry.status != InquiryStatus.CANCELLED,
        )
        .order_by(ServiceInquiry.created_at.desc(), ServiceInquiry.id.desc())
        .first()
    )


@router.get("")
async def list_services(db: Session = Depends(get_db)):
    services = _ordered(db.query(Service).filter(Service.is_active.is_(True))).all()
    return {"data": [ServiceOut.model_validate(s) for s in services]}


@router.get("/{service_key}")
async def get_service(service_key: str, db: Session = Depends(get_db)):
    """Active service by id or slug."""
    service = find_by_id_or_slug(db, Service, service_key, Service.is_active.is_(True))
    if service is None:
        raise NotFoundError("Service not found")
    return {"data": ServiceOut.model_validate(service)}


@router.post("/{service_id}/inquiry", status_code=status.HTTP_201_CREATED)
async def submit_inquiry(service_id: int, request: InquiryCreate, db: Session = Depends(get_db)):
    """
    Submit an inquiry for a service.

    One open (non-cancelled) inquiry per email and service.
    """
    service = get_or_404(db, Service, service_id, "Service not found")
    if not service.is_active:
        raise NotFoundError("Service is not available")

    if _open_inquiry(db, service, request.email) is not None:
        raise ConflictError(
            "You have already submitted an inquiry for this service. "
            "Please wait for our response or contact us directly."
        )

    inquiry = ServiceInquiry(
        service_id=service.id,
        name=request.name,
        email=request.email,
        phone=request.phone,
        company=request.company,
        message=request.message,
        status=InquiryStatus.NEW,
    )
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)

    logger.info(f"Inquiry {inquiry.id} submitted for service {service.id}")
    return {
        "message": "Inquiry submitted successfully. We will contact you soon.",
        "data": InquiryOut.from_inquiry(inquiry),
    }


@router.post("/{service_id}/inquiry/cancel")
async def cancel_inquiry(service_id: int, request: InquiryLookup, db: Session = Depends(get_db)):
    service = get_or_404(db, Service, service_id, "Service not found")
    inquiry = _open_inquiry(db, service, request.email)
    if inquiry is None:
        raise NotFoundError("No active inquiry found for this email and service.")

    inquiry.status = InquiryStatus.CANCELLED
    db.commit()
    return {"message": "Inquiry cancelled successfully"}


@router.post("/{service_id}/inquiry/check", response_model=InquiryCheckResponse)
async def check_inquiry(service_id: int, request: InquiryLookup, db: Session = Depends(get_db)):
    service = get_or_404(db, Service, service_id, "Service not found")
    inquiry = _open_inquiry(db, service, request.email)
    return InquiryCheckResponse(
        exists=inquiry is not None,
        inquiry=InquiryStatusOut.model_validate(inquiry) if inquiry is not None else None,
    )


# ---------------------------------------------------------------------------
# Admin: inquiries (declared before /{service_id})
# ---------------------------------------------------------------------------


def _inquiry_query(db: Session):
    return db.query(ServiceInquiry).options(
        joinedload(ServiceInquiry.service), joinedload(ServiceInquiry.assignee)
    )


@admin_router.get("/inquiries")
async def list_inquiries(
    service_id: Optional[int] = Query(None),
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Search name, email, company and message"),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = _inquiry_query(db)
    if service_id is not None:
        query = query.filter(ServiceInquiry.service_id == service_id)
    if status_filter is not None:
        query = query.filter(ServiceInquiry.status == status_filter)
    if q:
        query = query.filter(
            or_(
                ServiceInquiry.name.ilike(like(q)),
                ServiceInquiry.email.ilike(like(q)),
                ServiceInquiry.company.ilike(like(q)),
                ServiceInquiry.message.ilike(like(q)),
            )
        )
    query = query.order_by(ServiceInquiry.created_at.desc(), ServiceInquiry.id.desc())
    return page.of(query, InquiryOut.from_inquiry)


@admin_router.put("/inquiries/{inquiry_id}")
async def update_inquiry(inquiry_id: int, request: InquiryUpdate, db: Session = Depends(get_db)):
    inquiry = get_or_404(db, ServiceInquiry, inquiry_id, "Inquiry not found")
    updates = request.model_dump(exclude_unset=True)

    if updates.get("assigned_to") is not None and db.get(User, updates["assigned_to"]) is None:
        raise ValidationFailedError.for_field("assigned_to", "The selected assigned to is invalid.")
    if "status" in updates and updates["status"] is None:
        updates.pop("status")

    for field, value in updates.items():
        setattr(inquiry, field, value)
    db.commit()

    inquiry = _inquiry_query(db).filter(ServiceInquiry.id == inquiry_id).first()
    return {"message": "Inquiry updated successfully", "data": InquiryOut.from_inquiry(inquiry)}


@admin_router.delete("/inquiries/{inquiry_id}")
async def delete_inquiry(inquiry_id: int, db: Session = Depends(get_db)):
    inquiry = get_or_404(db, ServiceInquiry, inquiry_id, "Inquiry not found")
    db.delete(inquiry)
    db.commit()
    return {"message": "Inquiry deleted successfully"}


# ---------------------------------------------------------------------------
# Admin: services
# ---------------------------------------------------------------------------


def _check_slug_free(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Service.id).filter(Service.slug == slug)
    if exclude_id is not None:
        query = query.filter(Service.id != exclude_id)
    if query.first() is not None:
        raise ValidationFailedError.for_field("slug", "The slug has already been taken.")


@admin_router.get("")
async def admin_list_services(db: Session = Depends(get_db)):
    """Every service, active or not."""
    return {"data": [ServiceOut.model_validate(s) for s in _ordered(db.query(Service)).all()]}


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_service(
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Create a service from JSON or multipart (optional `image` upload)."""
    payload = await read_payload(request)
    data = payload.validate(ServiceCreate)
    image = validate_image(payload.file("image"), "image")

    if data.slug:
        _check_slug_free(db, data.slug)
        slug = data.slug
    else:
        slug = unique_slug(db, Service, data.title)

    image_url = data.image_url
    if image is not None:
        image_url = storage.store_public_image(image, SERVICE_IMAGE_DIR)

    service = Service(
        title=data.title,
        slug=slug,
        description=data.description,
        content=data.content,
        icon=data.icon,
        image_url=image_url,
        order=data.order or 0,
        is_active=True if data.is_active is None else data.is_active,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
    )
    db.add(service)
    db.commit()
    db.refresh(service)

    logger.info(f"Service {service.id} created")
    return {"message": "Service created successfully", "data": ServiceOut.model_validate(service)}


@admin_router.api_route("/{service_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{service_id}/update")
async def admin_update_service(
    service_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    service = get_or_404(db, Service, service_id, "Service not found")
    payload = await read_payload(request)
    updates = payload.validate(ServiceUpdate).model_dump(exclude_unset=True)
    image = validate_image(payload.file("image"), "image")

    if "slug" in updates:
        if updates["slug"]:
            _check_slug_free(db, updates["slug"], exclude_id=service.id)
        else:
            # A blank slug is regenerated from the title
            updates["slug"] = unique_slug(
                db, Service, updates.get("title") or service.title, exclude_id=service.id
            )

    if image is not None:
        storage.delete_url(service.image_url)
        updates["image_url"] = storage.store_public_image(image, SERVICE_IMAGE_DIR)

    for field, value in updates.items():
        if value is None and field in ("title", "description", "order", "is_active"):
            continue
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return {"message": "Service updated successfully", "data": ServiceOut.model_validate(service)}


@admin_router.delete("/{service_id}")
async def admin_delete_service(service_id: int, db: Session = Depends(get_db)):
    service = get_or_404(db, Service, service_id, "Service not found")
    db.delete(service)
    db.commit()
    return {"message": "Service deleted successfully"}
