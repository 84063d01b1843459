"""
Affiliate routes.

Public tracking (clicks, impressions, conversions), the affiliate's own
links and dashboard, and admin management of programs and conversions.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Cookie, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...db.enums import ConversionStatus
from ...db.models import AffiliateClick, AffiliateConversion, AffiliateLink, AffiliateProgram, User
from ..dependencies import get_current_user, get_db, require_admin
from ..errors import BadRequestError, NotFoundError
from ..lookups import client_ip, get_or_404
from ..pagination import Page, PageParams
from ..schemas.affiliates import (
    ConversionOut,
    ConversionRequest,
    ConversionUpdate,
    DashboardOut,
    DashboardStats,
    LinkOut,
    ProgramCreate,
    ProgramOut,
    ProgramUpdate,
    TrackClickResponse,
)
from ..services.affiliates import AFFILIATE_COOKIE, AffiliateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/affiliate", tags=["Affiliate"])
admin_router = APIRouter(
    prefix="/api/admin/affiliate",
    tags=["Admin: Affiliate"],
    dependencies=[Depends(require_admin)],
)


def get_affiliate_service(db: Session = Depends(get_db)) -> AffiliateService:
    return AffiliateService(db)


def _active_link_or_404(service: AffiliateService, code: Optional[str]) -> AffiliateLink:
    link = service.find_active_link(code)
    if link is None:
        raise NotFoundError("Invalid affiliate link")
    return link


@router.get("/programs")
async def list_programs(db: Session = Depends(get_db)):
    programs = (
        db.query(AffiliateProgram)
        .filter(AffiliateProgram.is_active.is_(True))
        .order_by(AffiliateProgram.created_at.desc(), AffiliateProgram.id.desc())
        .all()
    )
    return {"data": [ProgramOut.model_validate(p) for p in programs]}


@router.get("/click/{code}")
async def track_click(
    code: str,
    request: Request,
    service: AffiliateService = Depends(get_affiliate_service),
):
    """
    Record a click and hand back the program's target URL.

    Sets the `affiliate_code` cookie for the program's cookie duration so a
    later purchase can be attributed to the link.
    """
    link = _active_link_or_404(service, code)
    service.record_click(
        link,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )

    body = TrackClickResponse(message="Click tracked", redirect_url=link.program.target_url, link_id=link.id)
    response = JSONResponse(content=body.model_dump())
    response.set_cookie(
        AFFILIATE_COOKIE,
        code,
        max_age=(link.program.cookie_duration or 30) * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/impression/{code}")
async def track_impression(
    code: str,
    request: Request,
    service: AffiliateService = Depends(get_affiliate_service),
):
    link = _active_link_or_404(service, code)
    service.record_impression(
        link,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )
    return {"message": "Impression tracked", "link_id": link.id}


@router.post("/conversion", status_code=status.HTTP_201_CREATED)
async def track_conversion(
    request: ConversionRequest,
    affiliate_cookie: Optional[str] = Cookie(None, alias=AFFILIATE_COOKIE),
    service: AffiliateService = Depends(get_affiliate_service),
):
    """
    Record a conversion reported by a checkout or webhook.

    The affiliate code comes from the body or, failing that, the tracking
    cookie. A transaction id is only ever converted once.
    """
    code = request.affiliate_code or affiliate_cookie
    if not code:
        raise BadRequestError("No affiliate code found")

    link = _active_link_or_404(service, code)
    if service.conversion_exists(request.transaction_id):
        raise BadRequestError("Conversion already tracked")

    conversion = service.record_conversion(link, request.transaction_id, request.amount)
    return {"message": "Conversion tracked successfully", "data": ConversionOut.from_conversion(conversion)}


@router.get("/dashboard")
async def dashboard(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: AffiliateService = Depends(get_affiliate_service),
):
    links = (
        db.query(AffiliateLink)
        .options(joinedload(AffiliateLink.program))
        .filter(AffiliateLink.affiliate_id == user.id)
        .order_by(AffiliateLink.created_at.desc())
        .all()
    )
    return {
        "data": DashboardOut(
            links=[LinkOut.from_link(link) for link in links],
            stats=DashboardStats(**service.dashboard_stats(user)),
        )
    }


@router.get("/links")
async def my_links(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: AffiliateService = Depends(get_affiliate_service),
):
    """The user's links with traffic counts and pay-per-traffic earnings."""
    links = (
        db.query(AffiliateLink)
        .options(joinedload(AffiliateLink.program))
        .filter(AffiliateLink.affiliate_id == user.id)
        .order_by(AffiliateLink.created_at.desc())
        .all()
    )
    return {"data": [LinkOut.from_link(link, **service.link_traffic_earnings(link)) for link in links]}


@router.post("/programs/{program_id}/join")
async def join_program(
    program_id: int,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: AffiliateService = Depends(get_affiliate_service),
):
    program = get_or_404(db, AffiliateProgram, program_id, "Affiliate program not found")
    if not program.is_active:
        raise BadRequestError("Program is not active")

    link, created = service.join(program, user)
    if not created:
        return {"message": "Already joined this program", "data": LinkOut.from_link(link)}

    response.status_code = status.HTTP_201_CREATED
    return {"message": "Successfully joined affiliate program", "data": LinkOut.from_link(link)}


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def _program_out(db: Session, program: AffiliateProgram) -> ProgramOut:
    out = ProgramOut.model_validate(program)
    out.links_count = db.query(AffiliateLink).filter(AffiliateLink.program_id == program.id).count()
    out.active_links_count = (
        db.query(AffiliateLink)
        .filter(AffiliateLink.program_id == program.id, AffiliateLink.is_active.is_(True))
        .count()
    )
    return out


@admin_router.get("/programs")
async def admin_list_programs(db: Session = Depends(get_db)):
    """Every program with its link counts."""
    programs = db.query(AffiliateProgram).order_by(
        AffiliateProgram.created_at.desc(), AffiliateProgram.id.desc()
    )
    return {"data": [_program_out(db, p) for p in programs]}


@admin_router.post("/programs", status_code=status.HTTP_201_CREATED)
async def admin_create_program(request: ProgramCreate, db: Session = Depends(get_db)):
    data = request.model_dump(exclude_none=True)
    program = AffiliateProgram(**data)
    db.add(program)
    db.commit()
    db.refresh(program)

    logger.info(f"Affiliate program {program.id} created")
    return {"message": "Affiliate program created successfully", "data": _program_out(db, program)}


@admin_router.api_route("/programs/{program_id}", methods=["PUT", "PATCH"])
async def admin_update_program(program_id: int, request: ProgramUpdate, db: Session = Depends(get_db)):
    program = get_or_404(db, AffiliateProgram, program_id, "Affiliate program not found")
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "type", "commission_rate", "target_url", "is_active", "cookie_duration"):
            continue
        setattr(program, field, value)
    db.commit()
    db.refresh(program)
    return {"message": "Affiliate program updated successfully", "data": _program_out(db, program)}


@admin_router.delete("/programs/{program_id}")
async def admin_delete_program(program_id: int, db: Session = Depends(get_db)):
    """Delete a program together with its links and their tracking data."""
    program = get_or_404(db, AffiliateProgram, program_id, "Affiliate program not found")
    db.delete(program)
    db.commit()
    return {"message": "Affiliate program deleted successfully"}


@admin_router.get("/links")
async def admin_list_links(
    program_id: Optional[int] = Query(None),
    affiliate_id: Optional[UUID] = Query(None),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = db.query(AffiliateLink).options(
        joinedload(AffiliateLink.program), joinedload(AffiliateLink.affiliate)
    )
    if program_id is not None:
        query = query.filter(AffiliateLink.program_id == program_id)
    if affiliate_id is not None:
        query = query.filter(AffiliateLink.affiliate_id == affiliate_id)
    query = query.order_by(AffiliateLink.created_at.desc(), AffiliateLink.id.desc())

    def serialize(link: AffiliateLink) -> LinkOut:
        clicks = db.query(func.count(AffiliateClick.id)).filter(AffiliateClick.link_id == link.id).scalar()
        conversions = (
            db.query(func.count(AffiliateConversion.id))
            .filter(AffiliateConversion.link_id == link.id)
            .scalar()
        )
        return LinkOut.from_link(link, with_affiliate=True, clicks_count=clicks, conversions_count=conversions)

    return page.of(query, serialize)


def _conversion_query(db: Session):
    return db.query(AffiliateConversion).options(
        joinedload(AffiliateConversion.link).joinedload(AffiliateLink.program),
        joinedload(AffiliateConversion.link).joinedload(AffiliateLink.affiliate),
    )


@admin_router.get("/conversions")
async def admin_list_conversions(
    status_filter: Optional[ConversionStatus] = Query(None, alias="status"),
    link_id: Optional[int] = Query(None),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = _conversion_query(db)
    if status_filter is not None:
        query = query.filter(AffiliateConversion.status == status_filter)
    if link_id is not None:
        query = query.filter(AffiliateConversion.link_id == link_id)
    query = query.order_by(AffiliateConversion.converted_at.desc(), AffiliateConversion.id.desc())
    return page.of(query, lambda c: ConversionOut.from_conversion(c, with_link=True))


@admin_router.put("/conversions/{conversion_id}")
async def admin_update_conversion(
    conversion_id: int,
    request: ConversionUpdate,
    db: Session = Depends(get_db),
):
    conversion = get_or_404(db, AffiliateConversion, conversion_id, "Conversion not found")
    conversion.status = request.status
    if "notes" in request.model_fields_set:
        conversion.notes = request.notes
    db.commit()

    logger.info(f"Affiliate conversion {conversion.id} marked {conversion.status.value}")
    conversion = _conversion_query(db).filter(AffiliateConversion.id == conversion_id).first()
    return {
        "message": "Conversion status updated successfully",
        "data": ConversionOut.from_conversion(conversion, with_link=True),
    }


@admin_router.get("/stats")
async def admin_affiliate_stats(service: AffiliateService = Depends(get_affiliate_service)):
    return {"data": service.admin_stats()}
