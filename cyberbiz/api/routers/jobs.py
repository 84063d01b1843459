"""
Job posting routes.
Public listing and detail, employer management and schema.org JSON-LD.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import JobStatus
from ...db.models import Application, JobPosting, User
from ..dependencies import get_current_user, get_current_user_optional, get_db, require_admin
from ..errors import ForbiddenError, NotFoundError, ValidationFailedError
from ..lookups import like
from ..pagination import Page, PageParams
from ..schemas.jobs import JobCreate, JobOut, JobUpdate
from ..services.content import job_json_ld, text_to_html

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])
admin_router = APIRouter(prefix="/api/admin/jobs", tags=["Admin: Jobs"])


def get_job(db: Session, job_id: UUID) -> JobPosting:
    job = (
        db.query(JobPosting)
        .options(joinedload(JobPosting.employer))
        .filter(JobPosting.id == job_id, JobPosting.deleted_at.is_(None))
        .first()
    )
    if job is None:
        raise NotFoundError("Job posting not found")
    return job


def is_owner_or_admin(user: Optional[User], job: JobPosting) -> bool:
    return user is not None and (user.is_admin or str(job.employer_id) == str(user.id))


def published_filter():
    """PUBLISHED and not yet expired."""
    return (
        JobPosting.status == JobStatus.PUBLISHED,
        or_(JobPosting.expires_at.is_(None), JobPosting.expires_at > datetime.utcnow()),
    )


def _ensure_json_ld(db: Session, job: JobPosting) -> None:
    if not job.ld_json:
        job.ld_json = job_json_ld(job)
        db.commit()
        db.refresh(job)


def _list_jobs(
    db: Session,
    user: Optional[User],
    page: Page,
    q: Optional[str],
    employer_id: Optional[UUID],
    my_jobs: bool,
    status_filter: Optional[JobStatus],
):
    """
    Shared listing logic.

    An employer filtering on their own jobs (`my_jobs` or their own
    `employer_id`) and admins see every status; own-job listings add
    application counts. Everyone else only sees published, unexpired jobs.
    """
    query = db.query(JobPosting).options(joinedload(JobPosting.employer)).filter(
        JobPosting.deleted_at.is_(None)
    )

    if q:
        query = query.filter(
            or_(JobPosting.title.ilike(like(q)), JobPosting.description_html.ilike(like(q)))
        )

    own_jobs = False
    if employer_id is not None:
        query = query.filter(JobPosting.employer_id == employer_id)
        own_jobs = user is not None and (user.is_admin or user.id == employer_id)
    elif user is not None and user.is_employer and my_jobs:
        query = query.filter(JobPosting.employer_id == user.id)
        own_jobs = True

    if own_jobs or (user is not None and user.is_admin):
        if status_filter is not None:
            query = query.filter(JobPosting.status == status_filter)
    else:
        query = query.filter(*published_filter())

    query = query.order_by(JobPosting.created_at.desc())

    if not own_jobs:
        return page.of(query, JobOut.from_job)

    result = page.of(query, lambda job: job)
    job_ids = [job.id for job in result["data"]]
    counts = dict(
        db.query(Application.job_id, func.count(Application.id))
        .filter(Application.job_id.in_(job_ids))
        .group_by(Application.job_id)
        .all()
    ) if job_ids else {}
    result["data"] = [JobOut.from_job(job, applications_count=counts.get(job.id, 0)) for job in result["data"]]
    return result


@router.get("")
async def list_jobs(
    q: Optional[str] = Query(None, description="Search title and description"),
    employer_id: Optional[UUID] = Query(None),
    my_jobs: bool = Query(False, description="Only the calling employer's jobs"),
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    page: Page = Depends(PageParams()),
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    return _list_jobs(db, user, page, q, employer_id, my_jobs, status_filter)


@admin_router.get("")
async def admin_list_jobs(
    q: Optional[str] = Query(None),
    employer_id: Optional[UUID] = Query(None),
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    page: Page = Depends(PageParams()),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Every job posting regardless of status."""
    return _list_jobs(db, admin, page, q, employer_id, False, status_filter)


@router.get("/{job_id}")
async def get_job_posting(
    job_id: UUID,
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """
    Job detail.

    Drafts, archived and expired postings are only visible to their owner
    and admins.
    """
    job = get_job(db, job_id)

    if job.status == JobStatus.PUBLISHED:
        if job.is_expired and not is_owner_or_admin(user, job):
            raise ForbiddenError("This job posting has expired")
    elif user is None:
        raise ForbiddenError("Authentication required to view this job")
    elif not is_owner_or_admin(user, job):
        raise ForbiddenError("Unauthorized - You can only view your own draft jobs")

    _ensure_json_ld(db, job)
    return {"data": JobOut.from_job(job)}


@router.get("/{job_id}/jsonld")
async def get_job_json_ld(job_id: UUID, db: Session = Depends(get_db)):
    """schema.org JobPosting structured data."""
    job = get_job(db, job_id)
    _ensure_json_ld(db, job)
    return JSONResponse(content=job.ld_json, media_type="application/ld+json")


def _description_html(description: Optional[str], description_html: Optional[str]) -> Optional[str]:
    if description and not description_html:
        return text_to_html(description)
    return description_html


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_job(
    request: JobCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Post a job (employers and admins).

    A plain-text `description` is converted to HTML; `website_url` updates
    the employer's profile.
    """
    if not (user.is_employer or user.is_admin):
        raise ForbiddenError("Unauthorized")

    description_html = _description_html(request.description, request.description_html)
    if not description_html:
        raise ValidationFailedError.for_field(
            "description_html", "The description html field is required when description is not present."
        )

    if request.website_url:
        user.website_url = request.website_url

    job = JobPosting(
        employer_id=user.id,
        title=request.title,
        job_type=request.job_type,
        location=request.location,
        experience=request.experience,
        skills=request.skills,
        description_html=description_html,
        status=request.status or JobStatus.DRAFT,
        expires_at=request.expires_at,
        company_description=request.company_description,
    )
    db.add(job)
    db.flush()
    job.employer = user
    job.ld_json = job_json_ld(job)
    db.commit()
    db.refresh(job)

    logger.info(f"Job posting {job.id} created by {user.id}")
    return {"message": "Job posting created successfully", "data": JobOut.from_job(job)}


@router.put("/{job_id}")
async def update_job(
    job_id: UUID,
    request: JobUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_job(db, job_id)
    if not is_owner_or_admin(user, job):
        raise ForbiddenError("Unauthorized")

    updates = request.model_dump(exclude_unset=True)
    description = updates.pop("description", None)
    website_url = updates.pop("website_url", None)

    if description and not updates.get("description_html"):
        updates["description_html"] = text_to_html(description)

    for field, value in updates.items():
        if value is None and field in ("title", "description_html", "status"):
            continue
        setattr(job, field, value)

    if website_url and job.employer is not None:
        job.employer.website_url = website_url

    if {"title", "description_html"} & set(updates):
        job.ld_json = job_json_ld(job)

    db.commit()
    db.refresh(job)
    return {"message": "Job posting updated successfully", "data": JobOut.from_job(job)}


@router.delete("/{job_id}")
async def delete_job(
    job_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_job(db, job_id)
    if not is_owner_or_admin(user, job):
        raise ForbiddenError("Unauthorized")

    job.deleted_at = datetime.utcnow()
    db.commit()
    logger.info(f"Job posting {job.id} deleted by {user.id}")
    return {"message": "Job posting deleted successfully"}
