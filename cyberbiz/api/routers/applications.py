"""
Job application routes.
Applying with a CV, listing applications and downloading CVs.
"""

import logging
import time
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload

from ...db.enums import JobStatus
from ...db.models import Application, JobPosting, User
from ..dependencies import get_current_user, get_db, get_file_storage
from ..errors import ConflictError, ForbiddenError, NotFoundError
from ..forms import read_payload, validate_upload
from ..pagination import Page, PageParams
from ..schemas.jobs import ApplicationOut, ApplyFields
from ..services.storage import FileStorage, PRIVATE, safe_filename
from .jobs import get_job, is_owner_or_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Applications"])

CV_EXTENSIONS = ("pdf", "docx")
CV_MAX_KB = 5120


def _application_query(db: Session):
    return db.query(Application).options(
        joinedload(Application.job).joinedload(JobPosting.employer),
        joinedload(Application.seeker),
    )


def _my_application(db: Session, job_id: UUID, user: User) -> Application:
    application = (
        _application_query(db)
        .filter(Application.job_id == job_id, Application.seeker_id == user.id)
        .first()
    )
    if application is None:
        raise NotFoundError("Application not found")
    return application


@router.post("/jobs/{job_id}/apply", status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    job_id: UUID,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Apply to a published job with a CV (pdf or docx, max 5 MB).

    The CV is kept on the private disk.
    """
    payload = await read_payload(request)
    cv = validate_upload(payload.file("cv"), "cv", CV_EXTENSIONS, CV_MAX_KB, required=True)
    fields = payload.validate(ApplyFields)

    job = get_job(db, job_id)
    if job.status != JobStatus.PUBLISHED:
        raise ForbiddenError("This job is not accepting applications")

    existing = (
        db.query(Application.id)
        .filter(Application.job_id == job.id, Application.seeker_id == user.id)
        .first()
    )
    if existing is not None:
        raise ConflictError("You have already applied for this job")

    stored = storage.save_upload(
        cv,
        "cvs",
        filename=f"{user.id}_{int(time.time())}_{safe_filename(cv.filename)}",
        disk=PRIVATE,
    )
    application = Application(
        job_id=job.id,
        seeker_id=user.id,
        cv_path=stored.path,
        cv_original_name=stored.original_name,
        cover_letter=fields.cover_letter,
    )
    db.add(application)
    db.commit()

    logger.info(f"User {user.id} applied to job {job.id}")
    application = _my_application(db, job.id, user)
    return {"message": "Application submitted successfully", "data": ApplicationOut.from_application(application)}


@router.get("/jobs/{job_id}/applications")
async def list_job_applications(
    job_id: UUID,
    page: Page = Depends(PageParams()),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Applications received for a job (job owner or admin)."""
    job = get_job(db, job_id)
    if not is_owner_or_admin(user, job):
        raise ForbiddenError("Unauthorized")

    query = (
        _application_query(db)
        .filter(Application.job_id == job.id)
        .order_by(Application.created_at.desc())
    )
    return page.of(query, ApplicationOut.from_application)


@router.get("/user/applications")
async def list_my_applications(
    page: Page = Depends(PageParams()),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = (
        _application_query(db)
        .filter(Application.seeker_id == user.id)
        .order_by(Application.created_at.desc())
    )
    return page.of(query, ApplicationOut.from_application)


@router.get("/jobs/{job_id}/my-application")
async def get_my_application(
    job_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"data": ApplicationOut.from_application(_my_application(db, job_id, user))}


@router.delete("/jobs/{job_id}/my-application")
async def delete_my_application(
    job_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Withdraw an application and delete its CV."""
    application = _my_application(db, job_id, user)
    storage.delete(application.cv_path, PRIVATE)
    db.delete(application)
    db.commit()
    return {"message": "Application deleted successfully"}


@router.get("/files/cv/{application_id}")
async def download_cv(
    application_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """CV download for admins, the applicant and the job owner."""
    application = _application_query(db).filter(Application.id == application_id).first()
    if application is None:
        raise NotFoundError("Application not found")

    allowed = (
        user.is_admin
        or str(application.seeker_id) == str(user.id)
        or (application.job is not None and str(application.job.employer_id) == str(user.id))
    )
    if not allowed:
        raise ForbiddenError("Unauthorized")

    if not storage.exists(application.cv_path, PRIVATE):
        raise NotFoundError("File not found")

    return FileResponse(
        storage.absolute_path(application.cv_path, PRIVATE),
        filename=application.cv_original_name,
    )
