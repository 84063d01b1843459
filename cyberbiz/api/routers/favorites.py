"""
Job favorite routes.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from ...db.models import JobFavorite, JobPosting, User
from ..dependencies import get_current_user, get_db
from ..schemas.jobs import FavoriteOut, JobOut
from .jobs import get_job

router = APIRouter(prefix="/api", tags=["Favorites"])


def _favorite(db: Session, user: User, job_id) -> JobFavorite:
    return (
        db.query(JobFavorite)
        .filter(JobFavorite.user_id == user.id, JobFavorite.job_id == job_id)
        .first()
    )


@router.post("/jobs/{job_id}/favorite")
async def toggle_favorite(
    job_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add the job to the user's favorites, or remove it when already there."""
    job = get_job(db, job_id)
    favorite = _favorite(db, user, job.id)

    if favorite is not None:
        db.delete(favorite)
        db.commit()
        return {"message": "Job removed from favorites", "is_favorite": False}

    db.add(JobFavorite(user_id=user.id, job_id=job.id))
    db.commit()
    return {"message": "Job added to favorites", "is_favorite": True}


@router.get("/jobs/{job_id}/favorite")
async def check_favorite(
    job_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"is_favorite": _favorite(db, user, job_id) is not None}


@router.get("/user/favorites")
async def list_favorites(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Favorited jobs that still exist, most recent first."""
    favorites = (
        db.query(JobFavorite)
        .options(joinedload(JobFavorite.job).joinedload(JobPosting.employer))
        .join(JobPosting, JobFavorite.job_id == JobPosting.id)
        .filter(JobFavorite.user_id == user.id, JobPosting.deleted_at.is_(None))
        .order_by(JobFavorite.created_at.desc(), JobFavorite.id.desc())
        .all()
    )
    return {
        "data": [
            FavoriteOut(id=f.id, job=JobOut.from_job(f.job), created_at=f.created_at) for f in favorites
        ]
    }
