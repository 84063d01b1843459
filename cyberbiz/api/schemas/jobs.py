"""
Job Schemas
Job postings, applications and favorites.
"""

from datetime import datetime, time
from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field

from .auth import UserResponse
from .common import Url, UtcDatetime
from ...db.enums import JobStatus, JobType


def _after_today(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return value
    if value <= datetime.combine(datetime.utcnow().date(), time.min):
        raise ValueError("The expires at must be a date after today.")
    return value


Skill = Annotated[str, Field(max_length=100)]
ExpiresAt = Annotated[UtcDatetime, AfterValidator(_after_today)]


class JobCreate(BaseModel):
    """
    Request schema for posting a job.

    A plain-text `description` is converted to HTML unless a rich-text
    `description_html` is given.
    """

    title: str = Field(..., min_length=1, max_length=255)
    job_type: Optional[JobType] = None
    location: Optional[str] = Field(None, max_length=255)
    experience: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[Skill]] = None
    description: Optional[str] = None
    description_html: Optional[str] = None
    website_url: Optional[Url] = None
    status: Optional[JobStatus] = None
    expires_at: Optional[ExpiresAt] = None
    company_description: Optional[str] = None


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    job_type: Optional[JobType] = None
    location: Optional[str] = Field(None, max_length=255)
    experience: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[Skill]] = None
    description: Optional[str] = None
    description_html: Optional[str] = None
    website_url: Optional[Url] = None
    status: Optional[JobStatus] = None
    expires_at: Optional[ExpiresAt] = None
    company_description: Optional[str] = None


class JobOut(BaseModel):
    id: UUID
    title: str
    job_type: Optional[JobType] = None
    location: Optional[str] = None
    experience: Optional[str] = None
    skills: List[str] = []
    description_html: str
    status: JobStatus
    expires_at: Optional[datetime] = None
    company_description: Optional[str] = None
    ld_json: Optional[Dict[str, Any]] = None
    employer: Optional[UserResponse] = None
    applications_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job, applications_count: Optional[int] = None) -> "JobOut":
        return cls(
            id=job.id,
            title=job.title,
            job_type=job.job_type,
            location=job.location,
            experience=job.experience,
            skills=job.skills or [],
            description_html=job.description_html,
            status=job.status,
            expires_at=job.expires_at,
            company_description=job.company_description,
            ld_json=job.ld_json,
            employer=UserResponse.model_validate(job.employer) if job.employer else None,
            applications_count=applications_count,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class ApplicationOut(BaseModel):
    id: UUID
    job: Optional[JobOut] = None
    seeker: Optional[UserResponse] = None
    cv_original_name: str
    cover_letter: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_application(cls, application) -> "ApplicationOut":
        return cls(
            id=application.id,
            job=JobOut.from_job(application.job) if application.job else None,
            seeker=UserResponse.model_validate(application.seeker) if application.seeker else None,
            cv_original_name=application.cv_original_name,
            cover_letter=application.cover_letter,
            created_at=application.created_at,
        )


class ApplyFields(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=5000)


class FavoriteOut(BaseModel):
    id: int
    job: JobOut
    created_at: datetime
