"""
Statistics routes.

Public landing page counters and the admin dashboard overview.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import JobStatus, TransactionStatus, UserRole
from ...db.models import AdSlot, JobPosting, Transaction, User
from ..dependencies import get_db, require_admin
from ..schemas.site import AdminStats, PublicStats, RecentActivity

router = APIRouter(prefix="/api/stats", tags=["Stats"])
admin_router = APIRouter(prefix="/api/admin/stats", tags=["Admin: Stats"], dependencies=[Depends(require_admin)])

# Shown on the landing page until placement outcomes are tracked
SUCCESS_RATE = 85
RECENT_PER_SOURCE = 5
RECENT_LIMIT = 10


def time_ago(moment: datetime, now: datetime = None) -> str:
    """
    Relative time in words.

    >>> time_ago(datetime(2024, 1, 1, 12, 0), datetime(2024, 1, 1, 14, 0))
    '2 hours ago'
    """
    now = now or datetime.utcnow()
    seconds = int((now - moment).total_seconds())
    if seconds < 1:
        return "just now"

    for unit, size in (
        ("year", 365 * 86400),
        ("month", 30 * 86400),
        ("week", 7 * 86400),
        ("day", 86400),
        ("hour", 3600),
        ("minute", 60),
        ("second", 1),
    ):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def active_jobs_count(db: Session) -> int:
    """Published jobs that have not expired."""
    return (
        db.query(JobPosting)
        .filter(
            JobPosting.deleted_at.is_(None),
            JobPosting.status == JobStatus.PUBLISHED,
            or_(JobPosting.expires_at.is_(None), JobPosting.expires_at > datetime.utcnow()),
        )
        .count()
    )


def _users(db: Session):
    return db.query(User).filter(User.deleted_at.is_(None))


def recent_activities(db: Session) -> List[RecentActivity]:
    """Latest registrations, pending payments, job posts and purchases, newest first."""
    activities = []

    for user in _users(db).order_by(User.created_at.desc()).limit(RECENT_PER_SOURCE):
        activities.append(("user_registered", "New user registered", user.full_name, user.created_at))

    pending = (
        db.query(Transaction)
        .options(joinedload(Transaction.user))
        .filter(Transaction.status == TransactionStatus.PENDING_APPROVAL)
        .order_by(Transaction.created_at.desc())
        .limit(RECENT_PER_SOURCE)
    )
    for payment in pending:
        name = payment.user.full_name if payment.user else "Unknown"
        activities.append(("payment_pending", "Payment pending approval", name, payment.created_at))

    jobs = (
        db.query(JobPosting)
        .options(joinedload(JobPosting.employer))
        .filter(JobPosting.deleted_at.is_(None))
        .order_by(JobPosting.created_at.desc())
        .limit(RECENT_PER_SOURCE)
    )
    for job in jobs:
        name = job.employer.full_name if job.employer else "Unknown"
        activities.append(("job_posted", "New job posted", name, job.created_at))

    purchases = (
        db.query(Transaction)
        .options(joinedload(Transaction.user))
        .filter(Transaction.status == TransactionStatus.APPROVED)
        .order_by(Transaction.updated_at.desc())
        .limit(RECENT_PER_SOURCE)
    )
    for purchase in purchases:
        name = purchase.user.full_name if purchase.user else "Unknown"
        activities.append(("course_purchased", "Course purchased", name, purchase.updated_at))

    activities.sort(key=lambda a: a[3], reverse=True)
    now = datetime.utcnow()
    return [
        RecentActivity(type=kind, action=action, user=name, time=time_ago(at, now), created_at=at)
        for kind, action, name, at in activities[:RECENT_LIMIT]
    ]


@router.get("")
async def public_stats(db: Session = Depends(get_db)):
    return {
        "data": PublicStats(
            active_jobs=active_jobs_count(db),
            companies=_users(db).filter(User.role == UserRole.EMPLOYER).count(),
            job_seekers=_users(db).filter(User.role == UserRole.SEEKER).count(),
            success_rate=SUCCESS_RATE,
        )
    }


@admin_router.get("")
async def admin_stats(db: Session = Depends(get_db)):
    """
    Dashboard overview.

    conversion_rate is approved / all transactions in percent (1 decimal).
    """
    revenue = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.status == TransactionStatus.APPROVED)
        .scalar()
    )
    total_transactions = db.query(Transaction).count()
    approved = db.query(Transaction).filter(Transaction.status == TransactionStatus.APPROVED).count()
    conversion_rate = round(approved / total_transactions * 100, 1) if total_transactions else 0.0

    return {
        "data": AdminStats(
            total_users=_users(db).count(),
            active_jobs=active_jobs_count(db),
            revenue_etb=int(revenue or 0),
            conversion_rate=conversion_rate,
            pending_payments=db.query(Transaction)
            .filter(Transaction.status == TransactionStatus.PENDING_APPROVAL)
            .count(),
            active_ads=db.query(AdSlot).filter(AdSlot.is_active.is_(True)).count(),
            recent_activities=recent_activities(db),
        )
    }
