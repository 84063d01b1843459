"""
Admin user management routes.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import PasswordResetStatus, UserRole
from ...db.models import PasswordResetRequest, User
from ..dependencies import get_db, require_admin
from ..errors import UnprocessableError, ValidationFailedError
from ..lookups import get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.auth import UserResponse
from ..schemas.users import AdminPasswordReset, AdminUserUpdate, PasswordResetRequestOut
from ..security import hash_password

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin/users", tags=["Admin: Users"], dependencies=[Depends(require_admin)])


@admin_router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    q: Optional[str] = Query(None, description="Search name and email"),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = db.query(User).filter(User.deleted_at.is_(None))
    if role is not None:
        query = query.filter(User.role == role)
    if q:
        query = query.filter(or_(User.full_name.ilike(like(q)), User.email.ilike(like(q))))
    query = query.order_by(User.created_at.desc())
    return page.of(query, UserResponse.model_validate)


@admin_router.get("/password-reset-requests")
async def list_password_reset_requests(db: Session = Depends(get_db)):
    """Pending reset requests, newest first."""
    requests = (
        db.query(PasswordResetRequest)
        .options(joinedload(PasswordResetRequest.user))
        .filter(PasswordResetRequest.status == PasswordResetStatus.PENDING)
        .order_by(PasswordResetRequest.created_at.desc())
        .all()
    )
    return {"data": [PasswordResetRequestOut.from_request(r) for r in requests]}


@admin_router.get("/{user_id}")
async def get_user(user_id: UUID, db: Session = Depends(get_db)):
    return {"data": UserResponse.model_validate(get_or_404(db, User, user_id, "User not found"))}


@admin_router.api_route("/{user_id}", methods=["PUT", "PATCH"])
async def update_user(user_id: UUID, request: AdminUserUpdate, db: Session = Depends(get_db)):
    user = get_or_404(db, User, user_id, "User not found")
    updates = request.model_dump(exclude_unset=True)

    if updates.get("email"):
        taken = db.query(User.id).filter(User.email == updates["email"], User.id != user.id).first()
        if taken is not None:
            raise ValidationFailedError.for_field("email", "The email has already been taken.")

    for field, value in updates.items():
        if value is None and field in ("full_name", "email", "role", "subscription_tier", "credits"):
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} updated by admin")
    return {"message": "User updated successfully", "data": UserResponse.model_validate(user)}


@admin_router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Soft delete a user; admins cannot delete themselves."""
    user = get_or_404(db, User, user_id, "User not found")
    if user.id == admin.id:
        raise UnprocessableError("You cannot delete your own account")

    user.deleted_at = datetime.utcnow()
    user.token_version = (user.token_version or 0) + 1
    db.commit()
    logger.info(f"User {user.id} deleted by {admin.id}")
    return {"message": "User deleted successfully"}


@admin_router.post("/{user_id}/reset-password")
async def reset_password(
    user_id: UUID,
    request: AdminPasswordReset,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Set a new password and close the user's pending reset requests."""
    user = get_or_404(db, User, user_id, "User not found")
    user.password_hash = hash_password(request.password)

    now = datetime.utcnow()
    pending = db.query(PasswordResetRequest).filter(
        PasswordResetRequest.user_id == user.id,
        PasswordResetRequest.status == PasswordResetStatus.PENDING,
    )
    for reset_request in pending:
        reset_request.status = PasswordResetStatus.PROCESSED
        reset_request.processed_at = now
        reset_request.processed_by = admin.id

    db.commit()
    db.refresh(user)
    logger.info(f"Password of user {user.id} reset by {admin.id}")
    return {"message": "Password reset successfully", "data": UserResponse.model_validate(user)}
