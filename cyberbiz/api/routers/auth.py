"""
Authentication routes.
Handles signup, login, logout, profile updates and admin password reset requests.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...db.enums import PasswordResetStatus, UserRole
from ...db.models import PasswordResetRequest, User
from ..config import get_settings
from ..dependencies import get_current_user, get_db
from ..errors import ForbiddenError, UnauthenticatedError, ValidationFailedError
from ..schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    SignupRequest,
    UserEnvelope,
    UserResponse,
)
from ..schemas.common import MessageResponse
from ..security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _auth_response(user: User, message: str) -> AuthResponse:
    settings = get_settings()
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id, user.token_version),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignupRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """
    Register a new account and return a bearer token.

    Admin accounts cannot be self-registered.
    """
    if db.query(User.id).filter(User.email == request.email).first():
        raise ValidationFailedError.for_field("email", "The email has already been taken.")

    user = User(
        full_name=request.full_name,
        email=request.email,
        phone=request.phone,
        password_hash=hash_password(request.password),
        role=UserRole(request.role),
        company_name=request.company_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User registered: {user.id} ({user.role.value})")
    return _auth_response(user, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user = (
        db.query(User)
        .filter(User.email == request.email, User.deleted_at.is_(None))
        .first()
    )
    if user is None or not verify_password(request.password, user.password_hash):
        logger.info(f"Failed login attempt for {request.email}")
        raise UnauthenticatedError("Invalid credentials")

    return _auth_response(user, "Login successful")


@router.get("/user", response_model=UserEnvelope)
async def current_user(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Revoke every token issued to the user so far."""
    user.token_version = (user.token_version or 0) + 1
    db.commit()
    return MessageResponse(message="Logged out successfully")


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    updates = request.model_dump(exclude_unset=True)

    password = updates.pop("password", None)
    if password:
        user.password_hash = hash_password(password)

    for field, value in updates.items():
        if field in ("full_name", "phone") and value is None:
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return ProfileResponse(message="Profile updated successfully", user=UserResponse.model_validate(user))


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request: ForgotPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """
    Record a password reset request for an administrator.

    Other accounts are told to contact support. The request is processed
    manually from the admin user screen.
    """
    email = request.email.strip().lower()
    user = db.query(User).filter(User.email == email, User.deleted_at.is_(None)).first()
    if user is None:
        raise ValidationFailedError.for_field("email", "The selected email is invalid.")

    if not user.is_admin:
        raise ForbiddenError(
            "Password reset is only available for administrators. Please contact support."
        )

    db.add(PasswordResetRequest(user_id=user.id, email=user.email, status=PasswordResetStatus.PENDING))
    db.commit()
    logger.info(f"Password reset requested for admin {user.id}")

    return MessageResponse(
        message="We notice the admin forgot your password. "
        "Your password reset will be processed soon and we will notify you."
    )
