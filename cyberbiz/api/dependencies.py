"""
Dependency Injection
FastAPI dependencies for database sessions, authentication and services.
"""

import logging
from typing import Generator, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .config import get_settings
from .errors import UnauthenticatedError, ForbiddenError
from .security import verify_token
from .services.mailer import Mailer, get_mailer
from .services.storage import FileStorage, get_storage
from ..db.models import User
from ..db.session import build_engine, create_session_factory

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor (errors are raised by get_current_user)
bearer_scheme = HTTPBearer(auto_error=False)

# Database engine and session factory
_engine = None
_SessionLocal = None


def get_db_engine():
    """Get database engine (singleton)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        logger.info(f"Database engine created: {settings.database_url.split('@')[-1]}")
    return _engine


def get_session_factory():
    """Get database session factory (singleton)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = create_session_factory(get_db_engine())
        logger.info("Database session factory created")
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Get database session.

    Use as FastAPI dependency:
        @app.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _user_from_token(token: str, db: Session) -> Optional[User]:
    payload = verify_token(token)
    if not payload:
        return None

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        return None

    user = (
        db.query(User)
        .filter(User.id == user_id, User.deleted_at.is_(None))
        .first()
    )
    if user is None or payload.get("ver", 0) != user.token_version:
        return None
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Get current authenticated user from the bearer token.

    Use as FastAPI dependency to protect routes:
        @app.get("/endpoint")
        def endpoint(current_user: User = Depends(get_current_user)):
            ...

    Raises:
        UnauthenticatedError: 401 if the token is missing, invalid or revoked
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    user = _user_from_token(credentials.credentials, db)
    if user is None:
        raise UnauthenticatedError()
    return user


def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Get current authenticated user, but don't raise error if not authenticated.
    Returns None if no valid token.

    Use for endpoints that work for both authenticated and anonymous users.
    """
    if credentials is None or not credentials.credentials:
        return None
    return _user_from_token(credentials.credentials, db)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Allow only ADMIN users (403 otherwise)."""
    if not current_user.is_admin:
        raise ForbiddenError("Unauthorized")
    return current_user


def get_file_storage() -> FileStorage:
    return get_storage()


def get_mail_sender() -> Mailer:
    return get_mailer()
