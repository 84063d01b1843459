"""
Security Utilities
Password hashing (bcrypt) and JWT access tokens (python-jose).
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError

from .config import get_settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
# bcrypt rejects longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash as a UTF-8 string
    """
    rounds = get_settings().bcrypt_rounds
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    password = plain_password.encode("utf-8")
    if len(password) > MAX_PASSWORD_BYTES:
        # Never accepted when setting a password, so it cannot match
        return False
    try:
        return bcrypt.checkpw(password, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("Password check against malformed hash")
        return False


def create_access_token(
    user_id: Any,
    token_version: int = 0,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token for a user.

    Args:
        user_id: User primary key (stored as `sub`)
        token_version: User's current token version; bumping it revokes the token
        expires_delta: Custom lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "ver": token_version,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate an access token.

    Returns:
        Token payload, or None when the token is invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.debug("Access token expired")
        return None
    except JWTError as e:
        logger.debug(f"Invalid access token: {e}")
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return payload
