"""
Password hashing (passlib/bcrypt) and access tokens (python-jose).
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from isoko_api.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8


def is_valid_password(password: str) -> bool:
    return len(password or "") >= MIN_PASSWORD_LENGTH


def hash_password(password: str) -> str:
    if not is_valid_password(password):
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError as exc:
        logger.warning("Password verification error: %s", exc)
        return False


def create_access_token(subject: str, role: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))
    claims = {"sub": subject, "role": role, "exp": expire, "jti": uuid.uuid4().hex}
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any] | None:
    """Claims of a valid token, or None for a bad / expired one."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
