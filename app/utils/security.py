"""
Password hashing and JWT helpers for back-office logins.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs signed with
python-jose.  Secrets and lifetimes come from ``get_settings()``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.config import get_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def create_access_token(subject: int | str, claims: dict[str, Any] | None = None) -> str:
    """Sign a JWT for *subject* (the user's primary key).

    ``exp`` and ``iat`` are set here from ``JWT_EXPIRATION_MINUTES``; any
    extra *claims* (username, role …) are embedded as-is.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = dict(claims or {})
    payload.update(
        {
            "sub": str(subject),
            "iat": now,
            "exp": now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
        }
    )
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT access token.

    Raises:
        ValueError: If the token is invalid, expired, or cannot be decoded.
                    FastAPI dependencies map this to HTTP 401.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.debug("JWT verification failed: %s", exc)
        raise ValueError("Token không hợp lệ hoặc đã hết hạn") from exc
