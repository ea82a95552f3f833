"""
Back-office identity: login, the current-user dependency and role gates.

Only staff accounts log in here; athletes never do.  Tokens carry the user's
primary key in ``sub`` and are re-checked against the ``app_user`` table on
every request, so deactivating an account takes effect immediately.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.utils.security import hash_password, verify_password, verify_token

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _active_user_query(db: Session):
    return db.query(User).filter(User.is_active.is_(True))


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Không thể xác thực thông tin đăng nhập",
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Return the active user matching the credentials, or ``None``.

    The router decides which HTTP error to send, so nothing is raised for
    bad credentials.  A successful login stamps ``last_login_at``.
    """
    user = _active_user_query(db).filter(User.username == username).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.debug("Rejected credentials for '%s'", username)
        return None

    user.last_login_at = datetime.now(timezone.utc).replace(tzinfo=None)
    try:
        db.commit()
    except SQLAlchemyError:  # pragma: no cover
        db.rollback()
        logger.warning("Could not record last login of '%s'", username)
    return user


# ---------------------------------------------------------------------------
# Request dependencies
# ---------------------------------------------------------------------------


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Resolve the Bearer token to an active ``User``.

    Raises:
        HTTPException 401: Bad or expired token, or unknown/deactivated user.
    """
    try:
        claims = verify_token(token)
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise _unauthorized() from exc

    user = _active_user_query(db).filter(User.id == user_id).first()
    if user is None:
        raise _unauthorized()
    return user


def require_role(*roles: str):
    """Dependency factory: the current user must hold one of *roles*.

    Raises:
        HTTPException 403: The user's role is not allowed.
    """
    allowed = frozenset(roles)

    def _check_role(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed:
            logger.info(
                "User '%s' (%s) denied; needs one of %s",
                current_user.username, current_user.role, sorted(allowed),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Truy cập bị từ chối. Cần một trong các vai trò: {sorted(allowed)}",
            )
        return current_user

    return _check_role


# ---------------------------------------------------------------------------
# Startup seeding
# ---------------------------------------------------------------------------


def ensure_admin_user(db: Session) -> User:
    """Create the configured admin account if it does not exist yet."""
    settings = get_settings()
    admin = db.query(User).filter(User.username == settings.ADMIN_USERNAME).first()
    if admin is None:
        admin = User(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            full_name="Administrator",
            role="ADMIN",
            is_active=True,
        )
        db.add(admin)
        db.commit()
        logger.info("Admin user '%s' created", settings.ADMIN_USERNAME)
    return admin
