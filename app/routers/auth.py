"""
Back-office login (``/api/auth``).

``POST /login`` takes the standard OAuth2 password form so Swagger's
"Authorize" button works; ``GET /me`` echoes the caller's account.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.auth import TokenResponse, UserResponse
from app.services.auth_service import authenticate_user, get_current_user
from app.utils.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Đăng nhập",
    responses={401: {"description": "Sai tên đăng nhập, mật khẩu hoặc tài khoản bị khóa."}},
)
def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    user = authenticate_user(db, form_data.username, form_data.password)
    if user is None:
        logger.warning("Login refused for '%s'", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sai thông tin đăng nhập hoặc tài khoản bị khóa",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("User '%s' logged in as %s", user.username, user.role)
    return TokenResponse(
        access_token=create_access_token(user.id, {"username": user.username, "role": user.role})
    )


@router.get("/me", response_model=UserResponse, summary="Tài khoản hiện tại")
def me(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    return current_user
