"""Response bodies of ``/api/auth``."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TokenResponse(BaseModel):
    """JWT issued by ``POST /login``; send it as ``Authorization: Bearer``."""

    access_token: str = Field(..., description="JWT truy cập")
    token_type: str = Field(default="bearer", description="Luôn là 'bearer'")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"access_token": "eyJhbGciOiJIUzI1NiJ9...", "token_type": "bearer"}
        }
    )


class UserResponse(BaseModel):
    """Back-office account as shown by ``GET /me`` (no password hash)."""

    id: int
    username: str
    email: EmailStr
    full_name: str | None = None
    role: str = Field(..., description="ADMIN | STAFF")
    is_active: bool
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
