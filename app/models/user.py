"""User model - back-office account with role-based access control."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.database import Base


class User(Base):
    """Back-office user.

    Roles:
        - ADMIN: Full access, including bulk imports.
        - STAFF: Read-only access to batches and registrations.

    Attributes:
        id: Primary key.
        username: Unique login username.
        email: Unique email address.
        password_hash: Bcrypt-hashed password (never store plain text).
        full_name: Display name.
        role: Role identifier controlling permissions.
        is_active: Whether the account is active.
        last_login_at: Timestamp of the last successful login.
        created_at: Record creation timestamp.
    """

    __tablename__ = "app_user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    full_name = Column(String(300), nullable=True)
    role = Column(String(50), nullable=False, default="STAFF")  # "ADMIN", "STAFF"
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
