"""Event model - a race that owns its distances and shirt inventory."""

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Event(Base):
    """A running event open for registration.

    Attributes:
        id: Primary key.
        name: Display name.
        slug: Unique URL slug.
        date: Race day.
        is_published: Whether the event is visible to the public.
        created_at: Record creation timestamp.
    """

    __tablename__ = "event"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(300), nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    date = Column(Date, nullable=True)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    distances = relationship(
        "Distance",
        back_populates="event",
        order_by="Distance.id",
        lazy="select",
        cascade="all, delete-orphan",
    )
    shirts = relationship(
        "EventShirt",
        back_populates="event",
        order_by="EventShirt.id",
        lazy="select",
        cascade="all, delete-orphan",
    )
