"""Distance model - a race category with its own fee and participant cap."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class Distance(Base):
    """A race distance inside an event, e.g. ``"10KM"``.

    ``current_participants`` is a shared counter: the bulk import and the
    online registration flow both increment it, so writers must use a
    guarded ``UPDATE`` rather than read-modify-write.

    Attributes:
        id: Primary key.
        event_id: FK to Event.
        name: Display name matched (case-insensitively) by the importer.
        price: Race fee in VND.
        max_participants: Optional cap; ``None`` means unlimited.
        current_participants: Number of registrations taken so far.
        is_active: Whether the distance accepts registrations.
    """

    __tablename__ = "distance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("event.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    price = Column(Integer, default=0, nullable=False)
    max_participants = Column(Integer, nullable=True)
    current_participants = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    event = relationship("Event", back_populates="distances", lazy="select")
