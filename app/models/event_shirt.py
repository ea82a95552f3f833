"""EventShirt model - one (category, type, size) shirt variant with its own stock."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class EventShirt(Base):
    """Merchandise variant sold with a registration or on its own.

    Invariant: ``sold_quantity <= stock_quantity``.

    Attributes:
        id: Primary key.
        event_id: FK to Event.
        category: ``MALE``, ``FEMALE`` or ``KID``.
        type: ``SHORT_SLEEVE`` or ``TANK_TOP``.
        size: Upper-case size label, e.g. ``"M"``, ``"XL"``.
        price: Price when bought together with a registration (VND).
        standalone_price: Price when ordered without a registration (VND).
        stock_quantity: Units available in total.
        sold_quantity: Units already committed.
        is_available: Whether the variant can be sold at all.
    """

    __tablename__ = "event_shirt"
    __table_args__ = (
        UniqueConstraint("event_id", "category", "type", "size", name="uq_event_shirt_variant"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("event.id"), nullable=False, index=True)
    category = Column(String(20), nullable=False)  # "MALE", "FEMALE", "KID"
    type = Column(String(20), nullable=False)  # "SHORT_SLEEVE", "TANK_TOP"
    size = Column(String(20), nullable=False)
    price = Column(Integer, default=0, nullable=False)
    standalone_price = Column(Integer, default=0, nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    sold_quantity = Column(Integer, default=0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    event = relationship("Event", back_populates="shirts", lazy="select")

    @property
    def label(self) -> str:
        return f"{self.category} {self.type} {self.size}"

    @property
    def remaining(self) -> int:
        return self.stock_quantity - self.sold_quantity
