"""Registration model - one athlete entered for one distance."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Registration(Base):
    """An athlete's entry into an event distance.

    Rows created by the bulk importer carry ``registration_source="EXCEL"``,
    ``payment_status="PENDING"`` and the owning ``import_batch_id``; the
    payment confirmation flow updates them later.

    Attributes:
        id: Primary key.
        event_id: FK to Event.
        distance_id: FK to the resolved Distance.
        shirt_id: FK to the resolved EventShirt, if a shirt was ordered.
        import_batch_id: FK to the ImportBatch that created the row.
        full_name, email, phone, dob, gender: Personal data.
        id_card, address, city: Optional identity/contact data.
        emergency_contact_name, emergency_contact_phone, blood_type: Optional
            medical/emergency data.
        shirt_category, shirt_type, shirt_size: Denormalised shirt variant.
        race_fee, shirt_fee, total_amount: Fees in VND;
            ``total_amount == race_fee + shirt_fee``.
        payment_status: ``PENDING`` | ``PAID`` | ``FAILED`` | ``REFUNDED``.
        registration_source: ``ONLINE`` | ``EXCEL``.
        bib_number: Race number, passed through from the spreadsheet if given.
        created_at: Record creation timestamp.
    """

    __tablename__ = "registration"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("event.id"), nullable=False, index=True)
    distance_id = Column(Integer, ForeignKey("distance.id"), nullable=False, index=True)
    shirt_id = Column(Integer, ForeignKey("event_shirt.id"), nullable=True)
    import_batch_id = Column(Integer, ForeignKey("import_batch.id"), nullable=True, index=True)

    full_name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    phone = Column(String(30), nullable=False, index=True)
    dob = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)  # "MALE", "FEMALE"
    id_card = Column(String(30), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    emergency_contact_name = Column(String(200), nullable=True)
    emergency_contact_phone = Column(String(30), nullable=True)
    blood_type = Column(String(10), nullable=True)

    shirt_category = Column(String(20), nullable=True)
    shirt_type = Column(String(20), nullable=True)
    shirt_size = Column(String(20), nullable=True)

    race_fee = Column(Integer, default=0, nullable=False)
    shirt_fee = Column(Integer, default=0, nullable=False)
    total_amount = Column(Integer, default=0, nullable=False)
    payment_status = Column(String(20), default="PENDING", nullable=False)
    registration_source = Column(String(20), default="ONLINE", nullable=False)
    bib_number = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    distance = relationship("Distance", lazy="select")
    shirt = relationship("EventShirt", lazy="select")
    import_batch = relationship(
        "ImportBatch", back_populates="registrations", lazy="select"
    )
