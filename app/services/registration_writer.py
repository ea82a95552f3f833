"""
Persist one imported registration together with its inventory counters.

``write_registration`` runs inside the caller's row transaction: it claims a
distance slot and, if needed, a shirt unit with guarded ``UPDATE``
statements, then inserts the ``Registration``.  The guards re-check capacity
and stock at write time and the affected-row count tells whether another
writer got there first, in which case the row fails and the caller rolls
the whole transaction back.  Nothing is committed here.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.models.distance import Distance
from app.models.event_shirt import EventShirt
from app.models.registration import Registration
from app.services.import_errors import DistanceFullError, OutOfStockError
from app.services.inventory_service import ResolvedRow
from app.utils.constants import PaymentStatus, RegistrationSource

logger = logging.getLogger(__name__)


def _claim_distance_slot(db: Session, distance: Distance, *, enforce_cap: bool) -> None:
    stmt = update(Distance).where(Distance.id == distance.id)
    if enforce_cap:
        stmt = stmt.where(
            or_(
                Distance.max_participants.is_(None),
                Distance.current_participants < Distance.max_participants,
            )
        )
    stmt = stmt.values(
        current_participants=Distance.current_participants + 1
    ).execution_options(synchronize_session=False)

    if db.execute(stmt).rowcount != 1:
        raise DistanceFullError(distance.name, distance.max_participants)
    db.expire(distance)


def _claim_shirt_unit(db: Session, shirt: EventShirt) -> None:
    label = shirt.label
    stmt = (
        update(EventShirt)
        .where(
            EventShirt.id == shirt.id,
            EventShirt.is_available.is_(True),
            EventShirt.sold_quantity < EventShirt.stock_quantity,
        )
        .values(sold_quantity=EventShirt.sold_quantity + 1)
        .execution_options(synchronize_session=False)
    )
    if db.execute(stmt).rowcount != 1:
        raise OutOfStockError(label)
    db.expire(shirt)


def write_registration(
    db: Session,
    *,
    event_id: int,
    batch_id: int,
    resolved: ResolvedRow,
    enforce_cap: bool = True,
) -> Registration:
    """Insert the registration and bump the distance and shirt counters.

    Raises:
        DistanceFullError: The cap was reached since the row was resolved.
        OutOfStockError: The last unit was taken since the row was resolved.
    """
    row = resolved.row
    shirt = resolved.shirt

    _claim_distance_slot(db, resolved.distance, enforce_cap=enforce_cap)
    if shirt is not None:
        _claim_shirt_unit(db, shirt)

    registration = Registration(
        event_id=event_id,
        distance_id=resolved.distance.id,
        shirt_id=shirt.id if shirt is not None else None,
        import_batch_id=batch_id,
        registration_source=RegistrationSource.EXCEL.value,
        full_name=row.full_name,
        email=row.email,
        phone=row.phone,
        dob=row.dob,
        gender=row.gender.value,
        id_card=row.id_card,
        address=row.address,
        city=row.city,
        emergency_contact_name=row.emergency_contact_name,
        emergency_contact_phone=row.emergency_contact_phone,
        blood_type=row.blood_type,
        shirt_category=row.shirt.category.value if row.shirt is not None else None,
        shirt_type=row.shirt.type.value if row.shirt is not None else None,
        shirt_size=row.shirt.size if row.shirt is not None else None,
        race_fee=resolved.fees.race_fee,
        shirt_fee=resolved.fees.shirt_fee,
        total_amount=resolved.fees.total_amount,
        payment_status=PaymentStatus.PENDING.value,
        bib_number=row.bib_number,
    )
    db.add(registration)
    db.flush()
    logger.debug(
        "Registration %d written for row %d (batch %s)",
        registration.id,
        row.row_number,
        batch_id,
    )
    return registration
