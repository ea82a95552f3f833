"""
Inventory resolution and fee calculation for imported rows.

Resolves a validated row's free-text distance name and shirt descriptor
against the event's live catalog.  Every lookup re-reads the catalog inside
the caller's row transaction and locks the matched rows (``SELECT ... FOR
UPDATE`` where the backend supports it); a snapshot taken at batch start is
never reused.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.distance import Distance
from app.models.event_shirt import EventShirt
from app.models.registration import Registration
from app.services.import_errors import (
    DistanceFullError,
    DistanceNotFoundError,
    DuplicateRegistrationError,
    OutOfStockError,
    ShirtNotFoundError,
)
from app.services.row_validator import ShirtDescriptor, ValidatedRow, lookup_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeBreakdown:
    race_fee: int
    shirt_fee: int
    total_amount: int


@dataclass(frozen=True)
class ResolvedRow:
    """A validated row bound to the inventory entries it consumes."""

    row: ValidatedRow
    distance: Distance
    shirt: EventShirt | None
    fees: FeeBreakdown


# ---------------------------------------------------------------------------
# Distance
# ---------------------------------------------------------------------------


def resolve_distance(
    db: Session,
    event_id: int,
    name: str,
    *,
    enforce_cap: bool = True,
) -> Distance:
    """Find the event distance whose name equals *name*, ignoring case.

    Raises:
        DistanceNotFoundError: No exact (case-insensitive, trimmed) match.
        DistanceFullError: ``enforce_cap`` is on and the cap is reached.
    """
    wanted = lookup_key(name)
    candidates = (
        db.query(Distance)
        .filter(Distance.event_id == event_id)
        .order_by(Distance.id)
        .all()
    )
    match = next((d for d in candidates if lookup_key(d.name) == wanted), None)
    if match is None:
        raise DistanceNotFoundError(name)

    distance = (
        db.query(Distance)
        .filter(Distance.id == match.id)
        .with_for_update()
        .populate_existing()
        .one()
    )
    if (
        enforce_cap
        and distance.max_participants is not None
        and distance.current_participants >= distance.max_participants
    ):
        raise DistanceFullError(distance.name, distance.max_participants)
    return distance


# ---------------------------------------------------------------------------
# Shirt
# ---------------------------------------------------------------------------


def resolve_shirt(db: Session, event_id: int, descriptor: ShirtDescriptor) -> EventShirt:
    """Find the available variant matching *descriptor* with stock left.

    Raises:
        ShirtNotFoundError: No available variant with that category/type/size.
        OutOfStockError: The variant exists but ``stock - sold <= 0``.
    """
    shirt = (
        db.query(EventShirt)
        .filter(
            EventShirt.event_id == event_id,
            EventShirt.category == descriptor.category.value,
            EventShirt.type == descriptor.type.value,
            func.upper(func.trim(EventShirt.size)) == descriptor.size,
            EventShirt.is_available.is_(True),
        )
        .order_by(EventShirt.id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if shirt is None:
        raise ShirtNotFoundError(descriptor.label)
    if shirt.remaining <= 0:
        raise OutOfStockError(descriptor.label)
    return shirt


# ---------------------------------------------------------------------------
# Duplicates (optional policy)
# ---------------------------------------------------------------------------


def ensure_not_registered(db: Session, event_id: int, phone: str, distance: Distance) -> None:
    """Reject a row whose (event, phone, distance) key is already registered."""
    exists = (
        db.query(Registration.id)
        .filter(
            Registration.event_id == event_id,
            Registration.distance_id == distance.id,
            Registration.phone == phone,
        )
        .first()
    )
    if exists is not None:
        raise DuplicateRegistrationError(phone, distance.name)


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------


def calculate_fees(distance: Distance, shirt: EventShirt | None) -> FeeBreakdown:
    race_fee = int(distance.price or 0)
    shirt_fee = int(shirt.price or 0) if shirt is not None else 0
    return FeeBreakdown(
        race_fee=race_fee,
        shirt_fee=shirt_fee,
        total_amount=race_fee + shirt_fee,
    )


def resolve_row(
    db: Session,
    event_id: int,
    row: ValidatedRow,
    *,
    enforce_cap: bool = True,
    reject_duplicates: bool = False,
) -> ResolvedRow:
    """Resolve distance, optional shirt and fees for one validated row."""
    distance = resolve_distance(db, event_id, row.distance_name, enforce_cap=enforce_cap)
    if reject_duplicates:
        ensure_not_registered(db, event_id, row.phone, distance)
    shirt = resolve_shirt(db, event_id, row.shirt) if row.shirt is not None else None
    fees = calculate_fees(distance, shirt)
    logger.debug(
        "Row %d resolved: distance=%s shirt=%s total=%d",
        row.row_number,
        distance.id,
        shirt.id if shirt is not None else None,
        fees.total_amount,
    )
    return ResolvedRow(row=row, distance=distance, shirt=shirt, fees=fees)
