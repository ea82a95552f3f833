"""
Tests for distance/shirt resolution, fee calculation and the registration
writer's guarded inventory updates.
"""

import pytest
from sqlalchemy import update

from app.models.distance import Distance
from app.models.event_shirt import EventShirt
from app.models.registration import Registration
from app.parsers.base_parser import RawRow
from app.services.import_errors import (
    DistanceFullError,
    DistanceNotFoundError,
    DuplicateRegistrationError,
    OutOfStockError,
    ShirtNotFoundError,
)
from app.services.inventory_service import (
    calculate_fees,
    resolve_distance,
    resolve_row,
    resolve_shirt,
)
from app.services.registration_writer import write_registration
from app.services.row_validator import ShirtDescriptor, validate_row
from app.utils.constants import COL_DISTANCE, ShirtCategory, ShirtType
from workbooks import athlete, shirt


def _validated(**overrides):
    return validate_row(RawRow(row_number=2, data=athlete(**overrides)))


class TestResolveDistance:
    """Distance lookup by free-text name"""

    def test_exact_name(self, db, event, distances):
        assert resolve_distance(db, event.id, "10KM").id == distances["10KM"].id

    def test_case_and_padding_are_ignored(self, db, event, distances):
        assert resolve_distance(db, event.id, "  10km ").id == distances["10KM"].id

    def test_unknown_name(self, db, event, distances):
        with pytest.raises(DistanceNotFoundError) as exc_info:
            resolve_distance(db, event.id, "42KM")
        assert exc_info.value.code == "DISTANCE_NOT_FOUND"

    def test_other_events_distances_are_invisible(self, db, event, distances):
        with pytest.raises(DistanceNotFoundError):
            resolve_distance(db, event.id + 1, "10KM")

    def test_full_distance(self, db, event, distances):
        distances["21KM"].current_participants = 2
        db.commit()
        with pytest.raises(DistanceFullError) as exc_info:
            resolve_distance(db, event.id, "21KM")
        assert exc_info.value.max_participants == 2

    def test_cap_can_be_disabled(self, db, event, distances):
        distances["21KM"].current_participants = 2
        db.commit()
        assert resolve_distance(db, event.id, "21KM", enforce_cap=False).name == "21KM"


class TestResolveShirt:
    """Shirt lookup by (category, type, size)"""

    def test_available_variant(self, db, event, shirts):
        descriptor = ShirtDescriptor(ShirtCategory.MALE, ShirtType.SHORT_SLEEVE, "M")
        assert resolve_shirt(db, event.id, descriptor).id == shirts["male_m"].id

    def test_sold_out_variant(self, db, event, shirts):
        descriptor = ShirtDescriptor(ShirtCategory.FEMALE, ShirtType.TANK_TOP, "S")
        with pytest.raises(OutOfStockError) as exc_info:
            resolve_shirt(db, event.id, descriptor)
        assert exc_info.value.code == "OUT_OF_STOCK"

    def test_unavailable_variant_is_not_found(self, db, event, shirts):
        descriptor = ShirtDescriptor(ShirtCategory.MALE, ShirtType.SHORT_SLEEVE, "L")
        with pytest.raises(ShirtNotFoundError):
            resolve_shirt(db, event.id, descriptor)

    def test_missing_variant(self, db, event, shirts):
        descriptor = ShirtDescriptor(ShirtCategory.KID, ShirtType.TANK_TOP, "XS")
        with pytest.raises(ShirtNotFoundError) as exc_info:
            resolve_shirt(db, event.id, descriptor)
        assert "KID TANK_TOP XS" in exc_info.value.message


class TestFees:
    """Fee calculation"""

    def test_without_shirt(self, db, distances):
        fees = calculate_fees(distances["10KM"], None)
        assert (fees.race_fee, fees.shirt_fee, fees.total_amount) == (150000, 0, 150000)

    def test_with_shirt(self, db, distances, shirts):
        fees = calculate_fees(distances["5KM"], shirts["male_m"])
        assert (fees.race_fee, fees.shirt_fee, fees.total_amount) == (100000, 120000, 220000)


class TestResolveRow:
    """Full row resolution"""

    def test_duplicates_allowed_by_default(self, db, event, catalog):
        row = _validated()
        write_registration(db, event_id=event.id, batch_id=None, resolved=resolve_row(db, event.id, row))
        db.commit()
        assert resolve_row(db, event.id, row).distance.name == "10KM"

    def test_duplicates_rejected_when_enabled(self, db, event, catalog):
        row = _validated()
        write_registration(db, event_id=event.id, batch_id=None, resolved=resolve_row(db, event.id, row))
        db.commit()
        with pytest.raises(DuplicateRegistrationError):
            resolve_row(db, event.id, row, reject_duplicates=True)

    def test_same_phone_other_distance_is_not_a_duplicate(self, db, event, catalog):
        write_registration(
            db, event_id=event.id, batch_id=None, resolved=resolve_row(db, event.id, _validated())
        )
        db.commit()
        other = _validated(**{COL_DISTANCE: "5KM"})
        assert resolve_row(db, event.id, other, reject_duplicates=True).distance.name == "5KM"


class TestWriteRegistration:
    """Registration insert and inventory counters"""

    def test_counters_and_fields(self, db, event, catalog):
        resolved = resolve_row(db, event.id, _validated(**shirt("Nam", "Có tay", "m")))
        registration = write_registration(db, event_id=event.id, batch_id=None, resolved=resolved)
        db.commit()

        assert db.get(Distance, catalog["distances"]["10KM"].id).current_participants == 1
        assert db.get(EventShirt, catalog["shirts"]["male_m"].id).sold_quantity == 1

        saved = db.get(Registration, registration.id)
        assert saved.registration_source == "EXCEL"
        assert saved.payment_status == "PENDING"
        assert saved.gender == "FEMALE"
        assert (saved.shirt_category, saved.shirt_type, saved.shirt_size) == (
            "MALE", "SHORT_SLEEVE", "M",
        )
        assert (saved.race_fee, saved.shirt_fee, saved.total_amount) == (150000, 120000, 270000)

    def test_last_unit_taken_after_resolution(self, db, event, catalog):
        kid_xs = catalog["shirts"]["kid_xs_last"]
        resolved = resolve_row(db, event.id, _validated(**shirt("Trẻ em", "Có tay", "XS")))

        # Another writer sells the last unit between resolution and write
        db.execute(
            update(EventShirt)
            .where(EventShirt.id == kid_xs.id)
            .values(sold_quantity=EventShirt.stock_quantity)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(OutOfStockError):
            write_registration(db, event_id=event.id, batch_id=None, resolved=resolved)
        db.rollback()

        assert db.get(Distance, catalog["distances"]["10KM"].id).current_participants == 0
        assert db.query(Registration).count() == 0

    def test_distance_filled_after_resolution(self, db, event, catalog):
        capped = catalog["distances"]["21KM"]
        capped.current_participants = 1
        db.commit()
        resolved = resolve_row(db, event.id, _validated(**{COL_DISTANCE: "21KM"}))

        db.execute(
            update(Distance)
            .where(Distance.id == capped.id)
            .values(current_participants=2)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(DistanceFullError):
            write_registration(db, event_id=event.id, batch_id=None, resolved=resolved)
        db.rollback()
        assert db.query(Registration).count() == 0
