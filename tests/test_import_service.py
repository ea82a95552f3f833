"""
Integration tests for the batch orchestrator and result reporter.

Each test imports real workbooks into an in-memory database and checks the
batch counters, the error ledger and the inventory side effects together.
"""

import asyncio
import io

import pytest
from starlette.datastructures import UploadFile

from app.config import Settings
from app.models.distance import Distance
from app.models.event_shirt import EventShirt
from app.models.import_batch import ImportBatch
from app.models.registration import Registration
from app.services import import_service
from app.services.import_errors import (
    BatchNotFoundError,
    EmptyFileError,
    EventNotFoundError,
    MalformedFileError,
)
from app.services.import_service import (
    BatchAccumulator,
    RowError,
    derive_status,
    parse_workbook,
    run_import,
)
from app.utils.constants import (
    COL_DISTANCE,
    COL_DOB,
    COL_EMAIL,
    COL_GENDER,
    COL_PHONE,
    ImportStatus,
)
from workbooks import athlete, build_workbook, shirt


def _phone(i: int) -> str:
    return f"09{i:08d}"


def _import(db, event, rows, settings=None, **kwargs):
    records = parse_workbook(build_workbook(rows)).records
    return asyncio.run(
        run_import(
            db,
            event=event,
            rows=records,
            file_name="dang-ky.xlsx",
            username="admin",
            settings=settings or Settings(),
            **kwargs,
        )
    )


def _cancel_after(n: int):
    calls = 0

    async def _check() -> bool:
        nonlocal calls
        calls += 1
        return calls > n

    return _check


class TestAccumulator:
    """Pure folding helpers"""

    def test_status_is_derived_from_counters(self):
        assert derive_status(3, 0) is ImportStatus.COMPLETED
        assert derive_status(0, 3) is ImportStatus.FAILED
        assert derive_status(2, 1) is ImportStatus.PARTIAL
        assert derive_status(0, 0) is ImportStatus.COMPLETED

    def test_accumulator_is_immutable(self):
        start = BatchAccumulator()
        after = start.record_success(with_shirt=True).record_failure(
            RowError(row=3, data={}, error="x", code="X")
        )
        assert start.processed == 0
        assert (after.success_count, after.failed_count, after.total_shirts) == (1, 1, 1)
        assert after.errors[0].row == 3


class TestScenarios:
    """End-to-end row outcomes"""

    def test_female_runner_without_shirt(self, db, event, catalog):
        batch, acc = _import(db, event, [athlete(**{COL_GENDER: "nữ", COL_DISTANCE: "10KM"})])

        assert batch.status == ImportStatus.COMPLETED.value
        registration = db.query(Registration).one()
        assert (registration.race_fee, registration.shirt_fee, registration.total_amount) == (
            150000, 0, 150000,
        )
        assert registration.import_batch_id == batch.id
        assert db.get(Distance, catalog["distances"]["10KM"].id).current_participants == 1
        assert acc.total_shirts == 0

    def test_partial_shirt_descriptor_changes_nothing(self, db, event, catalog):
        batch, acc = _import(db, event, [athlete(**shirt("Nam", "", "M"))])

        assert batch.status == ImportStatus.FAILED.value
        assert acc.errors[0].code == "PARTIAL_SHIRT_DESCRIPTOR"
        assert db.query(Registration).count() == 0
        assert db.get(Distance, catalog["distances"]["10KM"].id).current_participants == 0
        assert db.get(EventShirt, catalog["shirts"]["male_m"].id).sold_quantity == 0

    def test_sold_out_shirt(self, db, event, catalog):
        batch, acc = _import(db, event, [athlete(**shirt("Nữ", "3 lỗ", "S"))])

        assert batch.failed_count == 1
        assert acc.errors[0].code == "OUT_OF_STOCK"
        assert db.get(EventShirt, catalog["shirts"]["female_s_sold_out"].id).sold_quantity == 5

    def test_bad_dates_in_ten_row_file(self, db, event, catalog):
        rows = [athlete(**{COL_PHONE: _phone(i)}) for i in range(1, 11)]
        rows[2][COL_DOB] = "31/02/2024"
        rows[6][COL_DOB] = "1990-05-05"

        batch, acc = _import(db, event, rows)

        assert (batch.success_count, batch.failed_count) == (8, 2)
        assert batch.status == ImportStatus.PARTIAL.value
        assert [e["row"] for e in batch.error_log] == [4, 8]
        assert {e["code"] for e in batch.error_log} == {"INVALID_DATE_FORMAT"}
        assert batch.error_log[0]["data"][COL_DOB] == "31/02/2024"


class TestBatchInvariants:
    """Counters, ordering and inventory conservation"""

    def test_counts_add_up(self, db, event, catalog):
        rows = [
            athlete(**{COL_PHONE: _phone(1)}),
            athlete(**{COL_PHONE: _phone(2), COL_DISTANCE: "42KM"}),
            athlete(**{COL_PHONE: _phone(3)}, **shirt("Nam", "Có tay", "M")),
            athlete(**{COL_PHONE: _phone(4), COL_GENDER: "?"}),
        ]
        batch, acc = _import(db, event, rows)

        assert batch.total_rows == 4
        assert batch.total_rows == batch.success_count + batch.failed_count
        assert db.query(Registration).filter_by(import_batch_id=batch.id).count() == batch.success_count
        assert batch.total_shirts_sold == 1
        assert [e.code for e in acc.errors] == ["DISTANCE_NOT_FOUND", "INVALID_GENDER"]
        assert batch.completed_at is not None

    def test_last_unit_goes_to_earliest_row(self, db, event, catalog):
        rows = [
            athlete(**{COL_PHONE: _phone(1)}, **shirt("Trẻ em", "Có tay", "XS")),
            athlete(**{COL_PHONE: _phone(2)}, **shirt("Trẻ em", "Có tay", "XS")),
        ]
        batch, acc = _import(db, event, rows)

        assert batch.success_count == 1
        assert acc.errors[0].row == 3
        assert acc.errors[0].code == "OUT_OF_STOCK"
        kid = db.get(EventShirt, catalog["shirts"]["kid_xs_last"].id)
        assert kid.sold_quantity == kid.stock_quantity == 1

    def test_last_unit_across_batches(self, db, event, catalog):
        wanted = shirt("Trẻ em", "Có tay", "XS")
        first, _ = _import(db, event, [athlete(**{COL_PHONE: _phone(1)}, **wanted)])
        second, acc = _import(db, event, [athlete(**{COL_PHONE: _phone(2)}, **wanted)])

        assert first.status == ImportStatus.COMPLETED.value
        assert second.status == ImportStatus.FAILED.value
        assert acc.errors[0].code == "OUT_OF_STOCK"
        assert db.query(Registration).filter(Registration.shirt_id.isnot(None)).count() == 1

    def test_distance_cap(self, db, event, catalog):
        rows = [athlete(**{COL_PHONE: _phone(i), COL_DISTANCE: "21KM"}) for i in range(1, 4)]
        batch, acc = _import(db, event, rows)

        assert (batch.success_count, batch.failed_count) == (2, 1)
        assert acc.errors[0].code == "DISTANCE_FULL"
        assert db.get(Distance, catalog["distances"]["21KM"].id).current_participants == 2

    def test_distance_cap_disabled(self, db, event, catalog):
        rows = [athlete(**{COL_PHONE: _phone(i), COL_DISTANCE: "21KM"}) for i in range(1, 4)]
        batch, _ = _import(db, event, rows, settings=Settings(IMPORT_ENFORCE_DISTANCE_CAP=False))

        assert batch.success_count == 3
        assert db.get(Distance, catalog["distances"]["21KM"].id).current_participants == 3

    def test_duplicates_accepted_by_default(self, db, event, catalog):
        batch, _ = _import(db, event, [athlete(), athlete()])
        assert batch.success_count == 2

    def test_duplicates_rejected_when_enabled(self, db, event, catalog):
        settings = Settings(IMPORT_REJECT_DUPLICATES=True)
        batch, acc = _import(db, event, [athlete(), athlete()], settings=settings)

        assert (batch.success_count, batch.failed_count) == (1, 1)
        assert acc.errors[0].code == "DUPLICATE_REGISTRATION"

    def test_contact_email_comes_from_first_row(self, db, event, catalog):
        rows = [
            athlete(**{COL_EMAIL: "truong.doan@example.com"}),
            athlete(**{COL_EMAIL: "other@example.com", COL_PHONE: _phone(2)}),
        ]
        batch, _ = _import(db, event, rows)
        assert batch.contact_email == "truong.doan@example.com"

    def test_unexpected_writer_error_fails_only_that_row(self, db, event, catalog, monkeypatch):
        real_writer = import_service.write_registration
        calls = 0

        def flaky_writer(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise KeyError("boom")
            return real_writer(*args, **kwargs)

        monkeypatch.setattr(import_service, "write_registration", flaky_writer)
        rows = [athlete(**{COL_PHONE: _phone(i)}) for i in range(1, 4)]
        batch, acc = _import(db, event, rows)

        assert (batch.total_rows, batch.success_count, batch.failed_count) == (3, 2, 1)
        assert batch.status == ImportStatus.PARTIAL.value
        assert batch.completed_at is not None
        assert [(e.row, e.code) for e in acc.errors] == [(3, "UNEXPECTED_ERROR")]
        assert db.query(Registration).count() == 2
        assert db.get(Distance, catalog["distances"]["10KM"].id).current_participants == 2


class TestCancellation:
    """Stopping between rows"""

    def test_remaining_rows_are_recorded_as_cancelled(self, db, event, catalog):
        rows = [athlete(**{COL_PHONE: _phone(i)}) for i in range(1, 6)]
        batch, acc = _import(db, event, rows, is_cancelled=_cancel_after(2))

        assert (batch.success_count, batch.failed_count) == (2, 3)
        assert batch.status == ImportStatus.PARTIAL.value
        assert [e.row for e in acc.errors] == [4, 5, 6]
        assert {e.code for e in acc.errors} == {"IMPORT_CANCELLED"}
        assert db.query(Registration).count() == 2

    def test_expired_deadline_stops_before_first_row(self, db, event, catalog):
        settings = Settings(IMPORT_TIMEOUT_SECONDS=1e-9)
        batch, _ = _import(db, event, [athlete()], settings=settings)

        assert batch.status == ImportStatus.FAILED.value
        assert db.query(Registration).count() == 0


class TestProcessUpload:
    """Upload entry point and reporting"""

    @staticmethod
    def _upload(raw: bytes) -> UploadFile:
        return UploadFile(file=io.BytesIO(raw), filename="dang ky.xlsx")

    def _process(self, db, event_id, raw):
        return asyncio.run(
            import_service.process_upload(
                db=db,
                file=self._upload(raw),
                event_id=event_id,
                user_id=None,
                username="admin",
            )
        )

    def test_error_sample_is_bounded(self, db, event, catalog):
        rows = [athlete(**{COL_PHONE: _phone(i), COL_DISTANCE: "100KM"}) for i in range(12)]
        result = self._process(db, event.id, build_workbook(rows))

        assert result.batch.failed_count == 12
        assert len(result.errors) == 10
        assert [e.row for e in result.errors] == list(range(2, 12))

        ledger = import_service.get_batch_errors(db, result.batch.id)
        assert len(ledger.errors) == 12
        assert ledger.status == ImportStatus.FAILED.value

    def test_camel_case_payload(self, db, event, catalog):
        result = self._process(db, event.id, build_workbook([athlete()]))
        payload = result.model_dump(by_alias=True)

        assert payload["success"] is True
        assert payload["batch"]["successCount"] == 1
        assert payload["batch"]["contactEmail"] == "lan.nguyen@example.com"
        assert payload["errors"] == []

    def test_empty_upload(self, db, event):
        with pytest.raises(EmptyFileError):
            self._process(db, event.id, b"")
        assert db.query(ImportBatch).count() == 0

    def test_unreadable_upload(self, db, event):
        with pytest.raises(MalformedFileError):
            self._process(db, event.id, b"not a spreadsheet")
        assert db.query(ImportBatch).count() == 0

    def test_unknown_event(self, db, event):
        with pytest.raises(EventNotFoundError):
            self._process(db, event.id + 100, build_workbook([athlete()]))


class TestHistory:
    """Batch listing and error ledger lookup"""

    def test_batches_newest_first(self, db, event, catalog):
        first, _ = _import(db, event, [athlete()])
        second, _ = _import(db, event, [athlete(**{COL_DISTANCE: "?"})])

        items = import_service.get_batches(db, event_id=event.id)

        assert [i.id for i in items] == [second.id, first.id]
        assert items[0].event_name == "Hà Nội Marathon 2026"
        assert items[0].uploaded_by == "admin"
        assert items[0].status == ImportStatus.FAILED.value

    def test_batches_filtered_by_event(self, db, event, catalog):
        _import(db, event, [athlete()])
        assert import_service.get_batches(db, event_id=event.id + 1) == []

    def test_missing_batch(self, db):
        with pytest.raises(BatchNotFoundError):
            import_service.get_batch_errors(db, 999)
