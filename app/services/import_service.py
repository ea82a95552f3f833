"""
Bulk registration import service layer.

Handles an administrator's athlete spreadsheet end-to-end:

1. Parse the first sheet into ordered raw rows (``RegistrationSheetParser``).
2. Create an ``ImportBatch`` in status ``PROCESSING``.
3. Drive every row, in file order, through validation -> inventory
   resolution -> fee calculation -> registration write.  Each row is its own
   transaction: committed on success, rolled back on failure.  A failed row
   is recorded in the error ledger and never stops the batch.
4. Write the terminal status, counters and error ledger on the batch.
5. Return an ``ImportResultResponse`` with a bounded error sample.

Row processing is strictly sequential: later rows in the same file may
compete with earlier ones for the same shirt stock.

Cancellation
------------
Between rows the orchestrator asks ``is_cancelled`` (e.g. "has the HTTP
client gone away?") and checks the optional deadline.  When either fires,
the remaining rows are recorded as failed with ``IMPORT_CANCELLED`` so that
``total_rows == success_count + failed_count`` still holds; already
committed rows stay as they are.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models.event import Event
from app.models.import_batch import ImportBatch
from app.models.registration import Registration
from app.parsers.base_parser import ParseResult, RawRow
from app.parsers.registration_sheet_parser import RegistrationSheetParser
from app.schemas.import_batch import (
    BatchSummary,
    ImportBatchErrorsResponse,
    ImportBatchListItem,
    ImportResultResponse,
    RowErrorItem,
)
from app.services.file_storage import save_upload
from app.services.import_errors import (
    BatchNotFoundError,
    EmptyFileError,
    EventNotFoundError,
    ImportCancelledError,
    RowImportError,
)
from app.services.inventory_service import resolve_row
from app.services.registration_writer import write_registration
from app.services.row_validator import is_blank, normalize_text, validate_row
from app.utils.constants import COL_EMAIL, ImportStatus

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], Awaitable[bool]]


# ---------------------------------------------------------------------------
# Per-row outcome accumulation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RowError:
    row: int
    data: dict[str, str]
    error: str
    code: str

    @classmethod
    def from_exception(cls, raw_row: RawRow, exc: RowImportError) -> "RowError":
        return cls(
            row=raw_row.row_number,
            data=dict(raw_row.data),
            error=exc.message,
            code=exc.code,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "data": self.data, "error": self.error, "code": self.code}


@dataclass(frozen=True)
class BatchAccumulator:
    """Immutable running totals, folded over row outcomes."""

    success_count: int = 0
    failed_count: int = 0
    total_shirts: int = 0
    errors: tuple[RowError, ...] = field(default_factory=tuple)

    def record_success(self, *, with_shirt: bool) -> "BatchAccumulator":
        return replace(
            self,
            success_count=self.success_count + 1,
            total_shirts=self.total_shirts + (1 if with_shirt else 0),
        )

    def record_failure(self, error: RowError) -> "BatchAccumulator":
        return replace(
            self,
            failed_count=self.failed_count + 1,
            errors=self.errors + (error,),
        )

    @property
    def processed(self) -> int:
        return self.success_count + self.failed_count


def derive_status(success_count: int, failed_count: int) -> ImportStatus:
    """Terminal batch status as a pure function of the two counters."""
    if failed_count == 0:
        return ImportStatus.COMPLETED
    if success_count == 0:
        return ImportStatus.FAILED
    return ImportStatus.PARTIAL


# ---------------------------------------------------------------------------
# Single row
# ---------------------------------------------------------------------------


def import_row(
    db: Session,
    *,
    event_id: int,
    batch_id: int,
    raw_row: RawRow,
    settings: Settings,
) -> Registration:
    """Validate, resolve, price and write one row inside the open transaction.

    The caller commits on success and rolls back on any exception.
    """
    validated = validate_row(raw_row)
    resolved = resolve_row(
        db,
        event_id,
        validated,
        enforce_cap=settings.IMPORT_ENFORCE_DISTANCE_CAP,
        reject_duplicates=settings.IMPORT_REJECT_DUPLICATES,
    )
    return write_registration(
        db,
        event_id=event_id,
        batch_id=batch_id,
        resolved=resolved,
        enforce_cap=settings.IMPORT_ENFORCE_DISTANCE_CAP,
    )


def _process_one(
    db: Session,
    acc: BatchAccumulator,
    *,
    event_id: int,
    batch_id: int,
    raw_row: RawRow,
    settings: Settings,
) -> BatchAccumulator:
    try:
        registration = import_row(
            db, event_id=event_id, batch_id=batch_id, raw_row=raw_row, settings=settings
        )
        with_shirt = registration.shirt_id is not None
        db.commit()
    except RowImportError as exc:
        db.rollback()
        logger.info("Batch %d row %d rejected: [%s] %s", batch_id, raw_row.row_number, exc.code, exc)
        return acc.record_failure(RowError.from_exception(raw_row, exc))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Batch %d row %d: database error", batch_id, raw_row.row_number)
        return acc.record_failure(
            RowError(
                row=raw_row.row_number,
                data=dict(raw_row.data),
                error=f"Lỗi cơ sở dữ liệu: {exc.__class__.__name__}",
                code="DATABASE_ERROR",
            )
        )
    except Exception as exc:
        db.rollback()
        logger.exception("Batch %d row %d: unexpected error", batch_id, raw_row.row_number)
        return acc.record_failure(
            RowError(
                row=raw_row.row_number,
                data=dict(raw_row.data),
                error=f"Lỗi không xác định: {exc.__class__.__name__}",
                code="UNEXPECTED_ERROR",
            )
        )
    return acc.record_success(with_shirt=with_shirt)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def _contact_email(rows: Sequence[RawRow]) -> str | None:
    if not rows:
        return None
    email = rows[0].get(COL_EMAIL)
    return None if is_blank(email) else normalize_text(email)


async def _should_stop(is_cancelled: CancelCheck | None, deadline: float | None) -> bool:
    if deadline is not None and time.monotonic() >= deadline:
        return True
    if is_cancelled is not None and await is_cancelled():
        return True
    return False


async def run_import(
    db: Session,
    *,
    event: Event,
    rows: Sequence[RawRow],
    file_name: str,
    user_id: int | None = None,
    username: str | None = None,
    is_cancelled: CancelCheck | None = None,
    settings: Settings | None = None,
) -> tuple[ImportBatch, BatchAccumulator]:
    """Import *rows* into *event* and return the finished batch and totals."""
    settings = settings or get_settings()
    event_id = event.id

    batch = ImportBatch(
        event_id=event_id,
        file_name=file_name,
        uploaded_by=user_id,
        uploaded_by_username=username,
        total_rows=len(rows),
        status=ImportStatus.PROCESSING.value,
        contact_email=_contact_email(rows),
    )
    db.add(batch)
    db.commit()
    batch_id = batch.id
    logger.info(
        "Import batch %d started: event=%d file='%s' rows=%d user='%s'",
        batch_id, event_id, file_name, len(rows), username,
    )

    deadline = (
        time.monotonic() + settings.IMPORT_TIMEOUT_SECONDS
        if settings.IMPORT_TIMEOUT_SECONDS
        else None
    )

    acc = BatchAccumulator()
    for position, raw_row in enumerate(rows):
        if await _should_stop(is_cancelled, deadline):
            logger.warning(
                "Import batch %d cancelled after %d of %d rows",
                batch_id, position, len(rows),
            )
            for skipped in rows[position:]:
                acc = acc.record_failure(
                    RowError.from_exception(skipped, ImportCancelledError())
                )
            break
        acc = _process_one(
            db, acc, event_id=event_id, batch_id=batch_id, raw_row=raw_row, settings=settings
        )

    status = derive_status(acc.success_count, acc.failed_count)
    try:
        batch = db.get(ImportBatch, batch_id)
        batch.success_count = acc.success_count
        batch.failed_count = acc.failed_count
        batch.total_shirts_sold = acc.total_shirts
        batch.status = status.value
        batch.error_log_json = (
            json.dumps([e.to_dict() for e in acc.errors], ensure_ascii=False)
            if acc.errors
            else None
        )
        batch.completed_at = datetime.now(timezone.utc).replace(tzinfo=None)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to finalise import batch %d", batch_id)
        raise RuntimeError(f"Lỗi khi lưu kết quả nhập dữ liệu: {exc}") from exc

    logger.info(
        "Import batch %d finished: status=%s ok=%d failed=%d shirts=%d",
        batch_id, status.value, acc.success_count, acc.failed_count, acc.total_shirts,
    )
    return batch, acc


# ---------------------------------------------------------------------------
# Result reporting
# ---------------------------------------------------------------------------


def _row_error_item(error: dict[str, Any] | RowError) -> RowErrorItem:
    payload = error.to_dict() if isinstance(error, RowError) else error
    return RowErrorItem(
        row=payload["row"],
        data=payload.get("data") or {},
        error=payload["error"],
        code=payload.get("code"),
    )


def build_import_result(
    batch: ImportBatch,
    acc: BatchAccumulator,
    *,
    sample_size: int = 10,
    warnings: list[str] | None = None,
) -> ImportResultResponse:
    """Batch summary plus the first *sample_size* row errors."""
    return ImportResultResponse(
        success=True,
        batch=BatchSummary(
            id=batch.id,
            total_rows=batch.total_rows,
            success_count=acc.success_count,
            failed_count=acc.failed_count,
            status=batch.status,
            contact_email=batch.contact_email,
            total_shirts=acc.total_shirts,
        ),
        errors=[_row_error_item(e) for e in acc.errors[:sample_size]],
        warnings=warnings or [],
    )


# ---------------------------------------------------------------------------
# Upload entry point
# ---------------------------------------------------------------------------


def parse_workbook(raw: bytes) -> ParseResult:
    """Parse an upload; raises ``MalformedFileError`` if it is unusable."""
    return RegistrationSheetParser(raw).parse()


async def process_upload(
    db: Session,
    file: UploadFile,
    event_id: int,
    user_id: int | None,
    username: str | None,
    is_cancelled: CancelCheck | None = None,
) -> ImportResultResponse:
    """Process an uploaded registration workbook end-to-end.

    Raises:
        MalformedFileError: Empty or unreadable file; no batch is created.
        EventNotFoundError: *event_id* does not exist.
        RuntimeError: The batch outcome could not be persisted.
    """
    settings = get_settings()

    raw: bytes = await file.read()
    filename: str = file.filename or "upload.xlsx"
    if not raw:
        raise EmptyFileError()

    event = db.get(Event, event_id)
    if event is None:
        raise EventNotFoundError(f"Không tìm thấy sự kiện {event_id}")

    try:
        saved_path = save_upload(
            raw, filename, settings.UPLOADS_DIR, event_id=event_id, username=username or "anonymous"
        )
        logger.info("File saved to: %s", saved_path)
    except OSError as exc:
        logger.warning("Could not save upload to disk: %s", exc)

    result = parse_workbook(raw)
    logger.info("process_upload: file='%s' %s", filename, result.summary())

    batch, acc = await run_import(
        db,
        event=event,
        rows=result.records,
        file_name=filename,
        user_id=user_id,
        username=username,
        is_cancelled=is_cancelled,
        settings=settings,
    )
    return build_import_result(
        batch,
        acc,
        sample_size=settings.IMPORT_ERROR_SAMPLE_SIZE,
        warnings=result.warnings,
    )


# ---------------------------------------------------------------------------
# History queries
# ---------------------------------------------------------------------------


def get_batches(
    db: Session,
    event_id: int | None = None,
    limit: int | None = None,
) -> list[ImportBatchListItem]:
    """Return the most recent import batches, newest first."""
    limit = limit or get_settings().IMPORT_BATCH_HISTORY_LIMIT
    q = db.query(ImportBatch)
    if event_id is not None:
        q = q.filter(ImportBatch.event_id == event_id)
    records = q.order_by(ImportBatch.created_at.desc(), ImportBatch.id.desc()).limit(limit).all()

    result: list[ImportBatchListItem] = []
    for rec in records:
        result.append(
            ImportBatchListItem(
                id=rec.id,
                event_id=rec.event_id,
                event_name=rec.event.name if rec.event is not None else None,
                file_name=rec.file_name,
                uploaded_by=rec.uploaded_by_username,
                total_rows=rec.total_rows,
                success_count=rec.success_count,
                failed_count=rec.failed_count,
                total_shirts_sold=rec.total_shirts_sold,
                status=rec.status,
                created_at=rec.created_at,
                completed_at=rec.completed_at,
            )
        )

    logger.debug("get_batches: %d records returned", len(result))
    return result


def get_batch_errors(db: Session, batch_id: int) -> ImportBatchErrorsResponse:
    """Return the full error ledger of one batch."""
    batch = db.get(ImportBatch, batch_id)
    if batch is None:
        raise BatchNotFoundError(f"Không tìm thấy lô nhập {batch_id}")
    return ImportBatchErrorsResponse(
        errors=[_row_error_item(e) for e in batch.error_log],
        failed_count=batch.failed_count,
        status=batch.status,
    )
