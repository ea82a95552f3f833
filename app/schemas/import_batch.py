"""
Pydantic v2 schemas for the bulk registration import.

Covers:
- Upload result returned by POST /api/import/upload.
- Batch history list for GET /api/import/batches.
- Full error ledger for GET /api/import/{batch_id}/errors.

Payloads are serialised in camelCase (``totalRows``, ``successCount`` …) to
match the admin dashboard; the Python side uses snake_case field names.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Row error
# ---------------------------------------------------------------------------


class RowErrorItem(BaseModel):
    """One rejected spreadsheet row."""

    row: int = Field(..., ge=1, description="Số dòng trong file Excel (dòng tiêu đề là 1).")
    data: dict[str, str] = Field(default_factory=dict, description="Dữ liệu gốc của dòng.")
    error: str = Field(..., description="Lý do dòng bị từ chối.")
    code: str | None = Field(None, description="Mã lỗi, ví dụ 'OUT_OF_STOCK'.")

    model_config = _CAMEL


# ---------------------------------------------------------------------------
# Upload result
# ---------------------------------------------------------------------------


class BatchSummary(BaseModel):
    """Aggregate outcome of one import batch."""

    id: int
    total_rows: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0)
    status: str = Field(..., description="COMPLETED | PARTIAL | FAILED")
    contact_email: str | None = None
    total_shirts: int = Field(0, ge=0)

    model_config = _CAMEL


class ImportResultResponse(BaseModel):
    """Summary returned after processing an uploaded registration workbook."""

    success: bool = True
    batch: BatchSummary
    errors: list[RowErrorItem] = Field(
        default_factory=list,
        description="Các lỗi đầu tiên (tối đa IMPORT_ERROR_SAMPLE_SIZE).",
    )
    warnings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "success": True,
                "batch": {
                    "id": 12,
                    "totalRows": 10,
                    "successCount": 8,
                    "failedCount": 2,
                    "status": "PARTIAL",
                    "contactEmail": "a@example.com",
                    "totalShirts": 5,
                },
                "errors": [
                    {
                        "row": 4,
                        "data": {"Họ tên": "Nguyễn Văn A", "Ngày sinh": "31/02/2024"},
                        "error": "Ngày sinh không hợp lệ (phải là DD/MM/YYYY): '31/02/2024'",
                        "code": "INVALID_DATE_FORMAT",
                    }
                ],
                "warnings": [],
            }
        },
    )


# ---------------------------------------------------------------------------
# Batch history
# ---------------------------------------------------------------------------


class ImportBatchListItem(BaseModel):
    """Single row in the import batch history."""

    id: int
    event_id: int
    event_name: str | None = None
    file_name: str
    uploaded_by: str | None = None
    total_rows: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0)
    total_shirts_sold: int = Field(0, ge=0)
    status: str
    created_at: datetime
    completed_at: datetime | None = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ImportBatchErrorsResponse(BaseModel):
    """Complete error ledger of a batch."""

    errors: list[RowErrorItem] = Field(default_factory=list)
    failed_count: int = Field(..., ge=0)
    status: str

    model_config = _CAMEL
