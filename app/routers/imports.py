"""
Bulk registration import router.

Mounts under ``/api/import`` (prefix set in ``main.py``).

The upload endpoint requires the ADMIN role (enforced via ``require_role``).
The history endpoints are readable by any authenticated user.

Endpoints
---------
POST /upload - Import athletes from an Excel workbook.
GET  /batches - List recent import batches (newest first).
GET  /{batch_id}/errors - Full error ledger of one batch.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.import_batch import (
    ImportBatchErrorsResponse,
    ImportBatchListItem,
    ImportResultResponse,
)
from app.services import import_service
from app.services.auth_service import get_current_user, require_role
from app.services.import_errors import EmptyFileError, MalformedFileError
from app.utils.constants import IMPORT_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Import"])

# ---------------------------------------------------------------------------
# Shared content-type validation helper
# ---------------------------------------------------------------------------

_ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # .xlsx
        "application/octet-stream",  # some browsers send this for .xlsx
    }
)


def _validate_excel_file(file: UploadFile) -> None:
    """Log uploads whose MIME type does not look like a workbook.

    Browsers often mislabel ``.xlsx`` files, so this only warns; the real
    check is whether openpyxl can open the bytes.
    """
    content_type = file.content_type or ""
    if content_type not in _ALLOWED_CONTENT_TYPES:
        logger.warning(
            "Unexpected content_type='%s' for file='%s', proceeding anyway",
            content_type,
            file.filename,
        )


# ---------------------------------------------------------------------------
# POST /upload
# ---------------------------------------------------------------------------


@router.post(
    "/upload",
    response_model=ImportResultResponse,
    status_code=status.HTTP_200_OK,
    summary="Nhập danh sách VĐV từ file Excel",
    description=(
        "Đọc sheet đầu tiên của file Excel, kiểm tra từng dòng và tạo đăng ký "
        "với trạng thái thanh toán PENDING. Dòng lỗi được ghi lại và không làm "
        "dừng cả lô. Yêu cầu vai trò ADMIN."
    ),
    responses={
        200: {"description": "Tóm tắt lô nhập và tối đa 10 lỗi đầu tiên."},
        400: {"description": "File rỗng."},
        401: {"description": "Thiếu hoặc sai JWT."},
        403: {"description": "Không đủ quyền."},
        404: {"description": "Không tìm thấy sự kiện."},
        422: {"description": "File không đọc được hoặc không có dữ liệu."},
    },
)
async def upload_registrations(
    request: Request,
    file: Annotated[UploadFile, File(description="File Excel (.xlsx)")],
    event_id: Annotated[int, Form(description="ID sự kiện", ge=1)],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_role(*IMPORT_ROLES))],
) -> ImportResultResponse:
    """Import an athlete spreadsheet into *event_id*.

    Raises:
        HTTPException 400: If the uploaded file is empty.
        HTTPException 404: If the event does not exist.
        HTTPException 422: If the file is not a readable workbook with data.
        HTTPException 500: If the batch outcome could not be saved.
    """
    _validate_excel_file(file)
    logger.info(
        "upload_registrations: user='%s' event=%d file='%s'",
        current_user.username,
        event_id,
        file.filename,
    )

    try:
        return await import_service.process_upload(
            db=db,
            file=file,
            event_id=event_id,
            user_id=current_user.id,
            username=current_user.username,
            is_cancelled=request.is_disconnected,
        )
    except MalformedFileError as exc:
        code = (
            status.HTTP_400_BAD_REQUEST
            if isinstance(exc, EmptyFileError)
            else status.HTTP_422_UNPROCESSABLE_ENTITY
        )
        raise HTTPException(status_code=code, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc


# ---------------------------------------------------------------------------
# GET /batches
# ---------------------------------------------------------------------------


@router.get(
    "/batches",
    response_model=list[ImportBatchListItem],
    summary="Lịch sử nhập dữ liệu",
    description="Các lô nhập gần nhất, mới nhất trước. Có thể lọc theo sự kiện.",
)
def list_batches(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[User, Depends(get_current_user)],
    event_id: Annotated[int | None, Query(description="Lọc theo ID sự kiện.", ge=1)] = None,
) -> list[ImportBatchListItem]:
    logger.debug("GET /import/batches event_id=%s", event_id)
    return import_service.get_batches(db, event_id=event_id)


# ---------------------------------------------------------------------------
# GET /{batch_id}/errors
# ---------------------------------------------------------------------------


@router.get(
    "/{batch_id}/errors",
    response_model=ImportBatchErrorsResponse,
    summary="Toàn bộ lỗi của một lô nhập",
    responses={404: {"description": "Không tìm thấy lô nhập."}},
)
def get_batch_errors(
    batch_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[User, Depends(get_current_user)],
) -> ImportBatchErrorsResponse:
    try:
        return import_service.get_batch_errors(db, batch_id)
    except LookupError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
