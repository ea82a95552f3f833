"""ImportBatch model - audit record of one spreadsheet upload."""

import json
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class ImportBatch(Base):
    """Persistent record created for every bulk-import attempt.

    The batch is written with status ``PROCESSING`` before the first row is
    handled and receives its counters and terminal status once every row
    has been consumed.

    Invariants once terminal:
        * ``total_rows == success_count + failed_count``
        * ``status`` is ``COMPLETED`` iff ``failed_count == 0``,
          ``FAILED`` iff ``success_count == 0``, else ``PARTIAL``.

    Attributes:
        id: Primary key.
        event_id: FK to the target Event.
        file_name: Original filename submitted by the client.
        uploaded_by: ID of the User who performed the upload.
        uploaded_by_username: Snapshot of the username at import time.
        total_rows: Data rows found in the spreadsheet.
        success_count: Rows turned into registrations.
        failed_count: Rows rejected.
        total_shirts_sold: Shirts sold through this batch.
        status: ``PROCESSING`` | ``COMPLETED`` | ``PARTIAL`` | ``FAILED``.
        error_log_json: JSON-serialised list of row errors
            (``{"row", "data", "error", "code"}``) in file order.
        contact_email: Email of the first data row, used for batch notices.
        created_at: When the upload started.
        completed_at: When the terminal status was written.
    """

    __tablename__ = "import_batch"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("event.id"), nullable=False, index=True)
    file_name = Column(String(500), nullable=False)
    uploaded_by = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    uploaded_by_username = Column(String(100), nullable=True)
    total_rows = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    failed_count = Column(Integer, default=0, nullable=False)
    total_shirts_sold = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="PROCESSING", nullable=False)
    error_log_json = Column(Text, nullable=True)
    contact_email = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    event = relationship("Event", lazy="select")
    registrations = relationship(
        "Registration",
        back_populates="import_batch",
        order_by="Registration.id",
        lazy="select",
    )

    @property
    def error_log(self) -> list[dict[str, Any]]:
        if not self.error_log_json:
            return []
        return json.loads(self.error_log_json)
