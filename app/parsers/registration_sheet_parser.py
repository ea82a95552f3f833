"""Parser for the athlete bulk-registration spreadsheet.

Reads the first sheet of the upload.  The first non-blank row is the header;
every later non-blank row becomes a ``RawRow`` keyed by column header and
numbered as the spreadsheet displays it.  Known headers (and the template's
decorated aliases) are mapped to their canonical names; unknown headers are
kept as-is so the raw row can be shown back in error reports.
"""

from __future__ import annotations

import logging

from app.parsers.base_parser import BaseParser, ParseResult, RawRow
from app.services.import_errors import MalformedFileError
from app.utils.constants import (
    IMPORT_COLUMN_ALIASES,
    IMPORT_COLUMNS,
    REQUIRED_COLUMNS,
)

logger = logging.getLogger(__name__)


class RegistrationSheetParser(BaseParser):
    """Turn an uploaded workbook into ordered raw registration rows."""

    FORMAT_NAME = "REGISTRATION_IMPORT"

    @staticmethod
    def _canonical_header(header: str) -> str:
        return IMPORT_COLUMN_ALIASES.get(header, header)

    def parse(self) -> ParseResult:
        raw_df = self._load_raw_rows(sheet_name=0)

        header_idx: int | None = None
        for idx in range(len(raw_df)):
            if not self._is_empty_row(raw_df.iloc[idx]):
                header_idx = idx
                break
        if header_idx is None:
            raise MalformedFileError("File Excel không có dữ liệu")

        headers = [
            self._canonical_header(self._clean_str(v)) for v in raw_df.iloc[header_idx]
        ]

        known = set(IMPORT_COLUMNS)
        unknown = [h for h in headers if h and h not in known]
        missing = [c for c in REQUIRED_COLUMNS if c not in headers]
        if unknown:
            self.result.warnings.append(
                "Bỏ qua các cột không xác định: " + ", ".join(unknown)
            )
        if missing:
            self.result.warnings.append(
                "Thiếu các cột bắt buộc: " + ", ".join(missing)
            )

        for idx in range(header_idx + 1, len(raw_df)):
            row = raw_df.iloc[idx]
            if self._is_empty_row(row):
                continue
            data: dict[str, str] = {}
            for col_pos, header in enumerate(headers):
                if not header:
                    continue
                data[header] = self._clean_str(row.iloc[col_pos])
            self.result.records.append(RawRow(row_number=idx + 1, data=data))

        if not self.result.records:
            raise MalformedFileError("File Excel không có dữ liệu")

        self.result.metadata.update(
            {
                "header_row": header_idx + 1,
                "headers": [h for h in headers if h],
                "missing_columns": missing,
                "unknown_columns": unknown,
                "total_rows": self.result.record_count,
            }
        )
        logger.debug("RegistrationSheetParser: %s", self.result.summary())
        return self.result
