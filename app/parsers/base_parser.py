"""Abstract base class for spreadsheet parsers.

Provides shared infrastructure for loading workbooks and normalising cell
values before format-specific subclasses do their domain logic.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd

from app.services.import_errors import EmptyFileError, MalformedFileError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawRow:
    """One data row as it appears in the sheet.

    Attributes:
        row_number: 1-based display row number (the header is row 1 in a
            standard file, so the first data row is row 2).
        data: Column header -> stripped cell text.  Empty cells map to ``""``.
    """

    row_number: int
    data: dict[str, str]

    def get(self, column: str) -> str:
        return self.data.get(column, "")


@dataclass
class ParseResult:
    """Container returned by every parser after processing a workbook.

    Attributes:
        records: Data rows in file order.
        warnings: Non-fatal oddities (unknown or missing headers …).
        metadata: Facts about the file (sheet name, headers, row counts).
        format_name: Identifier of the parser that produced the result.
    """

    records: list[RawRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    format_name: str = "UNKNOWN"

    @property
    def record_count(self) -> int:
        """Number of data rows found."""
        return len(self.records)

    def summary(self) -> str:
        """One-line human-readable summary of the parse run."""
        return (
            f"format={self.format_name} "
            f"records={self.record_count} "
            f"warnings={len(self.warnings)}"
        )


# ---------------------------------------------------------------------------
# Base parser
# ---------------------------------------------------------------------------


class BaseParser(ABC):
    """Common loading and cell-cleaning for workbook parsers.

    A parser is built from raw bytes (``await UploadFile.read()``), a path on
    disk, or a binary file object, and ``parse()`` is called once.
    """

    FORMAT_NAME: str = "UNKNOWN"

    def __init__(self, source: str | Path | bytes | BinaryIO) -> None:
        self.workbook_bytes: bytes = self._as_bytes(source)
        self.result: ParseResult = ParseResult(format_name=self.FORMAT_NAME)

    @staticmethod
    def _as_bytes(source: str | Path | bytes | BinaryIO) -> bytes:
        if isinstance(source, bytes):
            return source
        if isinstance(source, (str, Path)):
            return Path(source).read_bytes()
        return source.read()

    # ------------------------------------------------------------------
    # Sheet loading
    # ------------------------------------------------------------------

    def _load_raw_rows(self, sheet_name: str | int = 0) -> pd.DataFrame:
        """Read one worksheet as a header-less frame of untyped cells.

        ``dtype=object`` keeps date cells as dates so they can be shown as
        ``DD/MM/YYYY``.  Blank rows between data rows are preserved, so
        frame index ``i`` is spreadsheet row ``i + 1``.

        Raises:
            EmptyFileError: No bytes at all.
            MalformedFileError: Not an .xlsx workbook, or no such sheet.
        """
        if not self.workbook_bytes:
            raise EmptyFileError()
        try:
            return pd.read_excel(
                io.BytesIO(self.workbook_bytes),
                sheet_name=sheet_name,
                header=None,
                dtype=object,
                engine="openpyxl",
            )
        except Exception as exc:
            logger.warning("%s: cannot read sheet %r: %s", self.FORMAT_NAME, sheet_name, exc)
            raise MalformedFileError(f"Không đọc được file Excel: {exc}") from exc

    # ------------------------------------------------------------------
    # Cell helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clean_str(value: Any) -> str:
        """Cell value as the text the user sees.

        Missing cells give ``""``; dates give ``DD/MM/YYYY``; whole-number
        floats drop their ``.0`` (phones and BIBs typed as numbers).
        """
        if value is None:
            return ""
        if isinstance(value, (datetime, date)):
            return "" if pd.isna(value) else value.strftime("%d/%m/%Y")
        if isinstance(value, float):
            if pd.isna(value):
                return ""
            if value.is_integer():
                return str(int(value))
        return str(value).strip()

    @classmethod
    def _is_empty_row(cls, row: pd.Series) -> bool:
        return not any(cls._clean_str(v) for v in row)

    @abstractmethod
    def parse(self) -> ParseResult:
        """Run the parser and return its ``ParseResult``."""
