"""Spreadsheet parsers package.

Public API
----------
BaseParser - Abstract base; inherit to create a new format parser.
ParseResult - Dataclass returned by every ``parser.parse()`` call.
RawRow - One data row: display row number + header -> cell text.
RegistrationSheetParser - Athlete bulk-registration workbook (first sheet).

Usage example::

    from app.parsers import RegistrationSheetParser

    result = RegistrationSheetParser(raw_bytes).parse()
    for row in result.records:
        print(row.row_number, row.get("Họ tên"))
"""

from .base_parser import BaseParser, ParseResult, RawRow
from .registration_sheet_parser import RegistrationSheetParser

__all__: list[str] = [
    "BaseParser",
    "ParseResult",
    "RawRow",
    "RegistrationSheetParser",
]
