"""
Field normalisation and validation for one import row.

Pure functions only: nothing here touches the database, so re-validating
the same ``RawRow`` always gives the same outcome.  ``validate_row`` either
returns a fully typed ``ValidatedRow`` or raises a ``RowImportError``.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import date

from app.parsers.base_parser import RawRow
from app.services.import_errors import (
    InvalidDateFormatError,
    InvalidGenderError,
    InvalidShirtDescriptorError,
    MissingRequiredFieldError,
    PartialShirtDescriptorError,
)
from app.utils.constants import (
    COL_ADDRESS,
    COL_BIB,
    COL_BLOOD_TYPE,
    COL_CITY,
    COL_DISTANCE,
    COL_DOB,
    COL_EMAIL,
    COL_EMERGENCY_NAME,
    COL_EMERGENCY_PHONE,
    COL_FULL_NAME,
    COL_GENDER,
    COL_ID_CARD,
    COL_PHONE,
    COL_SHIRT_CATEGORY,
    COL_SHIRT_SIZE,
    COL_SHIRT_TYPE,
    EMPTY_CELL_MARKERS,
    GENDER_SYNONYMS,
    REQUIRED_COLUMNS,
    SHIRT_CATEGORY_SYNONYMS,
    SHIRT_COLUMNS,
    SHIRT_TYPE_SYNONYMS,
    Gender,
    ShirtCategory,
    ShirtType,
)

_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ShirtDescriptor:
    category: ShirtCategory
    type: ShirtType
    size: str

    @property
    def label(self) -> str:
        return f"{self.category.value} {self.type.value} {self.size}"


@dataclass(frozen=True)
class ValidatedRow:
    """A row whose every field has been parsed into its typed value."""

    row_number: int
    full_name: str
    phone: str
    dob: date
    gender: Gender
    distance_name: str
    email: str | None = None
    id_card: str | None = None
    address: str | None = None
    city: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    blood_type: str | None = None
    shirt: ShirtDescriptor | None = None
    bib_number: str | None = None


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def normalize_text(value: str | None) -> str:
    """NFC-normalise, trim and collapse inner whitespace."""
    if value is None:
        return ""
    return _WS_RE.sub(" ", unicodedata.normalize("NFC", str(value))).strip()


def lookup_key(value: str | None) -> str:
    """Key used for synonym and name lookups: normalised and casefolded."""
    return normalize_text(value).casefold()


def is_blank(value: str | None) -> bool:
    """True for missing or whitespace-only cells."""
    return not normalize_text(value)


def is_null_like(value: str | None) -> bool:
    """Blank, or one of the textual stand-ins such as ``null`` or ``NaN``."""
    return lookup_key(value) in EMPTY_CELL_MARKERS


def _optional(value: str | None) -> str | None:
    return None if is_blank(value) else normalize_text(value)


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def parse_date(value: str | None) -> date | None:
    """Parse ``D/M/YYYY`` or ``DD/MM/YYYY``.

    Returns ``None`` for empty input.  Anything else that is not a real
    calendar date raises ``InvalidDateFormatError``; ``31/02/2024`` is
    rejected rather than rolled over into March.
    """
    if is_null_like(value):
        return None
    text = normalize_text(value)
    match = _DATE_RE.match(text)
    if match is None:
        raise InvalidDateFormatError(text)

    day, month, year = (int(part) for part in match.groups())
    if not (1900 <= year <= 2100 and 1 <= month <= 12 and 1 <= day <= 31):
        raise InvalidDateFormatError(text)
    try:
        parsed = date(year, month, day)
    except ValueError as exc:
        raise InvalidDateFormatError(text) from exc
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        raise InvalidDateFormatError(text)
    return parsed


def parse_gender(value: str | None) -> Gender:
    gender = GENDER_SYNONYMS.get(lookup_key(value))
    if gender is None:
        raise InvalidGenderError(normalize_text(value))
    return gender


def parse_shirt_category(value: str | None) -> ShirtCategory:
    category = SHIRT_CATEGORY_SYNONYMS.get(lookup_key(value))
    if category is None:
        raise InvalidShirtDescriptorError(COL_SHIRT_CATEGORY, normalize_text(value))
    return category


def parse_shirt_type(value: str | None) -> ShirtType:
    shirt_type = SHIRT_TYPE_SYNONYMS.get(lookup_key(value))
    if shirt_type is None:
        raise InvalidShirtDescriptorError(COL_SHIRT_TYPE, normalize_text(value))
    return shirt_type


def parse_shirt_size(value: str | None) -> str:
    size = normalize_text(value).upper()
    if not size:
        raise InvalidShirtDescriptorError(COL_SHIRT_SIZE, normalize_text(value))
    return size


def parse_shirt_descriptor(
    category: str | None,
    shirt_type: str | None,
    size: str | None,
) -> ShirtDescriptor | None:
    """All-or-nothing shirt descriptor.

    No shirt columns filled -> ``None``.  Some but not all filled ->
    ``PartialShirtDescriptorError``.  All filled -> each must decode.
    """
    values = dict(zip(SHIRT_COLUMNS, (category, shirt_type, size)))
    missing = [col for col, val in values.items() if is_blank(val)]
    if len(missing) == len(SHIRT_COLUMNS):
        return None
    if missing:
        raise PartialShirtDescriptorError(missing)
    return ShirtDescriptor(
        category=parse_shirt_category(category),
        type=parse_shirt_type(shirt_type),
        size=parse_shirt_size(size),
    )


# ---------------------------------------------------------------------------
# Row validation
# ---------------------------------------------------------------------------


def validate_row(row: RawRow) -> ValidatedRow:
    """Validate one spreadsheet row.

    Checks run in order: required fields (all missing ones reported at
    once), date of birth, gender, shirt descriptor.

    Raises:
        RowImportError: The first failing check.
    """
    missing = [col for col in REQUIRED_COLUMNS if is_blank(row.get(col))]
    if missing:
        raise MissingRequiredFieldError(missing)

    dob = parse_date(row.get(COL_DOB))
    if dob is None:
        raise InvalidDateFormatError(row.get(COL_DOB))

    gender = parse_gender(row.get(COL_GENDER))
    shirt = parse_shirt_descriptor(
        row.get(COL_SHIRT_CATEGORY),
        row.get(COL_SHIRT_TYPE),
        row.get(COL_SHIRT_SIZE),
    )

    return ValidatedRow(
        row_number=row.row_number,
        full_name=normalize_text(row.get(COL_FULL_NAME)),
        phone=normalize_text(row.get(COL_PHONE)),
        dob=dob,
        gender=gender,
        distance_name=normalize_text(row.get(COL_DISTANCE)),
        email=_optional(row.get(COL_EMAIL)),
        id_card=_optional(row.get(COL_ID_CARD)),
        address=_optional(row.get(COL_ADDRESS)),
        city=_optional(row.get(COL_CITY)),
        emergency_contact_name=_optional(row.get(COL_EMERGENCY_NAME)),
        emergency_contact_phone=_optional(row.get(COL_EMERGENCY_PHONE)),
        blood_type=_optional(row.get(COL_BLOOD_TYPE)),
        shirt=shirt,
        bib_number=_optional(row.get(COL_BIB)),
    )
