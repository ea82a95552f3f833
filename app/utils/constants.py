"""
Application-wide constants for the race registration system.

Defines the closed domain enumerations, the Vietnamese/English synonym
tables used to decode spreadsheet cells into them, and the column headers
of the bulk-import spreadsheet.
"""

from enum import Enum
from typing import Final

# ---------------------------------------------------------------------------
# User roles
# ---------------------------------------------------------------------------

IMPORT_ROLES: Final[tuple[str, ...]] = ("ADMIN",)


# ---------------------------------------------------------------------------
# Domain enumerations
# ---------------------------------------------------------------------------


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class ShirtCategory(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    KID = "KID"


class ShirtType(str, Enum):
    SHORT_SLEEVE = "SHORT_SLEEVE"
    TANK_TOP = "TANK_TOP"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class RegistrationSource(str, Enum):
    ONLINE = "ONLINE"
    EXCEL = "EXCEL"


class ImportStatus(str, Enum):
    """Lifecycle of an ``ImportBatch``: PROCESSING, then one terminal state."""

    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


# ---------------------------------------------------------------------------
# Synonym tables (keys are NFC-normalised and casefolded)
# ---------------------------------------------------------------------------

GENDER_SYNONYMS: Final[dict[str, Gender]] = {
    "nam": Gender.MALE,
    "male": Gender.MALE,
    "nữ": Gender.FEMALE,
    "nu": Gender.FEMALE,
    "female": Gender.FEMALE,
}

SHIRT_CATEGORY_SYNONYMS: Final[dict[str, ShirtCategory]] = {
    "nam": ShirtCategory.MALE,
    "male": ShirtCategory.MALE,
    "nữ": ShirtCategory.FEMALE,
    "nu": ShirtCategory.FEMALE,
    "female": ShirtCategory.FEMALE,
    "trẻ em": ShirtCategory.KID,
    "tre em": ShirtCategory.KID,
    "kid": ShirtCategory.KID,
    "kids": ShirtCategory.KID,
}

SHIRT_TYPE_SYNONYMS: Final[dict[str, ShirtType]] = {
    "có tay": ShirtType.SHORT_SLEEVE,
    "co tay": ShirtType.SHORT_SLEEVE,
    "tay ngắn": ShirtType.SHORT_SLEEVE,
    "short sleeve": ShirtType.SHORT_SLEEVE,
    "3 lỗ": ShirtType.TANK_TOP,
    "3 lo": ShirtType.TANK_TOP,
    "tank top": ShirtType.TANK_TOP,
}

# Textual stand-ins for a missing date
EMPTY_CELL_MARKERS: Final[frozenset[str]] = frozenset(
    {"", "null", "undefined", "none", "nan", "nat"}
)


# ---------------------------------------------------------------------------
# Import spreadsheet columns
# ---------------------------------------------------------------------------

COL_FULL_NAME: Final = "Họ tên"
COL_EMAIL: Final = "Email"
COL_PHONE: Final = "Số điện thoại"
COL_DOB: Final = "Ngày sinh"
COL_GENDER: Final = "Giới tính"
COL_DISTANCE: Final = "Cự ly"
COL_ID_CARD: Final = "CCCD"
COL_ADDRESS: Final = "Địa chỉ"
COL_CITY: Final = "Thành phố"
COL_EMERGENCY_NAME: Final = "Người liên hệ khẩn cấp"
COL_EMERGENCY_PHONE: Final = "SĐT khẩn cấp"
COL_BLOOD_TYPE: Final = "Nhóm máu"
COL_SHIRT_CATEGORY: Final = "Loại áo"
COL_SHIRT_TYPE: Final = "Kiểu áo"
COL_SHIRT_SIZE: Final = "Size áo"
COL_BIB: Final = "Số BIB"

IMPORT_COLUMNS: Final[tuple[str, ...]] = (
    COL_FULL_NAME,
    COL_EMAIL,
    COL_PHONE,
    COL_DOB,
    COL_GENDER,
    COL_DISTANCE,
    COL_ID_CARD,
    COL_ADDRESS,
    COL_CITY,
    COL_EMERGENCY_NAME,
    COL_EMERGENCY_PHONE,
    COL_BLOOD_TYPE,
    COL_SHIRT_CATEGORY,
    COL_SHIRT_TYPE,
    COL_SHIRT_SIZE,
    COL_BIB,
)

# Headers written by the downloadable template; matched exactly like the
# canonical names above.
IMPORT_COLUMN_ALIASES: Final[dict[str, str]] = {
    "Ngày sinh (DD/MM/YYYY)": COL_DOB,
    "Giới tính (Nam/Nữ)": COL_GENDER,
    "Loại áo (Nam/Nữ/Trẻ em)": COL_SHIRT_CATEGORY,
    "Kiểu áo (Có tay/3 lỗ)": COL_SHIRT_TYPE,
    "Số BIB (tùy chọn)": COL_BIB,
}

REQUIRED_COLUMNS: Final[tuple[str, ...]] = (
    COL_FULL_NAME,
    COL_PHONE,
    COL_DOB,
    COL_GENDER,
    COL_DISTANCE,
)

SHIRT_COLUMNS: Final[tuple[str, ...]] = (
    COL_SHIRT_CATEGORY,
    COL_SHIRT_TYPE,
    COL_SHIRT_SIZE,
)
