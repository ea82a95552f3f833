"""
Error taxonomy of the bulk registration import.

Every row-scoped failure is a ``RowImportError`` subclass with a stable
``code`` and a Vietnamese message shown to the administrator.  The
orchestrator catches them at the row boundary; only ``MalformedFileError``
aborts a whole upload.
"""

from __future__ import annotations


class MalformedFileError(ValueError):
    """The upload could not be read as a spreadsheet with data rows."""

    code = "MALFORMED_FILE"


class EmptyFileError(MalformedFileError):
    """The upload contained no bytes at all."""

    code = "EMPTY_FILE"

    def __init__(self) -> None:
        super().__init__("File rỗng")


class EventNotFoundError(LookupError):
    """The target event does not exist."""


class BatchNotFoundError(LookupError):
    """The requested import batch does not exist."""


class RowImportError(ValueError):
    """Base class for failures attributable to exactly one spreadsheet row."""

    code = "ROW_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingRequiredFieldError(RowImportError):
    code = "MISSING_REQUIRED_FIELD"

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        super().__init__(f"Thiếu thông tin bắt buộc: {', '.join(self.fields)}")


class InvalidDateFormatError(RowImportError):
    code = "INVALID_DATE_FORMAT"

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Ngày sinh không hợp lệ (phải là DD/MM/YYYY): '{value}'")


class InvalidGenderError(RowImportError):
    code = "INVALID_GENDER"

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Giới tính không hợp lệ (phải là Nam hoặc Nữ): '{value}'")


class DistanceNotFoundError(RowImportError):
    code = "DISTANCE_NOT_FOUND"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Không tìm thấy cự ly: {name}")


class DistanceFullError(RowImportError):
    code = "DISTANCE_FULL"

    def __init__(self, name: str, max_participants: int | None) -> None:
        self.name = name
        self.max_participants = max_participants
        super().__init__(f"Cự ly {name} đã đủ số lượng ({max_participants} VĐV)")


class PartialShirtDescriptorError(RowImportError):
    code = "PARTIAL_SHIRT_DESCRIPTOR"

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Thông tin áo không đầy đủ, thiếu: " + ", ".join(self.missing)
        )


class InvalidShirtDescriptorError(RowImportError):
    code = "INVALID_SHIRT_DESCRIPTOR"

    def __init__(self, column: str, value: str) -> None:
        self.column = column
        self.value = value
        super().__init__(f"Giá trị không hợp lệ cho cột '{column}': '{value}'")


class ShirtNotFoundError(RowImportError):
    code = "SHIRT_NOT_FOUND"

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Không tìm thấy áo: {label}")


class OutOfStockError(RowImportError):
    code = "OUT_OF_STOCK"

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Áo {label} đã hết hàng")


class DuplicateRegistrationError(RowImportError):
    code = "DUPLICATE_REGISTRATION"

    def __init__(self, phone: str, distance_name: str) -> None:
        self.phone = phone
        self.distance_name = distance_name
        super().__init__(
            f"Đã có đăng ký với SĐT {phone} cho cự ly {distance_name}"
        )


class ImportCancelledError(RowImportError):
    code = "IMPORT_CANCELLED"

    def __init__(self) -> None:
        super().__init__("Dòng chưa được xử lý: quá trình nhập đã bị hủy")
