from __future__ import annotations


class AttendanceSheetError(Exception):
    """Base class for every error raised by attendance_sheet."""


class SheetReadError(AttendanceSheetError, ValueError):
    """The input file could not be read into a cell matrix."""


class SheetFormatError(AttendanceSheetError, ValueError):
    """The matrix does not follow the template layout (fatal for a parse)."""


class DateRangeError(AttendanceSheetError, ValueError):
    """A template was requested for an impossible day range."""


class IngestionError(AttendanceSheetError):
    """The attendance store could not accept an upload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
