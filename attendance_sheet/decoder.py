from __future__ import annotations

from typing import Any, Sequence

from attendance_sheet.dates import ResolvedDate, resolve_date_cell
from attendance_sheet.errors import SheetFormatError

HEADER_ROW = 0
WEEKDAY_ROW = 1
FIRST_BLOCK_ROW = 2
FIRST_DATE_COLUMN = 2
MIN_ROWS = 3
MIN_HEADER_COLUMNS = 3


def validate_layout(matrix: Sequence[Sequence[Any]]) -> None:
    if len(matrix) < MIN_ROWS:
        raise SheetFormatError(
            "Invalid file format: not enough rows. Expected at least 3 rows "
            "(dates, weekdays and the first employee's data), "
            f"found {len(matrix)}."
        )
    header = matrix[HEADER_ROW] or []
    if len(header) < MIN_HEADER_COLUMNS:
        raise SheetFormatError(
            "Invalid file format: the header row needs at least Emp. ID, Emp. Name "
            f"and status columns, found {len(header)} column(s)."
        )


def decode_dates(matrix: Sequence[Sequence[Any]]) -> tuple[ResolvedDate, ...]:
    """
    Resolve every header cell from column C onwards.

    The result is index-aligned with the data columns: entry i describes
    column i + 2, and unresolvable cells stay in place as INVALID.
    """
    validate_layout(matrix)
    header = matrix[HEADER_ROW]
    return tuple(resolve_date_cell(cell) for cell in header[FIRST_DATE_COLUMN:])
