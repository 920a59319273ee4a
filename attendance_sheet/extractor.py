from __future__ import annotations

import re
from typing import Any, Iterator, Optional, Sequence

from attendance_sheet.cells import Numeric, cell_at, cell_text, classify_cell, is_blank
from attendance_sheet.dates import ResolvedDate
from attendance_sheet.decoder import FIRST_BLOCK_ROW, FIRST_DATE_COLUMN
from attendance_sheet.models import (
    AttendanceStatus,
    EmployeeBlock,
    ParsedAttendanceRecord,
    is_valid_date,
)

LEADING_INT_RE = re.compile(r"^[+-]?\d+")
SUNDAY = 6


def parse_employee_id(value: Any) -> int:
    """Read an employee id the lenient way a spreadsheet user expects; 0 means unusable."""
    cell = classify_cell(value)
    if isinstance(cell, Numeric):
        try:
            return int(cell.value)
        except (ValueError, OverflowError):
            return 0
    match = LEADING_INT_RE.match(cell_text(value))
    return int(match.group(0)) if match else 0


def content_end(matrix: Sequence[Sequence[Any]]) -> int:
    """Row count with trailing all-blank rows (a final newline, say) left off."""
    end = len(matrix)
    while end > FIRST_BLOCK_ROW and all(is_blank(cell) for cell in (matrix[end - 1] or ())):
        end -= 1
    if (end - FIRST_BLOCK_ROW) % 2 and end < len(matrix):
        # a blank out-time row still completes its block
        end += 1
    return end


def iter_employee_blocks(
    matrix: Sequence[Sequence[Any]],
    warnings: Optional[list[str]] = None,
) -> Iterator[EmployeeBlock]:
    end = content_end(matrix)
    for row_index in range(FIRST_BLOCK_ROW, end, 2):
        in_row = matrix[row_index]
        out_row = matrix[row_index + 1] if row_index + 1 < end else None
        if in_row is None or out_row is None:
            if warnings is not None:
                warnings.append(f"Row {row_index + 1}: in-time row has no matching out-time row; skipped")
            continue

        employee_id = parse_employee_id(cell_at(in_row, 0))
        employee_name = cell_text(cell_at(in_row, 1))
        if not employee_id or not employee_name:
            if warnings is not None:
                warnings.append(
                    f"Row {row_index + 1}: missing employee id or name; "
                    f"block of rows {row_index + 1}-{row_index + 2} skipped"
                )
            continue

        yield EmployeeBlock(
            employee_id=employee_id,
            employee_name=employee_name,
            in_row=in_row,
            out_row=out_row,
            row_index=row_index,
        )


def block_records(
    block: EmployeeBlock,
    resolved_dates: Sequence[ResolvedDate],
    include_sundays: bool,
) -> Iterator[ParsedAttendanceRecord]:
    for index, resolved in enumerate(resolved_dates):
        if not is_valid_date(resolved):
            continue
        if not include_sundays and resolved.weekday() == SUNDAY:
            continue

        column = index + FIRST_DATE_COLUMN
        check_in = cell_text(cell_at(block.in_row, column))
        check_out = cell_text(cell_at(block.out_row, column))
        if not check_in and not check_out:
            continue

        # Only PRESENT is ever derived from cell content.
        yield ParsedAttendanceRecord(
            employee_id=block.employee_id,
            employee_name=block.employee_name,
            date=resolved.isoformat(),
            check_in=check_in,
            check_out=check_out,
            status=AttendanceStatus.PRESENT,
        )


def extract_records(
    matrix: Sequence[Sequence[Any]],
    resolved_dates: Sequence[ResolvedDate],
    include_sundays: bool,
    warnings: Optional[list[str]] = None,
) -> list[ParsedAttendanceRecord]:
    """
    Turn employee blocks into attendance records.

    Records come out in sheet order (block by block, then left to right
    across the date columns). Blocks without a usable id or name and
    employee/date pairs with both times empty produce nothing.
    """
    records: list[ParsedAttendanceRecord] = []
    for block in iter_employee_blocks(matrix, warnings):
        records.extend(block_records(block, resolved_dates, include_sundays))
    return records
