"""
template.py — build the bulk attendance entry template

Layout (shared with the decoder):
    row 1   Emp. ID | Emp. Name | status | DD-MM-YYYY | DD-MM-YYYY | ...
    row 2           |           |        | Mon        | Tue        | ...
    row 3   <id>    | <name>    | In-time  | (blank per day)
    row 4           |           | Out-time | (blank per day)
    ...two rows per employee

The CSV form is what users download; write_template_workbook() produces
the same grid as .xlsx for people who prefer to start in Excel.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from attendance_sheet.errors import DateRangeError
from attendance_sheet.models import Employee

HEADER_LABELS = ["Emp. ID", "Emp. Name", "status"]
IN_TIME_LABEL = "In-time"
OUT_TIME_LABEL = "Out-time"
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

SAMPLE_ROSTER = (
    Employee(1, "John Doe"),
    Employee(2, "Jane Smith"),
    Employee(3, "Mike Johnson"),
)

HEADER_FILL = "4472C4"
IN_TIME_FILL = "E2EFDA"
OUT_TIME_FILL = "FCE4D6"


def template_dates(year: int, month: int, day_from: int, day_to: int) -> list[date]:
    if not 1 <= month <= 12:
        raise DateRangeError(f"Month must be between 1 and 12, got {month}.")
    if not 1 <= year <= 9999:
        raise DateRangeError(f"Year must be between 1 and 9999, got {year}.")
    last_day = calendar.monthrange(year, month)[1]
    for label, day in (("Start", day_from), ("End", day_to)):
        if not 1 <= day <= last_day:
            raise DateRangeError(
                f"{label} day {day} is outside {year}-{month:02d} (1-{last_day}). "
                "Dates must be within the selected month and year."
            )
    if day_from > day_to:
        raise DateRangeError("Start date cannot be after end date.")

    start = date(year, month, day_from)
    return [start + timedelta(days=offset) for offset in range(day_to - day_from + 1)]


def format_header_date(value: date) -> str:
    return f"{value.day:02d}-{value.month:02d}-{value.year:04d}"


def roster_or_sample(employees: Iterable[Employee], warnings: list[str] | None = None) -> list[Employee]:
    employees = list(employees)
    if employees:
        return employees
    if warnings is not None:
        warnings.append("Roster is empty; template filled with sample employees.")
    return list(SAMPLE_ROSTER)


def build_template_matrix(
    employees: Iterable[Employee],
    year: int,
    month: int,
    day_from: int,
    day_to: int,
    warnings: list[str] | None = None,
) -> list[list[str]]:
    days = template_dates(year, month, day_from, day_to)
    blanks = [""] * len(days)

    matrix = [
        HEADER_LABELS + [format_header_date(day) for day in days],
        ["", "", ""] + [WEEKDAY_NAMES[day.weekday()] for day in days],
    ]
    for employee in roster_or_sample(employees, warnings):
        matrix.append([str(employee.id), employee.full_name, IN_TIME_LABEL] + blanks)
        matrix.append(["", "", OUT_TIME_LABEL] + blanks)
    return matrix


def escape_cell(value: str) -> str:
    if "," in value or '"' in value or "\n" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def serialize_delimited(matrix: Iterable[Iterable[str]]) -> str:
    return "\n".join(",".join(escape_cell(str(cell)) for cell in row) for row in matrix)


def generate_template(roster, year: int, month: int, day_from: int, day_to: int) -> str:
    """Return the CSV template text for every employee the roster lists."""
    return serialize_delimited(build_template_matrix(roster.list(), year, month, day_from, day_to))


def template_filename(year: int, month: int, day_from: int, day_to: int, suffix: str = ".csv") -> str:
    return f"Attendance_Template_{year}-{month:02d}_{day_from:02d}-{day_to:02d}{suffix}"


def write_template_workbook(matrix: list[list[str]], output_path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "Attendance"
    for row in matrix:
        ws.append(row)

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor=HEADER_FILL)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
    for cell in ws[2]:
        cell.font = Font(italic=True, color="808080")
        cell.alignment = Alignment(horizontal="center")

    in_fill = PatternFill("solid", fgColor=IN_TIME_FILL)
    out_fill = PatternFill("solid", fgColor=OUT_TIME_FILL)
    for row_idx in range(3, ws.max_row + 1):
        label = ws.cell(row=row_idx, column=3)
        label.fill = in_fill if label.value == IN_TIME_LABEL else out_fill

    ws.freeze_panes = "D3"
    ws.column_dimensions["A"].width = 10
    ws.column_dimensions["B"].width = 24
    ws.column_dimensions["C"].width = 10
    for col_idx in range(4, len(matrix[0]) + 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = 12

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
