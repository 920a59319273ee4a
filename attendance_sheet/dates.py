"""
dates.py — resolve one spreadsheet header cell into a calendar date

Header cells arrive as serial numbers (native workbook dates), as the
DD-MM-YYYY text the template writes, as DD/MM/YYYY text after a user
retypes them, or as whatever a spreadsheet app exported. The resolver
tries each parser in order and returns the first date found, or INVALID.
Bad input never raises.
"""

from __future__ import annotations

import math
import re
import warnings
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Union

import pandas as pd

from attendance_sheet.cells import Cell, Empty, Numeric, Text, classify_cell
from attendance_sheet.models import INVALID, _InvalidDate

# Serial 1 is 1899-12-31, so serial N is N days after 1899-12-30.
EXCEL_EPOCH = date(1899, 12, 30)

DMY_DASH_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
DMY_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Year-first text with a time part, e.g. 2024-01-05T00:00:00 from a JSON export.
ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}[T ]\d")

# Tried in order; numeric orders other than year-first are day-first.
GENERIC_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%d-%B-%Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%a %b %d %Y",
    "%A, %B %d, %Y",
)

ResolvedDate = Union[date, _InvalidDate]


def serial_to_date(serial: float) -> Optional[date]:
    if math.isnan(serial) or math.isinf(serial):
        return None
    days = int(serial)
    if days <= 0:
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=days)
    except OverflowError:
        return None


def date_to_serial(value: date) -> int:
    if isinstance(value, datetime):
        value = value.date()
    return (value - EXCEL_EPOCH).days


def _clean_text(value: str) -> str:
    text = value.strip()
    if text.startswith("'"):
        text = text[1:].strip()
    return text


def _dmy(match: Optional[re.Match]) -> Optional[date]:
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_serial(cell: Cell) -> Optional[date]:
    if not isinstance(cell, Numeric):
        return None
    return serial_to_date(float(cell.value))


def parse_dmy_dash(cell: Cell) -> Optional[date]:
    if not isinstance(cell, Text):
        return None
    return _dmy(DMY_DASH_RE.match(_clean_text(cell.value)))


def parse_dmy_slash(cell: Cell) -> Optional[date]:
    if not isinstance(cell, Text):
        return None
    return _dmy(DMY_SLASH_RE.match(_clean_text(cell.value)))


def parse_generic(cell: Cell) -> Optional[date]:
    """
    Last resort for text a spreadsheet app wrote in its own style.

    Only complete dates (day, month and four-digit year) are accepted;
    times, bare month names and ordinals stay unresolved.
    """
    if not isinstance(cell, Text):
        return None
    text = _clean_text(cell.value)
    if not text:
        return None
    candidates = ("ISO8601",) if ISO_DATETIME_RE.match(text) else GENERIC_FORMATS
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        for fmt in candidates:
            try:
                parsed = pd.to_datetime(text, format=fmt, errors="coerce")
            except (ValueError, TypeError, OverflowError):
                continue
            if not pd.isna(parsed):
                return parsed.date()
    return None


DATE_PARSERS: tuple[Callable[[Cell], Optional[date]], ...] = (
    parse_serial,
    parse_dmy_dash,
    parse_dmy_slash,
    parse_generic,
)


def resolve_date_cell(value: Any) -> ResolvedDate:
    """
    Resolve one raw header cell.

    Returns a datetime.date, or INVALID when the cell is empty or no parser
    in DATE_PARSERS recognises it.
    """
    cell = classify_cell(value)
    if isinstance(cell, Empty):
        return INVALID
    for parser in DATE_PARSERS:
        resolved = parser(cell)
        if resolved is not None:
            return resolved
    return INVALID
