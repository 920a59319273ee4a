"""
cells.py — typed view over raw spreadsheet cell values

Workbook readers hand back str, int, float, None, NaN and occasionally
datetime.time for the same logical column. classify_cell() folds all of
that into one of three variants so downstream parsers can dispatch on
the variant instead of probing types ad hoc.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import time
from typing import Any, Union


@dataclass(frozen=True)
class Numeric:
    value: float


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Empty:
    pass


EMPTY = Empty()

Cell = Union[Numeric, Text, Empty]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def classify_cell(value: Any) -> Cell:
    if isinstance(value, (Numeric, Text, Empty)):
        return value
    if is_blank(value):
        return EMPTY
    if isinstance(value, bool):
        return Text(str(value).upper())
    if isinstance(value, numbers.Real):
        return Numeric(value)
    if isinstance(value, time):
        return Text(format_time(value))
    return Text(str(value))


def format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_time(value: time) -> str:
    if value.second:
        return value.strftime("%H:%M:%S")
    return value.strftime("%H:%M")


def cell_text(value: Any) -> str:
    """Render a raw cell as the trimmed string a user typed (or saw) in it."""
    cell = classify_cell(value)
    if isinstance(cell, Numeric):
        return format_number(cell.value)
    if isinstance(cell, Text):
        return cell.value.strip()
    return ""


def cell_at(row: Any, index: int) -> Any:
    if row is None or index < 0 or index >= len(row):
        return None
    return row[index]
