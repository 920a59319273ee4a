"""
loader.py — read an uploaded attendance sheet into a raw cell matrix

Supports: .csv .tsv .txt .xlsx .xlsm .xls .ods

Public API:
    matrix = read_matrix("path/to/upload.xlsx")

The whole file is read into memory and only the first sheet is used.
Every row keeps its position (blank rows included) because the decoder
pairs rows by index; trailing empty cells are dropped per row.

Cell values come back as str, int/float, datetime.time or None. Native
workbook dates are converted to spreadsheet serials so they decode the
same way whichever reader produced them.
"""

from __future__ import annotations

import csv
import io
import re
from collections import Counter
from datetime import date, datetime
from pathlib import Path
from typing import Any

import chardet
import pandas as pd

from attendance_sheet.cells import is_blank
from attendance_sheet.dates import date_to_serial
from attendance_sheet.errors import SheetReadError

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS  = {".csv", ".tsv", ".txt"}
EXCEL_FORMATS = {".xlsx", ".xlsm", ".xls"}
ODS_FORMATS   = {".ods"}
ALL_FORMATS   = TEXT_FORMATS | EXCEL_FORMATS | ODS_FORMATS

INTEGER_RE = re.compile(r"^[+-]?\d+$")


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw)
    return result.get("encoding") or "utf-8"


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Strategy per line:
      1. Try UTF-8
      2. Try preferred_encoding (chardet result)
      3. Try latin-1
      4. CP1252 with replace (never crashes)

    Strips a leading BOM, carriage returns before newlines and embedded
    null bytes.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc:
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines).replace("\r\n", "\n").lstrip("\ufeff")


# ══════════════════════════════════════════════════════════════════════════════
# DELIMITER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def detect_delimiter(text: str) -> str:
    """
    Infer the delimiter from sample lines.

    Uses csv.Sniffer first; falls back to scoring each candidate by how
    consistently it splits rows into the same number of columns.
    """
    sample_lines = [line for line in text.splitlines() if line.strip()][:50]
    sample = "\n".join(sample_lines[:25])

    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            pass

    best_delim = ","
    best_score = float("-inf")
    for delim in (",", ";", "\t", "|"):
        rows = [
            row
            for row in csv.reader(io.StringIO("\n".join(sample_lines)), delimiter=delim)
            if any(cell.strip() for cell in row)
        ]
        if len(rows) < 2:
            continue
        mode_width, mode_count = Counter(len(row) for row in rows).most_common(1)[0]
        score = mode_width * 2.0 + (mode_count / len(rows)) * mode_width
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# CELL NORMALISATION
# ══════════════════════════════════════════════════════════════════════════════

def _text_cell(value: str) -> Any:
    """CSV cells are all text; type whole numbers the way workbook apps do on open."""
    if not isinstance(value, str):
        return None if is_blank(value) else value
    stripped = value.strip()
    if not stripped:
        return None
    if INTEGER_RE.match(stripped):
        return int(stripped)
    return value


def _workbook_cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and is_blank(value):
        return None
    if isinstance(value, (datetime, date)):
        if isinstance(value, datetime) and value.date() == date(1899, 12, 30):
            # time-only cells come back anchored at the epoch from some engines
            return value.time()
        return date_to_serial(value)
    return value


def _trim_row(row: list[Any]) -> list[Any]:
    end = len(row)
    while end and is_blank(row[end - 1]):
        end -= 1
    return row[:end]


def _frame_to_matrix(df: pd.DataFrame, convert) -> list[list[Any]]:
    return [_trim_row([convert(value) for value in row]) for row in df.itertuples(index=False, name=None)]


# ══════════════════════════════════════════════════════════════════════════════
# FORMAT READERS
# ══════════════════════════════════════════════════════════════════════════════

def _read_text(path: Path, suffix: str) -> list[list[Any]]:
    raw = path.read_bytes()
    if not raw.strip():
        return []
    text = _read_text_safely(raw, detect_encoding(raw))
    delimiter = "\t" if suffix == ".tsv" else detect_delimiter(text)

    # widest row decides the column count so ragged rows never shift
    width = max((len(row) for row in csv.reader(io.StringIO(text), delimiter=delimiter)), default=0)
    if width == 0:
        return []

    sep = r"\|" if delimiter == "|" else delimiter
    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            sep=sep,
            engine="python",
        )
    except Exception as exc:
        raise SheetReadError(f"Could not parse {suffix} file: {exc}") from exc
    return _frame_to_matrix(df, _text_cell)


def _read_workbook(path: Path, suffix: str) -> list[list[Any]]:
    engine = None
    if suffix == ".xls":
        try:
            import xlrd  # noqa: F401
        except ImportError:
            raise SheetReadError(".xls files require xlrd — run: pip install xlrd")
    if suffix == ".ods":
        try:
            import odf  # noqa: F401
        except ImportError:
            raise SheetReadError(".ods files require odfpy — run: pip install odfpy")
        engine = "odf"

    try:
        df = pd.read_excel(path, sheet_name=0, header=None, dtype=object, engine=engine)
    except Exception as exc:
        raise SheetReadError(f"Could not read workbook: {exc}") from exc
    return _frame_to_matrix(df, _workbook_cell)


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def read_matrix(path: "str | Path") -> list[list[Any]]:
    """
    Read the first sheet of an uploaded file into a row-major cell matrix.

    Raises:
        SheetReadError  if the file is missing, unsupported or unreadable.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        raise SheetReadError(f"File not found: {path}")
    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise SheetReadError(f"Unsupported format '{suffix or '[missing extension]'}'. Supported: {supported}")

    if suffix in TEXT_FORMATS:
        return _read_text(path, suffix)
    return _read_workbook(path, suffix)
