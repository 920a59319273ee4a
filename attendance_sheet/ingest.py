"""
ingest.py — run a parsed sheet through to the attendance store

parse_matrix() is the whole decode side (header fold, then block walk);
ingest() hands records to a store and normalises what it reports back.
A fatal error anywhere before ingest() means nothing is sent.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

from attendance_sheet.decoder import FIRST_BLOCK_ROW, decode_dates
from attendance_sheet.errors import IngestionError
from attendance_sheet.extractor import block_records, content_end, iter_employee_blocks
from attendance_sheet.loader import read_matrix
from attendance_sheet.models import IngestResult, ParsedAttendanceRecord, ParseResult, is_valid_date
from attendance_sheet.store import AttendanceStore


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def normalise_report(report: Any, submitted: int) -> IngestResult:
    if isinstance(report, IngestResult):
        return report
    if not isinstance(report, Mapping):
        raise TypeError(f"Attendance store returned {type(report).__name__}, expected an upload report.")
    errors = report.get("errors") or []
    if isinstance(errors, str):
        errors = [errors]
    errors = [str(error) for error in errors]
    success = report.get("success", not errors)
    failed = report.get("failed")
    if isinstance(success, bool):
        # some services answer {"success": true, "message": ...}
        success = submitted if success else 0
        if failed is None:
            failed = submitted - success
        if not errors and failed and report.get("message"):
            errors = [str(report["message"])]
    return IngestResult(success=_as_int(success), failed=_as_int(failed), errors=errors)


def ingest(records: Sequence[ParsedAttendanceRecord], store: AttendanceStore) -> IngestResult:
    """
    Hand every record to the store in one bulk call.

    No deduplication and no validation happen here. An IngestionError from
    the store marks every record as failed with the store's message; any
    other exception propagates.
    """
    records = list(records)
    try:
        report = store.bulk_upload(records)
    except IngestionError as exc:
        return IngestResult(success=0, failed=len(records), errors=[str(exc)])
    return normalise_report(report, len(records))


def parse_matrix(matrix: Sequence[Sequence[Any]], include_sundays: bool = False) -> ParseResult:
    warnings: list[str] = []
    resolved = decode_dates(matrix)
    header = matrix[0]
    # column C carries the "status" row label, never a date
    for index, value in enumerate(resolved[1:], start=1):
        if not is_valid_date(value):
            warnings.append(f"Header column {index + 3}: {header[index + 2]!r} is not a date; column ignored")

    blocks = list(iter_employee_blocks(matrix, warnings))
    records = [record for block in blocks for record in block_records(block, resolved, include_sundays)]
    block_rows = max(0, (content_end(matrix) - FIRST_BLOCK_ROW + 1) // 2)
    return ParseResult(
        records=records,
        resolved_dates=resolved,
        warnings=warnings,
        skipped_blocks=block_rows - len(blocks),
    )


def parse_file(path: "str | Path", include_sundays: bool = False) -> ParseResult:
    return parse_matrix(read_matrix(path), include_sundays)


def upload_file(
    path: "str | Path",
    store: AttendanceStore,
    include_sundays: bool = False,
) -> tuple[ParseResult, IngestResult]:
    parsed = parse_file(path, include_sundays)
    return parsed, ingest(parsed.records, store)
