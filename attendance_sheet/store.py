"""
store.py — destinations for parsed attendance records

An AttendanceStore is anything with
    bulk_upload(records) -> IngestResult | {"success", "failed", "errors"}
Duplicate employee/date submissions are the store's business.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Sequence, Union

import requests

from attendance_sheet.config import DEFAULT_TIMEOUT_SECONDS, DEFAULT_UPLOAD_PATH
from attendance_sheet.errors import IngestionError
from attendance_sheet.models import IngestResult, ParsedAttendanceRecord
from attendance_sheet.transport import build_session, error_message, join_url

UploadReport = Union[IngestResult, Mapping[str, Any]]


class AttendanceStore(Protocol):
    def bulk_upload(self, records: Sequence[ParsedAttendanceRecord]) -> UploadReport: ...


class MemoryAttendanceStore:
    """Keeps the latest record per (employee, date), like the backend upsert."""

    def __init__(self) -> None:
        self.rows: dict[tuple[int, str], ParsedAttendanceRecord] = {}
        self.uploads = 0

    def bulk_upload(self, records: Iterable[ParsedAttendanceRecord]) -> IngestResult:
        self.uploads += 1
        result = IngestResult()
        for record in records:
            self.rows[(record.employee_id, record.date)] = record
            result.success += 1
        return result


class HttpAttendanceStore:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        path: str = DEFAULT_UPLOAD_PATH,
    ) -> None:
        self.url = join_url(base_url, path)
        self.timeout = timeout
        self.session = session or build_session(token)

    def bulk_upload(self, records: Sequence[ParsedAttendanceRecord]) -> dict[str, Any]:
        body = {"attendances": [record.to_payload() for record in records]}
        try:
            response = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise IngestionError(f"Could not reach attendance service: {exc}") from exc
        if not response.ok:
            raise IngestionError(error_message(response), status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise IngestionError("Attendance service returned a non-JSON response.") from exc
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise IngestionError("Attendance service returned an unexpected upload report.")
        return payload
