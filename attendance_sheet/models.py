from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Sequence


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    HALF_DAY = "HALF_DAY"
    LEAVE = "LEAVE"


class _InvalidDate:
    """Marker for a header cell that did not resolve to a calendar date."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "INVALID"

    def __bool__(self) -> bool:
        return False


INVALID = _InvalidDate()


def is_valid_date(value: object) -> bool:
    return isinstance(value, date)


@dataclass(frozen=True)
class Employee:
    id: int
    full_name: str


@dataclass(frozen=True)
class EmployeeBlock:
    employee_id: int
    employee_name: str
    in_row: Sequence[Any]
    out_row: Sequence[Any]
    row_index: int


@dataclass(frozen=True)
class ParsedAttendanceRecord:
    employee_id: int
    employee_name: str
    date: str
    check_in: str
    check_out: str
    status: AttendanceStatus = AttendanceStatus.PRESENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "date": self.date,
            "checkIn": self.check_in,
            "checkOut": self.check_out,
            "status": self.status.value,
        }

    def to_payload(self) -> dict[str, Any]:
        """Body entry for the attendance service bulk endpoint; empty times are sent as null."""
        return {
            "employeeId": self.employee_id,
            "attendanceDate": self.date,
            "inTime": self.check_in or None,
            "outTime": self.check_out or None,
            "status": self.status.value,
        }


@dataclass
class IngestResult:
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "failed": self.failed, "errors": list(self.errors)}


@dataclass
class ParseResult:
    records: list[ParsedAttendanceRecord]
    resolved_dates: tuple
    warnings: list[str] = field(default_factory=list)
    skipped_blocks: int = 0

    @property
    def invalid_date_columns(self) -> int:
        return sum(1 for value in self.resolved_dates if not is_valid_date(value))

    @property
    def employee_count(self) -> int:
        return len({record.employee_id for record in self.records})
