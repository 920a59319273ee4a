"""
roster.py — where template employees come from

An EmployeeRoster is anything with list() -> list[Employee]. The CLI
builds one from a local file (--roster) or from the HR API.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

import pandas as pd
import requests

from attendance_sheet.config import DEFAULT_EMPLOYEES_PATH, DEFAULT_TIMEOUT_SECONDS
from attendance_sheet.errors import AttendanceSheetError
from attendance_sheet.models import Employee
from attendance_sheet.transport import build_session, error_message, join_url

ID_KEYS = ("id", "employeeId", "employee_id", "Emp. ID")
NAME_KEYS = ("fullName", "full_name", "name", "employeeName", "Emp. Name")


class RosterError(AttendanceSheetError):
    """The roster could not be loaded."""


class EmployeeRoster(Protocol):
    def list(self) -> list[Employee]: ...


class StaticRoster:
    def __init__(self, employees: Iterable[Employee]) -> None:
        self._employees = list(employees)

    def list(self) -> list[Employee]:
        return list(self._employees)


def _first(entry: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None and str(value).strip() != "":
            return value
    return None


def employee_from_mapping(entry: dict) -> Optional[Employee]:
    raw_id = _first(entry, ID_KEYS)
    name = _first(entry, NAME_KEYS)
    if name is None and (entry.get("firstName") or entry.get("lastName")):
        name = " ".join(str(part).strip() for part in (entry.get("firstName"), entry.get("lastName")) if part)
    if raw_id is None or name is None:
        return None
    try:
        employee_id = int(float(str(raw_id).strip()))
    except ValueError:
        return None
    return Employee(employee_id, str(name).strip())


def employees_from_payload(payload: Any) -> list[Employee]:
    if isinstance(payload, dict):
        for key in ("employees", "data", "items", "results"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            raise RosterError("Roster payload must be a list of employees or wrap one under 'employees'/'data'.")
    if not isinstance(payload, list):
        raise RosterError(f"Roster payload must be a list, got {type(payload).__name__}.")
    employees = []
    for entry in payload:
        if isinstance(entry, dict):
            employee = employee_from_mapping(entry)
            if employee is not None:
                employees.append(employee)
    return employees


def load_roster_file(path: "str | Path") -> StaticRoster:
    path = Path(path)
    if not path.exists():
        raise RosterError(f"Roster file not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RosterError(f"Invalid roster JSON: {exc}") from exc
        return StaticRoster(employees_from_payload(payload))
    if suffix in {".csv", ".tsv"}:
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, sep="\t" if suffix == ".tsv" else ",")
        except Exception as exc:
            raise RosterError(f"Could not read roster {path.name}: {exc}") from exc
        return StaticRoster(employees_from_payload(df.to_dict(orient="records")))
    raise RosterError(f"Unsupported roster format '{suffix}'. Use .json or .csv.")


class HttpEmployeeRoster:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        path: str = DEFAULT_EMPLOYEES_PATH,
    ) -> None:
        self.url = join_url(base_url, path)
        self.timeout = timeout
        self.session = session or build_session(token)

    def list(self) -> list[Employee]:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RosterError(f"Could not reach employee service: {exc}") from exc
        if not response.ok:
            raise RosterError(f"Employee service refused the request: {error_message(response)}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise RosterError("Employee service returned a non-JSON response.") from exc
        return employees_from_payload(payload)
