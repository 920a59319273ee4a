from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_UPLOAD_PATH = "/attendance/bulk"
DEFAULT_EMPLOYEES_PATH = "/employees"


@dataclass(frozen=True)
class Settings:
    api_url: str | None = None
    api_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    upload_path: str = DEFAULT_UPLOAD_PATH
    employees_path: str = DEFAULT_EMPLOYEES_PATH

    @classmethod
    def from_env(cls) -> "Settings":
        raw_timeout = os.environ.get("ATTENDANCE_API_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise ValueError(f"ATTENDANCE_API_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
        return cls(
            api_url=os.environ.get("ATTENDANCE_API_URL") or None,
            api_token=os.environ.get("ATTENDANCE_API_TOKEN") or None,
            timeout=timeout,
            upload_path=os.environ.get("ATTENDANCE_UPLOAD_PATH") or DEFAULT_UPLOAD_PATH,
            employees_path=os.environ.get("ATTENDANCE_EMPLOYEES_PATH") or DEFAULT_EMPLOYEES_PATH,
        )
