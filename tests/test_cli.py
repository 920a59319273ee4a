from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
CLI = [sys.executable, "-m", "attendance_sheet.cli"]
FIXED_STAMP = "20260301T010203Z"

FILLED_SHEET = (
    "Emp. ID,Emp. Name,status,01-01-2024,02-01-2024,07-01-2024\n"
    ",,,Mon,Tue,Sun\n"
    "1,John Doe,In-time,09:00,,09:15\n"
    ",,Out-time,18:00,17:00,\n"
)


def run_cli(*args: str, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged_env = {
        key: value for key, value in os.environ.items() if not key.startswith("ATTENDANCE_")
    }
    merged_env["ATTENDANCE_SHEET_OUTPUT_STAMP"] = FIXED_STAMP
    if env:
        merged_env.update(env)
    return subprocess.run(
        [*CLI, *args],
        cwd=ROOT,
        capture_output=True,
        text=True,
        env=merged_env,
    )


def write_sheet(tmpdir: str, text: str = FILLED_SHEET, name: str = "filled.csv") -> Path:
    path = Path(tmpdir) / name
    path.write_text(text, encoding="utf-8")
    return path


class AttendanceSheetCliTests(unittest.TestCase):
    def test_version_prints_version(self):
        proc = run_cli("version")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertRegex(proc.stdout.strip(), r"^\d+\.\d+\.\d+$")

    def test_template_writes_default_filename(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            proc = run_cli("template", "--year", "2024", "--month", "2", "--from", "27", "--to", "29", "--out", tmpdir)
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Template written:", proc.stderr)
            path = Path(tmpdir) / "Attendance_Template_2024-02_27-29.csv"
            self.assertTrue(path.exists())
            lines = path.read_text(encoding="utf-8").split("\n")

        self.assertEqual(lines[0], "Emp. ID,Emp. Name,status,27-02-2024,28-02-2024,29-02-2024")
        self.assertEqual(lines[1], ",,,Tue,Wed,Thu")
        self.assertEqual(len(lines), 2 + 2 * 3)
        self.assertIn("sample employees", proc.stderr)

    def test_template_uses_roster_file_and_refuses_overwrite(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            roster = Path(tmpdir) / "roster.json"
            roster.write_text(json.dumps([{"id": 42, "fullName": "Ada Lovelace"}]), encoding="utf-8")
            output = Path(tmpdir) / "template.csv"
            args = ["template", "--year", "2024", "--month", "1", "--from", "1", "--to", "2",
                    "--roster", str(roster), "--output", str(output)]

            first = run_cli(*args)
            self.assertEqual(first.returncode, 0, first.stderr)
            self.assertIn("42,Ada Lovelace,In-time,,", output.read_text(encoding="utf-8"))

            second = run_cli(*args)
            self.assertEqual(second.returncode, 1)
            self.assertIn("Refusing to overwrite", second.stderr)

    def test_template_xlsx_format(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            proc = run_cli("template", "--year", "2024", "--month", "1", "--from", "1", "--to", "5",
                           "--format", "xlsx", "--out", tmpdir, "--json")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            payload = json.loads(proc.stdout)
            self.assertTrue((Path(tmpdir) / "Attendance_Template_2024-01_01-05.xlsx").exists())

        self.assertEqual(payload["contract"]["name"], "attendance_sheet.template")
        self.assertEqual(payload["run_summary"]["metrics"], {"employees": 3, "days": 5})

    def test_template_rejects_reversed_range(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            proc = run_cli("template", "--year", "2024", "--month", "1", "--from", "10", "--to", "5", "--out", tmpdir)
            self.assertEqual(proc.returncode, 1)
            self.assertIn("Start date cannot be after end date", proc.stderr)
            self.assertEqual(list(Path(tmpdir).iterdir()), [])

    def test_template_rejects_day_outside_month(self):
        proc = run_cli("template", "--year", "2023", "--month", "2", "--from", "1", "--to", "29")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("within the selected month and year", proc.stderr)

    def test_parse_json_stdout_contains_only_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(tmpdir)
            proc = run_cli("parse", str(path), "--json")

        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertEqual(proc.stderr.strip(), "")
        payload = json.loads(proc.stdout)
        self.assertEqual(payload["contract"]["name"], "attendance_sheet.parse")
        self.assertEqual(payload["resolved_dates"], [None, "2024-01-01", "2024-01-02", "2024-01-07"])
        self.assertEqual(
            payload["records"],
            [
                {
                    "employeeId": 1,
                    "employeeName": "John Doe",
                    "date": "2024-01-01",
                    "checkIn": "09:00",
                    "checkOut": "18:00",
                    "status": "PRESENT",
                },
                {
                    "employeeId": 1,
                    "employeeName": "John Doe",
                    "date": "2024-01-02",
                    "checkIn": "",
                    "checkOut": "17:00",
                    "status": "PRESENT",
                },
            ],
        )

    def test_parse_include_sundays_and_output_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(tmpdir)
            proc = run_cli("parse", str(path), "--include-sundays", "--out", tmpdir)
            self.assertEqual(proc.returncode, 0, proc.stderr)
            records_path = Path(tmpdir) / f"filled-{FIXED_STAMP}" / "records.json"
            self.assertTrue(records_path.exists())
            payload = json.loads(records_path.read_text(encoding="utf-8"))

        self.assertIn("Records: 3", proc.stderr)
        self.assertEqual(payload["records"][-1]["date"], "2024-01-07")

    def test_parse_short_sheet_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(tmpdir, "Emp. ID,Emp. Name,status,01-01-2024\n,,,Mon\n")
            proc = run_cli("parse", str(path))

        self.assertEqual(proc.returncode, 2)
        self.assertIn("Invalid file format", proc.stderr)

    def test_parse_missing_file_returns_exit_1(self):
        proc = run_cli("parse", "does-not-exist.csv")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("File not found", proc.stderr)

    def test_upload_dry_run_counts_records(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(tmpdir)
            proc = run_cli("upload", str(path), "--dry-run", "--json")

        self.assertEqual(proc.returncode, 0, proc.stderr)
        payload = json.loads(proc.stdout)
        self.assertEqual(payload["result"], {"success": 2, "failed": 0, "errors": []})
        self.assertEqual(payload["run_summary"]["status"], "ok")
        self.assertTrue(payload["run_summary"]["metrics"]["dry_run"])

    def test_upload_without_service_returns_exit_1(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(tmpdir)
            proc = run_cli("upload", str(path))

        self.assertEqual(proc.returncode, 1)
        self.assertIn("No attendance service configured", proc.stderr)

    def test_upload_empty_sheet_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(
                tmpdir,
                "Emp. ID,Emp. Name,status,01-01-2024\n,,,Mon\n1,John Doe,In-time,\n,,Out-time,\n",
            )
            proc = run_cli("upload", str(path), "--dry-run")

        self.assertEqual(proc.returncode, 2)
        self.assertIn("nothing to upload", proc.stderr)

    def test_upload_unreachable_service_returns_exit_6(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_sheet(tmpdir)
            proc = run_cli("upload", str(path), "--api-url", "http://127.0.0.1:9", "--timeout", "2")

        self.assertEqual(proc.returncode, 6)
        self.assertIn("Uploaded: 0, failed: 2", proc.stderr)
        self.assertIn("Could not reach attendance service", proc.stderr)

    def test_unknown_arguments_return_exit_1(self):
        proc = run_cli("parse")
        self.assertEqual(proc.returncode, 1)


if __name__ == "__main__":
    unittest.main()
