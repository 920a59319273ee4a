from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from attendance_sheet import __version__ as TOOL_VERSION
from attendance_sheet.config import Settings
from attendance_sheet.contracts import build_contract, build_run_summary
from attendance_sheet.errors import (
    DateRangeError,
    IngestionError,
    SheetFormatError,
    SheetReadError,
)
from attendance_sheet.ingest import ingest, parse_file
from attendance_sheet.models import ParseResult, is_valid_date
from attendance_sheet.roster import HttpEmployeeRoster, RosterError, StaticRoster, load_roster_file
from attendance_sheet.store import HttpAttendanceStore, MemoryAttendanceStore
from attendance_sheet.template import (
    build_template_matrix,
    serialize_delimited,
    template_filename,
    write_template_workbook,
)

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_INGEST_FAILED = 6


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class AttendanceSheetArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def timestamp_token() -> str:
    override = os.environ.get("ATTENDANCE_SHEET_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, payload: str) -> None:
    ensure_parent(path)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def safe_output_path(path: Path, *, force: bool = False) -> Path:
    if path.exists() and not force:
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, (SheetReadError, SheetFormatError)):
        return EXIT_PARSE_FAILED
    if isinstance(exc, IngestionError):
        return EXIT_INGEST_FAILED
    if isinstance(exc, (DateRangeError, RosterError, FileNotFoundError)):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def resolve_settings(args: argparse.Namespace) -> Settings:
    env = Settings.from_env()
    return Settings(
        api_url=getattr(args, "api_url", None) or env.api_url,
        api_token=getattr(args, "token", None) or env.api_token,
        timeout=getattr(args, "timeout", None) or env.timeout,
        upload_path=env.upload_path,
        employees_path=env.employees_path,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = AttendanceSheetArgumentParser(
        prog="attendance-sheet",
        description="Generate bulk attendance templates and upload filled-in sheets.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    template = subparsers.add_parser("template", help="Write a blank attendance template for a day range.")
    template.add_argument("--year", type=int, required=True, help="Calendar year")
    template.add_argument("--month", type=int, required=True, help="Month number (1-12)")
    template.add_argument("--from", dest="day_from", type=int, required=True, help="First day of the range")
    template.add_argument("--to", dest="day_to", type=int, required=True, help="Last day of the range")
    template.add_argument("--roster", help="Roster file (.json or .csv with id and fullName)")
    template.add_argument("--api-url", dest="api_url", help="HR API base URL to fetch the roster from")
    template.add_argument("--token", help="Bearer token for the HR API")
    template.add_argument("--timeout", type=float, help="HR API timeout in seconds")
    template.add_argument("--format", choices=["csv", "xlsx"], default="csv", help="Template file format")
    template.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    template.add_argument("--output", help="Explicit output path")
    template.add_argument("--force", action="store_true", help="Overwrite an existing output file")
    template.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    template.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")

    parse = subparsers.add_parser("parse", help="Decode a filled-in sheet into attendance records.")
    parse.add_argument("input", help="Input file path")
    parse.add_argument("--include-sundays", dest="include_sundays", action="store_true", help="Keep Sunday columns")
    parse.add_argument("-o", "--out", dest="out_dir", help="Output directory for records.json")
    parse.add_argument("--output", help="Explicit records JSON output path")
    parse.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    parse.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")

    upload = subparsers.add_parser("upload", help="Decode a filled-in sheet and send it to the attendance service.")
    upload.add_argument("input", help="Input file path")
    upload.add_argument("--include-sundays", dest="include_sundays", action="store_true", help="Keep Sunday columns")
    upload.add_argument("--api-url", dest="api_url", help="HR API base URL (default: $ATTENDANCE_API_URL)")
    upload.add_argument("--token", help="Bearer token (default: $ATTENDANCE_API_TOKEN)")
    upload.add_argument("--timeout", type=float, help="Request timeout in seconds")
    upload.add_argument("--dry-run", action="store_true", help="Parse and count without contacting the service")
    upload.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    upload.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")

    subparsers.add_parser("version", help="Print version")
    return parser


def parse_payload(result: ParseResult, input_path: Path, output_path: Path | None = None) -> dict[str, Any]:
    return {
        "contract": build_contract("attendance_sheet.parse"),
        "run_summary": build_run_summary(
            command="parse",
            input_path=input_path,
            output_path=output_path,
            warnings=result.warnings,
            metrics={
                "records": len(result.records),
                "employees": result.employee_count,
                "date_columns": len(result.resolved_dates),
                "invalid_date_columns": result.invalid_date_columns,
                "skipped_blocks": result.skipped_blocks,
            },
        ),
        "resolved_dates": [value.isoformat() if is_valid_date(value) else None for value in result.resolved_dates],
        "records": [record.to_dict() for record in result.records],
    }


def render_parse_text(result: ParseResult, input_path: Path) -> str:
    valid_dates = len(result.resolved_dates) - result.invalid_date_columns
    lines = [
        "attendance-sheet parse",
        f"File: {input_path.name}",
        f"Date columns: {valid_dates}",
        f"Employees with entries: {result.employee_count}",
        f"Records: {len(result.records)}",
    ]
    if result.skipped_blocks:
        lines.append(f"Skipped employee blocks: {result.skipped_blocks}")
    lines.extend(f"Warning: {warning}" for warning in result.warnings)
    return "\n".join(lines)


def load_roster(args: argparse.Namespace):
    if args.roster and args.api_url:
        raise CliError("Use either --roster or --api-url, not both.", EXIT_COMMAND_ERROR)
    if args.roster:
        return load_roster_file(args.roster)
    settings = resolve_settings(args)
    if settings.api_url:
        return HttpEmployeeRoster(
            settings.api_url,
            token=settings.api_token,
            timeout=settings.timeout,
            path=settings.employees_path,
        )
    return StaticRoster([])


def run_template(args: argparse.Namespace) -> int:
    try:
        roster = load_roster(args)
        warnings: list[str] = []
        matrix = build_template_matrix(roster.list(), args.year, args.month, args.day_from, args.day_to, warnings)
        suffix = f".{args.format}"
        if args.output:
            output_path = Path(args.output)
        else:
            out_dir = Path(args.out_dir) if args.out_dir else Path.cwd()
            output_path = out_dir / template_filename(args.year, args.month, args.day_from, args.day_to, suffix)
        output_path = safe_output_path(output_path, force=args.force)

        if args.format == "xlsx":
            write_template_workbook(matrix, output_path)
        else:
            write_text(output_path, serialize_delimited(matrix))

        for warning in warnings:
            emit_human(f"Warning: {warning}", quiet=args.quiet)
        if args.json:
            maybe_emit_json_stdout(
                {
                    "contract": build_contract("attendance_sheet.template"),
                    "run_summary": build_run_summary(
                        command="template",
                        output_path=output_path,
                        warnings=warnings,
                        metrics={"employees": (len(matrix) - 2) // 2, "days": len(matrix[0]) - 3},
                    ),
                },
                True,
            )
        else:
            emit_human(f"Template written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_parse(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"File not found: {input_path}")
        return EXIT_COMMAND_ERROR

    try:
        result = parse_file(input_path, include_sundays=args.include_sundays)
        output_path = None
        if args.output:
            output_path = Path(args.output)
        elif args.out_dir:
            output_path = Path(args.out_dir) / f"{input_path.stem}-{timestamp_token()}" / "records.json"
        payload = parse_payload(result, input_path, output_path)
        if output_path:
            write_json(output_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_parse_text(result, input_path), quiet=args.quiet)
            if output_path:
                emit_human(f"Records written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_upload(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"File not found: {input_path}")
        return EXIT_COMMAND_ERROR

    try:
        settings = resolve_settings(args)
        if args.dry_run:
            store = MemoryAttendanceStore()
        elif settings.api_url:
            store = HttpAttendanceStore(
                settings.api_url,
                token=settings.api_token,
                timeout=settings.timeout,
                path=settings.upload_path,
            )
        else:
            raise CliError("No attendance service configured. Pass --api-url or set ATTENDANCE_API_URL.")

        parsed = parse_file(input_path, include_sundays=args.include_sundays)
        if not parsed.records:
            raise CliError("No attendance entries found in the sheet; nothing to upload.", EXIT_PARSE_FAILED)
        result = ingest(parsed.records, store)

        status = "ok" if not result.failed else ("failed" if not result.success else "partial")
        payload = {
            "contract": build_contract("attendance_sheet.upload"),
            "run_summary": build_run_summary(
                command="upload",
                input_path=input_path,
                status=status,
                warnings=parsed.warnings,
                metrics={"records": len(parsed.records), "dry_run": bool(args.dry_run)},
            ),
            "result": result.to_dict(),
        }
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_parse_text(parsed, input_path), quiet=args.quiet)
            emit_human(f"Uploaded: {result.success}, failed: {result.failed}", quiet=args.quiet)
            for error in result.errors:
                eprint(f"Error: {error}")
        return EXIT_SUCCESS if not result.failed else EXIT_INGEST_FAILED
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "template":
            return run_template(args)
        if args.command == "parse":
            return run_parse(args)
        if args.command == "upload":
            return run_upload(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
