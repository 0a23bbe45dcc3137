"""Spreadsheet export of logged hours."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Mapping, Sequence

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from models import LogEntry, MonthRecord, json_number
from stats import compute_stats, entry_hours
from utils import format_month_key, parse_date_key

HEADER = ["Date", "Day", "Type", "Project ID", "Sub Code", "Project Title", "Charge Code", "Hours", "Comments"]
COLUMN_WIDTHS = [12, 6, 10, 28, 10, 40, 34, 8, 40]
MAX_SHEET_TITLE = 31


def _entry_row(date_key: str, entry: LogEntry) -> list:
    day = parse_date_key(date_key).strftime("%a")
    return [
        date_key,
        day,
        entry.kind.value.title(),
        entry.project_id,
        entry.sub_code or "",
        entry.project_title,
        entry.charge_code,
        json_number(entry_hours(entry)),
        entry.comments,
    ]


def _summary_rows(daily_logs: Mapping[str, list[LogEntry]]) -> list[list]:
    stats = compute_stats(daily_logs)
    rows: list[list] = [
        [],
        ["Summary"],
        ["Total Hours", json_number(stats.total_hours)],
        ["Work Hours", json_number(stats.work_hours)],
        ["Days Worked", stats.total_days_worked],
        ["Entries", stats.total_entries],
        [],
        ["Charge Code", "Hours"],
    ]
    for code, hours in sorted(stats.project_breakdown.items()):
        rows.append([code, json_number(hours)])
    return rows


def month_rows(record: MonthRecord) -> list[list]:
    """Grid for one month: entries in date order followed by the summary."""
    rows: list[list] = [list(HEADER)]
    for date_key in sorted(record.daily_logs):
        for entry in record.daily_logs[date_key]:
            rows.append(_entry_row(date_key, entry))
    rows.extend(_summary_rows(record.daily_logs))
    return rows


def range_rows(records: Mapping[str, MonthRecord], start: date, end: date) -> list[list]:
    """Grid for every entry between start and end inclusive, across months."""
    selected: dict[str, list[LogEntry]] = {}
    for record in records.values():
        for date_key, entries in record.daily_logs.items():
            if start <= parse_date_key(date_key) <= end:
                selected[date_key] = entries

    rows: list[list] = [list(HEADER)]
    for date_key in sorted(selected):
        for entry in selected[date_key]:
            rows.append(_entry_row(date_key, entry))
    rows.extend(_summary_rows(selected))
    return rows


def write_workbook(
    rows: Sequence[Sequence],
    sheet_name: str,
    path: Path,
    column_widths: Sequence[int] | None = None,
) -> Path:
    """Write a single-sheet workbook. The first row is treated as the header."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:MAX_SHEET_TITLE]
    for row in rows:
        ws.append(list(row))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for i, width in enumerate(column_widths or [], start=1):
        ws.column_dimensions[get_column_letter(i)].width = width

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    logger.info(f"Exported {len(rows)} rows to {path}")
    return path


def export_month(record: MonthRecord, path: Path) -> Path:
    return write_workbook(month_rows(record), format_month_key(record.month_key), path, COLUMN_WIDTHS)


def export_date_range(records: Mapping[str, MonthRecord], start: date, end: date, path: Path) -> Path:
    if end < start:
        raise ValueError("End date is before start date")
    sheet_name = f"{start.isoformat()} to {end.isoformat()}"
    return write_workbook(range_rows(records, start, end), sheet_name, path, COLUMN_WIDTHS)


def default_export_path(month_key: str, directory: Path | None = None) -> Path:
    directory = directory or Path.cwd()
    return directory / f"worklog_{month_key}.xlsx"
