"""Monthly statistics computed from daily log entries."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping

from models import EntryKind, LogEntry, MonthStats, parse_hours


def entry_hours(entry: LogEntry) -> Decimal:
    """Hours an entry contributes. Missing or NaN hours count as zero."""
    hours = parse_hours(entry.hours)
    if hours is None or not hours.is_finite():
        return Decimal("0")
    return hours


def day_total(entries: Iterable[LogEntry]) -> Decimal:
    """Total hours for one day."""
    return sum((entry_hours(e) for e in entries), Decimal("0"))


def compute_stats(daily_logs: Mapping[str, list[LogEntry]]) -> MonthStats:
    """Summarise a month of daily logs.

    Every kind of entry counts toward ``total_hours``; ``work_hours`` only counts
    work entries. The breakdown is keyed by charge code, falling back to the
    project id when an entry has none.
    """
    total_hours = Decimal("0")
    work_hours = Decimal("0")
    days_worked = 0
    entry_count = 0
    breakdown: dict[str, Decimal] = {}

    for entries in daily_logs.values():
        if not entries:
            continue
        days_worked += 1
        for entry in entries:
            hours = entry_hours(entry)
            total_hours += hours
            if entry.kind == EntryKind.WORK:
                work_hours += hours
            entry_count += 1

            code = entry.charge_code or entry.project_id
            breakdown[code] = breakdown.get(code, Decimal("0")) + hours

    return MonthStats(
        total_hours=total_hours,
        work_hours=work_hours,
        total_days_worked=days_worked,
        total_entries=entry_count,
        unique_project_count=len(breakdown),
        project_breakdown=breakdown,
    )
