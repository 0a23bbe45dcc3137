"""Adding and removing log entries in the current month."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal

from loguru import logger

import catalog
from errors import DuplicateEntryError, EntryNotFoundError, ValidationError
from models import (
    Config,
    DailyLogs,
    EntryKind,
    LogEntry,
    MonthRecord,
    SessionState,
    now_iso,
    parse_hours,
)
from stats import compute_stats
from utils import date_key as to_date_key, days_in_month, month_key_for_date_key, parse_month_key

MAX_HOURS = Decimal("24")


def new_entry_id() -> str:
    return uuid.uuid4().hex[:12]


def validate_entry(entry: LogEntry) -> None:
    """Check form rules for a single entry. Raises ValidationError."""
    hours = parse_hours(entry.hours)
    if hours is None or not hours.is_finite():
        raise ValidationError("Hours must be a number")
    if hours <= 0 or hours > MAX_HOURS:
        raise ValidationError("Hours must be greater than 0 and at most 24")
    if entry.kind == EntryKind.WORK:
        if not entry.project_id:
            raise ValidationError("Select a project")
        if not entry.sub_code:
            raise ValidationError("Select a sub code")
    elif not entry.comments.strip():
        raise ValidationError(f"Comments are required for {entry.kind.value} entries")


def _parse_form_hours(hours) -> Decimal:
    parsed = parse_hours(hours.strip() if isinstance(hours, str) else hours)
    if parsed is None or not parsed.is_finite():
        raise ValidationError("Hours must be a number")
    return parsed


def make_work_entry(date_key: str, project_id: str, sub_code: str, hours, comments: str = "") -> LogEntry:
    """Build a work entry from form values, looking the title up in the catalog."""
    project_id = (project_id or "").strip()
    sub_code = (sub_code or "").strip()
    if not project_id or not sub_code:
        raise ValidationError("Invalid project, sub code, or hours.")
    project = catalog.find_project(project_id, sub_code)
    if project is None:
        raise ValidationError(f"Unknown charge code {project_id}-{sub_code}")
    entry = LogEntry(
        id=new_entry_id(),
        kind=EntryKind.WORK,
        date=date_key,
        project_id=project.project_id,
        sub_code=project.sub_code,
        project_title=project.project_title,
        hours=_parse_form_hours(hours),
        comments=(comments or "").strip(),
    )
    validate_entry(entry)
    return entry


def make_special_entry(date_key: str, kind: EntryKind, hours, comments: str) -> LogEntry:
    """Build a holiday or leave entry."""
    if kind == EntryKind.WORK:
        raise ValidationError("Work entries need a project and sub code")
    project = catalog.special_entry(kind)
    entry = LogEntry(
        id=new_entry_id(),
        kind=kind,
        date=date_key,
        project_id=project.project_id,
        sub_code=None,
        project_title=project.project_title,
        hours=_parse_form_hours(hours),
        comments=(comments or "").strip(),
    )
    validate_entry(entry)
    return entry


def current_record(state: SessionState) -> MonthRecord:
    record = state.records.get(state.current_month_key)
    if record is None:
        return MonthRecord(month_key=state.current_month_key, summary=compute_stats({}))
    return record


def entries_for(state: SessionState, date_key: str) -> list[LogEntry]:
    record = state.records.get(month_key_for_date_key(date_key))
    if record is None:
        return []
    return list(record.daily_logs.get(date_key, []))


def _check_current_month(state: SessionState, date_key: str) -> None:
    try:
        key = month_key_for_date_key(date_key)
    except ValueError:
        raise ValidationError(f"Invalid date {date_key!r}") from None
    if key != state.current_month_key:
        raise ValidationError(f"{date_key} is not in the month being edited ({state.current_month_key})")


def _with_logs(state: SessionState, daily_logs: DailyLogs) -> SessionState:
    """Return a state whose current month holds daily_logs, with summary recomputed."""
    month_key = state.current_month_key
    record = MonthRecord(
        month_key=month_key,
        daily_logs=daily_logs,
        summary=compute_stats(daily_logs),
        last_updated=now_iso(),
    )
    return replace(
        state,
        records={**state.records, month_key: record},
        pending_months=state.pending_months | {month_key},
        last_error=None,
    )


def add_entry(state: SessionState, date_key: str, entry: LogEntry) -> SessionState:
    """Add an entry to a day in the current month.

    Rejects a second entry with the same project, sub code and kind on the same
    date. The given state is left untouched; the returned state carries the
    updated record and marks the month for persistence.
    """
    validate_entry(entry)
    _check_current_month(state, date_key)

    record = current_record(state)
    day = record.daily_logs.get(date_key, [])
    for existing in day:
        if existing.duplicate_key == entry.duplicate_key:
            raise DuplicateEntryError(date_key, entry.project_id, entry.sub_code, entry.kind.value)
        if existing.id == entry.id:
            raise ValidationError(f"Entry id {entry.id} is already used on {date_key}")

    daily_logs = dict(record.daily_logs)
    daily_logs[date_key] = [*day, replace(entry, date=date_key)]
    logger.debug(f"Added {entry.charge_code} {entry.hours}h on {date_key}")
    return _with_logs(state, daily_logs)


def delete_entry(state: SessionState, date_key: str, entry_id: str) -> SessionState:
    """Remove an entry. A day left with no entries is dropped entirely."""
    _check_current_month(state, date_key)

    record = current_record(state)
    day = record.daily_logs.get(date_key, [])
    remaining = [e for e in day if e.id != entry_id]
    if len(remaining) == len(day):
        raise EntryNotFoundError(f"No entry {entry_id} on {date_key}")

    daily_logs = dict(record.daily_logs)
    if remaining:
        daily_logs[date_key] = remaining
    else:
        del daily_logs[date_key]
    logger.debug(f"Deleted entry {entry_id} on {date_key}")
    return _with_logs(state, daily_logs)


def get_public_holidays(year: int, config: Config) -> dict[date, str]:
    """Public holidays for the configured country and subdivision."""
    import holidays
    found = holidays.country_holidays(config.holiday_country, subdiv=config.holiday_subdiv, years=year)
    return {d: name for d, name in found.items()}


def populate_holidays(state: SessionState, config: Config) -> tuple[SessionState, int]:
    """Add holiday entries for weekday public holidays in the current month.

    Returns the new state and the count of entries created. Days that already
    have a holiday entry are left alone.
    """
    year, _ = parse_month_key(state.current_month_key)
    public_holidays = get_public_holidays(year, config)
    count = 0

    for d in days_in_month(state.current_month_key):
        if d.weekday() >= 5 or d not in public_holidays:
            continue
        key = to_date_key(d)
        entry = make_special_entry(key, EntryKind.HOLIDAY, config.standard_day_hours, public_holidays[d])
        try:
            state = add_entry(state, key, entry)
        except DuplicateEntryError:
            continue
        count += 1

    return state, count
