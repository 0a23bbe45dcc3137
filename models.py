from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from utils import parse_date_key

NON_WORK_CHARGE_CODE = "N/A"


class EntryKind(str, Enum):
    WORK = "work"
    HOLIDAY = "holiday"
    LEAVE = "leave"


class SyncStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


def parse_hours(value) -> Decimal | None:
    """Parse an hours value from stored JSON. Garbage becomes None, NaN stays NaN."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def json_number(value: Decimal | None) -> int | float | None:
    """Render a Decimal for JSON, whole numbers as ints."""
    if value is None or not value.is_finite():
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


@dataclass
class LogEntry:
    id: str
    kind: EntryKind
    date: str
    project_id: str
    hours: Decimal | None
    sub_code: str | None = None
    project_title: str = ""
    comments: str = ""

    @property
    def charge_code(self) -> str:
        """Composite cost allocation code. Non-work entries share a sentinel."""
        if self.kind != EntryKind.WORK:
            return NON_WORK_CHARGE_CODE
        if self.sub_code:
            return f"{self.project_id}-{self.sub_code}"
        return self.project_id

    @property
    def duplicate_key(self) -> tuple[str, str | None, EntryKind]:
        return (self.project_id, self.sub_code, self.kind)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "date": self.date,
            "projectId": self.project_id,
            "subCode": self.sub_code,
            "projectTitle": self.project_title,
            "chargeCode": self.charge_code,
            "hours": json_number(self.hours),
            "comments": self.comments,
        }

    @classmethod
    def from_dict(cls, data: dict, date_key: str | None = None) -> LogEntry:
        """Build an entry from its stored JSON shape.

        Older data may lack ``type`` (treated as work unless the project is one of
        the special pseudo-projects) and uses integer ids.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Entry must be an object, got {type(data).__name__}")
        project_id = str(data.get("projectId") or "").strip()
        kind_val = data.get("type")
        if kind_val:
            kind = EntryKind(kind_val)
        elif project_id in ("HOLIDAY", "LEAVE"):
            kind = EntryKind(project_id.lower())
        else:
            kind = EntryKind.WORK
        sub_code = data.get("subCode")
        return cls(
            id=str(data.get("id", "")),
            kind=kind,
            date=data.get("date") or date_key or "",
            project_id=project_id,
            hours=parse_hours(data.get("hours")),
            sub_code=str(sub_code) if sub_code not in (None, "") else None,
            project_title=data.get("projectTitle") or "",
            comments=data.get("comments") or "",
        )


DailyLogs = dict[str, list[LogEntry]]


def daily_logs_to_dict(daily_logs: DailyLogs) -> dict:
    return {
        date_key: [entry.to_dict() for entry in entries]
        for date_key, entries in daily_logs.items()
    }


def daily_logs_from_dict(data) -> DailyLogs:
    """Parse a stored ``dailyLogs`` mapping.

    Raises ValueError on a malformed shape or a key that is not a YYYY-MM-DD date.
    """
    if not isinstance(data, dict):
        raise ValueError(f"dailyLogs must be an object, got {type(data).__name__}")
    logs: DailyLogs = {}
    for date_key, entries in data.items():
        if not isinstance(date_key, str):
            raise ValueError(f"Bad date key {date_key!r}")
        parse_date_key(date_key)
        if not isinstance(entries, list):
            raise ValueError(f"Entries for {date_key} must be a list")
        parsed = [LogEntry.from_dict(e, date_key) for e in entries]
        # Empty days are never retained
        if parsed:
            logs[date_key] = parsed
    return logs


@dataclass
class MonthStats:
    total_hours: Decimal = Decimal("0")
    work_hours: Decimal = Decimal("0")
    total_days_worked: int = 0
    total_entries: int = 0
    unique_project_count: int = 0
    project_breakdown: dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "totalHours": json_number(self.total_hours),
            "workHours": json_number(self.work_hours),
            "totalDaysWorked": self.total_days_worked,
            "totalEntries": self.total_entries,
            "uniqueProjectCount": self.unique_project_count,
            "projectBreakdown": {
                code: json_number(hours) for code, hours in self.project_breakdown.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> MonthStats:
        breakdown = {
            code: parse_hours(hours) or Decimal("0")
            for code, hours in (data.get("projectBreakdown") or {}).items()
        }
        return cls(
            total_hours=parse_hours(data.get("totalHours")) or Decimal("0"),
            work_hours=parse_hours(data.get("workHours")) or Decimal("0"),
            total_days_worked=int(data.get("totalDaysWorked") or 0),
            total_entries=int(data.get("totalEntries") or 0),
            unique_project_count=int(data.get("uniqueProjectCount") or len(breakdown)),
            project_breakdown=breakdown,
        )


@dataclass
class MonthRecord:
    month_key: str
    daily_logs: DailyLogs = field(default_factory=dict)
    summary: MonthStats | None = None
    last_updated: str = ""

    def to_dict(self) -> dict:
        return {
            "monthKey": self.month_key,
            "dailyLogs": daily_logs_to_dict(self.daily_logs),
            "summary": self.summary.to_dict() if self.summary else None,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> MonthRecord:
        if not isinstance(data, dict) or "monthKey" not in data:
            raise ValueError("Month record must be an object with a monthKey")
        summary = data.get("summary")
        return cls(
            month_key=data["monthKey"],
            daily_logs=daily_logs_from_dict(data.get("dailyLogs") or {}),
            summary=MonthStats.from_dict(summary) if summary else None,
            last_updated=data.get("lastUpdated") or "",
        )


@dataclass(frozen=True)
class Project:
    project_id: str
    sub_code: str | None
    project_title: str

    @property
    def charge_code(self) -> str:
        if self.sub_code is None:
            return NON_WORK_CHARGE_CODE
        return f"{self.project_id}-{self.sub_code}"


@dataclass
class User:
    uid: str
    email: str
    employee_id: str | None = None
    is_guest: bool = False

    @property
    def display_name(self) -> str:
        if self.is_guest:
            return "Guest"
        return self.email.split("@")[0]


@dataclass
class SessionState:
    """Everything the application knows about the running session."""

    current_month_key: str
    user: User | None = None
    records: dict[str, MonthRecord] = field(default_factory=dict)
    sync_status: SyncStatus = SyncStatus.IDLE
    online: bool = True
    sync_enabled: bool = True
    pending_months: frozenset[str] = frozenset()
    unmigrated_months: tuple[str, ...] = ()
    last_error: str | None = None
    last_message: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.user is not None and self.user.is_guest

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and not self.user.is_guest

    @property
    def can_sync(self) -> bool:
        return self.is_authenticated and self.sync_enabled and self.online


@dataclass
class Config:
    standard_day_hours: Decimal = Decimal("8")
    holiday_country: str = "GB"
    holiday_subdiv: str | None = "ENG"
    sync_enabled: bool = True
