from __future__ import annotations

import json
import os
import sqlite3
from contextlib import closing
from decimal import Decimal
from pathlib import Path

from loguru import logger

from errors import CorruptDataError, PersistenceError
from models import Config, DailyLogs, MonthRecord, daily_logs_from_dict, daily_logs_to_dict, now_iso
from utils import is_month_key, month_key_for_date_key

MONTH_PREFIX = "worklog_"
GUEST_KEY = "guestMode"


def _get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("WORKLOG_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "worklog.db"


DB_PATH = _get_db_path()


def get_connection() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    with closing(get_connection()) as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)
        conn.commit()


def _write(statements: list[tuple[str, tuple]]) -> None:
    """Run write statements in one transaction. Raises PersistenceError."""
    try:
        with closing(get_connection()) as conn:
            for sql, params in statements:
                conn.execute(sql, params)
            conn.commit()
    except (sqlite3.Error, OSError) as e:
        raise PersistenceError(f"Local storage write failed: {e}") from e


# --- Key-value store ---


def kv_get(key: str) -> str | None:
    with closing(get_connection()) as conn:
        row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def kv_set(key: str, value: str) -> None:
    _write([("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))])


def kv_remove(key: str) -> None:
    _write([("DELETE FROM kv WHERE key = ?", (key,))])


def kv_keys() -> list[str]:
    with closing(get_connection()) as conn:
        rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
    return [row["key"] for row in rows]


# --- Monthly logs ---


def month_storage_key(month_key: str) -> str:
    return f"{MONTH_PREFIX}{month_key}"


def save_month_logs(month_key: str, daily_logs: DailyLogs) -> None:
    """Write a month's daily logs as JSON under worklog_<monthKey>."""
    kv_set(month_storage_key(month_key), json.dumps(daily_logs_to_dict(daily_logs)))


def remove_month_logs(month_key: str) -> None:
    kv_remove(month_storage_key(month_key))


def parse_month_logs(key: str, raw: str, month_key: str) -> DailyLogs:
    """Parse stored JSON for one month. Raises CorruptDataError.

    Every date key must be a real date inside month_key.
    """
    try:
        daily_logs = daily_logs_from_dict(json.loads(raw))
    except (ValueError, TypeError, AttributeError) as e:
        raise CorruptDataError(key, str(e)) from e
    stray = [d for d in daily_logs if month_key_for_date_key(d) != month_key]
    if stray:
        raise CorruptDataError(key, f"dates outside {month_key}: {', '.join(sorted(stray))}")
    return daily_logs


def load_month_logs(month_key: str) -> DailyLogs | None:
    key = month_storage_key(month_key)
    raw = kv_get(key)
    if raw is None:
        return None
    return parse_month_logs(key, raw, month_key)


def load_local_records() -> tuple[dict[str, MonthRecord], list[str]]:
    """Load every month held locally.

    Returns the records (without summaries, local storage only keeps the daily
    logs) and the keys that held corrupt data. Corrupt months are skipped.
    """
    records: dict[str, MonthRecord] = {}
    corrupt: list[str] = []
    loaded_at = now_iso()

    for key in kv_keys():
        if not key.startswith(MONTH_PREFIX):
            continue
        month_key = key[len(MONTH_PREFIX):]
        if not is_month_key(month_key):
            logger.warning(f"Ignoring local key with bad month: {key}")
            corrupt.append(key)
            continue
        try:
            daily_logs = parse_month_logs(key, kv_get(key) or "", month_key)
        except CorruptDataError as e:
            logger.error(str(e))
            corrupt.append(key)
            continue
        records[month_key] = MonthRecord(
            month_key=month_key,
            daily_logs=daily_logs,
            summary=None,
            last_updated=loaded_at,
        )

    return records, corrupt


# --- Guest mode ---


def get_guest_employee_id() -> str | None:
    """Employee id of a remembered guest session, if any."""
    raw = kv_get(GUEST_KEY)
    if not raw:
        return None
    try:
        return json.loads(raw).get("employeeId")
    except (ValueError, AttributeError):
        logger.warning("Ignoring corrupt guest mode record")
        return None


def save_guest_mode(employee_id: str) -> None:
    kv_set(GUEST_KEY, json.dumps({"employeeId": employee_id}))


def clear_guest_mode() -> None:
    kv_remove(GUEST_KEY)


# --- Config ---


def get_config() -> Config:
    """Load config from database."""
    with closing(get_connection()) as conn:
        rows = conn.execute("SELECT key, value FROM config").fetchall()

    config = Config()
    for row in rows:
        if row["key"] == "standard_day_hours":
            config.standard_day_hours = Decimal(row["value"])
        elif row["key"] == "holiday_country":
            config.holiday_country = row["value"]
        elif row["key"] == "holiday_subdiv":
            config.holiday_subdiv = row["value"] or None
        elif row["key"] == "sync_enabled":
            config.sync_enabled = row["value"] == "1"

    return config


def save_config(config: Config):
    """Save config to database."""
    sql = "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)"
    _write([
        (sql, ("standard_day_hours", str(config.standard_day_hours))),
        (sql, ("holiday_country", config.holiday_country)),
        (sql, ("holiday_subdiv", config.holiday_subdiv or "")),
        (sql, ("sync_enabled", "1" if config.sync_enabled else "0")),
    ])
