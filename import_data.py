#!/usr/bin/env python3
"""Import work logs exported from the browser version's local storage."""

import json
import sys
from pathlib import Path

from loguru import logger

import storage
from errors import CorruptDataError
from log import setup_logging
from models import DailyLogs
from utils import is_month_key


def parse_dump(data: dict) -> tuple[dict[str, DailyLogs], list[str]]:
    """Pick the worklog_<month> keys out of a local storage dump.

    Values may be JSON strings (as local storage holds them) or already-decoded
    objects. Returns parsed months and the keys that could not be parsed.
    """
    months: dict[str, DailyLogs] = {}
    skipped: list[str] = []

    for key, value in data.items():
        if not key.startswith(storage.MONTH_PREFIX):
            continue
        month_key = key[len(storage.MONTH_PREFIX):]
        if not is_month_key(month_key):
            skipped.append(key)
            continue
        raw = value if isinstance(value, str) else json.dumps(value)
        try:
            months[month_key] = storage.parse_month_logs(key, raw, month_key)
        except CorruptDataError as e:
            logger.error(str(e))
            skipped.append(key)

    return months, skipped


def import_from_json(json_path: Path, overwrite: bool = False) -> int:
    """Import all months from a dump file. Returns the number of months written."""
    with open(json_path) as f:
        data = json.load(f)

    storage.init_db()
    months, skipped = parse_dump(data)

    imported = 0
    for month_key, daily_logs in sorted(months.items()):
        if not overwrite and storage.kv_get(storage.month_storage_key(month_key)) is not None:
            print(f"Skipping {month_key}: already stored (use --overwrite)")
            continue
        storage.save_month_logs(month_key, daily_logs)
        entries = sum(len(e) for e in daily_logs.values())
        print(f"Imported {entries} entries for {month_key}")
        imported += 1

    for key in skipped:
        print(f"Skipped corrupt data under {key}")

    print(f"\nTotal: {imported} months imported")
    return imported


if __name__ == "__main__":
    setup_logging(to_stderr=True)
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if not args:
        print("Usage: import_data.py DUMP.json [--overwrite]")
        sys.exit(1)
    import_from_json(Path(args[0]), overwrite="--overwrite" in sys.argv)
