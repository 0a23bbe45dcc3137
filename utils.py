"""Utility functions for date and month keys."""

from __future__ import annotations

import re
from datetime import date
from calendar import monthrange

_MONTH_KEY_RE = re.compile(r"^\d{4}-\d{2}$")


def date_key(d: date) -> str:
    """YYYY-MM-DD key for a date."""
    return d.isoformat()


def month_key(d: date) -> str:
    """YYYY-MM key for the month containing d."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_date_key(key: str) -> date:
    """Parse a YYYY-MM-DD key. Raises ValueError on anything else."""
    if len(key) != 10:
        raise ValueError(f"Invalid date key: {key!r}")
    return date.fromisoformat(key)


def parse_month_key(key: str) -> tuple[int, int]:
    """Parse a YYYY-MM key into (year, month)."""
    if not _MONTH_KEY_RE.match(key):
        raise ValueError(f"Invalid month key: {key!r}")
    year, month = int(key[:4]), int(key[5:])
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key: {key!r}")
    return year, month


def is_month_key(key: str) -> bool:
    try:
        parse_month_key(key)
    except ValueError:
        return False
    return True


def month_key_for_date_key(key: str) -> str:
    return month_key(parse_date_key(key))


def shift_month(key: str, delta: int) -> str:
    """Month key delta months away from key."""
    year, month = parse_month_key(key)
    index = year * 12 + (month - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def format_month_key(key: str) -> str:
    """Human label like 'March 2024'."""
    year, month = parse_month_key(key)
    return date(year, month, 1).strftime("%B %Y")


def days_in_month(key: str) -> list[date]:
    year, month = parse_month_key(key)
    return [date(year, month, day) for day in range(1, monthrange(year, month)[1] + 1)]
