"""Combining locally cached months with months from the remote store."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping

from models import MonthRecord
from stats import compute_stats


def merge_sources(
    local: Mapping[str, MonthRecord],
    remote: Mapping[str, MonthRecord],
) -> dict[str, MonthRecord]:
    """Merge local and remote months into one view.

    A month present remotely replaces the local copy entirely. Local-only months
    are kept with a recomputed summary, since local storage holds only the daily
    logs. Nothing is dropped.
    """
    merged: dict[str, MonthRecord] = {}
    for month_key, record in local.items():
        if month_key in remote:
            continue
        merged[month_key] = replace(record, summary=compute_stats(record.daily_logs))
    for month_key, record in remote.items():
        merged[month_key] = record
    return merged


def sorted_month_keys(month_keys: Iterable[str]) -> list[str]:
    """Month keys, most recent first."""
    return sorted(set(month_keys), reverse=True)


def find_unmigrated_months(
    local: Mapping[str, MonthRecord],
    remote: Mapping[str, MonthRecord],
    current_month_key: str,
) -> list[str]:
    """Local-only months, other than the one being edited, that the remote store lacks."""
    return sorted(
        key for key in local
        if key not in remote and key != current_month_key
    )
