"""Persisting months locally and mirroring them to the remote store.

Sync status moves Idle -> Pending -> Syncing -> Synced | Error. Local storage
is always written first and stays authoritative; a failed remote write is
logged, leaves the month pending and never blocks further editing.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

import storage
from errors import PersistenceError, RemoteError
from merge import find_unmigrated_months, merge_sources
from models import MonthRecord, SessionState, SyncStatus
from remote import DocumentStore
from stats import compute_stats


def _sync_months(state: SessionState, month_keys, remote: DocumentStore) -> SessionState:
    """Upload the given months. Stops at the first failure."""
    pending = set(state.pending_months)
    state = replace(state, sync_status=SyncStatus.SYNCING)
    for month_key in sorted(month_keys):
        record = state.records.get(month_key)
        if record is None:
            pending.discard(month_key)
            continue
        try:
            remote.upsert_month(state.user.uid, record)
        except RemoteError as e:
            logger.error(f"Error saving {month_key} to cloud: {e}")
            return replace(
                state,
                sync_status=SyncStatus.ERROR,
                pending_months=frozenset(pending),
                last_error="Cloud sync failed. Data saved locally.",
            )
        pending.discard(month_key)
        logger.info(f"Synced {month_key}")

    return replace(
        state,
        sync_status=SyncStatus.SYNCED,
        pending_months=frozenset(pending),
        last_error=None,
        last_message="Data synced successfully.",
    )


def persist_month(state: SessionState, month_key: str, remote: DocumentStore | None) -> SessionState:
    """Save a month locally, then push it to the remote store when possible."""
    record = state.records.get(month_key)
    if record is None:
        return state

    try:
        if record.daily_logs:
            storage.save_month_logs(month_key, record.daily_logs)
        else:
            storage.remove_month_logs(month_key)
    except PersistenceError as e:
        logger.error(f"Error saving {month_key} locally: {e}")
        return replace(
            state,
            sync_status=SyncStatus.ERROR,
            pending_months=state.pending_months | {month_key},
            last_error="Could not save data locally. Changes are kept in this session only.",
        )

    if not state.is_authenticated:
        # Guest sessions never leave the machine
        return replace(state, pending_months=state.pending_months - {month_key})

    pending = state.pending_months | {month_key}
    if not state.can_sync or remote is None:
        return replace(state, pending_months=pending, sync_status=SyncStatus.PENDING)

    return _sync_months(replace(state, pending_months=pending), pending, remote)


def retry_sync(state: SessionState, remote: DocumentStore | None) -> SessionState:
    """Push every pending month. Used for explicit retries."""
    if not state.pending_months or not state.is_authenticated:
        return state
    if not state.can_sync or remote is None:
        return replace(state, sync_status=SyncStatus.PENDING)
    return _sync_months(state, state.pending_months, remote)


def set_online(state: SessionState, online: bool, remote: DocumentStore | None) -> SessionState:
    """Record a connectivity change, flushing pending months when it comes back."""
    was_online = state.online
    state = replace(state, online=online)
    if online and not was_online:
        logger.info("Connection restored")
        return retry_sync(state, remote)
    if not online and was_online:
        logger.info("Connection lost, changes will be kept locally")
    return state


def load_all_monthly_data(state: SessionState, remote: DocumentStore | None) -> SessionState:
    """Load every month from the remote store and local storage and merge them.

    Remote months win over local copies of the same month. A remote failure is
    reported and the session carries on with local data.
    """
    remote_records: dict[str, MonthRecord] = {}
    remote_failed = False
    last_error = None

    if state.is_authenticated and remote is not None:
        try:
            remote_records = {r.month_key: r for r in remote.list_months(state.user.uid)}
        except RemoteError as e:
            logger.error(f"Error loading cloud data: {e}")
            remote_failed = True
            last_error = "Cloud load failed. Using local storage."

    local_records, corrupt = storage.load_local_records()
    if corrupt:
        logger.warning(f"Skipped {len(corrupt)} corrupt local month(s): {', '.join(corrupt)}")
        last_error = last_error or f"Skipped corrupt local data for {', '.join(corrupt)}."

    records = merge_sources(local_records, remote_records)
    if state.current_month_key not in records:
        records[state.current_month_key] = MonthRecord(
            month_key=state.current_month_key,
            summary=compute_stats({}),
        )

    unmigrated: tuple[str, ...] = ()
    if state.is_authenticated and not remote_failed:
        unmigrated = tuple(find_unmigrated_months(local_records, remote_records, state.current_month_key))

    logger.info(f"Loaded {len(records)} month(s), {len(remote_records)} from cloud")
    return replace(
        state,
        records=records,
        unmigrated_months=unmigrated,
        last_error=last_error,
    )


def migrate_local_months(state: SessionState, remote: DocumentStore | None) -> SessionState:
    """Upload months that only exist locally to the signed-in user's store."""
    if not state.unmigrated_months or not state.is_authenticated:
        return state
    state = replace(
        state,
        pending_months=state.pending_months | set(state.unmigrated_months),
        unmigrated_months=(),
    )
    state = retry_sync(state, remote)
    if state.sync_status == SyncStatus.SYNCED:
        state = replace(state, last_message="Local months migrated to cloud.")
    return state
