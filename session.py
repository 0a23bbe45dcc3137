"""Sign-in, guest mode and month navigation for a session."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from loguru import logger

import storage
from errors import AuthError, PersistenceError, RemoteError
from models import SessionState, SyncStatus, User
from remote import AuthProvider, DocumentStore
from merge import sorted_month_keys
from sync import load_all_monthly_data
from utils import month_key, parse_month_key, shift_month


def _remember_guest(employee_id: str) -> None:
    try:
        storage.save_guest_mode(employee_id)
    except PersistenceError as e:
        logger.error(f"Could not remember guest mode: {e}")


def _forget_guest() -> None:
    try:
        storage.clear_guest_mode()
    except PersistenceError as e:
        logger.error(f"Could not clear guest mode: {e}")


def new_session(today: date | None = None, sync_enabled: bool = True) -> SessionState:
    """A signed-out session looking at the current month."""
    today = today or date.today()
    return SessionState(current_month_key=month_key(today), sync_enabled=sync_enabled)


def setup_guest_mode(state: SessionState, employee_id: str) -> SessionState:
    """Start a local-only session. Remembered across restarts."""
    employee_id = (employee_id or "").strip() or "guest"
    _remember_guest(employee_id)
    user = User(uid=f"guest-{employee_id}", email="guest@local", employee_id=employee_id, is_guest=True)
    state = replace(state, user=user, sync_status=SyncStatus.IDLE, pending_months=frozenset())
    state = load_all_monthly_data(state, None)
    logger.info(f"Guest session started for {employee_id}")
    return replace(state, last_message="Using guest mode (local data only)")


def resume_guest_mode(state: SessionState) -> SessionState | None:
    """Resume a remembered guest session, or None if there is none."""
    employee_id = storage.get_guest_employee_id()
    if employee_id is None:
        return None
    return setup_guest_mode(state, employee_id)


def login(
    state: SessionState,
    auth: AuthProvider,
    remote: DocumentStore | None,
    email: str,
    password: str,
) -> SessionState:
    """Sign in and load the user's months.

    A failed sign-in leaves the session signed out with a readable message;
    guest mode is still available afterwards.
    """
    try:
        user = auth.sign_in(email, password)
    except AuthError as e:
        logger.warning(f"Sign in failed ({e.code})")
        return replace(state, user=None, last_error=str(e))

    if remote is not None:
        try:
            profile = remote.get_profile(user.uid) or {}
            user = replace(user, employee_id=profile.get("employeeId") or user.employee_id)
        except RemoteError as e:
            logger.error(f"Error loading user profile: {e}")

    _forget_guest()
    state = replace(state, user=user, sync_status=SyncStatus.IDLE, pending_months=frozenset())
    state = load_all_monthly_data(state, remote)
    logger.info(f"Signed in as {user.email}")
    if state.last_error:
        return state
    return replace(state, last_message="Successfully logged in and synced!")


def register(
    state: SessionState,
    auth: AuthProvider,
    remote: DocumentStore | None,
    email: str,
    password: str,
    employee_id: str | None = None,
) -> SessionState:
    """Create an account and sign straight in."""
    try:
        user = auth.sign_up(email, password, employee_id)
    except AuthError as e:
        logger.warning(f"Sign up failed ({e.code})")
        return replace(state, user=None, last_error=str(e))

    _forget_guest()
    state = replace(state, user=user, sync_status=SyncStatus.IDLE, pending_months=frozenset())
    state = load_all_monthly_data(state, remote)
    if state.last_error:
        return state
    return replace(state, last_message="Account created.")


def logout(state: SessionState, auth: AuthProvider | None = None) -> SessionState:
    """End the session and clear loaded months."""
    if state.is_guest:
        _forget_guest()
    elif auth is not None:
        auth.sign_out()
    today_key = month_key(date.today())
    logger.info("Signed out")
    return replace(
        state,
        user=None,
        records={},
        current_month_key=today_key,
        sync_status=SyncStatus.IDLE,
        pending_months=frozenset(),
        unmigrated_months=(),
        last_error=None,
        last_message="Logged out successfully!",
    )


def navigate_to_month(state: SessionState, key: str) -> SessionState:
    """Make another month the one being edited. Other months stay cached read-only."""
    if key == state.current_month_key:
        return state
    parse_month_key(key)
    return replace(state, current_month_key=key)


def previous_month(state: SessionState) -> SessionState:
    return navigate_to_month(state, shift_month(state.current_month_key, -1))


def next_month(state: SessionState) -> SessionState:
    return navigate_to_month(state, shift_month(state.current_month_key, 1))


def available_months(state: SessionState) -> list[str]:
    """Months with data plus the current month, most recent first."""
    keys = set(state.records) | {state.current_month_key}
    return sorted_month_keys(keys)
