"""Shared fixtures for tests."""

from __future__ import annotations

import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

# Set up test databases before importing storage
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.environ["WORKLOG_DB"] = _test_db_path
_remote_db_fd, _remote_db_path = tempfile.mkstemp(suffix=".db")
os.environ["WORKLOG_REMOTE_DB"] = _remote_db_path


@pytest.fixture(scope="session", autouse=True)
def setup_test_db() -> Generator[Path, None, None]:
    """Set up a test database for the entire test session."""
    import storage

    # Reinitialise storage module with test db path
    storage.DB_PATH = Path(_test_db_path)
    storage.init_db()

    yield Path(_test_db_path)

    # Cleanup
    os.close(_test_db_fd)
    os.unlink(_test_db_path)
    os.close(_remote_db_fd)
    os.unlink(_remote_db_path)


@pytest.fixture
def clean_db(setup_test_db: Path) -> Generator[None, None, None]:
    """Clean database tables before each test."""
    import storage

    storage.DB_PATH = setup_test_db
    conn = storage.get_connection()
    conn.execute("DELETE FROM kv")
    conn.execute("DELETE FROM config")
    conn.commit()
    conn.close()

    yield


@pytest.fixture
def remote_store(tmp_path):
    """A fresh remote document store in a temporary file."""
    from remote import SQLiteDocumentStore

    return SQLiteDocumentStore(tmp_path / "remote.db")


@pytest.fixture
def auth(remote_store):
    from remote import AuthProvider

    return AuthProvider(remote_store)


@pytest.fixture
def signed_in_user(auth):
    """A registered account, signed in."""
    return auth.sign_up("jane@example.com", "secret123", "E100")


@pytest.fixture
def state():
    """A signed-out session editing March 2024."""
    from models import SessionState

    return SessionState(current_month_key="2024-03")


@pytest.fixture
def guest_state(state):
    from dataclasses import replace
    from models import User

    return replace(state, user=User(uid="guest-E1", email="guest@local", employee_id="E1", is_guest=True))


@pytest.fixture
def work_entry():
    """A sample 8 hour work entry."""
    from models import EntryKind, LogEntry

    return LogEntry(
        id="w1",
        kind=EntryKind.WORK,
        date="2024-03-05",
        project_id="IN-1100-NA",
        sub_code="0010",
        project_title="General Overhead",
        hours=Decimal("8"),
    )


@pytest.fixture
def holiday_entry():
    """A sample 8 hour holiday entry."""
    from models import EntryKind, LogEntry

    return LogEntry(
        id="h1",
        kind=EntryKind.HOLIDAY,
        date="2024-03-05",
        project_id="HOLIDAY",
        project_title="Holiday",
        hours=Decimal("8"),
        comments="PTO",
    )
