"""Per-user document store and sign-in for syncing months off the machine."""

from __future__ import annotations

import json
import os
import re
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger
from werkzeug.security import check_password_hash, generate_password_hash

from errors import AuthError, RemoteError
from models import MonthRecord, User, now_iso

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def _get_remote_db_path() -> Path:
    if env_path := os.environ.get("WORKLOG_REMOTE_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "remote.db"


class DocumentStore(ABC):
    """Per-user collection of month documents keyed by month key.

    Implementations raise RemoteError for any failure to reach or use the store.
    """

    @abstractmethod
    def list_months(self, uid: str) -> list[MonthRecord]:
        """All months for a user, most recent first."""

    @abstractmethod
    def get_month(self, uid: str, month_key: str) -> MonthRecord | None:
        """One month, or None if the user has no document for it."""

    @abstractmethod
    def upsert_month(self, uid: str, record: MonthRecord) -> None:
        """Replace the whole document for record.month_key."""

    @abstractmethod
    def get_profile(self, uid: str) -> dict | None:
        """Profile fields stored for the user."""

    @abstractmethod
    def save_profile(self, uid: str, profile: dict) -> None:
        """Store profile fields for the user."""


class SQLiteDocumentStore(DocumentStore):
    """Document store kept in a SQLite file, shared by every user."""

    def __init__(self, path: Path | None = None):
        self.path = path or _get_remote_db_path()
        self.available = True
        self._initialised = False

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        if not self.available:
            raise RemoteError("Remote store is unavailable")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
            conn.row_factory = sqlite3.Row
            try:
                if not self._initialised:
                    self._init_schema(conn)
                yield conn
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise RemoteError(f"Remote store error: {e}") from e

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                uid TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                employee_id TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS monthly_data (
                uid TEXT NOT NULL,
                month_key TEXT NOT NULL,
                body TEXT NOT NULL,
                PRIMARY KEY (uid, month_key)
            );
        """)
        self._initialised = True

    def list_months(self, uid: str) -> list[MonthRecord]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT month_key, body FROM monthly_data WHERE uid = ? ORDER BY month_key DESC",
                (uid,),
            ).fetchall()

        records = []
        for row in rows:
            try:
                records.append(MonthRecord.from_dict(json.loads(row["body"])))
            except (ValueError, TypeError) as e:
                logger.error(f"Skipping corrupt remote month {row['month_key']}: {e}")
        return records

    def get_month(self, uid: str, month_key: str) -> MonthRecord | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT body FROM monthly_data WHERE uid = ? AND month_key = ?",
                (uid, month_key),
            ).fetchone()
        if not row:
            return None
        return MonthRecord.from_dict(json.loads(row["body"]))

    def upsert_month(self, uid: str, record: MonthRecord) -> None:
        with self._connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO monthly_data (uid, month_key, body) VALUES (?, ?, ?)",
                (uid, record.month_key, json.dumps(record.to_dict())),
            )

    def get_profile(self, uid: str) -> dict | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT email, employee_id FROM users WHERE uid = ?", (uid,)
            ).fetchone()
        if not row:
            return None
        return {"email": row["email"], "employeeId": row["employee_id"]}

    def save_profile(self, uid: str, profile: dict) -> None:
        with self._connection() as conn:
            conn.execute(
                "UPDATE users SET employee_id = ? WHERE uid = ?",
                (profile.get("employeeId"), uid),
            )

    # --- Accounts, used by AuthProvider ---

    def create_user(self, email: str, password_hash: str, employee_id: str | None) -> str:
        uid = uuid.uuid4().hex
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO users (uid, email, password_hash, employee_id, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (uid, email, password_hash, employee_id, now_iso()),
            )
        return uid

    def find_user(self, email: str) -> sqlite3.Row | None:
        with self._connection() as conn:
            return conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()


class AuthProvider:
    """Email and password sign-in against the document store's user table."""

    def __init__(self, store: SQLiteDocumentStore):
        self.store = store
        self.current_user: User | None = None

    @staticmethod
    def _normalise_email(email: str) -> str:
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise AuthError("auth/invalid-email")
        return email

    def sign_up(self, email: str, password: str, employee_id: str | None = None) -> User:
        email = self._normalise_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError("auth/weak-password")
        try:
            if self.store.find_user(email):
                raise AuthError("auth/email-already-in-use")
            uid = self.store.create_user(email, generate_password_hash(password), employee_id)
        except RemoteError as e:
            logger.error(f"Sign up failed: {e}")
            raise AuthError("auth/network-request-failed") from e
        logger.info(f"Created account for {email}")
        self.current_user = User(uid=uid, email=email, employee_id=employee_id)
        return self.current_user

    def sign_in(self, email: str, password: str) -> User:
        email = self._normalise_email(email)
        try:
            row = self.store.find_user(email)
        except RemoteError as e:
            logger.error(f"Sign in failed: {e}")
            raise AuthError("auth/network-request-failed") from e
        if row is None:
            raise AuthError("auth/user-not-found")
        if not check_password_hash(row["password_hash"], password or ""):
            raise AuthError("auth/wrong-password")
        self.current_user = User(uid=row["uid"], email=row["email"], employee_id=row["employee_id"])
        return self.current_user

    def sign_out(self) -> None:
        self.current_user = None
