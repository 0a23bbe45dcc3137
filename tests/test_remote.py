"""Tests for remote.py - document store and sign-in."""

import sqlite3
from decimal import Decimal

import pytest

from errors import AuthError, RemoteError
from models import MonthRecord, MonthStats
from remote import AuthProvider, SQLiteDocumentStore


def _record(month_key, entries=None, total="0"):
    daily_logs = {f"{month_key}-05": entries} if entries else {}
    return MonthRecord(
        month_key=month_key,
        daily_logs=daily_logs,
        summary=MonthStats(total_hours=Decimal(total)),
        last_updated="2024-03-05T10:00:00",
    )


class TestDocumentStore:
    """Tests for SQLiteDocumentStore."""

    def test_upsert_and_get(self, remote_store, work_entry):
        record = _record("2024-03", [work_entry], total="8")
        remote_store.upsert_month("u1", record)
        assert remote_store.get_month("u1", "2024-03") == record

    def test_get_missing(self, remote_store):
        assert remote_store.get_month("u1", "2024-03") is None

    def test_upsert_replaces_whole_document(self, remote_store, work_entry, holiday_entry):
        remote_store.upsert_month("u1", _record("2024-03", [work_entry], total="8"))
        replacement = _record("2024-03", [holiday_entry], total="8")
        remote_store.upsert_month("u1", replacement)

        stored = remote_store.get_month("u1", "2024-03")
        assert stored.daily_logs == replacement.daily_logs

    def test_list_most_recent_first(self, remote_store):
        for key in ("2024-01", "2024-03", "2023-12"):
            remote_store.upsert_month("u1", _record(key))
        keys = [r.month_key for r in remote_store.list_months("u1")]
        assert keys == ["2024-03", "2024-01", "2023-12"]

    def test_users_are_isolated(self, remote_store):
        remote_store.upsert_month("u1", _record("2024-01"))
        remote_store.upsert_month("u2", _record("2024-02"))
        assert [r.month_key for r in remote_store.list_months("u2")] == ["2024-02"]

    def test_list_skips_corrupt_document(self, remote_store):
        remote_store.upsert_month("u1", _record("2024-01"))
        conn = sqlite3.connect(remote_store.path)
        conn.execute(
            "INSERT INTO monthly_data (uid, month_key, body) VALUES (?, ?, ?)",
            ("u1", "2024-02", "{not json"),
        )
        conn.commit()
        conn.close()

        assert [r.month_key for r in remote_store.list_months("u1")] == ["2024-01"]

    def test_unavailable_raises(self, remote_store):
        """An unreachable store raises RemoteError for every operation."""
        remote_store.available = False
        with pytest.raises(RemoteError):
            remote_store.list_months("u1")
        with pytest.raises(RemoteError):
            remote_store.upsert_month("u1", _record("2024-01"))

    def test_sqlite_errors_wrapped(self, tmp_path):
        """A path that cannot be opened surfaces as RemoteError."""
        (tmp_path / "blocker").write_text("")
        store = SQLiteDocumentStore(tmp_path / "blocker" / "remote.db")
        with pytest.raises(RemoteError):
            store.list_months("u1")


class TestProfile:
    """Tests for profile fields."""

    def test_profile_from_sign_up(self, remote_store, signed_in_user):
        profile = remote_store.get_profile(signed_in_user.uid)
        assert profile == {"email": "jane@example.com", "employeeId": "E100"}

    def test_save_profile(self, remote_store, signed_in_user):
        remote_store.save_profile(signed_in_user.uid, {"employeeId": "E200"})
        assert remote_store.get_profile(signed_in_user.uid)["employeeId"] == "E200"

    def test_unknown_user(self, remote_store):
        assert remote_store.get_profile("nobody") is None


class TestAuthProvider:
    """Tests for AuthProvider."""

    def test_sign_up(self, auth):
        user = auth.sign_up("  Jane@Example.com ", "secret123", "E100")
        assert user.email == "jane@example.com"
        assert user.employee_id == "E100"
        assert not user.is_guest
        assert auth.current_user == user

    def test_password_is_hashed(self, auth, remote_store):
        auth.sign_up("jane@example.com", "secret123")
        row = remote_store.find_user("jane@example.com")
        assert row["password_hash"] != "secret123"

    def test_sign_in(self, auth, signed_in_user):
        auth.sign_out()
        assert auth.current_user is None
        user = auth.sign_in("jane@example.com", "secret123")
        assert user.uid == signed_in_user.uid
        assert user.employee_id == "E100"

    @pytest.mark.parametrize("email,password,code", [
        ("not-an-email", "secret123", "auth/invalid-email"),
        ("jane@example.com", "123", "auth/weak-password"),
    ])
    def test_sign_up_rejected(self, auth, email, password, code):
        with pytest.raises(AuthError) as exc_info:
            auth.sign_up(email, password)
        assert exc_info.value.code == code

    def test_sign_up_existing_email(self, auth, signed_in_user):
        with pytest.raises(AuthError) as exc_info:
            auth.sign_up("jane@example.com", "another1")
        assert exc_info.value.code == "auth/email-already-in-use"

    def test_sign_in_unknown_user(self, auth):
        with pytest.raises(AuthError) as exc_info:
            auth.sign_in("nobody@example.com", "secret123")
        assert exc_info.value.code == "auth/user-not-found"
        assert str(exc_info.value) == "No account found with this email."

    def test_sign_in_wrong_password(self, auth, signed_in_user):
        with pytest.raises(AuthError) as exc_info:
            auth.sign_in("jane@example.com", "wrong-password")
        assert exc_info.value.code == "auth/wrong-password"

    def test_store_down_is_network_error(self, auth, remote_store):
        remote_store.available = False
        with pytest.raises(AuthError) as exc_info:
            auth.sign_in("jane@example.com", "secret123")
        assert exc_info.value.code == "auth/network-request-failed"

    def test_unknown_code_message(self):
        assert str(AuthError("auth/something-new")) == "Authentication failed. Please try again."

    def test_provider_wraps_store(self, remote_store):
        assert AuthProvider(remote_store).store is remote_store
