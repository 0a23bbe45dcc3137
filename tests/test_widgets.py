"""Tests for the widgets module."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

from models import MonthStats, SyncStatus, User
from widgets import DayHeader, MonthHeader, MonthSummary, user_label


def _rendered(widget) -> str:
    widget.update.assert_called_once()
    return str(widget.update.call_args[0][0])


class TestUserLabel:
    """Tests for user_label."""

    def test_signed_out(self):
        assert user_label(None) == "Signed out"

    def test_guest(self):
        user = User(uid="guest-E1", email="guest@local", employee_id="E1", is_guest=True)
        assert user_label(user) == "Guest (E1) · Local Mode"

    def test_signed_in_with_employee_id(self):
        assert user_label(User(uid="u1", email="jane@example.com", employee_id="E100")) == "jane (E100)"

    def test_signed_in_without_employee_id(self):
        assert user_label(User(uid="u1", email="jane@example.com")) == "jane"


class TestMonthHeader:
    """Tests for the MonthHeader widget."""

    def test_update_display(self):
        header = MonthHeader()
        # Mock the update method since we can't render without an app
        header.update = MagicMock()

        header.update_display("2024-03", None, SyncStatus.IDLE)

        text = _rendered(header)
        assert "MONTH: March 2024" in text
        assert "Signed out" in text

    def test_sync_status_shown(self):
        header = MonthHeader()
        header.update = MagicMock()

        header.update_display("2024-03", User(uid="u1", email="jane@example.com"), SyncStatus.ERROR)

        assert "Sync error" in _rendered(header)

    def test_offline_marker(self):
        header = MonthHeader()
        header.update = MagicMock()

        header.update_display("2024-03", User(uid="u1", email="jane@example.com"), SyncStatus.PENDING, online=False)

        text = _rendered(header)
        assert "offline" in text
        assert "Pending sync" in text


class TestMonthSummary:
    """Tests for the MonthSummary widget."""

    def test_empty_month(self):
        summary = MonthSummary()
        summary.update = MagicMock()

        summary.update_display(MonthStats())

        text = _rendered(summary)
        assert "Total hours" in text
        assert "Days worked" in text

    def test_breakdown_listed(self):
        summary = MonthSummary()
        summary.update = MagicMock()

        summary.update_display(MonthStats(
            total_hours=Decimal("12"),
            work_hours=Decimal("4"),
            total_days_worked=1,
            total_entries=2,
            unique_project_count=2,
            project_breakdown={"N/A": Decimal("8"), "IN-1100-NA-0010": Decimal("4")},
        ))

        text = _rendered(summary)
        assert "12h" in text
        assert "IN-1100-NA-0010" in text
        assert text.index("IN-1100-NA-0010") < text.index("N/A")


class TestDayHeader:
    """Tests for the DayHeader widget."""

    def test_update_display(self):
        header = DayHeader()
        header.update = MagicMock()

        header.update_display("2024-03-05", Decimal("7.5"))

        text = _rendered(header)
        assert "Tuesday 05 March 2024" in text
        assert "7.5h logged" in text
        assert "over 24h" not in text

    def test_over_24_hours_flagged(self):
        header = DayHeader()
        header.update = MagicMock()

        header.update_display("2024-03-05", Decimal("25"))

        assert "over 24h" in _rendered(header)
