"""Tests for store.py - adding and removing entries."""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

import store
from errors import DuplicateEntryError, EntryNotFoundError, ValidationError
from models import Config, EntryKind, LogEntry


class TestValidateEntry:
    """Tests for validate_entry."""

    def test_valid_work(self, work_entry):
        store.validate_entry(work_entry)

    def test_valid_holiday(self, holiday_entry):
        store.validate_entry(holiday_entry)

    @pytest.mark.parametrize("hours", [Decimal("0"), Decimal("-1"), Decimal("24.5"), None, Decimal("NaN")])
    def test_bad_hours(self, work_entry, hours):
        with pytest.raises(ValidationError):
            store.validate_entry(replace(work_entry, hours=hours))

    def test_24_hours_allowed(self, work_entry):
        store.validate_entry(replace(work_entry, hours=Decimal("24")))

    def test_work_requires_sub_code(self, work_entry):
        with pytest.raises(ValidationError):
            store.validate_entry(replace(work_entry, sub_code=None))

    def test_work_requires_project(self, work_entry):
        with pytest.raises(ValidationError):
            store.validate_entry(replace(work_entry, project_id=""))

    def test_holiday_requires_comments(self, holiday_entry):
        with pytest.raises(ValidationError):
            store.validate_entry(replace(holiday_entry, comments="  "))


class TestMakeEntries:
    """Tests for make_work_entry and make_special_entry."""

    def test_make_work_entry(self):
        entry = store.make_work_entry("2024-03-05", "WV-1112-4152", "1010", "7.5", " standup ")
        assert entry.kind == EntryKind.WORK
        assert entry.project_title == "AS_Strategy"
        assert entry.charge_code == "WV-1112-4152-1010"
        assert entry.hours == Decimal("7.5")
        assert entry.comments == "standup"
        assert entry.id

    def test_make_work_entry_unique_ids(self):
        a = store.make_work_entry("2024-03-05", "IN-1100-NA", "0010", 1)
        b = store.make_work_entry("2024-03-05", "IN-1100-NA", "0010", 1)
        assert a.id != b.id

    def test_make_work_entry_unknown_code(self):
        with pytest.raises(ValidationError):
            store.make_work_entry("2024-03-05", "IN-1100-NA", "9999", 1)

    def test_make_work_entry_missing_sub_code(self):
        with pytest.raises(ValidationError):
            store.make_work_entry("2024-03-05", "IN-1100-NA", "", 1)

    def test_make_work_entry_bad_hours(self):
        with pytest.raises(ValidationError):
            store.make_work_entry("2024-03-05", "IN-1100-NA", "0010", "eight")

    def test_make_special_entry(self):
        entry = store.make_special_entry("2024-03-05", EntryKind.LEAVE, "4", "Dentist")
        assert entry.project_id == "LEAVE"
        assert entry.sub_code is None
        assert entry.charge_code == "N/A"
        assert entry.project_title == "Leave"

    def test_make_special_entry_requires_comments(self):
        with pytest.raises(ValidationError):
            store.make_special_entry("2024-03-05", EntryKind.HOLIDAY, "8", "")

    def test_make_special_entry_rejects_work(self):
        with pytest.raises(ValidationError):
            store.make_special_entry("2024-03-05", EntryKind.WORK, "8", "x")


class TestAddEntry:
    """Tests for add_entry."""

    def test_add_then_total(self, state, work_entry):
        """A single work entry shows up in the month summary."""
        new_state = store.add_entry(state, "2024-03-05", work_entry)
        record = new_state.records["2024-03"]

        assert record.daily_logs["2024-03-05"] == [work_entry]
        assert record.summary.total_days_worked == 1
        assert record.summary.total_hours == Decimal("8")
        assert record.summary.total_entries == 1
        assert record.summary.project_breakdown == {"IN-1100-NA-0010": Decimal("8")}
        assert record.last_updated
        assert "2024-03" in new_state.pending_months

    def test_duplicate_rejected(self, state, work_entry):
        """The same project, sub code and kind twice on one date is rejected."""
        first = store.add_entry(state, "2024-03-05", work_entry)
        again = replace(work_entry, id="w2", hours=Decimal("2"))

        with pytest.raises(DuplicateEntryError):
            store.add_entry(first, "2024-03-05", again)

        assert first.records["2024-03"].summary.total_entries == 1
        assert first.records["2024-03"].daily_logs["2024-03-05"] == [work_entry]

    def test_same_code_different_date_allowed(self, state, work_entry):
        s = store.add_entry(state, "2024-03-05", work_entry)
        s = store.add_entry(s, "2024-03-06", replace(work_entry, id="w2"))
        assert s.records["2024-03"].summary.total_days_worked == 2

    def test_same_project_different_kind_allowed(self, state, holiday_entry):
        """Holiday and leave are different kinds, so both may sit on one date."""
        leave = LogEntry(id="l1", kind=EntryKind.LEAVE, date="2024-03-05", project_id="LEAVE",
                         hours=Decimal("2"), comments="Errand")
        s = store.add_entry(state, "2024-03-05", holiday_entry)
        s = store.add_entry(s, "2024-03-05", leave)
        assert len(s.records["2024-03"].daily_logs["2024-03-05"]) == 2

    def test_mixed_day(self, state, holiday_entry):
        work = store.make_work_entry("2024-03-05", "IN-1100-NA", "0010", 4)
        s = store.add_entry(state, "2024-03-05", holiday_entry)
        s = store.add_entry(s, "2024-03-05", work)
        summary = s.records["2024-03"].summary

        assert summary.total_hours == Decimal("12")
        assert summary.total_days_worked == 1
        assert summary.project_breakdown == {"N/A": Decimal("8"), "IN-1100-NA-0010": Decimal("4")}

    def test_input_state_untouched(self, state, work_entry):
        """The state passed in is never modified."""
        store.add_entry(state, "2024-03-05", work_entry)
        assert state.records == {}
        assert state.pending_months == frozenset()

    def test_invalid_entry_no_mutation(self, state, work_entry):
        s = store.add_entry(state, "2024-03-05", work_entry)
        bad = replace(work_entry, id="w2", sub_code="1010", hours=Decimal("30"))
        with pytest.raises(ValidationError):
            store.add_entry(s, "2024-03-05", bad)
        assert s.records["2024-03"].summary.total_entries == 1

    def test_date_outside_current_month(self, state, work_entry):
        with pytest.raises(ValidationError):
            store.add_entry(state, "2024-04-01", work_entry)

    def test_invalid_date(self, state, work_entry):
        with pytest.raises(ValidationError):
            store.add_entry(state, "March 5th", work_entry)

    def test_entry_date_set_from_key(self, state, work_entry):
        s = store.add_entry(state, "2024-03-07", work_entry)
        assert s.records["2024-03"].daily_logs["2024-03-07"][0].date == "2024-03-07"


class TestDeleteEntry:
    """Tests for delete_entry."""

    def test_delete_only_entry_removes_date(self, state, work_entry):
        """Deleting the last entry for a date removes the date key."""
        s = store.add_entry(state, "2024-03-05", work_entry)
        s = store.delete_entry(s, "2024-03-05", "w1")
        record = s.records["2024-03"]

        assert "2024-03-05" not in record.daily_logs
        assert record.summary.total_entries == 0
        assert record.summary.total_days_worked == 0

    def test_delete_one_of_two(self, state, work_entry, holiday_entry):
        s = store.add_entry(state, "2024-03-05", work_entry)
        s = store.add_entry(s, "2024-03-05", holiday_entry)
        s = store.delete_entry(s, "2024-03-05", "h1")

        assert s.records["2024-03"].daily_logs["2024-03-05"] == [work_entry]
        assert s.records["2024-03"].summary.total_hours == Decimal("8")

    def test_delete_unknown_id(self, state, work_entry):
        s = store.add_entry(state, "2024-03-05", work_entry)
        with pytest.raises(EntryNotFoundError):
            store.delete_entry(s, "2024-03-05", "nope")

    def test_delete_marks_pending(self, state, work_entry):
        s = store.add_entry(state, "2024-03-05", work_entry)
        s = replace(s, pending_months=frozenset())
        s = store.delete_entry(s, "2024-03-05", "w1")
        assert s.pending_months == {"2024-03"}


class TestCurrentRecord:
    def test_empty_month(self, state):
        record = store.current_record(state)
        assert record.month_key == "2024-03"
        assert record.daily_logs == {}
        assert record.summary.total_hours == 0

    def test_entries_for(self, state, work_entry):
        s = store.add_entry(state, "2024-03-05", work_entry)
        assert store.entries_for(s, "2024-03-05") == [work_entry]
        assert store.entries_for(s, "2024-03-06") == []
        assert store.entries_for(s, "2023-01-01") == []


class TestPopulateHolidays:
    """Tests for populate_holidays."""

    def test_adds_weekday_holidays(self, state):
        fake = {date(2024, 3, 29): "Good Friday", date(2024, 3, 30): "Saturday Fair"}
        with patch("store.get_public_holidays", return_value=fake):
            s, count = store.populate_holidays(state, Config())

        assert count == 1
        entries = s.records["2024-03"].daily_logs["2024-03-29"]
        assert entries[0].kind == EntryKind.HOLIDAY
        assert entries[0].comments == "Good Friday"
        assert entries[0].hours == Decimal("8")
        assert "2024-03-30" not in s.records["2024-03"].daily_logs

    def test_skips_existing_holiday(self, state):
        fake = {date(2024, 3, 29): "Good Friday"}
        with patch("store.get_public_holidays", return_value=fake):
            s, _ = store.populate_holidays(state, Config())
            s, count = store.populate_holidays(s, Config())
        assert count == 0
        assert len(s.records["2024-03"].daily_logs["2024-03-29"]) == 1

    def test_uses_standard_day_hours(self, state):
        fake = {date(2024, 3, 29): "Good Friday"}
        with patch("store.get_public_holidays", return_value=fake):
            s, _ = store.populate_holidays(state, Config(standard_day_hours=Decimal("7.5")))
        assert s.records["2024-03"].daily_logs["2024-03-29"][0].hours == Decimal("7.5")

    def test_england_good_friday(self, state):
        """March 2024 in England has Good Friday on the 29th."""
        s, count = store.populate_holidays(state, Config())
        assert count == 1
        assert "2024-03-29" in s.records["2024-03"].daily_logs
