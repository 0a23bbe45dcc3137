#!/usr/bin/env python3
"""Monthly work log TUI application."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from loguru import logger
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Static, Footer, DataTable
from textual.coordinate import Coordinate
from rich.text import Text

import export
import storage
import store
import sync
from errors import CorruptDataError, ValidationError
from log import setup_logging
from models import EntryKind, MonthRecord, SessionState
from remote import AuthProvider, DocumentStore, SQLiteDocumentStore
from screens import AddEntryScreen, ConfirmScreen, ExportRangeScreen, LoginScreen, MonthPickerScreen
from session import (
    available_months,
    login,
    logout,
    navigate_to_month,
    new_session,
    next_month,
    previous_month,
    register,
    resume_guest_mode,
    setup_guest_mode,
)
from stats import compute_stats, day_total
from utils import date_key, days_in_month, month_key, parse_month_key
from widgets import DayHeader, MonthHeader, MonthSummary

KIND_STYLES = {
    EntryKind.WORK: "blue",
    EntryKind.HOLIDAY: "dark_orange",
    EntryKind.LEAVE: "red",
}


class WorklogApp(App):
    """Main work log application."""

    CSS = """
    Screen {
        background: $surface;
    }

    #month-header, #day-header {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #month-table, #day-table {
        height: 1fr;
        margin: 1 2;
    }

    #month-summary, #day-summary {
        height: auto;
        padding: 1 2;
        color: $text;
    }

    .hidden {
        display: none;
    }

    DataTable {
        height: 100%;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("p", "prev_month", "Prev"),
        Binding("n", "next_month", "Next"),
        Binding("t", "goto_today", "Today"),
        Binding("g", "pick_month", "Months"),
        Binding("a", "add_work", "Add"),
        Binding("H", "add_holiday", "Holiday"),
        Binding("L", "add_leave", "Leave"),
        Binding("d", "delete_entry", "Delete"),
        Binding("h", "populate_holidays", "Bank hols"),
        Binding("x", "export_month", "Export"),
        Binding("X", "export_range", "Export range", show=False),
        Binding("s", "retry_sync", "Sync"),
        Binding("o", "toggle_online", "Online", show=False),
        Binding("M", "migrate", "Migrate", show=False),
        Binding("escape", "back_to_month", "Back"),
        Binding("ctrl+l", "logout", "Logout", show=False),
    ]

    def __init__(self, remote: DocumentStore | None = None, auth: AuthProvider | None = None):
        super().__init__()
        storage.init_db()
        self.user_config = storage.get_config()

        if remote is None:
            remote = SQLiteDocumentStore()
        self.remote = remote
        if auth is None and isinstance(remote, SQLiteDocumentStore):
            auth = AuthProvider(remote)
        self.auth = auth

        self.state: SessionState = new_session(sync_enabled=self.user_config.sync_enabled)

        # View mode: "month" or "day"
        self.view_mode = "month"
        self.day_view_date: str | None = None

    def compose(self) -> ComposeResult:
        yield MonthHeader(id="month-header")
        yield Container(DataTable(id="month-table"), id="month-table-container")
        yield MonthSummary(id="month-summary")
        # Day view widgets (hidden by default)
        yield DayHeader(id="day-header", classes="hidden")
        yield Container(DataTable(id="day-table"), id="day-table-container", classes="hidden")
        yield Static(id="day-summary", classes="hidden")
        yield Footer()

    def on_mount(self):
        self._setup_month_table()
        self._setup_day_table()
        resumed = resume_guest_mode(self.state)
        if resumed is not None:
            self._apply(resumed)
        else:
            self._refresh_display()
            self.push_screen(LoginScreen(), self._on_login_result)
        self.query_one("#month-table", DataTable).focus()

    def _setup_month_table(self):
        table = self.query_one("#month-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Day", width=4)
        table.add_column("Date", width=8)
        table.add_column("Entries", width=7)
        table.add_column("Hours", width=7)
        table.add_column("Charge codes", width=50)

    def _setup_day_table(self):
        table = self.query_one("#day-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Type", width=8)
        table.add_column("Charge code", width=34)
        table.add_column("Title", width=28)
        table.add_column("Hours", width=6)
        table.add_column("Comments", width=30)

    # --- State handling ---

    def _apply(self, state: SessionState) -> None:
        """Adopt a new session state and surface its messages."""
        if state.last_error:
            self.notify(state.last_error, severity="error")
        elif state.last_message:
            self.notify(state.last_message)
        if state.unmigrated_months and state.unmigrated_months != self.state.unmigrated_months:
            count = len(state.unmigrated_months)
            self.notify(f"Found {count} month(s) of local data. Press M to migrate to cloud.")
        self.state = replace(state, last_error=None, last_message=None)
        self._refresh_display()

    def _mutate(self, operation) -> bool:
        """Run a store operation on the session, then persist the current month."""
        try:
            state = operation(self.state)
        except ValidationError as e:
            self.notify(str(e), severity="error")
            return False
        state = sync.persist_month(state, state.current_month_key, self.remote)
        self._apply(state)
        return True

    # --- Display ---

    def _refresh_display(self):
        record = store.current_record(self.state)
        header = self.query_one("#month-header", MonthHeader)
        header.update_display(record.month_key, self.state.user, self.state.sync_status, self.state.online)

        if self.view_mode == "day" and self.day_view_date:
            self._refresh_day_display()
        else:
            self._refresh_month_display()

    def _refresh_month_display(self):
        record = store.current_record(self.state)
        table = self.query_one("#month-table", DataTable)
        cursor_row = table.cursor_row
        table.clear()

        today = date.today()
        for d in days_in_month(record.month_key):
            key = date_key(d)
            entries = record.daily_logs.get(key, [])
            total = day_total(entries)
            style = "dim" if d.weekday() >= 5 and not entries else ""
            if d == today:
                style = "bold"

            codes = Text()
            for i, entry in enumerate(entries):
                if i:
                    codes.append(", ")
                codes.append(entry.charge_code, style=KIND_STYLES[entry.kind])

            table.add_row(
                Text(d.strftime("%a"), style=style),
                Text(d.strftime("%d %b"), style=style),
                Text(str(len(entries)) if entries else "-", style=style),
                Text(f"{float(total):g}h" if entries else "-", style=style),
                codes,
                key=key,
            )

        if cursor_row:
            table.move_cursor(row=min(cursor_row, table.row_count - 1))

        summary = self.query_one("#month-summary", MonthSummary)
        summary.update_display(record.summary or compute_stats(record.daily_logs))

    def _refresh_day_display(self):
        key = self.day_view_date
        entries = store.entries_for(self.state, key)
        total = day_total(entries)

        self.query_one("#day-header", DayHeader).update_display(key, total)

        table = self.query_one("#day-table", DataTable)
        table.clear()
        for entry in entries:
            style = KIND_STYLES[entry.kind]
            table.add_row(
                Text(entry.kind.value.title(), style=style),
                entry.charge_code,
                entry.project_title,
                f"{float(entry.hours or Decimal('0')):g}",
                entry.comments,
                key=entry.id,
            )

        day_summary = self.query_one("#day-summary", Static)
        if entries:
            day_summary.update(f"{len(entries)} entries, {float(total):g}h")
        else:
            day_summary.update(Text("No entries for this day.", style="dim"))

    def _set_view_mode(self, mode: str):
        """Switch between month and day views."""
        self.view_mode = mode
        month_widgets = ["#month-table-container", "#month-summary"]
        day_widgets = ["#day-header", "#day-table-container", "#day-summary"]

        for widget_id in month_widgets:
            widget = self.query_one(widget_id)
            if mode == "month":
                widget.remove_class("hidden")
            else:
                widget.add_class("hidden")

        for widget_id in day_widgets:
            widget = self.query_one(widget_id)
            if mode == "day":
                widget.remove_class("hidden")
            else:
                widget.add_class("hidden")

        self.refresh_bindings()
        self._refresh_display()

        if mode == "month":
            self.query_one("#month-table", DataTable).focus()
        else:
            self.query_one("#day-table", DataTable).focus()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Check if an action is available based on view mode and session."""
        if action in ("delete_entry", "back_to_month"):
            return True if self.view_mode == "day" else None
        if action in ("prev_month", "next_month", "pick_month", "populate_holidays", "export_month"):
            return self.view_mode == "month"
        if action in ("retry_sync", "toggle_online"):
            return True if self.state.is_authenticated else None
        if action == "migrate":
            return True if self.state.unmigrated_months else None
        return True

    # --- Selection helpers ---

    def _get_selected_date(self) -> str | None:
        """Date key of the highlighted day, or the day being viewed."""
        if self.view_mode == "day":
            return self.day_view_date
        table = self.query_one("#month-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return str(row_key.value) if row_key else None

    def _get_selected_entry_id(self) -> str | None:
        table = self.query_one("#day-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return str(row_key.value) if row_key else None

    def _select_date(self, key: str):
        table = self.query_one("#month-table", DataTable)
        for row_idx in range(table.row_count):
            row_key = table.coordinate_to_cell_key(Coordinate(row_idx, 0)).row_key
            if row_key and row_key.value == key:
                table.move_cursor(row=row_idx)
                return

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a day opens the day view."""
        if event.data_table.id != "month-table" or event.row_key is None:
            return
        self.day_view_date = str(event.row_key.value)
        self._set_view_mode("day")

    # --- Actions ---

    def action_prev_month(self):
        self._apply(previous_month(self.state))

    def action_next_month(self):
        self._apply(next_month(self.state))

    def action_pick_month(self):
        self.push_screen(
            MonthPickerScreen(available_months(self.state), self.state.records, self.state.current_month_key),
            self._on_month_picked,
        )

    def _on_month_picked(self, key: str | None) -> None:
        if key is not None:
            self._apply(navigate_to_month(self.state, key))

    def action_goto_today(self):
        today = date.today()
        self._apply(navigate_to_month(self.state, month_key(today)))
        if self.view_mode != "month":
            self._set_view_mode("month")
        self._select_date(date_key(today))

    def action_back_to_month(self):
        if self.view_mode == "day":
            key = self.day_view_date
            self.day_view_date = None
            self._set_view_mode("month")
            if key:
                self._select_date(key)

    def _open_entry_screen(self, kind: EntryKind) -> None:
        if self.state.user is None:
            self.notify("Sign in or use guest mode first", severity="warning")
            return
        key = self._get_selected_date()
        if not key:
            self.notify("Please select a date first.", severity="warning")
            return
        default_hours = "" if kind == EntryKind.WORK else f"{float(self.user_config.standard_day_hours):g}"
        self.push_screen(
            AddEntryScreen(key, kind, default_hours),
            lambda entry: self._on_entry_added(key, entry),
        )

    def action_add_work(self):
        self._open_entry_screen(EntryKind.WORK)

    def action_add_holiday(self):
        self._open_entry_screen(EntryKind.HOLIDAY)

    def action_add_leave(self):
        self._open_entry_screen(EntryKind.LEAVE)

    def _on_entry_added(self, key: str, entry) -> None:
        if entry is None:
            return
        if self._mutate(lambda state: store.add_entry(state, key, entry)):
            self.notify(f"{entry.kind.value.title()} entry added!")

    def action_delete_entry(self):
        if self.view_mode != "day" or not self.day_view_date:
            return
        entry_id = self._get_selected_entry_id()
        if not entry_id:
            return
        key = self.day_view_date
        self.push_screen(
            ConfirmScreen("Are you sure you want to delete this entry?"),
            lambda confirmed: self._on_delete_confirmed(confirmed, key, entry_id),
        )

    def _on_delete_confirmed(self, confirmed: bool | None, key: str, entry_id: str) -> None:
        if confirmed and self._mutate(lambda state: store.delete_entry(state, key, entry_id)):
            self.notify("Entry deleted!")

    def action_populate_holidays(self):
        """Add holiday entries for public holidays in the current month."""
        if self.state.user is None:
            return
        try:
            state, count = store.populate_holidays(self.state, self.user_config)
        except (ValidationError, NotImplementedError, KeyError) as e:
            logger.error(f"Could not populate holidays: {e}")
            self.notify(f"Could not load public holidays: {e}", severity="error")
            return
        if count:
            state = sync.persist_month(state, state.current_month_key, self.remote)
        self._apply(state)
        self.notify(f"Added {count} holiday entries" if count else "No new holidays to add")

    def action_export_month(self):
        record = store.current_record(self.state)
        path = export.default_export_path(record.month_key)
        try:
            export.export_month(record, path)
        except (OSError, ValueError) as e:
            logger.error(f"Export failed: {e}")
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Exported to {path}")

    def action_export_range(self):
        days = days_in_month(self.state.current_month_key)
        self.push_screen(ExportRangeScreen(days[0], days[-1]), self._on_export_range)

    def _on_export_range(self, result: tuple[date, date] | None) -> None:
        if result is None:
            return
        start, end = result
        path = export.default_export_path(f"{start.isoformat()}_{end.isoformat()}")
        try:
            export.export_date_range(self.state.records, start, end, path)
        except (OSError, ValueError) as e:
            logger.error(f"Export failed: {e}")
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Exported to {path}")

    def action_retry_sync(self):
        self._apply(sync.retry_sync(self.state, self.remote))

    def action_toggle_online(self):
        self._apply(sync.set_online(self.state, not self.state.online, self.remote))

    def action_migrate(self):
        count = len(self.state.unmigrated_months)
        if not count:
            return
        self.push_screen(
            ConfirmScreen(f"Found {count} months of local data. Migrate to cloud?"),
            self._on_migrate_confirmed,
        )

    def _on_migrate_confirmed(self, confirmed: bool | None) -> None:
        if confirmed:
            self._apply(sync.migrate_local_months(self.state, self.remote))

    def action_logout(self):
        self._apply(logout(self.state, self.auth))
        if self.view_mode != "month":
            self._set_view_mode("month")
        self.push_screen(LoginScreen(), self._on_login_result)

    def _on_login_result(self, result: tuple | None) -> None:
        if result is None:
            if self.state.user is None:
                self.notify("Not signed in. Press ctrl+l to sign in or use guest mode.", severity="warning")
            return
        action = result[0]
        if action == "guest":
            state = setup_guest_mode(self.state, result[1])
        elif self.auth is None:
            self.notify("Cloud services unavailable. Try guest mode.", severity="error")
            self.push_screen(LoginScreen(), self._on_login_result)
            return
        elif action == "login":
            state = login(self.state, self.auth, self.remote, result[1], result[2])
        else:
            state = register(self.state, self.auth, self.remote, result[1], result[2], result[3])

        self._apply(state)
        if self.state.user is None:
            # Failed sign-in: offer the dialog again, guest mode included
            self.push_screen(LoginScreen(), self._on_login_result)
        else:
            self._select_date(date_key(date.today()))


def main():
    import sys
    setup_logging()
    if len(sys.argv) > 1 and sys.argv[1] == "--db-info":
        from datetime import datetime
        for label, db_path in (("Local", storage.DB_PATH), ("Remote", SQLiteDocumentStore().path)):
            print(f"{label} database: {db_path}")
            if db_path.exists():
                mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
                size = db_path.stat().st_size
                print(f"  Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
                print(f"  Size: {size:,} bytes")
            else:
                print("  Status: Does not exist (will be created on first run)")
        return
    if len(sys.argv) > 2 and sys.argv[1] == "--export":
        storage.init_db()
        key = sys.argv[2]
        try:
            parse_month_key(key)
            logs = storage.load_month_logs(key) or {}
        except (ValueError, CorruptDataError) as e:
            print(f"Cannot export {key}: {e}")
            return
        record = MonthRecord(month_key=key, daily_logs=logs, summary=compute_stats(logs))
        path = export.export_month(record, export.default_export_path(key))
        print(f"Exported {key} to {path}")
        return

    app = WorklogApp()
    app.run()


if __name__ == "__main__":
    main()
