"""Modal screens for the work log application."""

from __future__ import annotations

from datetime import date
from typing import Mapping

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Label, Select
from textual.screen import ModalScreen

import catalog
import store
from errors import ValidationError
from models import EntryKind, LogEntry, MonthRecord
from stats import compute_stats
from utils import format_month_key, parse_date_key


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no confirmation dialog."""

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 56;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $warning;
    }

    #confirm-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
    }

    #confirm-buttons Button {
        width: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.message)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes (Y)", variant="warning", id="yes")
                yield Button("No (N)", variant="default", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class AddEntryScreen(ModalScreen[LogEntry | None]):
    """Modal screen for logging a work, holiday or leave entry on one day."""

    CSS = """
    AddEntryScreen {
        align: center middle;
    }

    #entry-dialog {
        width: 72;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #entry-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    .field-row {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-group {
        width: 1fr;
        height: auto;
        margin: 0 1 0 0;
    }

    #comments-group {
        width: 3fr;
    }

    #entry-buttons {
        width: 100%;
        height: auto;
        align: center middle;
    }

    #entry-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, date_key: str, kind: EntryKind = EntryKind.WORK, default_hours: str = ""):
        super().__init__()
        self.date_key = date_key
        self.kind = kind
        self.default_hours = default_hours

    def compose(self) -> ComposeResult:
        day = parse_date_key(self.date_key).strftime("%a %b %d, %Y")
        with Vertical(id="entry-dialog"):
            yield Label(f"{self.kind.value.title()} entry for {day}", id="entry-title")

            if self.kind == EntryKind.WORK:
                yield Label("Project", classes="field-label")
                yield Select(
                    [(f"{pid} · {catalog.project_title(pid)}", pid) for pid in catalog.project_ids()],
                    prompt="Select project",
                    id="project",
                )
                yield Label("Sub code", classes="field-label")
                yield Select([], prompt="Select sub code", id="sub-code")

            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("Hours", classes="field-label")
                    yield Input(value=self.default_hours, placeholder="8", id="hours")
                with Vertical(classes="field-group", id="comments-group"):
                    label = "Comments" if self.kind == EntryKind.WORK else "Comments (required)"
                    yield Label(label, classes="field-label")
                    yield Input(placeholder="", id="comments")

            with Horizontal(id="entry-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        if self.kind == EntryKind.WORK:
            self.query_one("#project", Select).focus()
        else:
            self.query_one("#hours", Input).focus()

    def on_select_changed(self, event: Select.Changed) -> None:
        """Fill the sub code list for the chosen project."""
        if event.select.id != "project":
            return
        sub_select = self.query_one("#sub-code", Select)
        if isinstance(event.value, str):
            codes = catalog.sub_codes(event.value)
            sub_select.set_options([(code, code) for code in codes])
            if len(codes) == 1:
                sub_select.value = codes[0]
        else:
            sub_select.set_options([])

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "hours":
            self.query_one("#comments", Input).focus()
        elif event.input.id == "comments":
            self._save_entry()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save_entry()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _selected(self, select_id: str) -> str:
        value = self.query_one(select_id, Select).value
        return value if isinstance(value, str) else ""

    def _save_entry(self) -> None:
        hours = self.query_one("#hours", Input).value
        comments = self.query_one("#comments", Input).value
        try:
            if self.kind == EntryKind.WORK:
                entry = store.make_work_entry(
                    self.date_key, self._selected("#project"), self._selected("#sub-code"), hours, comments
                )
            else:
                entry = store.make_special_entry(self.date_key, self.kind, hours, comments)
        except ValidationError as e:
            self.app.notify(str(e), severity="error")
            return
        self.dismiss(entry)


class LoginScreen(ModalScreen[tuple | None]):
    """Sign in, create an account, or continue in guest mode.

    Dismisses with ("login", email, password), ("register", email, password,
    employee_id) or ("guest", employee_id).
    """

    CSS = """
    LoginScreen {
        align: center middle;
    }

    #login-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #login-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #login-dialog Input {
        width: 100%;
        margin-bottom: 1;
    }

    #login-buttons {
        width: 100%;
        height: auto;
        align: center middle;
    }

    #login-buttons Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    FIELD_ORDER = ["email", "password", "employee-id"]

    def compose(self) -> ComposeResult:
        with Vertical(id="login-dialog"):
            yield Label("Monthly Work Log", id="login-title")
            yield Label("Email", classes="field-label")
            yield Input(placeholder="you@example.com", id="email")
            yield Label("Password", classes="field-label")
            yield Input(password=True, id="password")
            yield Label("Employee ID (sign up and guest mode)", classes="field-label")
            yield Input(placeholder="E1234", id="employee-id")
            with Horizontal(id="login-buttons"):
                yield Button("Sign in", variant="primary", id="login")
                yield Button("Sign up", variant="default", id="register")
                yield Button("Guest", variant="default", id="guest")

    def on_mount(self) -> None:
        self.query_one("#email", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        current_id = event.input.id
        if current_id == "password":
            self._submit("login")
        elif current_id in self.FIELD_ORDER:
            next_idx = (self.FIELD_ORDER.index(current_id) + 1) % len(self.FIELD_ORDER)
            self.query_one(f"#{self.FIELD_ORDER[next_idx]}", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self._submit(event.button.id or "")

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _submit(self, action: str) -> None:
        email = self.query_one("#email", Input).value.strip()
        password = self.query_one("#password", Input).value
        employee_id = self.query_one("#employee-id", Input).value.strip()

        if action == "guest":
            if not employee_id:
                self.app.notify("Employee ID is required for guest mode", severity="error")
                return
            self.dismiss(("guest", employee_id))
        elif action in ("login", "register"):
            if not email or not password:
                self.app.notify("Email and password are required", severity="error")
                return
            if action == "login":
                self.dismiss(("login", email, password))
            else:
                self.dismiss(("register", email, password, employee_id or None))


class ExportRangeScreen(ModalScreen[tuple[date, date] | None]):
    """Ask for a date range to export."""

    CSS = """
    ExportRangeScreen {
        align: center middle;
    }

    #range-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #range-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, start: date, end: date):
        super().__init__()
        self.start = start
        self.end = end

    def compose(self) -> ComposeResult:
        with Vertical(id="range-dialog"):
            yield Label("Export date range", id="range-title")
            yield Label("From (YYYY-MM-DD)", classes="field-label")
            yield Input(value=self.start.isoformat(), id="range-start")
            yield Label("To (YYYY-MM-DD)", classes="field-label")
            yield Input(value=self.end.isoformat(), id="range-end")
            with Horizontal(id="range-buttons"):
                yield Button("Export", variant="primary", id="export")
                yield Button("Cancel", variant="default", id="cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _submit(self) -> None:
        try:
            start = parse_date_key(self.query_one("#range-start", Input).value.strip())
            end = parse_date_key(self.query_one("#range-end", Input).value.strip())
        except ValueError:
            self.app.notify("Dates must be YYYY-MM-DD", severity="error")
            return
        if end < start:
            self.app.notify("End date is before start date", severity="error")
            return
        self.dismiss((start, end))


class MonthPickerScreen(ModalScreen[str | None]):
    """Jump to any month that has data, or the month being edited."""

    CSS = """
    MonthPickerScreen {
        align: center middle;
    }

    #month-dialog {
        width: 50;
        height: 20;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #month-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #month-list {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, months: list[str], records: Mapping[str, MonthRecord], current: str):
        super().__init__()
        self.months = months
        self.records = records
        self.current = current

    def compose(self) -> ComposeResult:
        with Vertical(id="month-dialog"):
            yield Label("Select Month", id="month-title")
            yield DataTable(id="month-list")

    def on_mount(self) -> None:
        table = self.query_one("#month-list", DataTable)
        table.cursor_type = "row"
        table.add_column("Month", width=18)
        table.add_column("Entries", width=8)
        table.add_column("Hours", width=8)
        for key in self.months:
            entries, hours = self.month_totals(key)
            table.add_row(format_month_key(key), str(entries), f"{float(hours):g}", key=key)
        if self.current in self.months:
            table.move_cursor(row=self.months.index(self.current))
        table.focus()

    def month_totals(self, key: str):
        """Entry count and total hours for a month, zero when nothing is loaded."""
        record = self.records.get(key)
        if record is None:
            return 0, 0
        summary = record.summary or compute_stats(record.daily_logs)
        return summary.total_entries, summary.total_hours

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key:
            self.dismiss(str(event.row_key.value))

    def action_cancel(self) -> None:
        self.dismiss(None)
