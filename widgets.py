"""Custom widgets for the work log application."""

from __future__ import annotations

from decimal import Decimal

from textual.widgets import Static
from rich.text import Text

from models import MonthStats, SyncStatus, User
from utils import format_month_key, parse_date_key

SYNC_LABELS = {
    SyncStatus.IDLE: ("", ""),
    SyncStatus.PENDING: ("● Pending sync", "yellow"),
    SyncStatus.SYNCING: ("◌ Syncing…", "cyan"),
    SyncStatus.SYNCED: ("✓ Synced", "green"),
    SyncStatus.ERROR: ("✗ Sync error", "bold red"),
}

HEADER_WIDTH = 74


def user_label(user: User | None) -> str:
    if user is None:
        return "Signed out"
    if user.is_guest:
        return f"Guest ({user.employee_id}) · Local Mode"
    if user.employee_id:
        return f"{user.display_name} ({user.employee_id})"
    return user.display_name


class MonthHeader(Static):
    """Month name on the left, user and sync status on the right."""

    def update_display(self, month_key: str, user: User | None, status: SyncStatus, online: bool = True):
        title = f"MONTH: {format_month_key(month_key)}"
        status_text, status_style = SYNC_LABELS[status]
        right = user_label(user)
        if not online:
            right += " · offline"

        text = Text()
        text.append(title, style="bold")
        right_len = len(right) + (len(status_text) + 2 if status_text else 0)
        spacing = HEADER_WIDTH - len(title) - right_len
        text.append(" " * max(spacing, 2))
        text.append(right)
        if status_text:
            text.append("  ")
            text.append(status_text, style=status_style)

        self.update(text)


class MonthSummary(Static):
    """Shows month totals and the charge code breakdown."""

    def update_display(self, stats: MonthStats):
        text = Text()
        text.append(f"  Total hours  {float(stats.total_hours):>7g}h\n")
        text.append(f"   Work hours  {float(stats.work_hours):>7g}h\n")
        text.append(f"  Days worked  {stats.total_days_worked:>7}\n")
        text.append(f"      Entries  {stats.total_entries:>7}\n")
        text.append(f"     Projects  {stats.unique_project_count:>7}")

        for code, hours in sorted(stats.project_breakdown.items()):
            # Dim buckets with nothing logged against them
            style = "dim" if hours == 0 else ""
            text.append(f"\n  {code:<36} {float(hours):>7g}h", style=style)

        self.update(text)


class DayHeader(Static):
    """Shows the selected date and its total."""

    def update_display(self, date_key: str, total: Decimal):
        d = parse_date_key(date_key)
        text = Text()
        text.append(f"DAY: {d.strftime('%A %d %B %Y')}", style="bold")
        text.append(f"    {float(total):g}h logged")
        if total > 24:
            text.append("  (over 24h)", style="bold red")
        self.update(text)
