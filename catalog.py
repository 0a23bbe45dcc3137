"""Project charge codes available for logging."""

from __future__ import annotations

from models import EntryKind, Project

PROJECTS = [
    Project("IN-1100-NA", "0010", "General Overhead"),
    Project("WV-1112-4152", "0210", "AS_Strategy"),
    Project("WV-1112-4152", "1010", "AS_Strategy"),
    Project("WV-1112-4152", "1020", "AS_Strategy"),
    Project("RW-1173-9573P00303", "0010", "RW Tracking"),
    Project("WV-1137-D75B1-C4285-08-03", "1250", "MERCIA_INSIGNIA_ElectronicController_Mil"),
    Project("WV-1116-4306", "0020", "SensorLess_Controller_Demo"),
]

SPECIAL_ENTRIES = {
    EntryKind.HOLIDAY: Project("HOLIDAY", None, "Holiday"),
    EntryKind.LEAVE: Project("LEAVE", None, "Leave"),
}


def project_ids() -> list[str]:
    """Distinct project ids in catalog order."""
    seen: list[str] = []
    for project in PROJECTS:
        if project.project_id not in seen:
            seen.append(project.project_id)
    return seen


def sub_codes(project_id: str) -> list[str]:
    return [p.sub_code for p in PROJECTS if p.project_id == project_id and p.sub_code]


def find_project(project_id: str, sub_code: str | None) -> Project | None:
    for project in PROJECTS:
        if project.project_id == project_id and project.sub_code == sub_code:
            return project
    for project in SPECIAL_ENTRIES.values():
        if project.project_id == project_id and sub_code is None:
            return project
    return None


def project_title(project_id: str, sub_code: str | None = None) -> str:
    """Title for a project id. Without a sub code, the first match wins."""
    if sub_code is not None:
        project = find_project(project_id, sub_code)
        return project.project_title if project else ""
    for project in [*PROJECTS, *SPECIAL_ENTRIES.values()]:
        if project.project_id == project_id:
            return project.project_title
    return ""


def special_entry(kind: EntryKind) -> Project:
    """Pseudo-project used for holiday and leave entries."""
    if kind not in SPECIAL_ENTRIES:
        raise KeyError(f"{kind.value} entries are logged against real projects")
    return SPECIAL_ENTRIES[kind]
