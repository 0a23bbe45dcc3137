"""Exception types for the work log."""

from __future__ import annotations


class WorklogError(Exception):
    """Base class for all work log errors."""


class ValidationError(WorklogError):
    """Bad form input. The operation is aborted and nothing is mutated."""


class DuplicateEntryError(ValidationError):
    """An entry with the same project, sub code and kind already exists for the date."""

    def __init__(self, date_key: str, project_id: str, sub_code: str | None, kind: str):
        label = f"{project_id}-{sub_code}" if sub_code else project_id
        super().__init__(f"{label} ({kind}) is already logged for {date_key}")
        self.date_key = date_key
        self.project_id = project_id
        self.sub_code = sub_code
        self.kind = kind


class EntryNotFoundError(ValidationError):
    """No entry with the given id exists for the date."""


class PersistenceError(WorklogError):
    """Reading or writing stored data failed."""


class RemoteError(PersistenceError):
    """The remote document store could not be reached or rejected the request."""


class CorruptDataError(PersistenceError):
    """Stored data could not be parsed."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Corrupt data under {key}: {reason}")
        self.key = key


AUTH_ERROR_MESSAGES = {
    "auth/invalid-email": "Invalid email address.",
    "auth/user-not-found": "No account found with this email.",
    "auth/wrong-password": "Incorrect password.",
    "auth/email-already-in-use": "An account with this email already exists.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/network-request-failed": "Network error. Check your connection or use guest mode.",
}


class AuthError(WorklogError):
    """Sign-in or sign-up failed. Carries a user-readable message."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(AUTH_ERROR_MESSAGES.get(code, "Authentication failed. Please try again."))
