"""
Shared date helpers and error types.
"""
from unforgotten.core.errors import (
    CalendarLoadError,
    MissingAccountIdError,
    NotAuthenticatedError,
    NotesSyncError,
)

__all__ = [
    "CalendarLoadError",
    "MissingAccountIdError",
    "NotAuthenticatedError",
    "NotesSyncError",
]
