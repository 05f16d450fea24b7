"""
Error types raised by the calendar and notes cores.
"""


class NotesSyncError(Exception):
    """Base class for note sync failures."""

    message = "Note sync failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class NotAuthenticatedError(NotesSyncError):
    message = "User is not authenticated"


class MissingAccountIdError(NotesSyncError):
    message = "Note is missing account ID and cannot be synced"


class CalendarLoadError(Exception):
    """Foundational calendar data (profiles, members) could not be loaded."""


class EventNotShareableError(Exception):
    """Only appointments and countdowns can be shared to the family calendar."""

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} cannot be shared to the family calendar")
        self.event_id = event_id
