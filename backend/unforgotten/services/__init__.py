"""
Calendar aggregation and note sync services.
"""
from unforgotten.services.calendar import CalendarAggregator, CalendarTab
from unforgotten.services.notes_store import NotesStore
from unforgotten.services.notes_sync import NotesSyncService

__all__ = [
    "CalendarAggregator",
    "CalendarTab",
    "NotesStore",
    "NotesSyncService",
]
