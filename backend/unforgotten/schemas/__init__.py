"""
Pydantic schemas for API request/response validation and remote DTOs.
"""
from unforgotten.schemas.account import (
    AccountMemberWithUser,
    AppUserRead,
    MemberRole,
    ProfileRead,
    ProfileSyncRead,
)
from unforgotten.schemas.calendar import (
    AppointmentRead,
    CalendarEventFilter,
    CalendarEventType,
    CountdownRead,
    CountdownType,
    FamilyCalendarShareCreate,
    FamilyCalendarShareMemberRead,
    FamilyCalendarShareRead,
    FamilyCalendarShareMembersUpdate,
    FamilyCalendarShareResponse,
    MedicationRead,
    MedicationScheduleRead,
    ScheduleEntry,
    ScheduleType,
    SharedEventIds,
    ToDoListRead,
)
from unforgotten.schemas.calendar_event import (
    AppointmentEvent,
    BirthdayEvent,
    CalendarDayGroup,
    CalendarEvent,
    CalendarEventResponse,
    CalendarEventsResponse,
    CalendarMemberResponse,
    CountdownEvent,
    MedicationEvent,
    ToDoListEvent,
)
from unforgotten.schemas.note import (
    BatchSyncResult,
    NoteCreate,
    NoteResponse,
    NoteSnapshot,
    NoteTheme,
    NoteUpdate,
    RefreshResponse,
    RemoteNote,
    RemoteNoteInsert,
    RemoteNoteUpdate,
    SyncServiceStatus,
    SyncState,
    SyncStatusResponse,
)

__all__ = [
    # Account
    "AccountMemberWithUser",
    "AppUserRead",
    "MemberRole",
    "ProfileRead",
    "ProfileSyncRead",
    # Calendar sources
    "AppointmentRead",
    "CalendarEventFilter",
    "CalendarEventType",
    "CountdownRead",
    "CountdownType",
    "FamilyCalendarShareCreate",
    "FamilyCalendarShareMemberRead",
    "FamilyCalendarShareRead",
    "FamilyCalendarShareMembersUpdate",
    "FamilyCalendarShareResponse",
    "MedicationRead",
    "MedicationScheduleRead",
    "ScheduleEntry",
    "ScheduleType",
    "SharedEventIds",
    "ToDoListRead",
    # Calendar events
    "AppointmentEvent",
    "BirthdayEvent",
    "CalendarDayGroup",
    "CalendarEvent",
    "CalendarEventResponse",
    "CalendarEventsResponse",
    "CalendarMemberResponse",
    "CountdownEvent",
    "MedicationEvent",
    "ToDoListEvent",
    # Notes
    "BatchSyncResult",
    "NoteCreate",
    "NoteResponse",
    "NoteSnapshot",
    "NoteTheme",
    "NoteUpdate",
    "RefreshResponse",
    "RemoteNote",
    "RemoteNoteInsert",
    "RemoteNoteUpdate",
    "SyncServiceStatus",
    "SyncState",
    "SyncStatusResponse",
]
