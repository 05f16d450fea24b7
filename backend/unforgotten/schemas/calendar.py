"""
Schemas for the calendar event sources and family calendar sharing.
"""
from datetime import date as date_type, datetime, time as time_type
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, model_validator
from uuid import UUID, uuid5


class CountdownType(str, Enum):
    ANNIVERSARY = "anniversary"
    HOLIDAY = "holiday"
    COUNTDOWN = "countdown"
    EVENT = "event"
    TASK = "task"
    CUSTOM = "custom"


class ScheduleType(str, Enum):
    SCHEDULED = "scheduled"
    AS_NEEDED = "as_needed"


class CalendarEventType(str, Enum):
    """Event kinds that can be shared to the family calendar."""

    APPOINTMENT = "appointment"
    COUNTDOWN = "countdown"


class CalendarEventFilter(str, Enum):
    APPOINTMENTS = "appointments"
    COUNTDOWNS = "countdowns"
    BIRTHDAYS = "birthdays"
    MEDICATIONS = "medications"
    TODO_LISTS = "todoLists"

    @property
    def display_name(self) -> str:
        return _FILTER_NAMES[self]

    @property
    def color(self) -> str:
        return _FILTER_COLORS[self]


_FILTER_NAMES = {
    CalendarEventFilter.APPOINTMENTS: "Appointments",
    CalendarEventFilter.COUNTDOWNS: "Events",
    CalendarEventFilter.BIRTHDAYS: "Birthdays",
    CalendarEventFilter.MEDICATIONS: "Medications",
    CalendarEventFilter.TODO_LISTS: "To Do Lists",
}

_FILTER_COLORS = {
    CalendarEventFilter.APPOINTMENTS: "#4A90E2",
    CalendarEventFilter.COUNTDOWNS: "#007AFF",
    CalendarEventFilter.BIRTHDAYS: "#FF2D55",
    CalendarEventFilter.MEDICATIONS: "#34C759",
    CalendarEventFilter.TODO_LISTS: "#FF9500",
}


class AppointmentRead(BaseModel):
    id: UUID
    account_id: UUID
    profile_id: UUID
    type: str = "general"
    title: str
    date: date_type
    time: Optional[time_type] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    is_completed: bool = False

    class Config:
        from_attributes = True


class CountdownRead(BaseModel):
    id: UUID
    account_id: UUID
    title: str
    subtitle: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    has_time: bool = False
    type: CountdownType = CountdownType.COUNTDOWN
    custom_type: Optional[str] = None
    notes: Optional[str] = None
    group_id: Optional[UUID] = None
    is_recurring: bool = False

    class Config:
        from_attributes = True

    @property
    def is_legacy_multi_day(self) -> bool:
        """Single row spanning several days (end_date set, not grouped)."""
        return self.end_date is not None and self.group_id is None

    @property
    def display_type_name(self) -> str:
        if self.type == CountdownType.CUSTOM and self.custom_type:
            return self.custom_type
        return self.type.value.capitalize()


class ScheduleEntry(BaseModel):
    # Filled in by MedicationScheduleRead when the stored entry has none
    id: Optional[UUID] = None
    time: str  # HH:MM
    dosage: Optional[str] = None
    days_of_week: List[int] = [0, 1, 2, 3, 4, 5, 6]  # 0=Sunday
    duration_value: Optional[int] = None
    duration_unit: str = "days"
    sort_order: int = 0


class MedicationRead(BaseModel):
    id: UUID
    account_id: UUID
    profile_id: UUID
    name: str
    strength: Optional[str] = None
    form: Optional[str] = None
    is_paused: bool = False

    class Config:
        from_attributes = True


class MedicationScheduleRead(BaseModel):
    id: UUID
    medication_id: UUID
    schedule_type: ScheduleType = ScheduleType.SCHEDULED
    start_date: date_type
    end_date: Optional[date_type] = None
    schedule_entries: Optional[List[ScheduleEntry]] = None

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def assign_entry_ids(self) -> "MedicationScheduleRead":
        """Give id-less entries an id derived from the schedule and position, stable across loads."""
        for index, entry in enumerate(self.schedule_entries or []):
            if entry.id is None:
                entry.id = uuid5(self.id, str(index))
        return self


class ToDoListRead(BaseModel):
    id: UUID
    account_id: UUID
    title: str
    list_type: Optional[str] = None
    due_date: Optional[date_type] = None

    class Config:
        from_attributes = True


class FamilyCalendarShareRead(BaseModel):
    id: UUID
    account_id: UUID
    event_type: CalendarEventType
    event_id: UUID
    shared_by_user_id: UUID

    class Config:
        from_attributes = True


class FamilyCalendarShareMemberRead(BaseModel):
    id: UUID
    share_id: UUID
    member_user_id: UUID

    class Config:
        from_attributes = True


class SharedEventIds(BaseModel):
    appointment_ids: set[UUID] = set()
    countdown_ids: set[UUID] = set()


class FamilyCalendarShareCreate(BaseModel):
    account_id: UUID
    event_id: str  # calendar event id, e.g. "apt-<uuid>"
    member_user_ids: List[UUID] = []


class FamilyCalendarShareMembersUpdate(BaseModel):
    member_user_ids: List[UUID]


class FamilyCalendarShareResponse(BaseModel):
    share: FamilyCalendarShareRead
    member_user_ids: List[UUID]
