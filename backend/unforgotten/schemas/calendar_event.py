"""
Unified calendar event: a closed set of event kinds, discriminated by `kind`.

Every kind exposes `date` (calendar day used for bucketing), `date_time`
(used for ordering), `filter_type` and `profile_id`. Only appointments and
countdowns carry a `share_ref` usable against family calendar shares.
"""
from datetime import date, datetime, time
from typing import Annotated, Literal, Optional, Tuple, Union
from pydantic import BaseModel, Field
from uuid import UUID

from unforgotten.core.dates import local_day, local_today, to_local_naive
from unforgotten.schemas.account import ProfileRead
from unforgotten.schemas.calendar import (
    AppointmentRead,
    CalendarEventFilter,
    CalendarEventType,
    CountdownRead,
    MedicationRead,
    ScheduleEntry,
    ToDoListRead,
)


class _EventDisplay:
    """Properties derived from `filter_type` and `share_ref`, common to all kinds."""

    @property
    def color(self) -> str:
        return self.filter_type.color

    @property
    def can_be_shared(self) -> bool:
        return self.share_ref is not None


class AppointmentEvent(_EventDisplay, BaseModel):
    kind: Literal["appointment"] = "appointment"
    appointment: AppointmentRead
    is_shared: bool = False

    @property
    def id(self) -> str:
        return f"apt-{self.appointment.id}"

    @property
    def date(self) -> date:
        return self.appointment.date

    @property
    def date_time(self) -> datetime:
        return datetime.combine(self.appointment.date, self.appointment.time or time.min)

    @property
    def title(self) -> str:
        return self.appointment.title

    @property
    def subtitle(self) -> Optional[str]:
        return self.appointment.location

    @property
    def profile_id(self) -> Optional[UUID]:
        return self.appointment.profile_id

    @property
    def filter_type(self) -> CalendarEventFilter:
        return CalendarEventFilter.APPOINTMENTS

    @property
    def is_shared_to_family(self) -> bool:
        return self.is_shared

    @property
    def share_ref(self) -> Optional[Tuple[UUID, CalendarEventType]]:
        return self.appointment.id, CalendarEventType.APPOINTMENT


class CountdownEvent(_EventDisplay, BaseModel):
    kind: Literal["countdown"] = "countdown"
    countdown: CountdownRead
    is_shared: bool = False
    # Set on per-day copies of a legacy multi-day countdown
    display_date: Optional[date] = None

    @property
    def id(self) -> str:
        if self.display_date is not None:
            return f"cd-{self.countdown.id}-{self.display_date.isoformat()}"
        return f"cd-{self.countdown.id}"

    @property
    def date(self) -> date:
        if self.display_date is not None:
            return self.display_date
        return local_day(self.countdown.date)

    @property
    def date_time(self) -> datetime:
        if self.display_date is not None:
            return datetime.combine(self.display_date, time.min)
        return to_local_naive(self.countdown.date)

    @property
    def title(self) -> str:
        return self.countdown.title

    @property
    def subtitle(self) -> Optional[str]:
        return self.countdown.subtitle or self.countdown.notes

    @property
    def profile_id(self) -> Optional[UUID]:
        # Countdowns are account-wide
        return None

    @property
    def filter_type(self) -> CalendarEventFilter:
        return CalendarEventFilter.COUNTDOWNS

    @property
    def is_shared_to_family(self) -> bool:
        return self.is_shared

    @property
    def share_ref(self) -> Optional[Tuple[UUID, CalendarEventType]]:
        return self.countdown.id, CalendarEventType.COUNTDOWN


class BirthdayEvent(_EventDisplay, BaseModel):
    kind: Literal["birthday"] = "birthday"
    profile: ProfileRead
    next_occurrence_date: date
    days_until: int

    @property
    def id(self) -> str:
        return f"bday-{self.profile.id}"

    @property
    def date(self) -> date:
        return self.next_occurrence_date

    @property
    def date_time(self) -> datetime:
        return datetime.combine(self.next_occurrence_date, time.min)

    @property
    def title(self) -> str:
        return f"{self.profile.display_name}'s Birthday"

    @property
    def subtitle(self) -> Optional[str]:
        if self.profile.birthday is None:
            return None
        return f"Turning {self.next_occurrence_date.year - self.profile.birthday.year}"

    @property
    def profile_id(self) -> Optional[UUID]:
        return self.profile.id

    @property
    def filter_type(self) -> CalendarEventFilter:
        return CalendarEventFilter.BIRTHDAYS

    @property
    def is_shared_to_family(self) -> bool:
        return False

    @property
    def share_ref(self) -> Optional[Tuple[UUID, CalendarEventType]]:
        return None


class MedicationEvent(_EventDisplay, BaseModel):
    kind: Literal["medication"] = "medication"
    medication: MedicationRead
    entry: ScheduleEntry
    occurrence_date: date

    @property
    def id(self) -> str:
        return f"med-{self.medication.id}-{self.entry.id}-{self.occurrence_date.isoformat()}"

    @property
    def date(self) -> date:
        return self.occurrence_date

    @property
    def date_time(self) -> datetime:
        parts = self.entry.time.split(":")
        try:
            hour, minute = int(parts[0]), int(parts[1])
            return datetime.combine(self.occurrence_date, time(hour, minute))
        except (ValueError, IndexError):
            return datetime.combine(self.occurrence_date, time.min)

    @property
    def title(self) -> str:
        return self.medication.name

    @property
    def subtitle(self) -> Optional[str]:
        return self.entry.dosage or self.medication.strength

    @property
    def profile_id(self) -> Optional[UUID]:
        return self.medication.profile_id

    @property
    def filter_type(self) -> CalendarEventFilter:
        return CalendarEventFilter.MEDICATIONS

    @property
    def is_shared_to_family(self) -> bool:
        return False

    @property
    def share_ref(self) -> Optional[Tuple[UUID, CalendarEventType]]:
        return None


class ToDoListEvent(_EventDisplay, BaseModel):
    kind: Literal["todo_list"] = "todo_list"
    todo_list: ToDoListRead
    # Lists are only loaded when due_date is set; this is the fallback day
    fallback_date: Optional[date] = None

    @property
    def id(self) -> str:
        return f"todo-{self.todo_list.id}"

    @property
    def date(self) -> date:
        return self.todo_list.due_date or self.fallback_date or local_today()

    @property
    def date_time(self) -> datetime:
        return datetime.combine(self.date, time.min)

    @property
    def title(self) -> str:
        return self.todo_list.title

    @property
    def subtitle(self) -> Optional[str]:
        return self.todo_list.list_type

    @property
    def profile_id(self) -> Optional[UUID]:
        # To-do lists are account-wide
        return None

    @property
    def filter_type(self) -> CalendarEventFilter:
        return CalendarEventFilter.TODO_LISTS

    @property
    def is_shared_to_family(self) -> bool:
        return False

    @property
    def share_ref(self) -> Optional[Tuple[UUID, CalendarEventType]]:
        return None


CalendarEvent = Annotated[
    Union[AppointmentEvent, CountdownEvent, BirthdayEvent, MedicationEvent, ToDoListEvent],
    Field(discriminator="kind"),
]


class CalendarEventResponse(BaseModel):
    """Flattened event for API responses."""

    id: str
    kind: str
    title: str
    subtitle: Optional[str] = None
    date: date
    date_time: datetime
    filter_type: CalendarEventFilter
    color: str
    profile_id: Optional[UUID] = None
    event_id: Optional[UUID] = None
    is_shared_to_family: bool = False
    can_be_shared: bool = False

    @classmethod
    def from_event(cls, event) -> "CalendarEventResponse":
        share_ref = event.share_ref
        return cls(
            id=event.id,
            kind=event.kind,
            title=event.title,
            subtitle=event.subtitle,
            date=event.date,
            date_time=event.date_time,
            filter_type=event.filter_type,
            color=event.color,
            profile_id=event.profile_id,
            event_id=share_ref[0] if share_ref else None,
            is_shared_to_family=event.is_shared_to_family,
            can_be_shared=event.can_be_shared,
        )


class CalendarDayGroup(BaseModel):
    date: datetime
    events: list[CalendarEventResponse]


class CalendarMemberResponse(BaseModel):
    user_id: UUID
    display_name: str
    email: str
    role: str
    is_synthesized: bool = False


class CalendarEventsResponse(BaseModel):
    events: list[CalendarEventResponse]
    # Set when profiles or account members failed to load
    error: Optional[str] = None
