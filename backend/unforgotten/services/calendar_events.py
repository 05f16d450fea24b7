"""
Transforms from stored records into calendar events.

All functions here are pure: "today" is passed in by the caller.
"""
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Set, TypeVar
from uuid import UUID

from unforgotten.core.dates import day_range, local_day
from unforgotten.schemas.account import ProfileRead
from unforgotten.schemas.calendar import (
    AppointmentRead,
    CountdownRead,
    MedicationRead,
    MedicationScheduleRead,
    ScheduleType,
    ToDoListRead,
)
from unforgotten.schemas.calendar_event import (
    AppointmentEvent,
    BirthdayEvent,
    CountdownEvent,
    MedicationEvent,
    ToDoListEvent,
)

T = TypeVar("T")


def _anniversary_in_year(birthday: date, year: int) -> date:
    """Month/day of birthday in the given year. Feb 29 becomes Mar 1 in non-leap years."""
    try:
        return birthday.replace(year=year)
    except ValueError:
        return date(year, 3, 1)


def next_occurrence_date(birthday: date, today: date) -> date:
    """Next anniversary of birthday on or after today, comparing month/day only."""
    this_year = _anniversary_in_year(birthday, today.year)
    if this_year < today:
        return _anniversary_in_year(birthday, today.year + 1)
    return this_year


def days_until_next_occurrence(birthday: date, today: date) -> int:
    return (next_occurrence_date(birthday, today) - today).days


def merge_own_and_shared(own: Sequence[T], shared: Sequence[T]) -> List[T]:
    """
    Own records followed by shared records not already present.
    Records are matched by `id`; the own copy wins.
    """
    own_ids = {item.id for item in own}
    merged = list(own)
    merged.extend(item for item in shared if item.id not in own_ids)
    return merged


def appointment_events(
    appointments: Iterable[AppointmentRead],
    shared_ids: Set[UUID],
) -> List[AppointmentEvent]:
    return [
        AppointmentEvent(appointment=apt, is_shared=apt.id in shared_ids)
        for apt in appointments
    ]


def expand_countdown(countdown: CountdownRead, is_shared: bool) -> List[CountdownEvent]:
    """
    Calendar events for one countdown.

    Grouped and single-day countdowns are one event each. A legacy multi-day
    countdown (end_date set, no group_id) becomes one event per day in
    [date, end_date].
    """
    if not countdown.is_legacy_multi_day:
        return [CountdownEvent(countdown=countdown, is_shared=is_shared)]

    start = local_day(countdown.date)
    end = local_day(countdown.end_date)
    return [
        CountdownEvent(countdown=countdown, is_shared=is_shared, display_date=day)
        for day in day_range(start, end)
    ]


def countdown_events(
    countdowns: Iterable[CountdownRead],
    shared_ids: Set[UUID],
) -> List[CountdownEvent]:
    events = []
    for countdown in countdowns:
        events.extend(expand_countdown(countdown, countdown.id in shared_ids))
    return events


def birthday_events(profiles: Iterable[ProfileRead], today: date) -> List[BirthdayEvent]:
    events = []
    for profile in profiles:
        if profile.birthday is None:
            continue
        events.append(
            BirthdayEvent(
                profile=profile,
                next_occurrence_date=next_occurrence_date(profile.birthday, today),
                days_until=days_until_next_occurrence(profile.birthday, today),
            )
        )
    return events


def weekday_index(day: date) -> int:
    """0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


def medication_events(
    medication: MedicationRead,
    schedules: Iterable[MedicationScheduleRead],
    today: date,
    horizon_days: int = 30,
) -> List[MedicationEvent]:
    """
    Occurrences of a medication over [today, today + horizon_days).

    Paused medications and as-needed schedules produce nothing. A day is
    emitted for an entry when its weekday is in the entry's days and the day
    lies within the schedule's start/end dates.
    """
    if medication.is_paused:
        return []

    events = []
    for schedule in schedules:
        if schedule.schedule_type != ScheduleType.SCHEDULED or not schedule.schedule_entries:
            continue

        for entry in schedule.schedule_entries:
            days = set(entry.days_of_week)
            for offset in range(horizon_days):
                day = today + timedelta(days=offset)
                if weekday_index(day) not in days:
                    continue
                if day < schedule.start_date:
                    continue
                if schedule.end_date is not None and day > schedule.end_date:
                    continue
                events.append(
                    MedicationEvent(medication=medication, entry=entry, occurrence_date=day)
                )
    return events


def todo_list_events(lists: Iterable[ToDoListRead], today: Optional[date] = None) -> List[ToDoListEvent]:
    return [ToDoListEvent(todo_list=todo, fallback_date=today) for todo in lists]
