"""
Reads for the calendar event sources: appointments, countdowns,
medications and to-do lists.

The shared-with-me reads are scoped by share membership, not by account,
since the viewer is not a member of the owning account.
"""
from typing import List
from uuid import UUID

from sqlalchemy import select

from unforgotten.models.appointment import Appointment
from unforgotten.models.countdown import Countdown
from unforgotten.models.family_calendar import FamilyCalendarShare, FamilyCalendarShareMember
from unforgotten.models.medication import Medication, MedicationSchedule
from unforgotten.models.todo import ToDoList
from unforgotten.repositories.base import SessionRepository
from unforgotten.schemas.calendar import (
    AppointmentRead,
    CalendarEventType,
    CountdownRead,
    MedicationRead,
    MedicationScheduleRead,
    ToDoListRead,
)


def _shared_event_ids(user_id: UUID, event_type: CalendarEventType):
    """Subquery of event ids of the given type shared with user_id."""
    return (
        select(FamilyCalendarShare.event_id)
        .join(FamilyCalendarShareMember, FamilyCalendarShareMember.share_id == FamilyCalendarShare.id)
        .where(
            FamilyCalendarShare.event_type == event_type.value,
            FamilyCalendarShareMember.member_user_id == user_id,
        )
    )


class AppointmentRepository(SessionRepository):
    async def get_appointments(self, account_id: UUID) -> List[AppointmentRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment)
                .where(Appointment.account_id == account_id)
                .order_by(Appointment.date, Appointment.time)
            )
            return [AppointmentRead.model_validate(a) for a in result.scalars().all()]

    async def get_shared_appointments(self, user_id: UUID) -> List[AppointmentRead]:
        """Appointments from any account that are shared with user_id."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment)
                .where(Appointment.id.in_(_shared_event_ids(user_id, CalendarEventType.APPOINTMENT)))
                .order_by(Appointment.date, Appointment.time)
            )
            return [AppointmentRead.model_validate(a) for a in result.scalars().all()]


class CountdownRepository(SessionRepository):
    async def get_countdowns(self, account_id: UUID) -> List[CountdownRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Countdown)
                .where(Countdown.account_id == account_id)
                .order_by(Countdown.date)
            )
            return [CountdownRead.model_validate(c) for c in result.scalars().all()]

    async def get_shared_countdowns(self, user_id: UUID) -> List[CountdownRead]:
        """Countdowns from any account that are shared with user_id."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Countdown)
                .where(Countdown.id.in_(_shared_event_ids(user_id, CalendarEventType.COUNTDOWN)))
                .order_by(Countdown.date)
            )
            return [CountdownRead.model_validate(c) for c in result.scalars().all()]


class MedicationRepository(SessionRepository):
    async def get_medications(self, account_id: UUID) -> List[MedicationRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Medication)
                .where(Medication.account_id == account_id)
                .order_by(Medication.sort_order, Medication.name)
            )
            return [MedicationRead.model_validate(m) for m in result.scalars().all()]

    async def get_schedules(self, medication_id: UUID) -> List[MedicationScheduleRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(MedicationSchedule)
                .where(MedicationSchedule.medication_id == medication_id)
                .order_by(MedicationSchedule.start_date)
            )
            return [MedicationScheduleRead.model_validate(s) for s in result.scalars().all()]


class ToDoRepository(SessionRepository):
    async def get_lists_with_due_dates(self, account_id: UUID) -> List[ToDoListRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(ToDoList)
                .where(ToDoList.account_id == account_id, ToDoList.due_date.is_not(None))
                .order_by(ToDoList.due_date)
            )
            return [ToDoListRead.model_validate(t) for t in result.scalars().all()]
