"""
Remote store collaborators. Every read returns pydantic schemas, never ORM rows.
"""
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unforgotten.database import AsyncSessionLocal
from unforgotten.repositories.accounts import (
    AccountRepository,
    AppUserRepository,
    ProfileRepository,
    ProfileSyncRepository,
)
from unforgotten.repositories.events import (
    AppointmentRepository,
    CountdownRepository,
    MedicationRepository,
    ToDoRepository,
)
from unforgotten.repositories.family_calendar import FamilyCalendarRepository
from unforgotten.repositories.notes import NoteRepository


@dataclass
class CalendarRepositories:
    """The collaborators a calendar load reads from."""

    profiles: ProfileRepository
    accounts: AccountRepository
    users: AppUserRepository
    profile_syncs: ProfileSyncRepository
    appointments: AppointmentRepository
    countdowns: CountdownRepository
    medications: MedicationRepository
    todos: ToDoRepository
    family_calendar: FamilyCalendarRepository

    @classmethod
    def for_user(
        cls,
        user_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    ) -> "CalendarRepositories":
        return cls(
            profiles=ProfileRepository(session_factory),
            accounts=AccountRepository(session_factory),
            users=AppUserRepository(session_factory),
            profile_syncs=ProfileSyncRepository(session_factory),
            appointments=AppointmentRepository(session_factory),
            countdowns=CountdownRepository(session_factory),
            medications=MedicationRepository(session_factory),
            todos=ToDoRepository(session_factory),
            family_calendar=FamilyCalendarRepository(user_id, session_factory),
        )


__all__ = [
    "AccountRepository",
    "AppUserRepository",
    "AppointmentRepository",
    "CalendarRepositories",
    "CountdownRepository",
    "FamilyCalendarRepository",
    "MedicationRepository",
    "NoteRepository",
    "ProfileRepository",
    "ProfileSyncRepository",
    "ToDoRepository",
]
