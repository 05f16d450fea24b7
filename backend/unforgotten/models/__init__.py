"""
SQLAlchemy models for the Unforgotten stores.
"""
from unforgotten.models.user import AppUser
from unforgotten.models.account import Account, AccountMember
from unforgotten.models.profile import Profile, ProfileSync
from unforgotten.models.appointment import Appointment
from unforgotten.models.countdown import Countdown
from unforgotten.models.medication import Medication, MedicationSchedule
from unforgotten.models.todo import ToDoList
from unforgotten.models.family_calendar import FamilyCalendarShare, FamilyCalendarShareMember
from unforgotten.models.note import Note
from unforgotten.models.local_note import LocalNote

__all__ = [
    "AppUser",
    "Account",
    "AccountMember",
    "Profile",
    "ProfileSync",
    "Appointment",
    "Countdown",
    "Medication",
    "MedicationSchedule",
    "ToDoList",
    "FamilyCalendarShare",
    "FamilyCalendarShareMember",
    "Note",
    "LocalNote",
]
