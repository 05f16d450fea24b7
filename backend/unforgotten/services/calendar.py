"""
Calendar aggregation: one filterable stream of events for an account, built
from appointments, countdowns, birthdays, medications and to-do lists, plus a
family stream restricted to events shared to the family calendar.
"""
import asyncio
import logging
from datetime import date, datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple, TypeVar
from uuid import UUID

from unforgotten.config import settings
from unforgotten.core.dates import add_months, local_day, local_today, month_start, start_of_day
from unforgotten.core.errors import CalendarLoadError, EventNotShareableError
from unforgotten.repositories import CalendarRepositories
from unforgotten.schemas.account import AccountMemberWithUser, ProfileRead
from unforgotten.schemas.calendar import (
    CalendarEventFilter,
    CalendarEventType,
    CountdownType,
    FamilyCalendarShareRead,
    SharedEventIds,
)
from unforgotten.schemas.calendar_event import (
    AppointmentEvent,
    BirthdayEvent,
    CalendarEvent,
    CountdownEvent,
    MedicationEvent,
    ToDoListEvent,
)
from unforgotten.services import calendar_events

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CalendarTab(str, Enum):
    PERSONAL = "personal"
    FAMILY = "family"


class CalendarAggregator:
    """
    Calendar state for one user viewing one account.

    `load()` reads every source concurrently. A failing source contributes
    no events; only profile or member failures set `error`. Everything else
    is derived from in-memory state and the current filter selection.
    """

    def __init__(
        self,
        repositories: CalendarRepositories,
        user_id: UUID,
        today_provider: Callable[[], date] = local_today,
        medication_horizon_days: Optional[int] = None,
    ):
        self.repositories = repositories
        self.user_id = user_id
        self.today_provider = today_provider
        self.medication_horizon_days = medication_horizon_days or settings.medication_horizon_days

        # View state
        self.selected_tab = CalendarTab.PERSONAL
        self.selected_date: Optional[date] = None
        self.current_month: date = month_start(today_provider())

        # Filters
        self.selected_filters: Set[CalendarEventFilter] = set(CalendarEventFilter)
        self.selected_countdown_types: Set[CountdownType] = set(CountdownType)
        self.selected_custom_type_names: Set[str] = set()
        # Empty means no member restriction
        self.selected_member_filters: Set[UUID] = set()

        # Loaded data
        self.account_id: Optional[UUID] = None
        self.events: List[CalendarEvent] = []
        self.profiles: List[ProfileRead] = []
        self.account_members: List[AccountMemberWithUser] = []
        self.shared_ids = SharedEventIds()
        self.family_shares: List[FamilyCalendarShareRead] = []
        self.family_share_members: Dict[UUID, Set[UUID]] = {}

        self.is_loading = False
        self.error: Optional[str] = None

    # Loading

    async def _isolated(self, source: str, call: Awaitable[T], default: T) -> T:
        """Await a source read; on failure log it and fall back to default."""
        try:
            return await call
        except Exception as e:
            logger.warning(f"Failed to load {source} for account {self.account_id}: {e}")
            return default

    async def load(self, account_id: UUID) -> None:
        """Load everything the calendar shows for an account."""
        self.account_id = account_id
        self.is_loading = True
        self.error = None
        today = self.today_provider()

        try:
            try:
                await self._load_foundation(account_id)
            except CalendarLoadError as e:
                self.error = str(e)
                logger.error(f"Calendar load error for account {account_id}: {e}")

            await self._load_shares(account_id)
            await self._add_connected_users(account_id)

            appointments, countdowns, birthdays, medications, todo_lists = await asyncio.gather(
                self._isolated("appointments", self._load_appointments(account_id), []),
                self._isolated("countdowns", self._load_countdowns(account_id), []),
                self._isolated("birthdays", self._load_birthdays(today), []),
                self._isolated("medications", self._load_medications(account_id, today), []),
                self._isolated("to-do lists", self._load_todo_lists(account_id, today), []),
            )

            self.events = [*appointments, *countdowns, *birthdays, *medications, *todo_lists]
            self.selected_custom_type_names = set(self.available_custom_type_names)
            logger.info(f"Loaded {len(self.events)} calendar events for account {account_id}")
        finally:
            self.is_loading = False

    async def _load_foundation(self, account_id: UUID) -> None:
        profiles, members = await asyncio.gather(
            self.repositories.profiles.get_profiles(account_id),
            self.repositories.accounts.get_account_members_with_users(account_id),
            return_exceptions=True,
        )

        failures = []
        if isinstance(profiles, Exception):
            failures.append(f"profiles: {profiles}")
            profiles = []
        if isinstance(members, Exception):
            failures.append(f"account members: {members}")
            members = []

        self.profiles = profiles
        self.account_members = members
        if failures:
            raise CalendarLoadError("Failed to load " + "; ".join(failures))

    async def _load_shares(self, account_id: UUID) -> None:
        family_calendar = self.repositories.family_calendar

        self.shared_ids = await self._isolated(
            "shared event ids",
            family_calendar.get_shared_event_ids_for_user(account_id),
            SharedEventIds(),
        )
        self.family_shares = await self._isolated(
            "family shares",
            family_calendar.get_shares_visible_to_user(),
            [],
        )

        member_lists = await asyncio.gather(*(
            self._isolated(f"members of share {share.id}", family_calendar.get_members_for_share(share.id), [])
            for share in self.family_shares
        ))
        self.family_share_members = {
            share.id: {m.member_user_id for m in members}
            for share, members in zip(self.family_shares, member_lists)
        }

    async def _add_connected_users(self, account_id: UUID) -> None:
        """
        Add users connected through a profile sync to the member roster as
        viewers, unless they already have a membership row.
        """
        syncs = await self._isolated(
            "profile syncs",
            self.repositories.profile_syncs.get_syncs_for_user(self.user_id),
            [],
        )
        existing = {m.user_id for m in self.account_members}
        connected = [
            user_id
            for user_id in dict.fromkeys(s.other_user_id(self.user_id) for s in syncs)
            if user_id not in existing
        ]

        for user_id in connected:
            user = await self._isolated(f"user {user_id}", self.repositories.users.get_user(user_id), None)
            if user is not None:
                self.account_members.append(AccountMemberWithUser.synthesized(account_id, user))

    async def _load_appointments(self, account_id: UUID) -> List[AppointmentEvent]:
        own = await self.repositories.appointments.get_appointments(account_id)
        shared = await self._isolated(
            "shared appointments",
            self.repositories.appointments.get_shared_appointments(self.user_id),
            [],
        )
        merged = calendar_events.merge_own_and_shared(own, shared)
        return calendar_events.appointment_events(merged, self.shared_ids.appointment_ids)

    async def _load_countdowns(self, account_id: UUID) -> List[CountdownEvent]:
        own = await self.repositories.countdowns.get_countdowns(account_id)
        shared = await self._isolated(
            "shared countdowns",
            self.repositories.countdowns.get_shared_countdowns(self.user_id),
            [],
        )
        merged = calendar_events.merge_own_and_shared(own, shared)
        return calendar_events.countdown_events(merged, self.shared_ids.countdown_ids)

    async def _load_birthdays(self, today: date) -> List[BirthdayEvent]:
        return calendar_events.birthday_events(self.profiles, today)

    async def _load_medications(self, account_id: UUID, today: date) -> List[MedicationEvent]:
        medications = await self.repositories.medications.get_medications(account_id)
        active = [m for m in medications if not m.is_paused]
        schedules = await asyncio.gather(*(
            self.repositories.medications.get_schedules(m.id) for m in active
        ))

        events = []
        for medication, med_schedules in zip(active, schedules):
            events.extend(
                calendar_events.medication_events(
                    medication, med_schedules, today, self.medication_horizon_days
                )
            )
        return events

    async def _load_todo_lists(self, account_id: UUID, today: date) -> List[ToDoListEvent]:
        lists = await self.repositories.todos.get_lists_with_due_dates(account_id)
        return calendar_events.todo_list_events(lists, today)

    # Filtering

    def _passes_type_filter(self, event: CalendarEvent) -> bool:
        if event.filter_type not in self.selected_filters:
            return False

        if isinstance(event, CountdownEvent):
            countdown = event.countdown
            if countdown.type == CountdownType.CUSTOM:
                # Unnamed custom countdowns are not subject to the name filter
                if countdown.custom_type:
                    return countdown.custom_type in self.selected_custom_type_names
                return True
            return countdown.type in self.selected_countdown_types
        return True

    def _passes_member_filter(self, event: CalendarEvent) -> bool:
        if not self.selected_member_filters:
            return True

        profile_id = event.profile_id
        if profile_id is None:
            # Not attributable to a member
            return True

        profile = next((p for p in self.profiles if p.id == profile_id), None)
        if profile is None or profile.member_user_id is None:
            return False
        return profile.member_user_id in self.selected_member_filters

    @property
    def filtered_events(self) -> List[CalendarEvent]:
        """Personal stream: type, countdown sub-type and member filters applied."""
        return [
            event for event in self.events
            if self._passes_type_filter(event) and self._passes_member_filter(event)
        ]

    @property
    def family_events(self) -> List[CalendarEvent]:
        """
        Events shared to the family calendar that pass the type filters.

        With a member filter active, an event stays only if a selected member
        created its share or is one of the share's members.
        """
        shared = [
            event for event in self.events
            if self._passes_type_filter(event) and event.is_shared_to_family
        ]
        if not self.selected_member_filters:
            return shared

        shares = {(s.event_id, s.event_type): s for s in self.family_shares}
        visible = []
        for event in shared:
            share = shares.get(event.share_ref)
            if share is None:
                continue
            if share.shared_by_user_id in self.selected_member_filters:
                visible.append(event)
            elif self.family_share_members.get(share.id, set()) & self.selected_member_filters:
                visible.append(event)
        return visible

    @property
    def active_events(self) -> List[CalendarEvent]:
        if self.selected_tab == CalendarTab.FAMILY:
            return self.family_events
        return self.filtered_events

    # Family sharing

    def find_event(self, event_id: str) -> Optional[CalendarEvent]:
        """A loaded event by its calendar id (e.g. `apt-<uuid>`)."""
        return next((e for e in self.events if e.id == event_id), None)

    def _mark_shared(self, ref: Tuple[UUID, CalendarEventType], shared: bool) -> None:
        event_id, event_type = ref
        if event_type == CalendarEventType.APPOINTMENT:
            ids = self.shared_ids.appointment_ids
        else:
            ids = self.shared_ids.countdown_ids
        if shared:
            ids.add(event_id)
        else:
            ids.discard(event_id)

        # Multi-day countdowns expand to several events with the same ref
        for event in self.events:
            if event.share_ref == ref:
                event.is_shared = shared

    def _share_ref_or_raise(self, event: CalendarEvent) -> Tuple[UUID, CalendarEventType]:
        ref = event.share_ref
        if ref is None:
            raise EventNotShareableError(event.id)
        return ref

    async def share_event(self, event: CalendarEvent, member_user_ids: List[UUID]) -> FamilyCalendarShareRead:
        """
        Share an event to the family calendar, or replace the members of
        its existing share.

        Raises:
            EventNotShareableError: the event is not an appointment or countdown
        """
        ref = self._share_ref_or_raise(event)
        event_id, event_type = ref
        family_calendar = self.repositories.family_calendar
        members = list(dict.fromkeys(member_user_ids))

        share = await family_calendar.get_share_for_event(event_type, event_id)
        if share is None:
            share = await family_calendar.create_share(self.account_id, event_type, event_id, members)
            self.family_shares.append(share)
            logger.info(f"Shared {event_type.value} {event_id} with {len(members)} members")
        else:
            await family_calendar.update_share_members(share.id, members)
            logger.info(f"Updated members of share {share.id}")

        self.family_share_members[share.id] = set(members)
        self._mark_shared(ref, True)
        return share

    async def unshare_event(self, event: CalendarEvent) -> None:
        """
        Remove an event from the family calendar.

        Raises:
            EventNotShareableError: the event is not an appointment or countdown
        """
        ref = self._share_ref_or_raise(event)
        event_id, event_type = ref
        await self.repositories.family_calendar.delete_share_for_event(event_type, event_id)

        removed = {s.id for s in self.family_shares if (s.event_id, s.event_type) == ref}
        self.family_shares = [s for s in self.family_shares if s.id not in removed]
        for share_id in removed:
            self.family_share_members.pop(share_id, None)
        self._mark_shared(ref, False)
        logger.info(f"Unshared {event_type.value} {event_id}")

    # Derived views

    def events_for_date(self, day: date) -> List[CalendarEvent]:
        day = local_day(day)
        return sorted(
            (e for e in self.active_events if e.date == day),
            key=lambda e: e.date_time,
        )

    def events_for_month(self, month: date) -> List[CalendarEvent]:
        month = local_day(month)
        return sorted(
            (e for e in self.active_events if e.date.year == month.year and e.date.month == month.month),
            key=lambda e: e.date_time,
        )

    @property
    def events_for_current_month(self) -> List[CalendarEvent]:
        return self.events_for_month(self.current_month)

    @property
    def events_for_selected_date(self) -> List[CalendarEvent]:
        if self.selected_date is None:
            return []
        return self.events_for_date(self.selected_date)

    def event_colors(self, day: date) -> List[str]:
        """Distinct category colors present on a day, in filter order."""
        present = {e.filter_type for e in self.events_for_date(day)}
        return [f.color for f in CalendarEventFilter if f in present]

    def dates_with_events(self, month: date) -> Set[date]:
        month = local_day(month)
        return {
            e.date for e in self.active_events
            if e.date.year == month.year and e.date.month == month.month
        }

    def grouped_by_day(self) -> List[Tuple[datetime, List[CalendarEvent]]]:
        """
        Active stream grouped by calendar day in date-time order. A group
        closes whenever the day changes; its date is the start of that day.
        """
        groups: List[Tuple[datetime, List[CalendarEvent]]] = []
        current_day: Optional[datetime] = None
        current_events: List[CalendarEvent] = []

        for event in sorted(self.active_events, key=lambda e: e.date_time):
            event_day = start_of_day(event.date)
            if event_day != current_day:
                if current_day is not None and current_events:
                    groups.append((current_day, current_events))
                current_day = event_day
                current_events = [event]
            else:
                current_events.append(event)

        if current_day is not None and current_events:
            groups.append((current_day, current_events))
        return groups

    @property
    def available_countdown_types(self) -> List[CountdownType]:
        """Standard countdown types in use; custom types are listed by name instead."""
        used = {e.countdown.type for e in self.events if isinstance(e, CountdownEvent)}
        return [t for t in CountdownType if t in used and t != CountdownType.CUSTOM]

    @property
    def available_custom_type_names(self) -> List[str]:
        names = {
            e.countdown.custom_type
            for e in self.events
            if isinstance(e, CountdownEvent)
            and e.countdown.type == CountdownType.CUSTOM
            and e.countdown.custom_type
        }
        return sorted(names)

    @property
    def all_countdown_sub_types_selected(self) -> bool:
        return (
            set(self.available_countdown_types) <= self.selected_countdown_types
            and set(self.available_custom_type_names) <= self.selected_custom_type_names
        )

    def profile_name(self, member: AccountMemberWithUser) -> str:
        """A member's name from their linked profile, falling back to their email name."""
        for profile in self.profiles:
            if profile.member_user_id == member.user_id:
                return profile.display_name
        return member.display_name

    @property
    def members_with_events(self) -> List[AccountMemberWithUser]:
        return sorted(self.account_members, key=self.profile_name)

    # Filter actions

    def toggle_filter(self, filter_type: CalendarEventFilter) -> None:
        self.selected_filters ^= {filter_type}

    def select_all_filters(self) -> None:
        self.selected_filters = set(CalendarEventFilter)

    def clear_all_filters(self) -> None:
        self.selected_filters = set()

    def toggle_countdown_type(self, countdown_type: CountdownType) -> None:
        self.selected_countdown_types ^= {countdown_type}

    def toggle_custom_type_name(self, name: str) -> None:
        self.selected_custom_type_names ^= {name}

    def select_all_countdown_sub_types(self) -> None:
        self.selected_countdown_types = set(CountdownType)
        self.selected_custom_type_names = set(self.available_custom_type_names)

    def clear_all_countdown_sub_types(self) -> None:
        self.selected_countdown_types = set()
        self.selected_custom_type_names = set()

    def toggle_member_filter(self, user_id: UUID) -> None:
        self.selected_member_filters ^= {user_id}

    def select_all_members(self) -> None:
        self.selected_member_filters = {m.user_id for m in self.members_with_events}

    def clear_all_members(self) -> None:
        self.selected_member_filters = set()

    # Navigation

    def go_to_previous_month(self) -> None:
        self.current_month = add_months(self.current_month, -1)

    def go_to_next_month(self) -> None:
        self.current_month = add_months(self.current_month, 1)

    def go_to_today(self) -> None:
        self.current_month = month_start(self.today_provider())
        self.selected_date = None

    def select_date(self, day: date) -> None:
        self.selected_date = local_day(day)

    def clear_selection(self) -> None:
        self.selected_date = None
