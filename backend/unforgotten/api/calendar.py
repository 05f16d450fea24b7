"""
Calendar endpoints: the aggregated event stream for an account, its views,
and family calendar sharing.
"""
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from unforgotten.api.deps import get_calendar_aggregator, get_family_calendar_repository
from unforgotten.core.dates import local_today
from unforgotten.core.errors import EventNotShareableError
from unforgotten.repositories import FamilyCalendarRepository
from unforgotten.schemas.calendar import (
    CalendarEventFilter,
    CountdownType,
    FamilyCalendarShareCreate,
    FamilyCalendarShareMembersUpdate,
    FamilyCalendarShareRead,
    FamilyCalendarShareResponse,
)
from unforgotten.schemas.calendar_event import (
    CalendarEvent,
    CalendarDayGroup,
    CalendarEventResponse,
    CalendarEventsResponse,
    CalendarMemberResponse,
)
from unforgotten.services.calendar import CalendarAggregator, CalendarTab

router = APIRouter()


async def get_loaded_calendar(
    account_id: UUID = Query(..., description="Account to load"),
    tab: CalendarTab = Query(CalendarTab.PERSONAL, description="personal or family stream"),
    filters: Optional[List[CalendarEventFilter]] = Query(None, description="Enabled event categories"),
    countdown_types: Optional[List[CountdownType]] = Query(None, description="Enabled countdown types"),
    custom_types: Optional[List[str]] = Query(None, description="Enabled custom countdown names"),
    members: Optional[List[UUID]] = Query(None, description="Selected member user ids"),
    aggregator: CalendarAggregator = Depends(get_calendar_aggregator),
) -> CalendarAggregator:
    """Load the calendar for an account and apply the requested filters."""
    await aggregator.load(account_id)

    aggregator.selected_tab = tab
    if filters is not None:
        aggregator.selected_filters = set(filters)
    if countdown_types is not None:
        aggregator.selected_countdown_types = set(countdown_types)
    if custom_types is not None:
        aggregator.selected_custom_type_names = set(custom_types)
    if members:
        aggregator.selected_member_filters = set(members)

    return aggregator


def _responses(events) -> List[CalendarEventResponse]:
    return [CalendarEventResponse.from_event(event) for event in events]


@router.get("/events", response_model=CalendarEventsResponse)
async def list_events(aggregator: CalendarAggregator = Depends(get_loaded_calendar)):
    """All events in the selected stream, in date-time order."""
    events = sorted(aggregator.active_events, key=lambda e: e.date_time)
    return CalendarEventsResponse(events=_responses(events), error=aggregator.error)


@router.get("/day", response_model=List[CalendarEventResponse])
async def events_for_day(
    day: date = Query(..., alias="date", description="Day (YYYY-MM-DD)"),
    aggregator: CalendarAggregator = Depends(get_loaded_calendar),
):
    """Events on one day."""
    aggregator.select_date(day)
    return _responses(aggregator.events_for_selected_date)


@router.get("/month", response_model=List[CalendarEventResponse])
async def events_for_month(
    month: Optional[date] = Query(None, description="Any day in the month, defaults to today"),
    aggregator: CalendarAggregator = Depends(get_loaded_calendar),
):
    """Events in one month."""
    return _responses(aggregator.events_for_month(month or local_today()))


@router.get("/grouped", response_model=List[CalendarDayGroup])
async def events_grouped_by_day(aggregator: CalendarAggregator = Depends(get_loaded_calendar)):
    """Events grouped by day for the list view."""
    return [
        CalendarDayGroup(date=day, events=_responses(events))
        for day, events in aggregator.grouped_by_day()
    ]


@router.get("/colors", response_model=Dict[date, List[str]])
async def event_colors(
    month: Optional[date] = Query(None, description="Any day in the month, defaults to today"),
    aggregator: CalendarAggregator = Depends(get_loaded_calendar),
):
    """Category colors per day for the month grid."""
    days = aggregator.dates_with_events(month or local_today())
    return {day: aggregator.event_colors(day) for day in sorted(days)}


@router.get("/members", response_model=List[CalendarMemberResponse])
async def list_members(aggregator: CalendarAggregator = Depends(get_loaded_calendar)):
    """Members available for the member filter."""
    return [
        CalendarMemberResponse(
            user_id=member.user_id,
            display_name=aggregator.profile_name(member),
            email=member.email,
            role=member.role.value,
            is_synthesized=member.is_synthesized,
        )
        for member in aggregator.members_with_events
    ]


# Family calendar sharing


async def _get_event_or_404(account_id: UUID, event_id: str, aggregator: CalendarAggregator) -> CalendarEvent:
    await aggregator.load(account_id)
    event = aggregator.find_event(event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


def _not_shareable(error: EventNotShareableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))


@router.get("/shares", response_model=List[FamilyCalendarShareRead])
async def list_shares(
    account_id: UUID = Query(..., description="Account whose shares to list"),
    family_calendar: FamilyCalendarRepository = Depends(get_family_calendar_repository),
):
    """Every family calendar share of an account, oldest first."""
    return await family_calendar.get_all_shares_for_account(account_id)


@router.post("/shares", response_model=FamilyCalendarShareResponse)
async def share_event(
    share_data: FamilyCalendarShareCreate,
    aggregator: CalendarAggregator = Depends(get_calendar_aggregator),
):
    """Share an appointment or countdown to the family calendar, or replace its members."""
    event = await _get_event_or_404(share_data.account_id, share_data.event_id, aggregator)
    try:
        share = await aggregator.share_event(event, share_data.member_user_ids)
    except EventNotShareableError as e:
        raise _not_shareable(e)

    return FamilyCalendarShareResponse(
        share=share,
        member_user_ids=list(dict.fromkeys(share_data.member_user_ids)),
    )


@router.put("/shares/{share_id}/members", status_code=status.HTTP_204_NO_CONTENT)
async def update_share_members(
    share_id: UUID,
    members: FamilyCalendarShareMembersUpdate,
    family_calendar: FamilyCalendarRepository = Depends(get_family_calendar_repository),
):
    """Replace the member list of a share."""
    await family_calendar.update_share_members(share_id, members.member_user_ids)


@router.delete("/shares/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_share(
    share_id: UUID,
    family_calendar: FamilyCalendarRepository = Depends(get_family_calendar_repository),
):
    await family_calendar.delete_share(share_id)


@router.delete("/events/{event_id}/share", status_code=status.HTTP_204_NO_CONTENT)
async def unshare_event(
    event_id: str,
    account_id: UUID = Query(..., description="Account the event belongs to"),
    aggregator: CalendarAggregator = Depends(get_calendar_aggregator),
):
    """Remove an appointment or countdown from the family calendar."""
    event = await _get_event_or_404(account_id, event_id, aggregator)
    try:
        await aggregator.unshare_event(event)
    except EventNotShareableError as e:
        raise _not_shareable(e)
