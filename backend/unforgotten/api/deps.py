"""
Shared API dependencies.
"""
import logging
import time
from typing import Dict, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unforgotten.config import settings
from unforgotten.database import AsyncSessionLocal, get_local_db
from unforgotten.repositories import CalendarRepositories, FamilyCalendarRepository, NoteRepository
from unforgotten.services.calendar import CalendarAggregator
from unforgotten.services.notes_store import NotesStore
from unforgotten.services.notes_sync import NotesSyncService

logger = logging.getLogger(__name__)

# One sync service per user, so debounce timers and status outlive a request
_sync_services: Dict[UUID, NotesSyncService] = {}
# Monotonic time each user's service was last handed to a request
_last_used: Dict[UUID, float] = {}


def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[UUID]:
    """The signed-in user, as forwarded by the auth layer in X-User-Id."""
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user id",
        )


def get_current_user_id(user_id: Optional[UUID] = Depends(get_optional_user_id)) -> UUID:
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is not authenticated",
        )
    return user_id


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


def get_calendar_aggregator(
    user_id: UUID = Depends(get_current_user_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> CalendarAggregator:
    return CalendarAggregator(CalendarRepositories.for_user(user_id, session_factory), user_id)


def get_family_calendar_repository(
    user_id: UUID = Depends(get_current_user_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> FamilyCalendarRepository:
    return FamilyCalendarRepository(user_id, session_factory)


def get_notes_store(db: AsyncSession = Depends(get_local_db)) -> NotesStore:
    return NotesStore(db)


async def evict_idle_sync_services() -> int:
    """
    Close and drop sync services unused for longer than the idle timeout.

    Services with a pending or running push are kept. Returns the number
    evicted.
    """
    now = time.monotonic()
    evicted = 0
    for user_id in list(_sync_services):
        if now - _last_used.get(user_id, now) < settings.note_sync_service_idle_seconds:
            continue
        service = _sync_services[user_id]
        if service.pending_count or service.status.is_active:
            continue

        del _sync_services[user_id]
        _last_used.pop(user_id, None)
        await service.close()
        evicted += 1

    if evicted:
        logger.info(f"Evicted {evicted} idle note sync services")
    return evicted


async def get_notes_sync_service(
    user_id: Optional[UUID] = Depends(get_optional_user_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> NotesSyncService:
    if user_id is None:
        # Every sync attempt on this service fails with NotAuthenticatedError
        return NotesSyncService(NoteRepository(session_factory), lambda: None)

    service = _sync_services.get(user_id)
    if service is None:
        service = NotesSyncService(NoteRepository(session_factory), lambda: user_id)
        _sync_services[user_id] = service
    _last_used[user_id] = time.monotonic()

    await evict_idle_sync_services()
    return service


async def close_sync_services() -> None:
    """Let pending pushes finish, then stop every sync service."""
    for service in list(_sync_services.values()):
        await service.wait_for_pending()
        await service.close()
    _sync_services.clear()
    _last_used.clear()
