"""
Notes endpoints: the local note store plus push, pull and sync status.
"""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query

from unforgotten.api.deps import get_notes_store, get_notes_sync_service
from unforgotten.core.errors import NotAuthenticatedError, NotesSyncError
from unforgotten.models.local_note import LocalNote
from unforgotten.schemas.note import (
    BatchSyncResult,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    RefreshResponse,
    SyncStatusResponse,
)
from unforgotten.services.notes_store import NotesStore
from unforgotten.services.notes_sync import NotesSyncService

logger = logging.getLogger(__name__)

router = APIRouter()


def _sync_http_error(error: NotesSyncError) -> HTTPException:
    if isinstance(error, NotAuthenticatedError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(error))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))


async def _get_note_or_404(note_id: UUID, store: NotesStore) -> LocalNote:
    note = await store.get_note(note_id)
    if not note:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found",
        )
    return note


def _status_response(sync_service: NotesSyncService) -> SyncStatusResponse:
    return SyncStatusResponse(
        status=sync_service.status,
        last_sync_date=sync_service.last_sync_date,
        pending_count=sync_service.pending_count,
    )


@router.get("/sync/status", response_model=SyncStatusResponse)
async def get_sync_status(sync_service: NotesSyncService = Depends(get_notes_sync_service)):
    """Current sync status."""
    return _status_response(sync_service)


@router.post("/sync", response_model=BatchSyncResult)
async def sync_pending_notes(
    account_id: UUID = Query(..., description="Account whose pending notes to push"),
    store: NotesStore = Depends(get_notes_store),
    sync_service: NotesSyncService = Depends(get_notes_sync_service),
):
    """Push every unsynced note of an account."""
    notes = await store.pending_notes(account_id)
    try:
        return await sync_service.sync_pending_notes(notes)
    except NotesSyncError as e:
        raise _sync_http_error(e)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_notes(
    account_id: UUID = Query(..., description="Account to pull notes for"),
    store: NotesStore = Depends(get_notes_store),
    sync_service: NotesSyncService = Depends(get_notes_sync_service),
):
    """Pull remote notes and merge them into the local store."""
    fetched = await sync_service.refresh(account_id, store.db)
    notes = await store.list_notes(account_id)
    return RefreshResponse(
        fetched_count=fetched,
        note_count=len(notes),
        last_sync_date=sync_service.last_sync_date,
    )


@router.get("", response_model=List[NoteResponse])
async def list_notes(
    account_id: UUID = Query(..., description="Account to list notes for"),
    search: Optional[str] = Query(None, description="Search in title and content"),
    store: NotesStore = Depends(get_notes_store),
):
    """List notes, pinned first, then most recently updated."""
    return await store.list_notes(account_id, search)


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: NoteCreate,
    store: NotesStore = Depends(get_notes_store),
):
    """Create a new note."""
    return await store.create_note(
        account_id=note_data.account_id,
        title=note_data.title,
        theme=note_data.theme,
        content_plain_text=note_data.content_plain_text,
    )


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    store: NotesStore = Depends(get_notes_store),
):
    """Get a specific note."""
    return await _get_note_or_404(note_id, store)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    note_data: NoteUpdate,
    store: NotesStore = Depends(get_notes_store),
    sync_service: NotesSyncService = Depends(get_notes_sync_service),
):
    """Update a note and schedule a debounced push."""
    note = await _get_note_or_404(note_id, store)

    update_data = note_data.model_dump(exclude_unset=True, exclude_none=True)
    note = await store.update_note(note, **update_data)

    # Edits stay local until a later sync succeeds
    try:
        await sync_service.sync(note)
    except NotesSyncError as e:
        logger.warning(f"Note {note_id} saved locally but not scheduled for sync: {e}")

    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    store: NotesStore = Depends(get_notes_store),
    sync_service: NotesSyncService = Depends(get_notes_sync_service),
):
    """Delete a note locally and soft-delete its remote copy."""
    note = await _get_note_or_404(note_id, store)
    sync_service.cancel_pending_sync(note_id)
    account_id = note.account_id

    remote_id = await store.delete_note(note)
    await sync_service.delete_remote(remote_id, account_id=account_id, local_id=note_id)


@router.post("/{note_id}/sync", response_model=SyncStatusResponse)
async def sync_note(
    note_id: UUID,
    immediate: bool = Query(False, description="Push now instead of after the debounce window"),
    store: NotesStore = Depends(get_notes_store),
    sync_service: NotesSyncService = Depends(get_notes_sync_service),
):
    """Push one note, debounced or immediately."""
    note = await _get_note_or_404(note_id, store)

    try:
        if immediate:
            await sync_service.sync_immediately(note)
        else:
            await sync_service.sync(note)
    except NotesSyncError as e:
        raise _sync_http_error(e)

    return _status_response(sync_service)
