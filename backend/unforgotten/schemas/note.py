"""
Note schemas: local note API payloads, remote note DTOs and sync status.
"""
import base64
import binascii
from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel
from uuid import UUID

from unforgotten.core.dates import to_aware_utc
from unforgotten.core.errors import MissingAccountIdError


class NoteTheme(str, Enum):
    STANDARD = "standard"
    FESTIVE = "festive"
    WORK = "work"
    HOLIDAYS = "holidays"
    SHOPPING = "shopping"
    FAMILY = "family"

    @classmethod
    def parse(cls, value: Optional[str]) -> "NoteTheme":
        try:
            return cls(value)
        except ValueError:
            return cls.STANDARD


def encode_content(content: Optional[bytes]) -> Optional[str]:
    if not content:
        return None
    return base64.b64encode(content).decode("ascii")


def decode_content(content: Optional[str]) -> bytes:
    if not content:
        return b""
    try:
        return base64.b64decode(content)
    except (binascii.Error, ValueError):
        return b""


class NoteSnapshot(BaseModel):
    """
    Field values of a local note captured at the moment a sync is requested.
    Pushes work from the snapshot, never from the live note.
    """

    id: UUID
    account_id: Optional[UUID] = None
    remote_id: Optional[str] = None
    title: str = ""
    content: bytes = b""
    content_plain_text: str = ""
    theme: str = NoteTheme.STANDARD.value
    is_pinned: bool = False
    is_synced: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RemoteNote(BaseModel):
    """A row of the remote notes table."""

    remote_id: str
    account_id: UUID
    user_id: UUID
    local_id: UUID
    title: str = ""
    content: Optional[str] = None  # base64
    content_plain_text: str = ""
    theme: str = NoteTheme.STANDARD.value
    is_pinned: bool = False
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def content_data(self) -> bytes:
        return decode_content(self.content)

    @classmethod
    def from_row(cls, row) -> "RemoteNote":
        return cls(
            remote_id=str(row.id),
            account_id=row.account_id,
            user_id=row.user_id,
            local_id=row.local_id,
            title=row.title,
            content=row.content,
            content_plain_text=row.content_plain_text,
            theme=row.theme,
            is_pinned=row.is_pinned,
            created_at=row.created_at,
            updated_at=row.updated_at,
            deleted_at=row.deleted_at,
        )


class RemoteNoteInsert(BaseModel):
    account_id: UUID
    user_id: UUID
    local_id: UUID
    title: str
    content: Optional[str] = None
    content_plain_text: str
    theme: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_note(cls, note: NoteSnapshot, user_id: UUID) -> "RemoteNoteInsert":
        if note.account_id is None:
            raise MissingAccountIdError()
        return cls(
            account_id=note.account_id,
            user_id=user_id,
            local_id=note.id,
            title=note.title,
            content=encode_content(note.content),
            content_plain_text=note.content_plain_text,
            theme=note.theme,
            is_pinned=note.is_pinned,
            created_at=to_aware_utc(note.created_at),
            updated_at=to_aware_utc(note.updated_at),
        )


class RemoteNoteUpdate(BaseModel):
    title: str
    content: Optional[str] = None
    content_plain_text: str
    theme: str
    is_pinned: bool
    updated_at: datetime

    @classmethod
    def from_note(cls, note: NoteSnapshot) -> "RemoteNoteUpdate":
        return cls(
            title=note.title,
            content=encode_content(note.content),
            content_plain_text=note.content_plain_text,
            theme=note.theme,
            is_pinned=note.is_pinned,
            updated_at=to_aware_utc(note.updated_at),
        )


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncServiceStatus(BaseModel):
    state: SyncState = SyncState.IDLE
    progress: Optional[float] = None
    synced_count: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def idle(cls) -> "SyncServiceStatus":
        return cls()

    @classmethod
    def syncing(cls, progress: float) -> "SyncServiceStatus":
        return cls(state=SyncState.SYNCING, progress=progress)

    @classmethod
    def completed(cls, synced_count: int) -> "SyncServiceStatus":
        return cls(state=SyncState.COMPLETED, synced_count=synced_count)

    @classmethod
    def failed(cls, error: str) -> "SyncServiceStatus":
        return cls(state=SyncState.FAILED, error=error)

    @property
    def is_active(self) -> bool:
        return self.state == SyncState.SYNCING


class BatchSyncResult(BaseModel):
    synced_count: int = 0
    skipped_note_ids: List[UUID] = []


# API payloads

class NoteCreate(BaseModel):
    account_id: UUID
    title: str = ""
    content_plain_text: str = ""
    theme: NoteTheme = NoteTheme.STANDARD


class NoteUpdate(BaseModel):
    title: Optional[str] = None
    content_plain_text: Optional[str] = None
    theme: Optional[NoteTheme] = None
    is_pinned: Optional[bool] = None


class NoteResponse(BaseModel):
    id: UUID
    account_id: Optional[UUID] = None
    title: str
    display_title: str
    content_plain_text: str
    preview_content: str
    theme: str
    is_pinned: bool
    is_synced: bool
    remote_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SyncStatusResponse(BaseModel):
    status: SyncServiceStatus
    last_sync_date: Optional[datetime] = None
    pending_count: int = 0


class RefreshResponse(BaseModel):
    fetched_count: int
    note_count: int
    last_sync_date: Optional[datetime] = None
