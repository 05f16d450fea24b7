"""
Local note store: the device-side notes the editor reads and writes.

Every mutation marks the note unsynced; the sync service pushes it later.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from unforgotten.models.local_note import LocalNote
from unforgotten.schemas.note import NoteTheme

logger = logging.getLogger(__name__)


class NotesStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_note(
        self,
        account_id: Optional[UUID],
        title: str = "",
        theme: NoteTheme = NoteTheme.STANDARD,
        content_plain_text: str = "",
    ) -> LocalNote:
        note = LocalNote(
            title=title,
            theme=NoteTheme.parse(theme).value,
            account_id=account_id,
            is_synced=False,
            is_pinned=False,
        )
        note.set_plain_text_content(content_plain_text)
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)

        logger.info(f"Created local note {note.id} for account {account_id}")
        return note

    async def get_note(self, note_id: UUID) -> Optional[LocalNote]:
        return await self.db.get(LocalNote, note_id)

    async def list_notes(self, account_id: UUID, search: Optional[str] = None) -> List[LocalNote]:
        """Notes for an account, pinned first, then most recently updated."""
        query = select(LocalNote).where(LocalNote.account_id == account_id)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    LocalNote.title.ilike(search_term),
                    LocalNote.content_plain_text.ilike(search_term),
                )
            )

        query = query.order_by(LocalNote.is_pinned.desc(), LocalNote.updated_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_note(self, note: LocalNote, **fields) -> LocalNote:
        """Apply field changes and mark the note as modified."""
        if "content_plain_text" in fields:
            note.set_plain_text_content(fields.pop("content_plain_text"))
        if "theme" in fields:
            fields["theme"] = NoteTheme.parse(fields["theme"]).value

        for field, value in fields.items():
            setattr(note, field, value)

        note.mark_as_modified()
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def toggle_pin(self, note: LocalNote) -> LocalNote:
        return await self.update_note(note, is_pinned=not note.is_pinned)

    async def delete_note(self, note: LocalNote) -> Optional[str]:
        """
        Remove a note locally.
        Returns its remote id, if it has one, for the caller to delete remotely.
        """
        remote_id = note.remote_id
        await self.db.delete(note)
        await self.db.commit()

        logger.info(f"Deleted local note {note.id}")
        return remote_id

    async def pending_notes(self, account_id: UUID) -> List[LocalNote]:
        result = await self.db.execute(
            select(LocalNote)
            .where(LocalNote.account_id == account_id, LocalNote.is_synced.is_(False))
            .order_by(LocalNote.updated_at)
        )
        return list(result.scalars().all())
