"""
Remote notes table: the server-side copies of device notes.
"""
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert

from unforgotten.models.note import Note
from unforgotten.repositories.base import SessionRepository
from unforgotten.schemas.note import RemoteNote, RemoteNoteInsert, RemoteNoteUpdate


class NoteRepository(SessionRepository):
    async def insert(self, dto: RemoteNoteInsert) -> str:
        """
        Insert a note, keyed by (account_id, local_id).

        A row that already exists for the pair is updated in place, so
        retried or concurrent first pushes never create duplicates.
        Returns the remote id.
        """
        stmt = insert(Note).values(**dto.model_dump())
        stmt = stmt.on_conflict_do_update(
            index_elements=[Note.account_id, Note.local_id],
            set_={
                "title": stmt.excluded.title,
                "content": stmt.excluded.content,
                "content_plain_text": stmt.excluded.content_plain_text,
                "theme": stmt.excluded.theme,
                "is_pinned": stmt.excluded.is_pinned,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(Note.id)

        async with self.session_factory() as db:
            result = await db.execute(stmt)
            remote_id = result.scalar_one()
            await db.commit()
        return str(remote_id)

    async def update(self, remote_id: str, dto: RemoteNoteUpdate) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(Note).where(Note.id == UUID(remote_id)).values(**dto.model_dump())
            )
            await db.commit()

    async def soft_delete(self, remote_id: str) -> None:
        """Mark a note deleted. The row is kept so other devices can see the deletion."""
        async with self.session_factory() as db:
            await db.execute(
                update(Note)
                .where(Note.id == UUID(remote_id))
                .values(deleted_at=datetime.now(timezone.utc))
            )
            await db.commit()

    async def soft_delete_by_local_id(self, account_id: UUID, local_id: UUID) -> None:
        """
        Mark a note deleted by its (account_id, local_id) key.

        Used when the device never learned the remote id of a pushed note.
        """
        async with self.session_factory() as db:
            await db.execute(
                update(Note)
                .where(
                    Note.account_id == account_id,
                    Note.local_id == local_id,
                    Note.deleted_at.is_(None),
                )
                .values(deleted_at=datetime.now(timezone.utc))
            )
            await db.commit()

    async def fetch(self, account_id: UUID, since: Optional[datetime] = None) -> List[RemoteNote]:
        """
        Non-deleted notes for an account, newest first.
        With `since`, only rows updated after it.
        """
        query = select(Note).where(Note.account_id == account_id, Note.deleted_at.is_(None))
        if since is not None:
            query = query.where(Note.updated_at > since)
        query = query.order_by(Note.updated_at.desc())

        async with self.session_factory() as db:
            result = await db.execute(query)
            return [RemoteNote.from_row(row) for row in result.scalars().all()]
