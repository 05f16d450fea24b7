"""
Note sync: pushes local notes to the remote notes table and merges remote
changes back into the local store.

Pushes capture the note's fields and the current user synchronously, then
run from the captured values, so a push never reads a note that was closed
or deleted in the meantime. The local `remote_id` is not written back by a
push; the next fetch + merge fills it in.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from unforgotten.config import settings
from unforgotten.core.dates import to_naive_utc, utcnow
from unforgotten.core.errors import MissingAccountIdError, NotAuthenticatedError
from unforgotten.models.local_note import LocalNote
from unforgotten.repositories.notes import NoteRepository
from unforgotten.schemas.note import (
    BatchSyncResult,
    NoteSnapshot,
    NoteTheme,
    RemoteNote,
    RemoteNoteInsert,
    RemoteNoteUpdate,
    SyncServiceStatus,
    SyncState,
)

logger = logging.getLogger(__name__)

DEBOUNCE_PER_NOTE = "note"
DEBOUNCE_PER_SERVICE = "service"


@dataclass(frozen=True)
class PendingPush:
    """A note's captured state, ready to be sent."""

    note_id: UUID
    remote_id: Optional[str] = None
    update: Optional[RemoteNoteUpdate] = None
    insert: Optional[RemoteNoteInsert] = None


def _is_cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class NotesSyncService:
    """
    Sync state for one user.

    Args:
        repository: Remote notes table
        user_id_provider: Returns the signed-in user's id, or None
        debounce_scope: "note" keeps one pending push per note; "service"
            keeps a single pending push, and a new request replaces it
    """

    def __init__(
        self,
        repository: NoteRepository,
        user_id_provider: Callable[[], Optional[UUID]],
        debounce_seconds: Optional[float] = None,
        status_reset_seconds: Optional[float] = None,
        batch_status_reset_seconds: Optional[float] = None,
        debounce_scope: Optional[str] = None,
    ):
        self.repository = repository
        self.user_id_provider = user_id_provider
        self.debounce_seconds = (
            settings.note_sync_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.status_reset_seconds = (
            settings.note_sync_status_reset_seconds if status_reset_seconds is None else status_reset_seconds
        )
        self.batch_status_reset_seconds = (
            settings.note_sync_batch_status_reset_seconds
            if batch_status_reset_seconds is None
            else batch_status_reset_seconds
        )
        self.debounce_scope = debounce_scope or settings.note_sync_debounce_scope

        self.status = SyncServiceStatus.idle()
        self.last_sync_date: Optional[datetime] = None

        # Keyed by note id, or by None when a single timer is shared
        self._pending: Dict[Optional[UUID], asyncio.Task] = {}
        self._status_reset_task: Optional[asyncio.Task] = None

    # Capture

    def _current_user_id(self) -> UUID:
        user_id = self.user_id_provider()
        if user_id is None:
            raise NotAuthenticatedError()
        return user_id

    @staticmethod
    def capture(note, user_id: UUID) -> PendingPush:
        """
        Snapshot a note into the DTO its push will send: an update when the
        note already has a remote id, otherwise an insert.

        Raises:
            MissingAccountIdError: an insert is needed and the note has no account
        """
        snapshot = NoteSnapshot.model_validate(note)
        if snapshot.remote_id:
            return PendingPush(
                note_id=snapshot.id,
                remote_id=snapshot.remote_id,
                update=RemoteNoteUpdate.from_note(snapshot),
            )
        return PendingPush(
            note_id=snapshot.id,
            insert=RemoteNoteInsert.from_note(snapshot, user_id),
        )

    # Push

    async def _upsert(self, push: PendingPush) -> None:
        if push.remote_id and push.update is not None:
            await self.repository.update(push.remote_id, push.update)
        elif push.insert is not None:
            await self.repository.insert(push.insert)

    def _schedule_status_reset(self, delay: float) -> None:
        if self._status_reset_task is not None:
            self._status_reset_task.cancel()
        self._status_reset_task = asyncio.create_task(self._reset_status_after(delay))

    async def _reset_status_after(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        if self.status.state == SyncState.COMPLETED:
            self.status = SyncServiceStatus.idle()

    async def _perform_push(self, push: PendingPush) -> None:
        if _is_cancelling():
            return

        self.status = SyncServiceStatus.syncing(0.5)
        try:
            await self._upsert(push)
        except asyncio.CancelledError:
            self.status = SyncServiceStatus.idle()
            raise
        except Exception as e:
            self.status = SyncServiceStatus.failed(str(e))
            raise

        if _is_cancelling():
            return

        self.status = SyncServiceStatus.completed(1)
        self.last_sync_date = utcnow()
        self._schedule_status_reset(self.status_reset_seconds)
        logger.debug(f"Pushed note {push.note_id}")

    async def _debounced_push(self, push: PendingPush) -> None:
        try:
            await asyncio.sleep(self.debounce_seconds)
            await self._perform_push(push)
        except asyncio.CancelledError:
            logger.debug(f"Pending sync for note {push.note_id} cancelled")
        except Exception as e:
            logger.error(f"Sync error for note {push.note_id}: {e}")

    def _pending_key(self, note_id: UUID) -> Optional[UUID]:
        return note_id if self.debounce_scope == DEBOUNCE_PER_NOTE else None

    def _forget(self, key: Optional[UUID], task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    async def sync(self, note) -> None:
        """
        Push a note after the debounce window.

        A later request for the same note (or, with a service-wide timer,
        for any note) cancels this one before it fires.

        Raises:
            NotAuthenticatedError: no signed-in user
            MissingAccountIdError: new note without an account
        """
        user_id = self._current_user_id()
        push = self.capture(note, user_id)

        key = self._pending_key(push.note_id)
        self._cancel_key(key)

        task = asyncio.create_task(self._debounced_push(push))
        self._pending[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))

    async def sync_immediately(self, note) -> None:
        """Push a note now, replacing any pending debounced push for it."""
        user_id = self._current_user_id()
        push = self.capture(note, user_id)

        self._cancel_key(self._pending_key(push.note_id))
        await self._perform_push(push)

    async def sync_pending_notes(self, notes: Iterable[LocalNote]) -> BatchSyncResult:
        """
        Push every unsynced note, one at a time, reporting progress.

        Notes that cannot be pushed because they have no account are skipped
        and reported. A remote failure stops the batch.
        """
        pending = [note for note in notes if not note.is_synced]
        result = BatchSyncResult()
        if not pending:
            self.status = SyncServiceStatus.idle()
            return result

        user_id = self._current_user_id()
        total = len(pending)
        self.status = SyncServiceStatus.syncing(0.0)

        for index, note in enumerate(pending):
            self.status = SyncServiceStatus.syncing(index / total)
            try:
                push = self.capture(note, user_id)
            except MissingAccountIdError as e:
                logger.warning(f"Skipping note {note.id}: {e}")
                result.skipped_note_ids.append(note.id)
                continue

            try:
                await self._upsert(push)
            except asyncio.CancelledError:
                self.status = SyncServiceStatus.idle()
                raise
            except Exception as e:
                logger.error(f"Batch sync failed at note {push.note_id}: {e}")
                self.status = SyncServiceStatus.failed(str(e))
                raise
            result.synced_count += 1

        if _is_cancelling():
            return result

        self.status = SyncServiceStatus.completed(result.synced_count)
        self.last_sync_date = utcnow()
        self._schedule_status_reset(self.batch_status_reset_seconds)
        logger.info(
            f"Synced {result.synced_count} of {total} pending notes, "
            f"skipped {len(result.skipped_note_ids)}"
        )
        return result

    # Pending timers

    def _cancel_key(self, key: Optional[UUID]) -> None:
        task = self._pending.pop(key, None)
        if task is not None:
            task.cancel()

    def cancel_pending_sync(self, note_id: Optional[UUID] = None) -> None:
        """Cancel the pending push for one note, or every pending push."""
        if note_id is None:
            for key in list(self._pending):
                self._cancel_key(key)
        else:
            self._cancel_key(self._pending_key(note_id))

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._pending.values() if not task.done())

    async def wait_for_pending(self) -> None:
        """Wait until every pending debounced push has finished or been cancelled."""
        while True:
            tasks = [task for task in self._pending.values() if not task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        self.cancel_pending_sync()
        if self._status_reset_task is not None:
            self._status_reset_task.cancel()
            self._status_reset_task = None

    # Pull

    async def fetch_remote_changes(
        self, account_id: UUID, since: Optional[datetime] = None
    ) -> List[RemoteNote]:
        """Non-deleted remote notes, newest first; only those updated after `since` when given."""
        return await self.repository.fetch(account_id, since)

    async def delete_remote(
        self,
        remote_id: Optional[str],
        account_id: Optional[UUID] = None,
        local_id: Optional[UUID] = None,
    ) -> None:
        """
        Soft-delete a note's remote copy.

        A note can be pushed and deleted before a refresh fills in its remote
        id; its row is then found by (account_id, local_id). A note without
        an account was never pushed, so there is nothing to delete.
        """
        if remote_id:
            await self.repository.soft_delete(remote_id)
            logger.info(f"Soft-deleted remote note {remote_id}")
        elif account_id is not None and local_id is not None:
            await self.repository.soft_delete_by_local_id(account_id, local_id)
            logger.info(f"Soft-deleted remote copy of note {local_id}")

    async def merge_remote_notes(self, remote_notes: Iterable[RemoteNote], session: AsyncSession) -> int:
        """
        Merge remote notes into the local store, last write wins.

        A local note is overwritten only when the remote copy is strictly
        newer. Remote notes with no local copy are created with the same id.
        Deleted remote notes are ignored. Changes are committed once at the
        end. Returns the number of local notes created or updated.
        """
        materialized: Dict[UUID, LocalNote] = {}
        changed = 0

        for remote in remote_notes:
            if remote.deleted_at is not None:
                continue

            local = materialized.get(remote.local_id)
            if local is None:
                local = await session.get(LocalNote, remote.local_id)

            remote_updated_at = to_naive_utc(remote.updated_at)

            if local is not None:
                if remote_updated_at > to_naive_utc(local.updated_at):
                    local.title = remote.title
                    local.content = remote.content_data
                    local.content_plain_text = remote.content_plain_text
                    local.theme = NoteTheme.parse(remote.theme).value
                    local.is_pinned = remote.is_pinned
                    local.updated_at = remote_updated_at
                    local.account_id = remote.account_id
                    local.mark_as_synced(remote.remote_id)
                    changed += 1
            else:
                local = LocalNote(
                    id=remote.local_id,
                    title=remote.title,
                    content=remote.content_data,
                    content_plain_text=remote.content_plain_text,
                    theme=NoteTheme.parse(remote.theme).value,
                    is_pinned=remote.is_pinned,
                    created_at=to_naive_utc(remote.created_at),
                    updated_at=remote_updated_at,
                    account_id=remote.account_id,
                )
                local.mark_as_synced(remote.remote_id)
                session.add(local)
                materialized[remote.local_id] = local
                changed += 1

        await session.commit()
        if changed:
            logger.info(f"Merged {changed} remote notes into local store")
        return changed

    async def refresh(self, account_id: UUID, session: AsyncSession) -> int:
        """Fetch the account's remote notes and merge them. Returns the number fetched."""
        remote_notes = await self.fetch_remote_changes(account_id)
        await self.merge_remote_notes(remote_notes, session)
        self.last_sync_date = utcnow()
        return len(remote_notes)
