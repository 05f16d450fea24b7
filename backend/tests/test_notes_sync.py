"""Tests for NotesSyncService: push, debounce, batch sync and last-write-wins merge."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from factories import ACCOUNT_ID, USER_ID, make_remote_note
from unforgotten.core.errors import MissingAccountIdError, NotAuthenticatedError
from unforgotten.models.local_note import LocalNote
from unforgotten.schemas.note import RemoteNoteInsert, RemoteNoteUpdate, SyncState
from unforgotten.services.notes_sync import NotesSyncService

pytestmark = pytest.mark.unit


def _note(
    *,
    id: UUID | None = None,
    title: str = "Local title",
    updated_at: datetime = datetime(2025, 6, 1, 9, 0),
    is_synced: bool = False,
    remote_id: str | None = None,
    account_id: UUID | None = ACCOUNT_ID,
) -> LocalNote:
    return LocalNote(
        id=id or uuid4(),
        title=title,
        content=b"Local body",
        content_plain_text="Local body",
        theme="standard",
        is_pinned=False,
        is_synced=is_synced,
        remote_id=remote_id,
        account_id=account_id,
        created_at=datetime(2025, 5, 1, 8, 0),
        updated_at=updated_at,
    )


def _service(repository, *, user_id=USER_ID, scope="note", debounce=0.01) -> NotesSyncService:
    return NotesSyncService(
        repository,
        lambda: user_id,
        debounce_seconds=debounce,
        status_reset_seconds=0.01,
        batch_status_reset_seconds=0.01,
        debounce_scope=scope,
    )


# ---------------------------------------------------------------------------
# Capture and push
# ---------------------------------------------------------------------------


def test_capture_builds_insert_for_new_note():
    note = _note()

    push = NotesSyncService.capture(note, USER_ID)

    assert isinstance(push.insert, RemoteNoteInsert)
    assert push.update is None
    assert push.insert.local_id == note.id
    assert push.insert.user_id == USER_ID
    assert push.insert.content == "TG9jYWwgYm9keQ=="
    assert push.insert.updated_at == datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def test_capture_builds_update_when_remote_id_known():
    push = NotesSyncService.capture(_note(remote_id="remote-9"), USER_ID)

    assert push.remote_id == "remote-9"
    assert isinstance(push.update, RemoteNoteUpdate)
    assert push.insert is None


def test_capture_without_account_raises():
    with pytest.raises(MissingAccountIdError):
        NotesSyncService.capture(_note(account_id=None), USER_ID)


async def test_sync_without_user_raises(note_repository):
    service = _service(note_repository, user_id=None)

    with pytest.raises(NotAuthenticatedError):
        await service.sync(_note())
    assert service.pending_count == 0


async def test_sync_immediately_pushes_and_completes(note_repository):
    service = _service(note_repository)

    await service.sync_immediately(_note(remote_id="remote-1"))

    note_repository.update.assert_awaited_once()
    assert service.status.state == SyncState.COMPLETED
    assert service.status.synced_count == 1
    assert service.last_sync_date is not None

    await asyncio.sleep(0.05)
    assert service.status.state == SyncState.IDLE
    await service.close()


async def test_push_failure_sets_failed_status(note_repository):
    note_repository.insert.side_effect = RuntimeError("remote unavailable")
    service = _service(note_repository)

    with pytest.raises(RuntimeError):
        await service.sync_immediately(_note())

    assert service.status.state == SyncState.FAILED
    assert service.status.error == "remote unavailable"


async def test_push_uses_values_captured_at_request_time(note_repository):
    service = _service(note_repository)
    note = _note(title="Before")

    await service.sync(note)
    note.title = "After"
    await service.wait_for_pending()

    sent = note_repository.insert.await_args.args[0]
    assert sent.title == "Before"
    # Pushes never write remote ids back
    assert note.remote_id is None


# ---------------------------------------------------------------------------
# Debounce
# ---------------------------------------------------------------------------


async def test_repeated_sync_of_one_note_pushes_once(note_repository):
    service = _service(note_repository, debounce=0.05)
    note = _note()

    await service.sync(note)
    await service.sync(note)
    await service.sync(note)
    assert service.pending_count == 1

    await service.wait_for_pending()

    assert note_repository.insert.await_count == 1


async def test_per_note_debounce_keeps_both_notes(note_repository):
    service = _service(note_repository, debounce=0.05, scope="note")

    await service.sync(_note())
    await service.sync(_note())
    await service.wait_for_pending()

    assert note_repository.insert.await_count == 2


async def test_service_debounce_keeps_only_newest_request(note_repository):
    service = _service(note_repository, debounce=0.05, scope="service")
    first, second = _note(title="First"), _note(title="Second")

    await service.sync(first)
    await service.sync(second)
    await service.wait_for_pending()

    note_repository.insert.assert_awaited_once()
    assert note_repository.insert.await_args.args[0].title == "Second"


async def test_cancel_pending_sync_prevents_push(note_repository):
    service = _service(note_repository, debounce=0.05)
    note = _note()

    await service.sync(note)
    service.cancel_pending_sync(note.id)
    await service.wait_for_pending()

    note_repository.insert.assert_not_awaited()
    assert service.status.state == SyncState.IDLE


async def test_cancel_during_push_returns_to_idle(note_repository):
    started = asyncio.Event()

    async def _slow_insert(dto):
        started.set()
        await asyncio.sleep(10)

    note_repository.insert.side_effect = _slow_insert
    service = _service(note_repository)

    task = asyncio.create_task(service.sync_immediately(_note()))
    await started.wait()
    assert service.status.state == SyncState.SYNCING

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert service.status.state == SyncState.IDLE
    assert not service.status.is_active


async def test_debounced_failure_is_logged_not_raised(note_repository):
    note_repository.insert.side_effect = RuntimeError("boom")
    service = _service(note_repository)

    await service.sync(_note())
    await service.wait_for_pending()

    assert service.status.state == SyncState.FAILED


# ---------------------------------------------------------------------------
# Batch sync
# ---------------------------------------------------------------------------


async def test_batch_sync_skips_notes_without_account(note_repository):
    service = _service(note_repository)
    orphan = _note(account_id=None)
    notes = [_note(), orphan, _note(remote_id="remote-2"), _note(is_synced=True)]

    result = await service.sync_pending_notes(notes)

    assert result.synced_count == 2
    assert result.skipped_note_ids == [orphan.id]
    assert note_repository.insert.await_count == 1
    assert note_repository.update.await_count == 1
    assert service.status.state == SyncState.COMPLETED
    assert service.status.synced_count == 2
    await service.close()


async def test_batch_sync_with_nothing_pending_stays_idle(note_repository):
    service = _service(note_repository)

    result = await service.sync_pending_notes([_note(is_synced=True)])

    assert result.synced_count == 0
    assert service.status.state == SyncState.IDLE


async def test_batch_sync_stops_on_remote_error(note_repository):
    note_repository.insert.side_effect = RuntimeError("remote down")
    service = _service(note_repository)

    with pytest.raises(RuntimeError):
        await service.sync_pending_notes([_note(), _note()])

    assert note_repository.insert.await_count == 1
    assert service.status.state == SyncState.FAILED


async def test_batch_sync_without_user_raises(note_repository):
    service = _service(note_repository, user_id=None)

    with pytest.raises(NotAuthenticatedError):
        await service.sync_pending_notes([_note()])


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


async def test_newer_remote_overwrites_local(local_session, note_repository):
    note = _note(updated_at=datetime(2025, 6, 1, 9, 0))
    local_session.add(note)
    await local_session.commit()
    remote = make_remote_note(
        local_id=note.id,
        title="B",
        updated_at=datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc),
        remote_id="remote-b",
    )
    service = _service(note_repository)

    changed = await service.merge_remote_notes([remote], local_session)

    assert changed == 1
    merged = await local_session.get(LocalNote, note.id)
    assert merged.title == "B"
    assert merged.content == b"Remote body"
    assert merged.theme == "work"
    assert merged.is_synced
    assert merged.remote_id == "remote-b"
    assert merged.updated_at == datetime(2025, 6, 1, 10, 0)


async def test_older_remote_leaves_local_unchanged(local_session, note_repository):
    note = _note(updated_at=datetime(2025, 6, 1, 10, 0))
    local_session.add(note)
    await local_session.commit()
    remote = make_remote_note(local_id=note.id, updated_at=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc))
    service = _service(note_repository)

    changed = await service.merge_remote_notes([remote], local_session)

    assert changed == 0
    assert note.title == "Local title"
    assert not note.is_synced
    assert note.remote_id is None


async def test_equal_timestamps_do_not_overwrite(local_session, note_repository):
    note = _note(updated_at=datetime(2025, 6, 1, 10, 0))
    local_session.add(note)
    await local_session.commit()
    remote = make_remote_note(local_id=note.id, updated_at=datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc))
    service = _service(note_repository)

    assert await service.merge_remote_notes([remote], local_session) == 0
    assert note.title == "Local title"


async def test_remote_only_note_is_created_with_same_id(local_session, note_repository):
    remote = make_remote_note(title="From another device", remote_id="remote-x")
    service = _service(note_repository)

    changed = await service.merge_remote_notes([remote], local_session)

    assert changed == 1
    created = await local_session.get(LocalNote, remote.local_id)
    assert created is not None
    assert created.title == "From another device"
    assert created.remote_id == "remote-x"
    assert created.is_synced
    assert created.account_id == ACCOUNT_ID


async def test_merge_is_idempotent(local_session, note_repository):
    remote = make_remote_note()
    service = _service(note_repository)

    assert await service.merge_remote_notes([remote], local_session) == 1
    assert await service.merge_remote_notes([remote], local_session) == 0


async def test_deleted_remote_notes_are_ignored(local_session, note_repository):
    remote = make_remote_note(deleted_at=datetime(2025, 6, 2, tzinfo=timezone.utc))
    service = _service(note_repository)

    assert await service.merge_remote_notes([remote], local_session) == 0
    assert await local_session.get(LocalNote, remote.local_id) is None


async def test_refresh_fetches_and_merges(local_session, note_repository):
    note_repository.fetch.return_value = [make_remote_note(), make_remote_note()]
    service = _service(note_repository)

    fetched = await service.refresh(ACCOUNT_ID, local_session)

    assert fetched == 2
    note_repository.fetch.assert_awaited_once_with(ACCOUNT_ID, None)
    assert service.last_sync_date is not None


async def test_delete_remote_soft_deletes(note_repository):
    service = _service(note_repository)

    await service.delete_remote("remote-7")

    note_repository.soft_delete.assert_awaited_once_with("remote-7")


async def test_delete_remote_without_remote_id_uses_local_key(note_repository):
    service = _service(note_repository)
    local_id = uuid4()

    await service.delete_remote(None, account_id=ACCOUNT_ID, local_id=local_id)

    note_repository.soft_delete.assert_not_awaited()
    note_repository.soft_delete_by_local_id.assert_awaited_once_with(ACCOUNT_ID, local_id)


async def test_delete_remote_skips_notes_never_pushed(note_repository):
    service = _service(note_repository)

    await service.delete_remote(None, account_id=None, local_id=uuid4())

    note_repository.soft_delete.assert_not_awaited()
    note_repository.soft_delete_by_local_id.assert_not_awaited()
