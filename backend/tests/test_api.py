"""Tests for the calendar and notes HTTP endpoints.

The remote store is replaced by fake repositories through dependency
overrides; the local note store is an in-memory SQLite database.
"""

from __future__ import annotations

from datetime import date, time
from uuid import UUID, uuid4

import httpx
import pytest

from factories import (
    ACCOUNT_ID,
    USER_ID,
    make_appointment,
    make_countdown,
    make_member,
    make_profile,
    make_remote_note,
    make_repositories,
    make_share,
    make_todo_list,
)
from unforgotten.api import deps
from unforgotten.api.deps import (
    get_calendar_aggregator,
    get_family_calendar_repository,
    get_notes_sync_service,
    get_session_factory,
)
from unforgotten.config import settings
from unforgotten.database import get_local_db
from unforgotten.main import app
from unforgotten.schemas.calendar import CalendarEventType, SharedEventIds
from unforgotten.schemas.note import SyncServiceStatus
from unforgotten.services.calendar import CalendarAggregator
from unforgotten.services.notes_sync import NotesSyncService

pytestmark = pytest.mark.unit

HEADERS = {"X-User-Id": str(USER_ID)}


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _use_calendar(repositories) -> None:
    app.dependency_overrides[get_calendar_aggregator] = lambda: CalendarAggregator(
        repositories, USER_ID, today_provider=lambda: date(2025, 6, 1)
    )


@pytest.fixture
def notes_sync(local_session_factory, note_repository):
    """Local store plus a sync service for USER_ID, wired into the app."""

    async def _local_db():
        async with local_session_factory() as session:
            yield session

    service = NotesSyncService(
        note_repository,
        lambda: USER_ID,
        debounce_seconds=0.01,
        status_reset_seconds=0.01,
        batch_status_reset_seconds=0.01,
    )
    app.dependency_overrides[get_local_db] = _local_db
    app.dependency_overrides[get_notes_sync_service] = lambda: service
    return service


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


async def test_calendar_requires_user(client):
    resp = await client.get("/api/calendar/events", params={"account_id": str(ACCOUNT_ID)})

    assert resp.status_code == 401


async def test_calendar_rejects_malformed_user_id(client):
    resp = await client.get(
        "/api/calendar/events",
        params={"account_id": str(ACCOUNT_ID)},
        headers={"X-User-Id": "not-a-uuid"},
    )

    assert resp.status_code == 401


async def test_list_events_sorted_with_flattened_fields(client):
    shared = make_appointment(day=date(2025, 6, 3), title="Shared")
    _use_calendar(make_repositories(
        appointments=[shared, make_appointment(day=date(2025, 6, 2), title="First")],
        shared_ids=SharedEventIds(appointment_ids={shared.id}),
    ))

    resp = await client.get("/api/calendar/events", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["error"] is None
    assert [e["title"] for e in body["events"]] == ["First", "Shared"]
    second = body["events"][1]
    assert second["kind"] == "appointment"
    assert second["filter_type"] == "appointments"
    assert second["event_id"] == str(shared.id)
    assert second["is_shared_to_family"] is True
    assert second["can_be_shared"] is True


async def test_list_events_reports_foundational_error(client):
    _use_calendar(make_repositories(members=RuntimeError("members offline"), todo_lists=[make_todo_list()]))

    resp = await client.get("/api/calendar/events", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)

    body = resp.json()
    assert "account members" in body["error"]
    assert [e["kind"] for e in body["events"]] == ["todo_list"]


async def test_filters_query_parameter(client):
    _use_calendar(make_repositories(appointments=[make_appointment()], countdowns=[make_countdown()]))

    resp = await client.get(
        "/api/calendar/events",
        params={"account_id": str(ACCOUNT_ID), "filters": ["countdowns"]},
        headers=HEADERS,
    )

    assert [e["kind"] for e in resp.json()["events"]] == ["countdown"]


async def test_family_tab_only_returns_shared(client):
    shared = make_appointment(title="Shared")
    _use_calendar(make_repositories(
        appointments=[shared, make_appointment(title="Private")],
        shared_ids=SharedEventIds(appointment_ids={shared.id}),
    ))

    resp = await client.get(
        "/api/calendar/events",
        params={"account_id": str(ACCOUNT_ID), "tab": "family"},
        headers=HEADERS,
    )

    assert [e["title"] for e in resp.json()["events"]] == ["Shared"]


async def test_day_and_month_views(client):
    _use_calendar(make_repositories(appointments=[
        make_appointment(day=date(2025, 6, 2), at=time(14, 0), title="Afternoon"),
        make_appointment(day=date(2025, 6, 2), at=time(9, 0), title="Morning"),
        make_appointment(day=date(2025, 7, 1), title="July"),
    ]))
    params = {"account_id": str(ACCOUNT_ID)}

    day = await client.get("/api/calendar/day", params={**params, "date": "2025-06-02"}, headers=HEADERS)
    month = await client.get("/api/calendar/month", params={**params, "month": "2025-07-15"}, headers=HEADERS)

    assert [e["title"] for e in day.json()] == ["Morning", "Afternoon"]
    assert [e["title"] for e in month.json()] == ["July"]


async def test_grouped_and_colors(client):
    _use_calendar(make_repositories(
        appointments=[make_appointment(day=date(2025, 6, 2))],
        todo_lists=[make_todo_list(due=date(2025, 6, 2)), make_todo_list(due=date(2025, 6, 5))],
    ))
    params = {"account_id": str(ACCOUNT_ID)}

    grouped = await client.get("/api/calendar/grouped", params=params, headers=HEADERS)
    colors = await client.get("/api/calendar/colors", params={**params, "month": "2025-06-01"}, headers=HEADERS)

    assert [(g["date"], len(g["events"])) for g in grouped.json()] == [
        ("2025-06-02T00:00:00", 2),
        ("2025-06-05T00:00:00", 1),
    ]
    assert colors.json() == {
        "2025-06-02": ["#4A90E2", "#FF9500"],
        "2025-06-05": ["#FF9500"],
    }


async def test_members_use_profile_names(client):
    user = uuid4()
    _use_calendar(make_repositories(
        profiles=[make_profile(full_name="Katherine Johnson", preferred_name="Kate", linked_user_id=user)],
        members=[make_member(user_id=user, email="kj@example.com")],
    ))

    resp = await client.get("/api/calendar/members", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)

    [member] = resp.json()
    assert member["display_name"] == "Kate"
    assert member["is_synthesized"] is False


async def test_share_event_route(client):
    appointment = make_appointment(title="Recital")
    member = uuid4()
    repositories = make_repositories(appointments=[appointment])
    _use_calendar(repositories)

    resp = await client.post(
        "/api/calendar/shares",
        json={
            "account_id": str(ACCOUNT_ID),
            "event_id": f"apt-{appointment.id}",
            "member_user_ids": [str(member)],
        },
        headers=HEADERS,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["share"]["event_id"] == str(appointment.id)
    assert body["share"]["event_type"] == "appointment"
    assert body["member_user_ids"] == [str(member)]
    repositories.family_calendar.create_share.assert_awaited_once()


async def test_share_route_rejects_unshareable_and_unknown_events(client):
    todo = make_todo_list()
    _use_calendar(make_repositories(todo_lists=[todo]))
    payload = {"account_id": str(ACCOUNT_ID), "member_user_ids": []}

    unshareable = await client.post(
        "/api/calendar/shares", json={**payload, "event_id": f"todo-{todo.id}"}, headers=HEADERS
    )
    unknown = await client.post(
        "/api/calendar/shares", json={**payload, "event_id": f"apt-{uuid4()}"}, headers=HEADERS
    )

    assert unshareable.status_code == 422
    assert unknown.status_code == 404


async def test_unshare_event_route(client):
    countdown = make_countdown()
    repositories = make_repositories(
        countdowns=[countdown],
        shared_ids=SharedEventIds(countdown_ids={countdown.id}),
    )
    _use_calendar(repositories)

    resp = await client.delete(
        f"/api/calendar/events/cd-{countdown.id}/share",
        params={"account_id": str(ACCOUNT_ID)},
        headers=HEADERS,
    )

    assert resp.status_code == 204
    repositories.family_calendar.delete_share_for_event.assert_awaited_once_with(
        CalendarEventType.COUNTDOWN, countdown.id
    )


async def test_share_management_routes(client):
    share = make_share(uuid4(), CalendarEventType.APPOINTMENT)
    member = uuid4()
    family_calendar = make_repositories(shares=[share]).family_calendar
    app.dependency_overrides[get_family_calendar_repository] = lambda: family_calendar

    listed = await client.get("/api/calendar/shares", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)
    updated = await client.put(
        f"/api/calendar/shares/{share.id}/members",
        json={"member_user_ids": [str(member)]},
        headers=HEADERS,
    )
    deleted = await client.delete(f"/api/calendar/shares/{share.id}", headers=HEADERS)

    assert [s["id"] for s in listed.json()] == [str(share.id)]
    family_calendar.get_all_shares_for_account.assert_awaited_once_with(ACCOUNT_ID)
    assert updated.status_code == 204
    family_calendar.update_share_members.assert_awaited_once_with(share.id, [member])
    assert deleted.status_code == 204
    family_calendar.delete_share.assert_awaited_once_with(share.id)


async def test_share_routes_require_user(client):
    resp = await client.get("/api/calendar/shares", params={"account_id": str(ACCOUNT_ID)})

    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


async def test_note_crud_round(client, notes_sync, note_repository):
    created = await client.post(
        "/api/notes",
        json={"account_id": str(ACCOUNT_ID), "title": "Packing", "content_plain_text": "Passport"},
    )
    assert created.status_code == 201
    note = created.json()
    assert note["is_synced"] is False
    assert note["display_title"] == "Packing"
    assert note["preview_content"] == "Passport"

    updated = await client.put(f"/api/notes/{note['id']}", json={"title": "Packing list"}, headers=HEADERS)
    assert updated.status_code == 200
    assert updated.json()["title"] == "Packing list"

    await notes_sync.wait_for_pending()
    note_repository.insert.assert_awaited_once()

    listed = await client.get("/api/notes", params={"account_id": str(ACCOUNT_ID)})
    assert [n["title"] for n in listed.json()] == ["Packing list"]

    deleted = await client.delete(f"/api/notes/{note['id']}", headers=HEADERS)
    assert deleted.status_code == 204
    # Pushed but the remote id never came back, so the row is found by local id
    note_repository.soft_delete.assert_not_awaited()
    note_repository.soft_delete_by_local_id.assert_awaited_once_with(ACCOUNT_ID, UUID(note["id"]))

    missing = await client.get(f"/api/notes/{note['id']}")
    assert missing.status_code == 404


async def test_deleted_note_is_not_restored_by_refresh(client, notes_sync, note_repository):
    created = await client.post("/api/notes", json={"account_id": str(ACCOUNT_ID), "title": "Secret"})
    note_id = UUID(created.json()["id"])
    await client.post(f"/api/notes/{note_id}/sync", params={"immediate": "true"}, headers=HEADERS)

    remote_rows = {note_id: make_remote_note(local_id=note_id, title="Secret")}

    async def _soft_delete_by_local_id(account_id, local_id):
        remote_rows.pop(local_id, None)

    async def _fetch(account_id, since=None):
        return list(remote_rows.values())

    note_repository.soft_delete_by_local_id.side_effect = _soft_delete_by_local_id
    note_repository.fetch.side_effect = _fetch

    deleted = await client.delete(f"/api/notes/{note_id}", headers=HEADERS)
    refreshed = await client.post("/api/notes/refresh", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)

    assert deleted.status_code == 204
    assert refreshed.json()["fetched_count"] == 0
    assert (await client.get(f"/api/notes/{note_id}")).status_code == 404
    await notes_sync.close()


async def test_delete_uses_remote_id_when_known(client, notes_sync, note_repository):
    note_repository.fetch.return_value = [make_remote_note(title="Merged", remote_id="remote-42")]
    await client.post("/api/notes/refresh", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)
    [note] = (await client.get("/api/notes", params={"account_id": str(ACCOUNT_ID)})).json()

    deleted = await client.delete(f"/api/notes/{note['id']}", headers=HEADERS)

    assert deleted.status_code == 204
    note_repository.soft_delete.assert_awaited_once_with("remote-42")
    note_repository.soft_delete_by_local_id.assert_not_awaited()


async def test_immediate_sync_and_status(client, notes_sync, note_repository):
    created = await client.post("/api/notes", json={"account_id": str(ACCOUNT_ID), "title": "Now"})

    resp = await client.post(
        f"/api/notes/{created.json()['id']}/sync",
        params={"immediate": "true"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["status"]["state"] == "completed"
    note_repository.insert.assert_awaited_once()

    status = await client.get("/api/notes/sync/status", headers=HEADERS)
    assert status.json()["last_sync_date"] is not None
    await notes_sync.close()


async def test_sync_without_user_is_unauthorized(client, local_session_factory, note_repository):
    async def _local_db():
        async with local_session_factory() as session:
            yield session

    app.dependency_overrides[get_local_db] = _local_db
    created = await client.post("/api/notes", json={"account_id": str(ACCOUNT_ID)})

    resp = await client.post(f"/api/notes/{created.json()['id']}/sync", params={"immediate": "true"})

    assert resp.status_code == 401


async def test_batch_sync_and_refresh(client, notes_sync, note_repository):
    await client.post("/api/notes", json={"account_id": str(ACCOUNT_ID), "title": "One"})
    await client.post("/api/notes", json={"account_id": str(ACCOUNT_ID), "title": "Two"})

    synced = await client.post("/api/notes/sync", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)

    assert synced.status_code == 200
    assert synced.json()["synced_count"] == 2
    assert synced.json()["skipped_note_ids"] == []

    refreshed = await client.post("/api/notes/refresh", params={"account_id": str(ACCOUNT_ID)}, headers=HEADERS)

    assert refreshed.status_code == 200
    assert refreshed.json()["fetched_count"] == 0
    assert refreshed.json()["note_count"] == 2
    await notes_sync.close()


# ---------------------------------------------------------------------------
# Sync service registry
# ---------------------------------------------------------------------------


async def test_idle_sync_services_are_evicted(monkeypatch):
    monkeypatch.setattr(settings, "note_sync_service_idle_seconds", 60)
    idle_user, busy_user, recent_user = uuid4(), uuid4(), uuid4()
    idle = await get_notes_sync_service(idle_user, get_session_factory())
    busy = await get_notes_sync_service(busy_user, get_session_factory())
    recent = await get_notes_sync_service(recent_user, get_session_factory())
    busy.status = SyncServiceStatus.syncing(0.5)
    deps._last_used[idle_user] -= 120
    deps._last_used[busy_user] -= 120

    evicted = await deps.evict_idle_sync_services()

    assert evicted == 1
    assert idle_user not in deps._sync_services
    assert deps._sync_services[busy_user] is busy
    assert deps._sync_services[recent_user] is recent
    assert await get_notes_sync_service(idle_user, get_session_factory()) is not idle
    await deps.close_sync_services()
    assert deps._sync_services == {}


async def test_requests_reuse_the_users_sync_service():
    first = await get_notes_sync_service(USER_ID, get_session_factory())
    second = await get_notes_sync_service(USER_ID, get_session_factory())

    assert first is second
    await deps.close_sync_services()
