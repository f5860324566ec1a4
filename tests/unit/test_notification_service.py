"""Unit tests for NotificationService over a temporary SQLite store."""

from __future__ import annotations

import pytest

from songscout.models.playlist import BatchFetchResult, CompletenessRecord
from songscout.providers.storage.sqlite_notification_store import SQLiteNotificationStore
from songscout.services.notification_service import (
    ENRICHMENT_COMPLETE,
    FETCH_COMPLETE,
    NotificationService,
)


@pytest.fixture
def service(notification_store: SQLiteNotificationStore) -> NotificationService:
    return NotificationService(notification_store)


@pytest.mark.asyncio
async def test_create_and_list(service: NotificationService) -> None:
    created = await service.create("info", "Hello", "World", metadata={"k": 1})

    [stored] = await service.list_all()
    assert stored.id == created.id
    assert stored.metadata == {"k": 1}
    assert stored.read is False


@pytest.mark.asyncio
async def test_read_state(service: NotificationService) -> None:
    first = await service.create("info", "One", "m")
    await service.create("info", "Two", "m")
    await service.create("info", "Three", "m")

    assert await service.unread_count() == 3
    assert await service.mark_read(first.id) is True
    assert await service.mark_read("missing") is False
    assert {n.title for n in await service.unread()} == {"Two", "Three"}

    assert await service.mark_all_read() == 2
    assert await service.unread_count() == 0
    assert len(await service.list_all()) == 3


@pytest.mark.asyncio
async def test_clear_older_than(service: NotificationService) -> None:
    await service.create("info", "Old", "m")

    assert await service.clear_older_than(1) == 0
    assert await service.clear_older_than(0) == 1
    assert await service.list_all() == []


# ─── Pipeline events ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_complete_message_lists_incomplete_playlists(service: NotificationService) -> None:
    completeness = [
        CompletenessRecord(playlist_id=f"p{i}", name=f"List {i}", is_complete=False) for i in range(7)
    ]
    completeness.append(CompletenessRecord(playlist_id="ok", name="Done", is_complete=True))
    result = BatchFetchResult(
        week="2024-W10",
        tracks_inserted=12,
        playlists_succeeded=8,
        playlists_failed=1,
        completeness=completeness,
        job_id="job-1",
    )

    notification = await service.notify_fetch_complete(result)

    assert notification.type == FETCH_COMPLETE
    assert notification.title == "Playlist fetch complete for 2024-W10"
    assert notification.message == (
        "12 new tracks from 8 playlists (1 failed)."
        " Incomplete: List 0, List 1, List 2, List 3, List 4 and 2 more"
    )
    assert notification.metadata["job_id"] == "job-1"


@pytest.mark.asyncio
async def test_enrichment_complete_message(service: NotificationService) -> None:
    clean = await service.notify_enrichment_complete("job-1", 5, 0, 5)
    noisy = await service.notify_enrichment_complete("job-2", 3, 2, 5, playlist_id="pl1")

    assert clean.type == ENRICHMENT_COMPLETE
    assert clean.message == "Enriched 5 of 5 tracks."
    assert noisy.message == "Enriched 3 of 5 tracks with 2 errors."
    assert noisy.playlist_id == "pl1"
    assert noisy.metadata == {"job_id": "job-2", "enriched": 3, "errors": 2, "total": 5}
