"""Unit tests for the cached dashboard metrics snapshot."""

from __future__ import annotations

import pytest

from songscout.models.track import Track
from songscout.providers.cache.ttl_snapshot_cache import TTLSnapshotCache
from songscout.services.metrics_service import DASHBOARD_METRICS_KEY, MetricsService


def _track(track_id: str, score: int) -> Track:
    return Track(
        id=track_id,
        week="2024-W10",
        playlist_id="pl1",
        playlist_name="Fresh Finds",
        track_name="Song",
        artist_name="Jane Doe",
        spotify_url=f"https://open.spotify.com/track/{track_id}",
        unsigned_score=score,
    )


@pytest.mark.asyncio
async def test_snapshot_is_cached_until_invalidated(catalog_store, job_store) -> None:
    cache = TTLSnapshotCache()
    service = MetricsService(catalog_store, job_store, cache)
    await catalog_store.insert_tracks([_track("t1", 9)])

    first = await service.get_dashboard_metrics()
    await catalog_store.insert_tracks([_track("t2", 2)])
    cached = await service.get_dashboard_metrics()

    assert first["tracks"] == 1
    assert first["unsigned_candidates"] == 1
    assert first["jobs"] == {"queued": 0, "running": 0, "completed": 0, "failed": 0}
    assert cached == first

    await service.invalidate()
    assert await cache.get(DASHBOARD_METRICS_KEY) is None
    fresh = await service.get_dashboard_metrics()
    assert fresh["tracks"] == 2
    assert fresh["unsigned_candidates"] == 1
