"""Integration tests for playlist fetch batches over real SQLite stores."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from songscout.config.settings import Settings
from songscout.models.job import JobStatus
from songscout.models.playlist import FetchMode, TrackedPlaylist
from songscout.pipeline.metrics_updates import MetricsUpdateManager
from songscout.pipeline.playlist_fetch import PlaylistFetchOrchestrator, iso_week
from songscout.providers.tracks.spotify_provider import SpotifyProvider
from songscout.services.notification_service import NotificationService
from songscout.utils.errors import PersistenceError, PlaylistValidationError, ProviderUnavailableError

_NOW = datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)  # noqa: UP017

_ALGORITHMIC = TrackedPlaylist(playlist_id="algo1", name="Chill Mix")
_EDITORIAL = TrackedPlaylist(playlist_id="ed1", name="Fresh Finds", is_editorial=True)


def _maintenance_spotify(http: httpx.AsyncClient) -> SpotifyProvider:
    """Real Spotify adapter whose API answers 200 with an HTML maintenance page."""
    settings = Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret")
    return SpotifyProvider(settings, http)


def _maintenance_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/token":
        return httpx.Response(200, json={"access_token": "sp-token", "expires_in": 3600})
    return httpx.Response(200, text="<html>maintenance</html>")


def _orchestrator(store, providers, limiters, scoring_engine, job_queue, **kw) -> PlaylistFetchOrchestrator:
    return PlaylistFetchOrchestrator(
        store=store,
        providers=providers,
        limiters=limiters,
        scoring=scoring_engine,
        job_queue=job_queue,
        clock=lambda: _NOW,
        **kw,
    )


def test_iso_week() -> None:
    assert iso_week(_NOW) == "2024-W10"
    assert iso_week(datetime(2021, 1, 3, tzinfo=timezone.utc)) == "2020-W53"  # noqa: UP017


# ─── Fallback and completeness ────────────────────────────────────


@pytest.mark.asyncio
async def test_empty_provider_falls_through_to_next(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    spotify = make_provider("spotify_api", records=[], total_tracks=0)
    chartmetric = make_provider("chartmetric", records=records(3), total_tracks=3)
    orchestrator = _orchestrator(catalog_store, [spotify, chartmetric], limiters, scoring_engine, job_queue)

    result = await orchestrator.fetch_playlists(FetchMode.ALL)

    assert result.week == "2024-W10"
    assert result.tracks_inserted == 3
    assert result.playlists_succeeded == 1
    [record] = result.completeness
    assert record.fetch_method == "chartmetric"
    assert record.fetch_count == 3
    assert record.is_complete is True
    assert spotify.calls == ["algo1"]

    job = await job_queue.get_job(result.job_id)
    assert job.track_ids == result.inserted_track_ids
    assert job.playlist_id == "algo1"
    assert job.status is JobStatus.QUEUED

    stored = await catalog_store.get_playlist("algo1")
    assert stored.fetch_method == "chartmetric"
    assert stored.last_fetch_count == 3
    assert stored.curator == "Curator"


@pytest.mark.asyncio
async def test_rerun_in_same_week_skips_known_tracks(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    chartmetric = make_provider("chartmetric", records=records(3), total_tracks=3)
    orchestrator = _orchestrator(catalog_store, [chartmetric], limiters, scoring_engine, job_queue)

    await orchestrator.fetch_playlists()
    again = await orchestrator.fetch_playlists()

    assert again.tracks_inserted == 0
    assert again.job_id is None
    [record] = again.completeness
    assert record.skipped == 3
    assert record.fetch_count == 0
    assert record.is_complete is True
    assert (await job_queue.count_by_status())["queued"] == 1


@pytest.mark.asyncio
async def test_partial_fetch_is_incomplete(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    chartmetric = make_provider("chartmetric", records=records(2), total_tracks=50)
    orchestrator = _orchestrator(catalog_store, [chartmetric], limiters, scoring_engine, job_queue)

    result = await orchestrator.fetch_playlists()

    assert result.completeness[0].total_tracks == 50
    assert result.completeness[0].is_complete is False


@pytest.mark.asyncio
async def test_duplicate_urls_within_one_fetch(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    batch = records(2) + records(1)
    chartmetric = make_provider("chartmetric", records=batch, total_tracks=3)
    orchestrator = _orchestrator(catalog_store, [chartmetric], limiters, scoring_engine, job_queue)

    result = await orchestrator.fetch_playlists()

    assert result.tracks_inserted == 2
    assert result.completeness[0].skipped == 1


# ─── Editorial playlists ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_editorial_playlist_skips_non_editorial_providers(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_EDITORIAL)
    chartmetric = make_provider("chartmetric", records=records(3), editorial=False)
    scrape = make_provider("editorial_scrape", records=records(2))
    orchestrator = _orchestrator(catalog_store, [chartmetric, scrape], limiters, scoring_engine, job_queue)

    result = await orchestrator.fetch_playlists(FetchMode.EDITORIAL)

    assert chartmetric.calls == []
    assert result.completeness[0].fetch_method == "editorial_scrape"
    assert result.tracks_inserted == 2


@pytest.mark.asyncio
async def test_scraped_editorial_tracks_get_isrc_backfill(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_EDITORIAL)
    scraped = records(2)
    isrc_provider = MagicMock(spec=SpotifyProvider)
    isrc_provider.is_available.return_value = True
    isrc_provider.backfill_isrc = AsyncMock(
        return_value=[r.model_copy(update={"isrc": f"ISRC{i}"}) for i, r in enumerate(scraped)]
    )
    scrape = make_provider("editorial_scrape", records=scraped)
    orchestrator = _orchestrator(
        catalog_store, [scrape], limiters, scoring_engine, job_queue, isrc_provider=isrc_provider
    )

    result = await orchestrator.fetch_playlists(FetchMode.EDITORIAL)

    isrcs = {(await catalog_store.get_track(tid)).isrc for tid in result.inserted_track_ids}
    assert isrcs == {"ISRC0", "ISRC1"}


@pytest.mark.asyncio
async def test_isrc_backfill_failure_keeps_records(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_EDITORIAL)
    isrc_provider = MagicMock(spec=SpotifyProvider)
    isrc_provider.is_available.return_value = True
    isrc_provider.backfill_isrc = AsyncMock(side_effect=ProviderUnavailableError(message="HTTP 502"))
    scrape = make_provider("editorial_scrape", records=records(2))
    orchestrator = _orchestrator(
        catalog_store, [scrape], limiters, scoring_engine, job_queue, isrc_provider=isrc_provider
    )

    result = await orchestrator.fetch_playlists(FetchMode.EDITORIAL)

    assert result.tracks_inserted == 2


# ─── Failures ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_exhausted_chain_records_error(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, failing_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    await catalog_store.upsert_playlist(_EDITORIAL)
    providers = [
        failing_provider("spotify_api"),
        failing_provider("chartmetric"),
        make_provider("editorial_scrape", records=records(1)),
    ]
    orchestrator = _orchestrator(catalog_store, providers, limiters, scoring_engine, job_queue)

    result = await orchestrator.fetch_playlists(FetchMode.ALL)

    by_id = {r.playlist_id: r for r in result.completeness}
    assert by_id["algo1"].fetch_method is None
    assert by_id["algo1"].is_complete is False
    assert "spotify_api" in by_id["algo1"].error
    assert "chartmetric" in by_id["algo1"].error
    assert by_id["ed1"].fetch_method == "editorial_scrape"
    assert result.playlists_failed == 1
    assert result.playlists_succeeded == 1

    # Two playlists in the batch, so the job is not tied to either.
    job = await job_queue.get_job(result.job_id)
    assert job.playlist_id is None


@pytest.mark.asyncio
async def test_specific_mode_validation(catalog_store, job_queue, limiters, scoring_engine) -> None:
    orchestrator = _orchestrator(catalog_store, [], limiters, scoring_engine, job_queue)

    with pytest.raises(PlaylistValidationError):
        await orchestrator.fetch_playlists(FetchMode.SPECIFIC)
    with pytest.raises(PlaylistValidationError, match="not tracked"):
        await orchestrator.fetch_playlists(FetchMode.SPECIFIC, "missing")
    with pytest.raises(PlaylistValidationError):
        await orchestrator.fetch_playlists(FetchMode.EDITORIAL)


@pytest.mark.asyncio
async def test_persistence_failure_queues_no_job(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    chartmetric = make_provider("chartmetric", records=records(3))
    orchestrator = _orchestrator(catalog_store, [chartmetric], limiters, scoring_engine, job_queue)

    with (
        patch.object(catalog_store, "insert_tracks", AsyncMock(side_effect=PersistenceError(message="disk full"))),
        pytest.raises(PersistenceError),
    ):
        await orchestrator.fetch_playlists()

    assert (await job_queue.count_by_status())["queued"] == 0


# ─── Side effects ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_batch_schedules_metrics_and_notifies(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    metrics_updates = AsyncMock(spec=MetricsUpdateManager)
    notifications = AsyncMock(spec=NotificationService)
    orchestrator = _orchestrator(
        catalog_store,
        [make_provider("chartmetric", records=records(1))],
        limiters,
        scoring_engine,
        job_queue,
        metrics_updates=metrics_updates,
        notifications=notifications,
    )

    result = await orchestrator.fetch_playlists()

    metrics_updates.schedule_update.assert_awaited_once_with("playlist_fetch")
    notifications.notify_fetch_complete.assert_awaited_once_with(result)


# ─── Real adapters returning garbage ──────────────────────────────


@pytest.mark.asyncio
async def test_spotify_maintenance_page_falls_back_to_chartmetric(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_ALGORITHMIC)
    chartmetric = make_provider("chartmetric", records=records(3), total_tracks=3)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_maintenance_handler)) as http:
        spotify = _maintenance_spotify(http)
        orchestrator = _orchestrator(catalog_store, [spotify, chartmetric], limiters, scoring_engine, job_queue)
        result = await orchestrator.fetch_playlists(FetchMode.ALL)

    [record] = result.completeness
    assert record.fetch_method == "chartmetric"
    assert record.error is None
    assert result.tracks_inserted == 3
    assert chartmetric.calls == ["algo1"]


@pytest.mark.asyncio
async def test_isrc_backfill_maintenance_page_keeps_scraped_records(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_EDITORIAL)
    scrape = make_provider("editorial_scrape", records=records(3), total_tracks=3)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_maintenance_handler)) as http:
        orchestrator = _orchestrator(
            catalog_store, [scrape], limiters, scoring_engine, job_queue, isrc_provider=_maintenance_spotify(http)
        )
        result = await orchestrator.fetch_playlists(FetchMode.EDITORIAL)

    assert result.tracks_inserted == 3
    assert result.completeness[0].fetch_method == "editorial_scrape"
    assert result.job_id is not None
    isrcs = {(await catalog_store.get_track(tid)).isrc for tid in result.inserted_track_ids}
    assert isrcs == {None}


@pytest.mark.asyncio
async def test_isrc_backfill_unexpected_error_keeps_records(
    catalog_store, job_queue, limiters, scoring_engine, make_provider, records
) -> None:
    await catalog_store.upsert_playlist(_EDITORIAL)
    isrc_provider = MagicMock(spec=SpotifyProvider)
    isrc_provider.is_available.return_value = True
    isrc_provider.backfill_isrc = AsyncMock(side_effect=KeyError("tracks"))
    scrape = make_provider("editorial_scrape", records=records(2))
    orchestrator = _orchestrator(
        catalog_store, [scrape], limiters, scoring_engine, job_queue, isrc_provider=isrc_provider
    )

    result = await orchestrator.fetch_playlists(FetchMode.EDITORIAL)

    assert result.tracks_inserted == 2
    assert result.playlists_failed == 0
