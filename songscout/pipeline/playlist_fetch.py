"""Playlist fetch orchestrator.

For each tracked playlist the orchestrator walks a provider chain and
stops at the first provider that returns tracks.  New records become
``Track`` rows for the current ISO week and then go to the enrichment
queue as one job.

# ─── ONE BATCH ────────────────────────────────────────────────────────
#
#   select playlists (mode)
#        │
#   load week dedup set  ── (playlist_id, spotify_url) pairs already stored
#        │
#   settle_all over playlists, bounded by the playlist pool
#        │   per playlist:  try_in_order(chain) ─> map + dedup ─> provisional score
#        │                  (editorial scrape ─> best-effort ISRC backfill)
#        │
#   insert all new tracks   ── PersistenceError aborts here, no job queued
#        │
#   store completeness per playlist
#        │
#   enqueue enrich-tracks job ─> schedule metrics update ─> notification
# ──────────────────────────────────────────────────────────────────────

A provider that returns zero tracks counts as a miss and the chain moves
on.  A provider that returns anything commits the playlist to it for the
run; later providers are never consulted to top up a partial result.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from songscout.interfaces.catalog_store import ICatalogStore
from songscout.interfaces.track_provider import ITrackProvider, ProviderFetch
from songscout.models.playlist import (
    BatchFetchResult,
    CompletenessRecord,
    FetchMode,
    TrackedPlaylist,
)
from songscout.models.scoring import TrackFacts
from songscout.models.track import Track, TrackRecord
from songscout.pipeline.job_queue import JobQueue
from songscout.pipeline.metrics_updates import MetricsUpdateManager
from songscout.pipeline.provider_chain import ChainFailure, FetchStrategy, try_in_order
from songscout.providers.tracks.spotify_provider import SpotifyProvider
from songscout.services.notification_service import NotificationService
from songscout.services.scoring_engine import ScoringEngine
from songscout.utils.concurrency import settle_all
from songscout.utils.errors import PlaylistValidationError
from songscout.utils.logging import get_logger
from songscout.utils.rate_limiter import RateLimiterRegistry

EDITORIAL_SCRAPE = "editorial_scrape"

DEFAULT_CHAINS: dict[str, list[str]] = {
    "editorial": ["chartmetric", EDITORIAL_SCRAPE],
    "algorithmic": ["spotify_api", "chartmetric"],
}


def iso_week(moment: datetime) -> str:
    """Return the ISO week key, e.g. ``2026-W07``."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


@dataclass
class PlaylistFetchOutcome:
    """Result of fetching one playlist: its completeness and new tracks."""

    record: CompletenessRecord
    tracks: list[Track] = field(default_factory=list)
    curator: str | None = None
    followers: int | None = None


class PlaylistFetchOrchestrator:
    """Fetches tracked playlists through provider chains.

    Parameters
    ----------
    store:
        Catalog store for playlists and tracks.
    providers:
        Every configured track provider; looked up by provider name.
    limiters:
        Rate limiters for each provider and the playlist fan-out pool.
    scoring:
        Computes the provisional score for each new track.
    job_queue:
        Receives one enrichment job per batch.
    metrics_updates:
        Debounced metrics fan-out; optional.
    notifications:
        Persists a fetch-complete notification; optional.
    chains:
        Provider order per playlist type (``editorial`` / ``algorithmic``).
    isrc_provider:
        Official API adapter used for the secondary ISRC pass on scraped
        editorial playlists.  ``None`` disables the pass.
    clock:
        Returns "now"; decides the ISO week.
    """

    def __init__(
        self,
        store: ICatalogStore,
        providers: list[ITrackProvider],
        limiters: RateLimiterRegistry,
        scoring: ScoringEngine,
        job_queue: JobQueue,
        metrics_updates: MetricsUpdateManager | None = None,
        notifications: NotificationService | None = None,
        chains: dict[str, list[str]] | None = None,
        isrc_provider: SpotifyProvider | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._providers = {p.get_provider_name(): p for p in providers}
        self._limiters = limiters
        self._scoring = scoring
        self._job_queue = job_queue
        self._metrics_updates = metrics_updates
        self._notifications = notifications
        self._chains = chains or DEFAULT_CHAINS
        self._isrc_provider = isrc_provider
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Batch entry point
    # ------------------------------------------------------------------

    async def fetch_playlists(
        self,
        mode: FetchMode = FetchMode.ALL,
        playlist_id: str | None = None,
    ) -> BatchFetchResult:
        """Fetch every playlist selected by *mode* and queue enrichment.

        Raises
        ------
        PlaylistValidationError
            If no tracked playlist matches the request.
        PersistenceError
            If the new tracks cannot be stored.  No job is queued.
        """
        playlists = await self._select_playlists(FetchMode(mode), playlist_id)
        week = iso_week(self._clock())
        seen = await self._store.get_week_track_keys(week)

        self._logger.info(
            "playlist_batch_started",
            mode=FetchMode(mode).value,
            playlists=len(playlists),
            week=week,
            known_keys=len(seen),
        )

        settled = await settle_all(
            [lambda p=p: self.fetch_playlist(p, week, seen) for p in playlists],
            self._limiters.playlists,
        )

        outcomes: list[PlaylistFetchOutcome] = []
        for playlist, result in zip(playlists, settled):
            if isinstance(result, BaseException):
                self._logger.error(
                    "playlist_fetch_crashed",
                    playlist_id=playlist.playlist_id,
                    error=str(result),
                )
                outcomes.append(
                    PlaylistFetchOutcome(
                        record=CompletenessRecord(
                            playlist_id=playlist.playlist_id,
                            name=playlist.name,
                            error=str(result),
                        )
                    )
                )
            else:
                outcomes.append(result)

        new_tracks = [track for outcome in outcomes for track in outcome.tracks]
        inserted_ids = await self._store.insert_tracks(new_tracks)

        for outcome in outcomes:
            await self._store.update_playlist_completeness(
                outcome.record, curator=outcome.curator, followers=outcome.followers
            )

        job_id: str | None = None
        if inserted_ids:
            job = await self._job_queue.enqueue(
                inserted_ids,
                playlist_id=playlists[0].playlist_id if len(playlists) == 1 else None,
            )
            job_id = job.id

        if self._metrics_updates is not None:
            await self._metrics_updates.schedule_update("playlist_fetch")

        succeeded = sum(1 for o in outcomes if o.record.fetch_method is not None)
        result = BatchFetchResult(
            week=week,
            tracks_inserted=len(inserted_ids),
            playlists_succeeded=succeeded,
            playlists_failed=len(outcomes) - succeeded,
            completeness=[o.record for o in outcomes],
            inserted_track_ids=inserted_ids,
            job_id=job_id,
        )

        if self._notifications is not None:
            await self._notifications.notify_fetch_complete(result)

        self._logger.info(
            "playlist_batch_complete",
            week=week,
            tracks_inserted=result.tracks_inserted,
            succeeded=result.playlists_succeeded,
            failed=result.playlists_failed,
            job_id=job_id,
        )
        return result

    async def _select_playlists(self, mode: FetchMode, playlist_id: str | None) -> list[TrackedPlaylist]:
        if mode is FetchMode.SPECIFIC:
            if not playlist_id:
                raise PlaylistValidationError(message="playlist_id is required for mode 'specific'")
            playlist = await self._store.get_playlist(playlist_id)
            if playlist is None:
                raise PlaylistValidationError(message=f"Playlist '{playlist_id}' is not tracked")
            return [playlist]

        if mode is FetchMode.EDITORIAL:
            playlists = await self._store.list_playlists(is_editorial=True)
        elif mode is FetchMode.NON_EDITORIAL:
            playlists = await self._store.list_playlists(is_editorial=False)
        else:
            playlists = await self._store.list_playlists()

        if not playlists:
            raise PlaylistValidationError(message=f"No tracked playlists for mode '{mode.value}'")
        return playlists

    # ------------------------------------------------------------------
    # Single playlist
    # ------------------------------------------------------------------

    async def fetch_playlist(
        self,
        playlist: TrackedPlaylist,
        week: str,
        seen: set[tuple[str, str]],
    ) -> PlaylistFetchOutcome:
        """Fetch one playlist and map its new records to tracks.

        *seen* is shared across the batch and updated in place.  Provider
        exhaustion yields an incomplete record instead of an exception.
        """
        chain = await try_in_order(self._strategies(playlist))

        if isinstance(chain, ChainFailure):
            self._logger.warning(
                "playlist_exhausted",
                playlist_id=playlist.playlist_id,
                attempts=len(chain.attempts),
                summary=chain.summary,
            )
            return PlaylistFetchOutcome(
                record=CompletenessRecord(
                    playlist_id=playlist.playlist_id,
                    name=playlist.name,
                    is_complete=False,
                    error=chain.summary,
                )
            )

        fetch = chain.fetch
        records = fetch.records
        if playlist.is_editorial and chain.provider == EDITORIAL_SCRAPE:
            records = await self._backfill_isrc(playlist, records)

        tracks, skipped = self._map_new_records(playlist, week, records, seen, chain.provider)
        total = fetch.total_tracks if fetch.total_tracks is not None else len(fetch.records)
        record = CompletenessRecord(
            playlist_id=playlist.playlist_id,
            name=playlist.name,
            fetch_count=len(tracks),
            total_tracks=total,
            skipped=skipped,
            is_complete=len(tracks) + skipped >= total,
            fetch_method=chain.provider,
        )

        self._logger.info(
            "playlist_fetch_succeeded",
            playlist_id=playlist.playlist_id,
            provider=chain.provider,
            new_tracks=len(tracks),
            skipped=skipped,
            total_tracks=total,
        )
        return PlaylistFetchOutcome(
            record=record,
            tracks=tracks,
            curator=fetch.curator,
            followers=fetch.followers,
        )

    def _strategies(self, playlist: TrackedPlaylist) -> list[FetchStrategy]:
        chain = self._chains["editorial" if playlist.is_editorial else "algorithmic"]
        strategies: list[FetchStrategy] = []
        for name in chain:
            provider = self._providers.get(name)
            if provider is None or not provider.is_available():
                continue
            if playlist.is_editorial and not provider.supports_editorial():
                continue
            strategies.append(FetchStrategy(provider=name, run=self._attempt(provider, playlist)))
        return strategies

    def _attempt(self, provider: ITrackProvider, playlist: TrackedPlaylist) -> Callable:
        limiter = self._limiters.for_provider(provider.get_provider_name())

        async def run() -> ProviderFetch:
            return await limiter.run(lambda: provider.fetch_tracks(playlist))

        return run

    def _map_new_records(
        self,
        playlist: TrackedPlaylist,
        week: str,
        records: list[TrackRecord],
        seen: set[tuple[str, str]],
        provider_name: str,
    ) -> tuple[list[Track], int]:
        # No await in here: check-and-add on *seen* must not interleave
        # with another playlist's task.
        tracks: list[Track] = []
        skipped = 0
        for record in records:
            key = (playlist.playlist_id, record.spotify_url)
            if key in seen:
                skipped += 1
                continue
            seen.add(key)
            tracks.append(self._to_track(playlist, week, record, provider_name))
        return tracks, skipped

    def _to_track(
        self,
        playlist: TrackedPlaylist,
        week: str,
        record: TrackRecord,
        provider_name: str,
    ) -> Track:
        artist_name = ", ".join(record.artists)
        provisional = self._scoring.score_track(
            TrackFacts(
                playlist_name=playlist.name,
                artist_name=artist_name or None,
                label=record.label,
            )
        )
        return Track(
            id=uuid.uuid4().hex,
            week=week,
            playlist_id=playlist.playlist_id,
            playlist_name=playlist.name,
            track_name=record.track_name,
            artist_name=artist_name,
            spotify_url=record.spotify_url,
            album_art=record.album_art,
            isrc=record.isrc,
            label=record.label,
            unsigned_score=provisional.score,
            data_source=provider_name,
            chartmetric_id=record.chartmetric_id,
        )

    async def _backfill_isrc(self, playlist: TrackedPlaylist, records: list[TrackRecord]) -> list[TrackRecord]:
        """Best-effort ISRC recovery; returns *records* unchanged on failure."""
        if self._isrc_provider is None or not self._isrc_provider.is_available():
            return records
        if all(r.isrc for r in records):
            return records

        provider = self._isrc_provider
        try:
            filled = await self._limiters.spotify.run(lambda: provider.backfill_isrc(records))
        except Exception as exc:
            self._logger.warning(
                "isrc_backfill_failed",
                playlist_id=playlist.playlist_id,
                error=str(exc),
            )
            return records

        self._logger.info(
            "isrc_backfill_complete",
            playlist_id=playlist.playlist_id,
            recovered=sum(1 for r in filled if r.isrc) - sum(1 for r in records if r.isrc),
        )
        return filled
