"""Background enrichment worker.

Claims one queued job at a time and enriches each of its tracks:

    credit lookup ─> MusicBrainz artist links ─> profile population
        ─> identity resolution ─> external ids ─> re-score
        ─> enrichment status ─> contact refresh

Concurrency is fixed at one job in flight.  Every external call during
enrichment goes through a rate-limited provider, so parallel jobs would
only queue behind the same limiter.

Progress milestones: 5 (started), 10 (tracks loaded), 10..95 spread
across tracks, 100 on successful completion.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import structlog

from songscout.interfaces.catalog_store import ICatalogStore
from songscout.models.job import EnrichmentJob, JobStatus
from songscout.models.scoring import TrackFacts
from songscout.models.songwriter import ExternalArtistLink
from songscout.models.track import EnrichmentStatus, Track, TrackEnrichment
from songscout.pipeline.job_queue import JobQueue
from songscout.pipeline.metrics_updates import MetricsUpdateManager
from songscout.pipeline.notification_hub import NotificationHub
from songscout.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from songscout.providers.tracks.chartmetric_provider import ChartmetricProvider
from songscout.services.contact_sync import ContactSyncService
from songscout.services.identity_resolver import IdentityResolver
from songscout.services.notification_service import NotificationService
from songscout.services.scoring_engine import ScoringEngine
from songscout.utils.credit_normalizer import normalize_credit_list
from songscout.utils.logging import bind_job_context, clear_job_context, get_logger
from songscout.utils.rate_limiter import RateLimiterRegistry

DEFAULT_POLL_INTERVAL = 2.0

_PROGRESS_STARTED = 5
_PROGRESS_LOADED = 10
_PROGRESS_TRACKS_DONE = 95


class EnrichmentWorker:
    """Polls the job queue and runs enrichment jobs one at a time.

    Parameters
    ----------
    job_queue:
        Source of jobs and sink for progress.
    store:
        Catalog store holding the tracks being enriched.
    identity:
        Binds credit names to songwriter profiles.
    contacts:
        Creates missing profiles and refreshes contacts.
    scoring:
        Re-scores each track after enrichment.
    limiters:
        Rate limiters; Chartmetric lookups go through ``limiters.chartmetric``.
    chartmetric:
        Credits and stats provider.  ``None`` (or unavailable) skips the
        credit lookup step.
    musicbrainz:
        ISRC artist lookup, run through ``limiters.musicbrainz``.  Found
        artists become external artist links, which feed the
        ``exact-id-match`` tier.  ``None`` skips the step.
    hub:
        Push-event fan-out.
    metrics_updates:
        Debounced metrics invalidation.
    notifications:
        Persists the enrichment-complete notification.
    poll_interval:
        Seconds to sleep when the queue is empty.
    auto_populate_contacts:
        Create profiles for unmatched credit names before resolution.
    """

    def __init__(
        self,
        job_queue: JobQueue,
        store: ICatalogStore,
        identity: IdentityResolver,
        contacts: ContactSyncService,
        scoring: ScoringEngine,
        limiters: RateLimiterRegistry,
        chartmetric: ChartmetricProvider | None = None,
        musicbrainz: MusicBrainzProvider | None = None,
        hub: NotificationHub | None = None,
        metrics_updates: MetricsUpdateManager | None = None,
        notifications: NotificationService | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        auto_populate_contacts: bool = True,
    ) -> None:
        self._queue = job_queue
        self._store = store
        self._identity = identity
        self._contacts = contacts
        self._scoring = scoring
        self._limiters = limiters
        self._chartmetric = chartmetric
        self._musicbrainz = musicbrainz
        self._hub = hub
        self._metrics_updates = metrics_updates
        self._notifications = notifications
        self._poll_interval = poll_interval
        self._auto_populate = auto_populate_contacts
        self._running = False
        self._task: asyncio.Task | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start polling in a background task on the running loop."""
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self.run_forever())
        self._logger.info("worker_started", poll_interval=self._poll_interval)

    async def stop(self) -> None:
        """Stop polling; a job in flight is cancelled and recovered on restart."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._logger.info("worker_stopped")

    async def run_forever(self) -> None:
        self._running = True
        while self._running:
            try:
                processed = await self.run_once()
            except Exception as exc:
                # Store outages must not kill the loop; the next poll retries.
                self._logger.error("worker_poll_failed", error=str(exc))
                processed = False
            if not processed:
                await asyncio.sleep(self._poll_interval)

    async def run_once(self) -> bool:
        """Claim and process one job; ``False`` when the queue is empty."""
        job = await self._queue.claim_next()
        if job is None:
            return False
        await self.process_job(job)
        return True

    # ------------------------------------------------------------------
    # Job processing
    # ------------------------------------------------------------------

    async def process_job(self, job: EnrichmentJob) -> JobStatus:
        """Enrich every track in *job* and finish the job.

        Returns
        -------
        JobStatus
            ``failed`` when the job has no tracks, when every track
            errored or when processing itself raised; else ``completed``.
        """
        bind_job_context(job.id)
        try:
            try:
                status, enriched, errors = await self._run_job(job)
            except Exception as exc:
                self._logger.error("job_processing_failed", job_id=job.id, error=str(exc))
                await self._queue.complete(job.id, success=False, message=f"Job failed: {exc}")
                await self._broadcast(
                    {
                        "type": "enrichment_progress",
                        "jobId": job.id,
                        "status": JobStatus.FAILED.value,
                        "progress": None,
                        "message": str(exc),
                    }
                )
                return JobStatus.FAILED

            await self._finalize(job, status, enriched, errors)
            return status
        finally:
            clear_job_context()

    async def _run_job(self, job: EnrichmentJob) -> tuple[JobStatus, int, int]:
        total = len(job.track_ids)
        enriched = 0
        errors = 0
        await self._progress(job, _PROGRESS_STARTED, f"Starting enrichment of {total} tracks")

        if total == 0:
            await self._queue.complete(job.id, success=False, message="Job has no tracks")
            return JobStatus.FAILED, enriched, errors

        await self._progress(job, _PROGRESS_LOADED, "Track list loaded")

        for index, track_id in enumerate(job.track_ids, start=1):
            status = await self._enrich_track(job, track_id)
            if status is EnrichmentStatus.ERROR:
                errors += 1
            else:
                enriched += 1
            progress = _PROGRESS_LOADED + (_PROGRESS_TRACKS_DONE - _PROGRESS_LOADED) * index // total
            await self._progress(
                job,
                progress,
                f"Processed {index}/{total} tracks",
                enriched_tracks=enriched,
                error_count=errors,
            )

        success = errors < total
        summary = f"Enrichment finished: {enriched} enriched, {errors} errors"
        await self._queue.complete(job.id, success=success, message=summary)
        return (JobStatus.COMPLETED if success else JobStatus.FAILED), enriched, errors

    async def _enrich_track(self, job: EnrichmentJob, track_id: str) -> EnrichmentStatus:
        track = await self._store.get_track(track_id)
        if track is None:
            self._logger.warning("track_missing", track_id=track_id)
            return EnrichmentStatus.ERROR

        try:
            track = await self._lookup_credits(track)
            await self._link_external_artists(track)

            names = normalize_credit_list(track.songwriter)
            linked_ids: list[str] = []
            if names:
                if self._auto_populate:
                    await self._contacts.ensure_profiles(names)
                matches = await self._identity.resolve_track(track)
                linked_ids = list(dict.fromkeys(m.profile.id for m in matches))
                await self._record_external_ids(track)

            status = EnrichmentStatus.SUCCESS if names and linked_ids else EnrichmentStatus.NOT_FOUND
            track = track.model_copy(
                update={"enrichment_status": status, "unsigned_score": self._rescore(track)}
            )
            await self._store.save_track_enrichment(track)

            for songwriter_id in linked_ids:
                await self._contacts.refresh_contact(songwriter_id)

        except Exception as exc:
            self._logger.warning("track_enrichment_failed", track_id=track_id, error=str(exc))
            await self._store.save_track_enrichment(
                track.model_copy(update={"enrichment_status": EnrichmentStatus.ERROR})
            )
            return EnrichmentStatus.ERROR

        await self._broadcast(
            {
                "type": "track_enriched",
                "jobId": job.id,
                "trackId": track.id,
                "status": status.value,
                "unsignedScore": track.unsigned_score,
                "songwriters": names,
            }
        )
        return status

    async def _lookup_credits(self, track: Track) -> Track:
        """Fill credits and stats from Chartmetric when the track has none."""
        if track.songwriter or not track.chartmetric_id:
            return track
        if self._chartmetric is None or not self._chartmetric.is_available():
            return track

        chartmetric = self._chartmetric
        chartmetric_id = track.chartmetric_id
        enrichment: TrackEnrichment = await self._limiters.chartmetric.run(
            lambda: chartmetric.fetch_track_enrichment(chartmetric_id)
        )
        return track.model_copy(
            update={
                "songwriter": ", ".join(enrichment.songwriters) or None,
                "producer": ", ".join(enrichment.producers) or track.producer,
                "publisher": enrichment.publisher or track.publisher,
                "spotify_streams": enrichment.spotify_streams
                if enrichment.spotify_streams is not None
                else track.spotify_streams,
                "youtube_views": enrichment.youtube_views
                if enrichment.youtube_views is not None
                else track.youtube_views,
                "wow_growth_pct": enrichment.stream_velocity
                if enrichment.stream_velocity is not None
                else track.wow_growth_pct,
            }
        )

    async def _link_external_artists(self, track: Track) -> None:
        """Attach the MusicBrainz artists for *track*'s ISRC as external links.

        Best-effort: a failed lookup is logged and enrichment carries on
        without the ``exact-id-match`` tier.
        """
        if self._musicbrainz is None or not track.isrc:
            return
        if await self._store.get_external_artist_links(track.id):
            return

        musicbrainz = self._musicbrainz
        isrc = track.isrc
        try:
            artists = await self._limiters.musicbrainz.run(lambda: musicbrainz.lookup_isrc_artists(isrc))
        except Exception as exc:
            self._logger.warning("musicbrainz_lookup_failed", track_id=track.id, isrc=isrc, error=str(exc))
            return

        for artist in artists:
            await self._store.add_external_artist_link(
                ExternalArtistLink(track_id=track.id, artist_name=artist.name, external_id=artist.mbid)
            )
        self._logger.debug("external_artists_linked", track_id=track.id, count=len(artists))

    async def _record_external_ids(self, track: Track) -> None:
        """Copy each linked MusicBrainz id onto the profile it resolved to."""
        for link in await self._store.get_external_artist_links(track.id):
            if link.songwriter_id:
                await self._store.set_profile_external_id(link.songwriter_id, "musicbrainz", link.external_id)

    def _rescore(self, track: Track) -> int:
        return self._scoring.score_track(
            TrackFacts(
                playlist_name=track.playlist_name,
                artist_name=track.artist_name or None,
                label=track.label,
                publisher=track.publisher,
                songwriter=track.songwriter,
                wow_growth_pct=track.wow_growth_pct,
            )
        ).score

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def _progress(
        self,
        job: EnrichmentJob,
        progress: int,
        message: str,
        *,
        enriched_tracks: int | None = None,
        error_count: int | None = None,
    ) -> None:
        await self._queue.update_progress(
            job.id,
            progress=progress,
            enriched_tracks=enriched_tracks,
            error_count=error_count,
            message=message,
        )
        await self._broadcast(
            {
                "type": "enrichment_progress",
                "jobId": job.id,
                "status": JobStatus.RUNNING.value,
                "progress": progress,
                "message": message,
            }
        )

    async def _finalize(self, job: EnrichmentJob, status: JobStatus, enriched: int, errors: int) -> None:
        total = len(job.track_ids)
        await self._broadcast(
            {
                "type": "batch_complete",
                "jobId": job.id,
                "status": status.value,
                "enriched": enriched,
                "errors": errors,
                "total": total,
            }
        )
        if self._notifications is not None:
            await self._notifications.notify_enrichment_complete(
                job.id, enriched, errors, total, playlist_id=job.playlist_id
            )
        if self._metrics_updates is not None:
            await self._metrics_updates.schedule_update("enrichment_complete")
            await self._metrics_updates.flush()
        self._logger.info(
            "job_enrichment_finished",
            job_id=job.id,
            status=status.value,
            enriched=enriched,
            errors=errors,
            total=total,
        )

    async def _broadcast(self, event: dict[str, Any]) -> None:
        if self._hub is not None:
            await self._hub.broadcast(event)
