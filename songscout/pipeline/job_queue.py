"""Durable enrichment job queue.

Owns the job state machine on top of an :class:`IJobStore`:

    queued ──claim_next──> running ──complete──> completed | failed
       ^                      │
       └────── recover ───────┘

Every log line is timestamped ``[ISO-8601] message`` and appended; the
log is never rewritten.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog

from songscout.interfaces.job_store import IJobStore
from songscout.models.job import ENRICH_TRACKS, EnrichmentJob, JobStatus
from songscout.utils.errors import JobQueueError
from songscout.utils.logging import get_logger

RECOVERY_NOTE = "Job reset to queued after process restart"


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def format_log_line(message: str, at: datetime | None = None) -> str:
    """Prefix *message* with an ISO timestamp."""
    return f"[{(at or _now()).isoformat()}] {message}"


class JobQueue:
    """Enqueue, claim and finish enrichment jobs.

    Parameters
    ----------
    store:
        Persistence backend; :meth:`IJobStore.claim_next` must be atomic.
    """

    def __init__(self, store: IJobStore) -> None:
        self._store = store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def initialize(self) -> list[str]:
        """Create the store schema, then run startup recovery."""
        await self._store.initialize()
        return await self.recover()

    async def recover(self) -> list[str]:
        """Reset jobs left ``running`` by a dead process back to ``queued``.

        No partial progress is assumed to have survived; the whole job is
        reprocessed, which is safe because every downstream write is
        idempotent.
        """
        job_ids = await self._store.requeue_running(format_log_line(RECOVERY_NOTE))
        if job_ids:
            self._logger.warning("jobs_recovered", count=len(job_ids), job_ids=job_ids)
        return job_ids

    async def enqueue(
        self,
        track_ids: list[str],
        job_type: str = ENRICH_TRACKS,
        playlist_id: str | None = None,
    ) -> EnrichmentJob:
        """Insert a ``queued`` job over *track_ids*.

        Raises
        ------
        JobQueueError
            If *track_ids* is empty.
        """
        if not track_ids:
            raise JobQueueError(message="Cannot enqueue a job with no track IDs")

        now = _now()
        job = EnrichmentJob(
            id=uuid.uuid4().hex,
            type=job_type,
            track_ids=list(track_ids),
            playlist_id=playlist_id,
            status=JobStatus.QUEUED,
            total_tracks=len(track_ids),
            logs=[format_log_line(f"Job queued with {len(track_ids)} tracks", now)],
            created_at=now,
        )
        await self._store.insert_job(job)
        self._logger.info("job_enqueued", job_id=job.id, job_type=job_type, total_tracks=job.total_tracks)
        return job

    async def get_job(self, job_id: str) -> EnrichmentJob | None:
        return await self._store.get_job(job_id)

    async def list_jobs(self, limit: int = 50) -> list[EnrichmentJob]:
        return await self._store.list_jobs(limit=limit)

    async def claim_next(self) -> EnrichmentJob | None:
        """Atomically take the oldest queued job, or ``None``."""
        job = await self._store.claim_next(_now())
        if job is not None:
            self._logger.info("job_claimed", job_id=job.id, total_tracks=job.total_tracks)
        return job

    async def update_progress(
        self,
        job_id: str,
        *,
        progress: int | None = None,
        enriched_tracks: int | None = None,
        error_count: int | None = None,
        message: str | None = None,
    ) -> bool:
        """Update counters and append *message* to the job log.

        A missing job is logged and reported as ``False``, never raised:
        a job may be deleted while the worker is still processing it.
        """
        if progress is not None:
            progress = max(0, min(100, progress))
        updated = await self._store.update_progress(
            job_id,
            progress=progress,
            enriched_tracks=enriched_tracks,
            error_count=error_count,
            log_lines=[format_log_line(message)] if message else None,
        )
        if not updated:
            self._logger.warning("job_progress_update_missing", job_id=job_id)
        return updated

    async def complete(self, job_id: str, success: bool, message: str | None = None) -> bool:
        """Move a job to ``completed`` (progress forced to 100) or ``failed``."""
        status = JobStatus.COMPLETED if success else JobStatus.FAILED
        updated = await self._store.finish_job(
            job_id,
            status,
            _now(),
            progress=100 if success else None,
            log_lines=[format_log_line(message)] if message else None,
        )
        if not updated:
            self._logger.warning("job_complete_missing", job_id=job_id, status=status.value)
        else:
            self._logger.info("job_finished", job_id=job_id, status=status.value)
        return updated

    async def count_by_status(self) -> dict[str, int]:
        return await self._store.count_by_status()
