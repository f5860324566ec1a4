"""Abstract base class for durable enrichment-job persistence.

The job store is deliberately dumb: it persists rows and exposes exactly
one atomic read-modify-write, :meth:`IJobStore.claim_next`.  The state
machine rules (what may transition where, what gets logged) live in
:class:`songscout.pipeline.job_queue.JobQueue`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from songscout.models.job import EnrichmentJob, JobStatus


class IJobStore(ABC):
    """Contract for enrichment-job persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create the jobs table and indices if they do not exist."""

    @abstractmethod
    async def insert_job(self, job: EnrichmentJob) -> None:
        """Persist a new job."""

    @abstractmethod
    async def get_job(self, job_id: str) -> EnrichmentJob | None:
        """Return one job by ID."""

    @abstractmethod
    async def list_jobs(self, limit: int = 50) -> list[EnrichmentJob]:
        """Return the most recent jobs, newest first."""

    @abstractmethod
    async def claim_next(self, started_at: datetime) -> EnrichmentJob | None:
        """Atomically move the oldest ``queued`` job to ``running``.

        Two concurrent callers must never receive the same job.

        Returns
        -------
        EnrichmentJob or None
            The claimed job in its ``running`` state, or ``None`` when the
            queue is empty.
        """

    @abstractmethod
    async def update_progress(
        self,
        job_id: str,
        *,
        progress: int | None = None,
        enriched_tracks: int | None = None,
        error_count: int | None = None,
        log_lines: list[str] | None = None,
    ) -> bool:
        """Update counters and append log lines.

        ``None`` leaves a counter unchanged.  Returns ``False`` when the
        job does not exist.
        """

    @abstractmethod
    async def finish_job(
        self,
        job_id: str,
        status: JobStatus,
        completed_at: datetime,
        *,
        progress: int | None = None,
        log_lines: list[str] | None = None,
    ) -> bool:
        """Set a terminal status and completion time; ``False`` if missing."""

    @abstractmethod
    async def requeue_running(self, note: str) -> list[str]:
        """Reset every ``running`` job to ``queued`` and append *note*.

        Returns the IDs of the jobs that were reset.
        """

    @abstractmethod
    async def count_by_status(self) -> dict[str, int]:
        """Return job counts keyed by status value."""
