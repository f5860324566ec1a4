"""Periodic playlist fetch.

Curated playlists refresh weekly, so by default the scheduler runs a
fetch batch every 168 hours.  The first batch runs one full interval
after startup; operators who want a fetch right away use the CLI or
``POST /api/v1/playlists/fetch``.

A failed batch is retried after ``min(interval, 1 hour)`` instead of
waiting a whole week.  Re-running inside the same ISO week is harmless
because the orchestrator skips tracks it has already stored.
"""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timedelta, timezone

import structlog

from songscout.models.playlist import BatchFetchResult, FetchMode
from songscout.pipeline.playlist_fetch import PlaylistFetchOrchestrator
from songscout.utils.errors import ConfigurationError
from songscout.utils.logging import get_logger

DEFAULT_INTERVAL_HOURS = 168.0
_MAX_RETRY_DELAY = 3600.0


class FetchScheduler:
    """Runs ``orchestrator.fetch_playlists(mode)`` on a fixed interval.

    Parameters
    ----------
    orchestrator:
        The fetch orchestrator shared with the API and the CLI.
    interval_seconds:
        Seconds between the end of one batch and the start of the next.
    mode:
        Which playlists each batch covers.  ``specific`` is rejected since
        it needs a playlist id.
    initial_delay:
        Seconds before the first batch; defaults to *interval_seconds*.
    """

    def __init__(
        self,
        orchestrator: PlaylistFetchOrchestrator,
        interval_seconds: float = DEFAULT_INTERVAL_HOURS * 3600,
        mode: FetchMode = FetchMode.ALL,
        initial_delay: float | None = None,
    ) -> None:
        if mode is FetchMode.SPECIFIC:
            raise ConfigurationError(message="Scheduled fetches cannot use mode 'specific'")
        if interval_seconds <= 0:
            raise ConfigurationError(message="Scheduled fetch interval must be positive")
        self._orchestrator = orchestrator
        self._interval = interval_seconds
        self._mode = mode
        self._initial_delay = interval_seconds if initial_delay is None else initial_delay
        self._retry_delay = min(interval_seconds, _MAX_RETRY_DELAY)
        self._task: asyncio.Task | None = None
        self._next_run_at: datetime | None = None
        self._last_result: BatchFetchResult | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def next_run_at(self) -> datetime | None:
        return self._next_run_at

    @property
    def last_result(self) -> BatchFetchResult | None:
        return self._last_result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.is_running:
            return
        self._next_run_at = datetime.now(tz=timezone.utc) + timedelta(seconds=self._initial_delay)  # noqa: UP017
        self._task = asyncio.create_task(self.run_forever())
        self._logger.info(
            "fetch_scheduler_started",
            mode=self._mode.value,
            interval_hours=round(self._interval / 3600, 3),
        )

    async def stop(self) -> None:
        """Cancel the loop; a batch in flight is abandoned mid-run."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._next_run_at = None
        self._logger.info("fetch_scheduler_stopped")

    async def run_forever(self) -> None:
        delay = self._initial_delay
        while True:
            self._next_run_at = datetime.now(tz=timezone.utc) + timedelta(seconds=delay)  # noqa: UP017
            await asyncio.sleep(delay)
            result = await self.run_once()
            delay = self._interval if result is not None else self._retry_delay

    async def run_once(self) -> BatchFetchResult | None:
        """Run one batch; ``None`` when it raised (already logged)."""
        try:
            result = await self._orchestrator.fetch_playlists(self._mode)
        except Exception as exc:
            self._logger.error(
                "scheduled_fetch_failed",
                mode=self._mode.value,
                error=str(exc),
                retry_in_seconds=self._retry_delay,
            )
            return None

        self._last_result = result
        self._logger.info(
            "scheduled_fetch_complete",
            mode=self._mode.value,
            week=result.week,
            tracks_inserted=result.tracks_inserted,
            playlists_failed=result.playlists_failed,
            job_id=result.job_id,
        )
        return result
