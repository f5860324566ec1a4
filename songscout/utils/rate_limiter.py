"""Per-provider rate limiters.

Two policies cover every external service the pipeline talks to:

1. **IntervalRateLimiter** -- serialized access with a minimum gap between
   the end of one call and the start of the next.  Used for low-QPS APIs
   (Chartmetric, MusicBrainz).  The timestamp is recorded in a ``finally`` block, so a
   run of failing calls is spaced out exactly like a run of successful ones.

2. **ConcurrencyRateLimiter** -- a bounded pool backed by an
   ``asyncio.Semaphore``.  Used for providers that tolerate parallelism
   (Spotify, the editorial scraper) and for playlist-level fan-out.

# ─── LIFECYCLE ────────────────────────────────────────────────────────
#
# Limiters are plain objects owned by a RateLimiterRegistry that main.py
# builds once and injects into providers, the orchestrator and the worker.
# Nothing here is module-global: tests construct their own registry with
# tiny intervals, and ``reset()`` returns every limiter to a fresh state.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

import structlog

from songscout.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


class IntervalRateLimiter:
    """Serialize calls and keep at least *min_interval* seconds between them.

    Parameters
    ----------
    name:
        Provider label used in log events.
    min_interval:
        Minimum seconds between the completion of one task and the start
        of the next.
    """

    def __init__(self, name: str, min_interval: float) -> None:
        self._name = name
        self._min_interval = min_interval
        self._lock = asyncio.Lock()
        self._last_finished: float | None = None

    @property
    def name(self) -> str:
        return self._name

    async def run(self, task: Callable[[], Awaitable[_T]]) -> _T:
        """Execute *task* once the interval since the previous call has elapsed."""
        async with self._lock:
            if self._last_finished is not None:
                elapsed = time.monotonic() - self._last_finished
                if elapsed < self._min_interval:
                    wait = self._min_interval - elapsed
                    _logger.debug("rate_limit_wait", limiter=self._name, wait_seconds=round(wait, 3))
                    await asyncio.sleep(wait)
            try:
                return await task()
            finally:
                self._last_finished = time.monotonic()

    def reset(self) -> None:
        self._last_finished = None


class ConcurrencyRateLimiter:
    """Allow at most *max_concurrency* tasks to run at once."""

    def __init__(self, name: str, max_concurrency: int) -> None:
        if max_concurrency < 1:
            msg = f"max_concurrency must be >= 1, got {max_concurrency}"
            raise ValueError(msg)
        self._name = name
        self._max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    async def run(self, task: Callable[[], Awaitable[_T]]) -> _T:
        """Execute *task* inside the pool, waiting for a free slot if needed."""
        async with self._semaphore:
            return await task()

    def reset(self) -> None:
        self._semaphore = asyncio.Semaphore(self._max_concurrency)


RateLimiter = IntervalRateLimiter | ConcurrencyRateLimiter


class RateLimiterRegistry:
    """Holds one limiter per external provider plus the playlist fan-out pool.

    Parameters
    ----------
    chartmetric_interval:
        Seconds between Chartmetric calls (serialized).
    spotify_concurrency:
        Concurrent Spotify Web API calls.
    scraper_concurrency:
        Concurrent editorial-scrape calls.
    playlist_concurrency:
        Playlists fetched in parallel by the orchestrator.
    musicbrainz_interval:
        Seconds between MusicBrainz ISRC lookups (serialized).
    """

    def __init__(
        self,
        chartmetric_interval: float = 2.0,
        spotify_concurrency: int = 3,
        scraper_concurrency: int = 2,
        playlist_concurrency: int = 3,
        musicbrainz_interval: float = 1.0,
    ) -> None:
        self.chartmetric = IntervalRateLimiter("chartmetric", chartmetric_interval)
        self.spotify = ConcurrencyRateLimiter("spotify_api", spotify_concurrency)
        self.scraper = ConcurrencyRateLimiter("editorial_scrape", scraper_concurrency)
        self.playlists = ConcurrencyRateLimiter("playlists", playlist_concurrency)
        self.musicbrainz = IntervalRateLimiter("musicbrainz", musicbrainz_interval)

    def for_provider(self, provider_name: str) -> RateLimiter:
        """Return the limiter guarding *provider_name*."""
        limiters: dict[str, RateLimiter] = {
            "chartmetric": self.chartmetric,
            "spotify_api": self.spotify,
            "editorial_scrape": self.scraper,
            "musicbrainz": self.musicbrainz,
        }
        try:
            return limiters[provider_name]
        except KeyError:
            msg = f"No rate limiter registered for provider '{provider_name}'"
            raise KeyError(msg) from None

    def reset(self) -> None:
        for limiter in (self.chartmetric, self.spotify, self.scraper, self.playlists, self.musicbrainz):
            limiter.reset()
        _logger.info("rate_limiters_reset")
