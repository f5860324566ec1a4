"""Shared pytest fixtures for the songscout test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import pytest_asyncio

from songscout.interfaces.track_provider import ITrackProvider, ProviderFetch
from songscout.models.playlist import TrackedPlaylist
from songscout.models.track import TrackRecord
from songscout.pipeline.job_queue import JobQueue
from songscout.providers.storage.sqlite_catalog_store import SQLiteCatalogStore
from songscout.providers.storage.sqlite_job_store import SQLiteJobStore
from songscout.providers.storage.sqlite_notification_store import SQLiteNotificationStore
from songscout.services.scoring_engine import ScoringEngine
from songscout.utils.errors import ProviderUnavailableError
from songscout.utils.rate_limiter import RateLimiterRegistry

# ---------------------------------------------------------------------------
# Fake track provider
# ---------------------------------------------------------------------------


class FakeTrackProvider(ITrackProvider):
    """Scripted provider: returns *records*, or raises when *error* is set."""

    def __init__(
        self,
        name: str,
        records: list[TrackRecord] | None = None,
        total_tracks: int | None = None,
        error: Exception | None = None,
        available: bool = True,
        editorial: bool = True,
    ) -> None:
        self._name = name
        self._records = records or []
        self._total = total_tracks
        self._error = error
        self._available = available
        self._editorial = editorial
        self.calls: list[str] = []

    async def fetch_tracks(self, playlist: TrackedPlaylist) -> ProviderFetch:
        self.calls.append(playlist.playlist_id)
        if self._error is not None:
            raise self._error
        return ProviderFetch(records=list(self._records), total_tracks=self._total, curator="Curator")

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available

    def supports_editorial(self) -> bool:
        return self._editorial


def make_record(n: int, **overrides) -> TrackRecord:
    data = {
        "track_name": f"Song {n}",
        "artists": [f"Artist {n}"],
        "spotify_url": f"https://open.spotify.com/track/trk{n:04d}",
    }
    data.update(overrides)
    return TrackRecord(**data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temporary database file shared by every store in one test."""
    return tmp_path / "songscout.db"


@pytest_asyncio.fixture
async def catalog_store(db_path: Path) -> SQLiteCatalogStore:
    store = SQLiteCatalogStore(db_path=db_path)
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def job_store(db_path: Path) -> SQLiteJobStore:
    store = SQLiteJobStore(db_path=db_path)
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def notification_store(db_path: Path) -> SQLiteNotificationStore:
    store = SQLiteNotificationStore(db_path=db_path)
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def job_queue(db_path: Path) -> JobQueue:
    queue = JobQueue(SQLiteJobStore(db_path=db_path))
    await queue.initialize()
    return queue


@pytest.fixture
def scoring_engine() -> ScoringEngine:
    return ScoringEngine()


@pytest.fixture
def limiters() -> RateLimiterRegistry:
    """Registry with no interval spacing so tests never sleep."""
    return RateLimiterRegistry(chartmetric_interval=0.0, musicbrainz_interval=0.0)


@pytest.fixture
def make_provider() -> Callable[..., FakeTrackProvider]:
    return FakeTrackProvider


@pytest.fixture
def failing_provider() -> Callable[[str], FakeTrackProvider]:
    def _factory(name: str) -> FakeTrackProvider:
        return FakeTrackProvider(name, error=ProviderUnavailableError(message="HTTP 503", provider_name=name))

    return _factory


@pytest.fixture
def records() -> Callable[[int], list[TrackRecord]]:
    """Factory for *n* distinct provider records."""

    def _factory(count: int, start: int = 1) -> list[TrackRecord]:
        return [make_record(i) for i in range(start, start + count)]

    return _factory
