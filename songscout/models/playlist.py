"""Playlist models: tracked playlists, fetch completeness, batch results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FetchMode(str, Enum):  # noqa: UP042
    """Which tracked playlists a fetch batch covers."""

    ALL = "all"
    EDITORIAL = "editorial"
    NON_EDITORIAL = "non-editorial"
    SPECIFIC = "specific"


class TrackedPlaylist(BaseModel):
    """An externally-curated playlist being monitored.

    Created by operator action; the fetch orchestrator updates the
    ``last_*`` completeness fields after every run.
    """

    model_config = ConfigDict(frozen=True)

    playlist_id: str
    name: str
    is_editorial: bool = False
    curator: str | None = None
    followers: int | None = None
    last_fetch_count: int | None = None
    total_tracks: int | None = None
    is_complete: bool | None = None
    fetch_method: str | None = None
    last_checked: datetime | None = None

    @property
    def url(self) -> str:
        return f"https://open.spotify.com/playlist/{self.playlist_id}"


class CompletenessRecord(BaseModel):
    """Per-playlist, per-run summary of fetched versus reported tracks."""

    model_config = ConfigDict(frozen=True)

    playlist_id: str
    name: str
    fetch_count: int = 0
    total_tracks: int | None = None
    skipped: int = 0
    is_complete: bool = False
    fetch_method: str | None = None
    error: str | None = None


class BatchFetchResult(BaseModel):
    """Aggregate outcome of one fetch batch across many playlists."""

    model_config = ConfigDict(frozen=True)

    week: str
    tracks_inserted: int = 0
    playlists_succeeded: int = 0
    playlists_failed: int = 0
    completeness: list[CompletenessRecord] = Field(default_factory=list)
    inserted_track_ids: list[str] = Field(default_factory=list)
    job_id: str | None = None
