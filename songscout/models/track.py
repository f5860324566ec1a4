"""Track models: provider records, stored playlist appearances, enrichment data.

``TrackRecord`` is what a provider adapter returns: the subset of fields
the provider knows, in provider-neutral form.  The fetch orchestrator maps
each new record to a ``Track``, the persisted row that represents one
playlist appearance of a song in one ISO week.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EnrichmentStatus(str, Enum):  # noqa: UP042
    """Enrichment outcome recorded on each track."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    NOT_FOUND = "not_found"


class TrackRecord(BaseModel):
    """A single track as delivered by a provider adapter."""

    model_config = ConfigDict(frozen=True)

    track_name: str
    artists: list[str] = Field(default_factory=list)
    # Canonical open.spotify.com track URL; part of the dedup key.
    spotify_url: str
    album_art: str | None = None
    isrc: str | None = None
    label: str | None = None
    chartmetric_id: str | None = None

    @property
    def spotify_track_id(self) -> str | None:
        """The bare track ID parsed from ``spotify_url``."""
        if "/track/" not in self.spotify_url:
            return None
        return self.spotify_url.rsplit("/track/", 1)[1].split("?", 1)[0] or None


class Track(BaseModel):
    """One playlist appearance of a song for a given ISO week."""

    model_config = ConfigDict(frozen=True)

    id: str
    week: str
    playlist_id: str
    playlist_name: str
    track_name: str
    artist_name: str
    spotify_url: str
    album_art: str | None = None
    isrc: str | None = None
    label: str | None = None
    publisher: str | None = None
    songwriter: str | None = None
    producer: str | None = None
    enrichment_status: EnrichmentStatus = EnrichmentStatus.PENDING
    spotify_streams: int | None = None
    youtube_views: int | None = None
    wow_growth_pct: float | None = None
    unsigned_score: int = 0
    data_source: str | None = None
    chartmetric_id: str | None = None
    added_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )

    @property
    def dedup_key(self) -> tuple[str, str]:
        """(playlist_id, spotify_url); unique together with ``week``."""
        return (self.playlist_id, self.spotify_url)


class TrackEnrichment(BaseModel):
    """Credits and streaming stats looked up for a single track."""

    model_config = ConfigDict(frozen=True)

    songwriters: list[str] = Field(default_factory=list)
    producers: list[str] = Field(default_factory=list)
    publisher: str | None = None
    spotify_streams: int | None = None
    youtube_views: int | None = None
    # Percentage change between the two most recent stream data points.
    stream_velocity: float | None = None
