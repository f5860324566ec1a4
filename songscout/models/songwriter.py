"""Songwriter identity models: profiles, aliases, track links, contacts."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConfidenceSource(str, Enum):  # noqa: UP042
    """Which matching tier produced a track-songwriter link."""

    EXACT_ID_MATCH = "exact-id-match"
    EXACT_NAME_MATCH = "exact-name-match"
    NORMALIZED_FUZZY_MATCH = "normalized-fuzzy-match"
    MANUAL_OVERRIDE = "manual-override"


class ContactStage(str, Enum):  # noqa: UP042
    """Funnel stage; the only hand-edited field on a contact."""

    DISCOVERY = "discovery"
    WATCH = "watch"
    SEARCH = "search"
    ENGAGED = "engaged"
    SIGNED = "signed"


class SongwriterProfile(BaseModel):
    """A resolved real-world songwriter identity.

    ``normalized_name`` is always derived from ``name`` by the store
    (:func:`songscout.utils.name_matching.normalize_songwriter_name`).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    normalized_name: str
    external_ids: dict[str, Any] = Field(default_factory=dict)
    total_tracks: int = 0
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class SongwriterAlias(BaseModel):
    """An alternate spelling mapped to exactly one profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    songwriter_id: str
    alias: str
    normalized_alias: str


class TrackSongwriter(BaseModel):
    """Link between a track and a profile, tagged with its match tier."""

    model_config = ConfigDict(frozen=True)

    track_id: str
    songwriter_id: str
    confidence_source: ConfidenceSource
    source_text: str


class ExternalArtistLink(BaseModel):
    """A verified artist identity attached to a track by an identity provider.

    ``songwriter_id`` / ``songwriter_name`` are filled in by the store when
    a profile with the same (case-insensitive) name exists.
    """

    model_config = ConfigDict(frozen=True)

    track_id: str
    artist_name: str
    external_id: str
    songwriter_id: str | None = None
    songwriter_name: str | None = None


class Contact(BaseModel):
    """Derived aggregate for one songwriter profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    songwriter_id: str
    unsigned_score: int = 0
    score_confidence: str = "low"
    collab_count: int = 0
    total_tracks: int = 0
    total_streams: int = 0
    stage: ContactStage = ContactStage.DISCOVERY
    musicbrainz_searched: bool = False
    musicbrainz_found: bool = False
    mlc_searched: bool = False
    mlc_found: bool = False
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
