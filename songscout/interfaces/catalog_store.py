"""Abstract base class for the catalog store.

The catalog holds everything the fetch and enrichment pipelines read and
write: tracked playlists, weekly track rows, songwriter profiles with
their aliases and track links, external artist links and derived
contacts.

Two invariants are the store's responsibility, not the caller's:

- ``SongwriterProfile.normalized_name`` is computed from ``name`` on every
  write; callers never pass it.
- Inserts that would violate a uniqueness constraint (track dedup key,
  track/songwriter pair, normalized alias) are silent no-ops that report
  whether a row was written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from songscout.models.playlist import CompletenessRecord, TrackedPlaylist
from songscout.models.songwriter import (
    Contact,
    ContactStage,
    ExternalArtistLink,
    SongwriterAlias,
    SongwriterProfile,
    TrackSongwriter,
)
from songscout.models.track import Track


class ICatalogStore(ABC):
    """Contract for catalog persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist."""

    # -- Playlists ---------------------------------------------------------

    @abstractmethod
    async def upsert_playlist(self, playlist: TrackedPlaylist) -> None:
        """Insert or update a tracked playlist's identity fields."""

    @abstractmethod
    async def get_playlist(self, playlist_id: str) -> TrackedPlaylist | None:
        """Return the tracked playlist with *playlist_id*, if any."""

    @abstractmethod
    async def list_playlists(self, is_editorial: bool | None = None) -> list[TrackedPlaylist]:
        """List tracked playlists, optionally filtered by editorial flag."""

    @abstractmethod
    async def update_playlist_completeness(
        self,
        record: CompletenessRecord,
        curator: str | None = None,
        followers: int | None = None,
    ) -> None:
        """Store the latest fetch completeness on the playlist row.

        ``curator`` and ``followers`` overwrite the stored values only
        when not ``None``.
        """

    # -- Tracks ------------------------------------------------------------

    @abstractmethod
    async def get_week_track_keys(self, week: str) -> set[tuple[str, str]]:
        """Return ``(playlist_id, spotify_url)`` for every track in *week*."""

    @abstractmethod
    async def insert_tracks(self, tracks: list[Track]) -> list[str]:
        """Insert *tracks* in one transaction.

        Rows whose ``(week, playlist_id, spotify_url)`` already exists are
        skipped.

        Returns
        -------
        list[str]
            IDs of the rows actually inserted.

        Raises
        ------
        songscout.utils.errors.PersistenceError
            If the transaction fails; nothing is written in that case.
        """

    @abstractmethod
    async def get_track(self, track_id: str) -> Track | None:
        """Return one track by ID."""

    @abstractmethod
    async def save_track_enrichment(self, track: Track) -> None:
        """Write back the enrichment-derived columns of *track*.

        Covers credits, publisher, streaming metrics, score and
        ``enrichment_status``; identity and placement columns never change.
        """

    @abstractmethod
    async def get_songwriter_tracks(self, songwriter_id: str) -> list[Track]:
        """Return every track linked to *songwriter_id*."""

    # -- Profiles and aliases ---------------------------------------------

    @abstractmethod
    async def create_profile(
        self, name: str, external_ids: dict[str, Any] | None = None
    ) -> SongwriterProfile:
        """Create a profile; ``normalized_name`` is derived here."""

    @abstractmethod
    async def get_profile(self, songwriter_id: str) -> SongwriterProfile | None:
        """Return one profile by ID."""

    @abstractmethod
    async def find_profile_by_name(self, name: str) -> SongwriterProfile | None:
        """Case-insensitive exact lookup on ``name``."""

    @abstractmethod
    async def find_profiles_by_normalized_name(self, normalized: str) -> list[SongwriterProfile]:
        """Indexed equality lookup on ``normalized_name``."""

    @abstractmethod
    async def list_profiles(self) -> list[SongwriterProfile]:
        """Return every profile, oldest first."""

    @abstractmethod
    async def update_profile_total_tracks(self, songwriter_id: str, total_tracks: int) -> None:
        """Store the aggregate track count on a profile."""

    @abstractmethod
    async def set_profile_external_id(self, songwriter_id: str, source: str, external_id: str) -> bool:
        """Record *external_id* under ``external_ids[source]``.

        An id already stored for *source* is kept; returns ``True`` only
        when the profile was updated.
        """

    @abstractmethod
    async def find_alias(self, alias: str) -> SongwriterAlias | None:
        """Look up an alias by exact (case-insensitive) text or normalized form."""

    @abstractmethod
    async def insert_alias(self, songwriter_id: str, alias: str) -> SongwriterAlias | None:
        """Insert an alias for *songwriter_id*.

        Returns ``None`` without writing when the normalized alias already
        exists, whichever profile it points to.
        """

    # -- Links -------------------------------------------------------------

    @abstractmethod
    async def insert_track_songwriter(self, link: TrackSongwriter) -> bool:
        """Insert a track/songwriter link; ``False`` if the pair already exists."""

    @abstractmethod
    async def get_track_songwriters(self, track_id: str) -> list[TrackSongwriter]:
        """Return the links recorded for *track_id*."""

    @abstractmethod
    async def get_cowriter_ids(self, songwriter_id: str) -> list[str]:
        """Distinct profiles sharing at least one track with *songwriter_id*."""

    @abstractmethod
    async def add_external_artist_link(self, link: ExternalArtistLink) -> None:
        """Attach a verified external artist identity to a track."""

    @abstractmethod
    async def get_external_artist_links(self, track_id: str) -> list[ExternalArtistLink]:
        """Return *track_id*'s external links, resolved to profiles by name."""

    # -- Contacts ----------------------------------------------------------

    @abstractmethod
    async def get_contact(self, songwriter_id: str) -> Contact | None:
        """Return the contact for *songwriter_id*, if one exists."""

    @abstractmethod
    async def upsert_contact(self, contact: Contact) -> None:
        """Insert or refresh a contact's derived fields.

        An existing row keeps its ``stage``.
        """

    @abstractmethod
    async def set_contact_stage(self, songwriter_id: str, stage: ContactStage) -> None:
        """Operator stage transition."""

    # -- Reporting ---------------------------------------------------------

    @abstractmethod
    async def get_catalog_counts(self, unsigned_threshold: int) -> dict[str, int]:
        """Return counts for the dashboard.

        Keys: ``tracks``, ``unsigned_candidates`` (tracks scoring at least
        *unsigned_threshold*), ``profiles``, ``contacts``.
        """
