"""Abstract base class for playlist track providers.

A track provider turns a :class:`TrackedPlaylist` into provider-neutral
:class:`TrackRecord` objects.  Providers are mutually substitutable: the
fetch orchestrator walks an ordered chain of them per playlist type and
commits to the first one that returns a non-empty result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from songscout.models.playlist import TrackedPlaylist
from songscout.models.track import TrackRecord


@dataclass(frozen=True)
class ProviderFetch:
    """Everything a provider returned for one playlist.

    Attributes
    ----------
    records:
        The tracks, in playlist order.
    total_tracks:
        Playlist size as reported by the provider, when it reports one.
        Used by the orchestrator's completeness check; falls back to
        ``len(records)`` when ``None``.
    curator:
        Playlist owner display name, when the provider exposes it.
    followers:
        Follower count, when the provider exposes it.
    """

    records: list[TrackRecord] = field(default_factory=list)
    total_tracks: int | None = None
    curator: str | None = None
    followers: int | None = None


class ITrackProvider(ABC):
    """Contract for services that list the tracks on a playlist.

    Implementations must be safe to retry and must not mutate any local
    state other than cached auth tokens.
    """

    @abstractmethod
    async def fetch_tracks(self, playlist: TrackedPlaylist) -> ProviderFetch:
        """Fetch the current tracks on *playlist*.

        Parameters
        ----------
        playlist:
            The tracked playlist to read.

        Returns
        -------
        ProviderFetch
            Records plus provider-reported metadata.  An empty ``records``
            list is a valid return value; the orchestrator treats it as a
            miss and falls through to the next provider.

        Raises
        ------
        songscout.utils.errors.ProviderUnavailableError
            On transport or HTTP failure.
        songscout.utils.errors.RateLimitError
            When the provider answers 429.
        songscout.utils.errors.ProviderAuthError
            When a token cannot be obtained.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider's chain identifier.

        One of ``"chartmetric"``, ``"spotify_api"``, ``"editorial_scrape"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs.

        Must not perform network I/O.
        """

    def supports_editorial(self) -> bool:
        """Whether the provider can read platform-curated playlists."""
        return True
