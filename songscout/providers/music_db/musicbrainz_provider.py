"""MusicBrainz provider for ISRC-to-artist lookups.

Uses the musicbrainzngs library, which is synchronous, so every call runs
in a worker thread via :func:`asyncio.to_thread`.  MusicBrainz allows one
request per second per client; callers wrap each lookup in the shared
``limiters.musicbrainz`` :class:`~songscout.utils.rate_limiter.IntervalRateLimiter`
rather than throttling here.
"""

from __future__ import annotations

import asyncio
from typing import Any

import musicbrainzngs
import structlog
from pydantic import BaseModel, ConfigDict

from songscout.config.settings import Settings
from songscout.utils.errors import ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)


class RecordingArtist(BaseModel):
    """An artist credited on a MusicBrainz recording."""

    model_config = ConfigDict(frozen=True)

    mbid: str
    name: str


class MusicBrainzProvider:
    """Resolves a track's ISRC to the MusicBrainz artists credited on it.

    No API key is required, but clients must identify themselves with a
    user-agent string built from the ``musicbrainz_*`` settings.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )
        logger.info(
            "musicbrainz_provider_initialized",
            app_name=settings.musicbrainz_app_name,
            app_version=settings.musicbrainz_app_version,
        )

    def get_provider_name(self) -> str:
        return "musicbrainz"

    def is_available(self) -> bool:
        return True

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    @staticmethod
    def _lookup_sync(isrc: str) -> dict[str, Any]:
        return musicbrainzngs.get_recordings_by_isrc(isrc, includes=["artists"])

    # -- Public API --------------------------------------------------------------

    async def lookup_isrc_artists(self, isrc: str) -> list[RecordingArtist]:
        """Return the distinct artists credited on recordings with *isrc*.

        An ISRC unknown to MusicBrainz (HTTP 404) yields an empty list.

        Raises
        ------
        ProviderUnavailableError
            On any other MusicBrainz web-service failure.
        """
        try:
            response = await asyncio.to_thread(self._lookup_sync, isrc)
        except musicbrainzngs.ResponseError as exc:
            if getattr(exc.cause, "code", None) == 404:
                logger.debug("musicbrainz_isrc_not_found", isrc=isrc)
                return []
            raise ProviderUnavailableError(
                message=f"MusicBrainz ISRC lookup failed for '{isrc}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except musicbrainzngs.WebServiceError as exc:
            raise ProviderUnavailableError(
                message=f"MusicBrainz ISRC lookup failed for '{isrc}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        artists: dict[str, RecordingArtist] = {}
        for recording in (response.get("isrc") or {}).get("recording-list", []):
            # artist-credit interleaves artist dicts with join phrases (" feat. ").
            for credit in recording.get("artist-credit", []):
                if not isinstance(credit, dict):
                    continue
                artist = credit.get("artist") or {}
                if artist.get("id") and artist.get("name"):
                    artists.setdefault(artist["id"], RecordingArtist(mbid=artist["id"], name=artist["name"]))

        logger.debug("musicbrainz_isrc_lookup", isrc=isrc, artist_count=len(artists))
        return list(artists.values())
