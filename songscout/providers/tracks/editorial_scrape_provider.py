"""Editorial-playlist scrape provider implementing ITrackProvider.

Platform-curated playlists cannot be read with client credentials.  This
adapter reads them one of two ways:

1. **Scraper microservice** -- when ``EDITORIAL_SCRAPER_URL`` is set, POST
   the playlist URL to ``{url}/scrape-playlist``.  The service drives a
   headless browser and returns the full track list with a reported total.
2. **Embed page** -- otherwise GET the public embed page and read the
   ``__NEXT_DATA__`` JSON blob with BeautifulSoup.  The embed page only
   carries the first ~100 tracks and no playlist total.

Neither path yields ISRCs.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
from bs4 import BeautifulSoup

from songscout.config.settings import Settings
from songscout.interfaces.track_provider import ITrackProvider, ProviderFetch
from songscout.models.playlist import TrackedPlaylist
from songscout.models.track import TrackRecord
from songscout.utils.errors import ProviderUnavailableError, RateLimitError
from songscout.utils.logging import get_logger

_EMBED_URL = "https://open.spotify.com/embed/playlist/{playlist_id}"
_USER_AGENT = "Mozilla/5.0 (compatible; songscout/0.1.0)"


class EditorialScrapeProvider(ITrackProvider):
    """Reads editorial playlists through a scraper service or the embed page."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._scraper_url = settings.editorial_scraper_url.rstrip("/")
        self._http = http_client
        self._logger = get_logger(__name__)

    async def fetch_tracks(self, playlist: TrackedPlaylist) -> ProviderFetch:
        if self._scraper_url:
            return await self._fetch_via_service(playlist)
        return await self._fetch_via_embed(playlist)

    # ------------------------------------------------------------------
    # Scraper microservice
    # ------------------------------------------------------------------

    async def _fetch_via_service(self, playlist: TrackedPlaylist) -> ProviderFetch:
        try:
            response = await self._http.post(
                f"{self._scraper_url}/scrape-playlist",
                json={"playlistUrl": playlist.url},
            )
            self._raise_for_status(response)
            data = response.json()
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Scraper service failed for {playlist.playlist_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise ProviderUnavailableError(
                message="Scraper service returned invalid JSON",
                provider_name=self.get_provider_name(),
            ) from exc

        if data.get("success") is False:
            raise ProviderUnavailableError(
                message=f"Scraper service error: {data.get('error', 'unknown')}",
                provider_name=self.get_provider_name(),
            )

        records = [
            TrackRecord(
                track_name=t["name"],
                artists=list(t.get("artists") or []),
                spotify_url=t["spotifyUrl"],
                album_art=t.get("albumArt"),
            )
            for t in data.get("tracks") or []
            if t.get("name") and t.get("spotifyUrl")
        ]
        self._logger.debug(
            "scraper_service_fetched",
            playlist_id=playlist.playlist_id,
            captured=data.get("totalCaptured", len(records)),
            reported_total=data.get("totalTracks"),
        )
        return ProviderFetch(
            records=records,
            total_tracks=data.get("totalTracks"),
            curator=data.get("curator"),
            followers=data.get("followers"),
        )

    # ------------------------------------------------------------------
    # Embed page
    # ------------------------------------------------------------------

    async def _fetch_via_embed(self, playlist: TrackedPlaylist) -> ProviderFetch:
        url = _EMBED_URL.format(playlist_id=playlist.playlist_id)
        try:
            response = await self._http.get(url, headers={"User-Agent": _USER_AGENT}, follow_redirects=True)
            self._raise_for_status(response)
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Embed page fetch failed for {playlist.playlist_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        entity = self._parse_next_data(response.text)
        records = [r for r in (self._parse_embed_track(t) for t in entity.get("trackList") or []) if r]
        self._logger.debug("embed_page_fetched", playlist_id=playlist.playlist_id, track_count=len(records))
        return ProviderFetch(records=records, curator=entity.get("subtitle") or None)

    def _parse_next_data(self, html: str) -> dict[str, Any]:
        soup = BeautifulSoup(html, "html.parser")
        script = soup.find("script", id="__NEXT_DATA__")
        if script is None or not script.string:
            raise ProviderUnavailableError(
                message="Embed page has no __NEXT_DATA__ payload",
                provider_name=self.get_provider_name(),
            )
        try:
            data = json.loads(script.string)
        except json.JSONDecodeError as exc:
            raise ProviderUnavailableError(
                message="Embed page __NEXT_DATA__ is not valid JSON",
                provider_name=self.get_provider_name(),
            ) from exc
        entity = (
            data.get("props", {})
            .get("pageProps", {})
            .get("state", {})
            .get("data", {})
            .get("entity")
        )
        return entity or {}

    @staticmethod
    def _parse_embed_track(item: dict[str, Any]) -> TrackRecord | None:
        uri = item.get("uri", "")
        if not uri.startswith("spotify:track:") or not item.get("title"):
            return None
        track_id = uri.rsplit(":", 1)[1]
        artists = [a.strip() for a in (item.get("subtitle") or "").split(",") if a.strip()]
        return TrackRecord(
            track_name=item["title"],
            artists=artists,
            spotify_url=f"https://open.spotify.com/track/{track_id}",
        )

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 429:
            raise RateLimitError(
                message="Editorial scrape rate limited",
                provider_name=self.get_provider_name(),
            )
        response.raise_for_status()

    def get_provider_name(self) -> str:
        return "editorial_scrape"

    def is_available(self) -> bool:
        return True
