"""Spotify Web API provider implementing ITrackProvider.

Uses the client-credentials flow, so it can read any public user or
algorithmic playlist but *not* platform-curated editorial playlists; the
orchestrator never puts it in an editorial chain.  It is also the only
source of ISRCs for tracks that came in through the editorial scraper,
via :meth:`SpotifyProvider.backfill_isrc`.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from songscout.config.settings import Settings
from songscout.interfaces.track_provider import ITrackProvider, ProviderFetch
from songscout.models.playlist import TrackedPlaylist
from songscout.models.track import TrackRecord
from songscout.utils.errors import ProviderAuthError, ProviderUnavailableError, RateLimitError
from songscout.utils.logging import get_logger

_TOKEN_URL = "https://accounts.spotify.com/api/token"
_API_BASE = "https://api.spotify.com/v1"
_PAGE_SIZE = 100
_TRACKS_BATCH_SIZE = 50
_TOKEN_LIFETIME_FRACTION = 0.9


class SpotifyProvider(ITrackProvider):
    """Playlist listings and ISRC lookups from the Spotify Web API.

    Parameters
    ----------
    settings:
        Provides ``spotify_client_id`` and ``spotify_client_secret``.
    http_client:
        Shared ``httpx.AsyncClient``.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._client_id = settings.spotify_client_id
        self._client_secret = settings.spotify_client_secret
        self._http = http_client
        self._token: str | None = None
        self._token_expires_at: float = 0.0
        self._logger = get_logger(__name__)

    async def _get_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        if not self.is_available():
            raise ProviderAuthError(
                message="Spotify client credentials are not configured",
                provider_name=self.get_provider_name(),
            )
        try:
            response = await self._http.post(
                _TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderAuthError(
                message=f"Spotify token request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise ProviderAuthError(
                message="Spotify token response carried no access_token",
                provider_name=self.get_provider_name(),
            )
        self._token = token
        self._token_expires_at = time.monotonic() + float(data.get("expires_in", 3600)) * _TOKEN_LIFETIME_FRACTION
        return token

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        token = await self._get_token()
        try:
            response = await self._http.get(
                f"{_API_BASE}{path}",
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Spotify request to {path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            raise RateLimitError(
                message=f"Spotify rate limit hit on {path} (retry-after {response.headers.get('Retry-After', '?')}s)",
                provider_name=self.get_provider_name(),
            )
        if response.status_code == 401:
            self._token = None
            raise ProviderAuthError(
                message=f"Spotify rejected the access token on {path}",
                provider_name=self.get_provider_name(),
            )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailableError(
                message=f"Spotify returned {response.status_code} for {path}",
                provider_name=self.get_provider_name(),
            ) from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderUnavailableError(
                message=f"Spotify returned a non-JSON body for {path}",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderUnavailableError(
                message=f"Spotify returned an unexpected payload for {path}",
                provider_name=self.get_provider_name(),
            )
        return payload

    # ------------------------------------------------------------------
    # ITrackProvider implementation
    # ------------------------------------------------------------------

    async def fetch_tracks(self, playlist: TrackedPlaylist) -> ProviderFetch:
        """Page through ``/playlists/{id}/tracks`` 100 items at a time."""
        meta = await self._get(
            f"/playlists/{playlist.playlist_id}",
            params={"fields": "name,owner(display_name),followers(total),tracks(total)"},
        )
        total = (meta.get("tracks") or {}).get("total")

        records: list[TrackRecord] = []
        offset = 0
        while True:
            page = await self._get(
                f"/playlists/{playlist.playlist_id}/tracks",
                params={"limit": _PAGE_SIZE, "offset": offset},
            )
            items = page.get("items") or []
            for item in items:
                record = self._parse_item(item)
                if record is not None:
                    records.append(record)
            offset += _PAGE_SIZE
            if not page.get("next") or not items:
                break

        self._logger.debug(
            "spotify_playlist_fetched",
            playlist_id=playlist.playlist_id,
            track_count=len(records),
            reported_total=total,
        )
        return ProviderFetch(
            records=records,
            total_tracks=total,
            curator=(meta.get("owner") or {}).get("display_name"),
            followers=(meta.get("followers") or {}).get("total"),
        )

    @staticmethod
    def _parse_item(item: dict[str, Any]) -> TrackRecord | None:
        track = item.get("track") or {}
        # Local files and removed tracks come back with a null id.
        if not track.get("id"):
            return None
        images = (track.get("album") or {}).get("images") or []
        url = (track.get("external_urls") or {}).get("spotify") or f"https://open.spotify.com/track/{track['id']}"
        return TrackRecord(
            track_name=track.get("name", ""),
            artists=[a.get("name", "") for a in track.get("artists") or [] if a.get("name")],
            spotify_url=url,
            album_art=images[0].get("url") if images else None,
            isrc=(track.get("external_ids") or {}).get("isrc"),
        )

    def get_provider_name(self) -> str:
        return "spotify_api"

    def is_available(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def supports_editorial(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # ISRC backfill
    # ------------------------------------------------------------------

    async def backfill_isrc(self, records: list[TrackRecord]) -> list[TrackRecord]:
        """Fill in missing ISRCs using ``GET /tracks?ids=`` in batches of 50.

        Records that already carry an ISRC, or whose URL has no track ID,
        are returned untouched.  Order is preserved.
        """
        missing = [r.spotify_track_id for r in records if not r.isrc and r.spotify_track_id]
        if not missing:
            return records

        found: dict[str, str] = {}
        for start in range(0, len(missing), _TRACKS_BATCH_SIZE):
            batch = missing[start:start + _TRACKS_BATCH_SIZE]
            data = await self._get("/tracks", params={"ids": ",".join(batch)})
            for track in data.get("tracks") or []:
                if not track:
                    continue
                isrc = (track.get("external_ids") or {}).get("isrc")
                if isrc:
                    found[track["id"]] = isrc

        self._logger.info("isrc_backfill_complete", requested=len(missing), recovered=len(found))
        return [
            r.model_copy(update={"isrc": found[r.spotify_track_id]})
            if not r.isrc and r.spotify_track_id in found
            else r
            for r in records
        ]
