"""Chartmetric provider implementing ITrackProvider.

Chartmetric exchanges a long-lived refresh token for a short-lived bearer
token (``POST /token``) and wraps every response payload in an ``obj``
envelope.  Besides playlist listings it is the pipeline's only source of
songwriter credits and stream history, exposed through
:meth:`ChartmetricProvider.fetch_track_enrichment` for the worker.

Rate limiting is not done here: callers wrap every call in the shared
Chartmetric :class:`~songscout.utils.rate_limiter.IntervalRateLimiter`.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from songscout.config.settings import Settings
from songscout.interfaces.track_provider import ITrackProvider, ProviderFetch
from songscout.models.playlist import TrackedPlaylist
from songscout.models.track import TrackEnrichment, TrackRecord
from songscout.utils.credit_normalizer import process_credit_entries
from songscout.utils.errors import (
    ProviderAuthError,
    ProviderUnavailableError,
    RateLimitError,
    SongScoutError,
)
from songscout.utils.logging import get_logger

# Refresh at 90% of the advertised lifetime so a token never expires mid-batch.
_TOKEN_LIFETIME_FRACTION = 0.9


class ChartmetricProvider(ITrackProvider):
    """Playlist tracks, credits and stream stats from the Chartmetric API.

    Parameters
    ----------
    settings:
        Provides ``chartmetric_refresh_token`` and ``chartmetric_base_url``.
    http_client:
        Shared ``httpx.AsyncClient``; injected so tests can mount a
        ``MockTransport``.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._refresh_token = settings.chartmetric_refresh_token
        self._base_url = settings.chartmetric_base_url.rstrip("/")
        self._http = http_client
        self._token: str | None = None
        self._token_expires_at: float = 0.0
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Auth + transport
    # ------------------------------------------------------------------

    async def _get_token(self) -> str:
        """Return a cached bearer token, refreshing it when stale."""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        if not self._refresh_token:
            raise ProviderAuthError(
                message="CHARTMETRIC_REFRESH_TOKEN is not configured",
                provider_name=self.get_provider_name(),
            )

        try:
            response = await self._http.post(
                f"{self._base_url}/token",
                json={"refreshtoken": self._refresh_token},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderAuthError(
                message=f"Chartmetric token exchange failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        token = data.get("token")
        if not token:
            raise ProviderAuthError(
                message="Chartmetric token response carried no token",
                provider_name=self.get_provider_name(),
            )
        expires_in = float(data.get("expires_in", 3600))
        self._token = token
        self._token_expires_at = time.monotonic() + expires_in * _TOKEN_LIFETIME_FRACTION
        self._logger.info("chartmetric_authenticated", expires_in=expires_in)
        return token

    def invalidate_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    async def _get(self, path: str) -> Any:
        """GET *path* and return the unwrapped ``obj`` payload."""
        token = await self._get_token()
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Chartmetric request to {path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            raise RateLimitError(
                message=f"Chartmetric rate limit hit on {path}",
                provider_name=self.get_provider_name(),
            )
        if response.status_code == 401:
            self.invalidate_token()
            raise ProviderAuthError(
                message=f"Chartmetric rejected the bearer token on {path}",
                provider_name=self.get_provider_name(),
            )
        try:
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailableError(
                message=f"Chartmetric returned {response.status_code} for {path}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise ProviderUnavailableError(
                message=f"Chartmetric returned invalid JSON for {path}",
                provider_name=self.get_provider_name(),
            ) from exc

        if isinstance(data, dict) and "obj" in data:
            return data["obj"]
        return data

    # ------------------------------------------------------------------
    # ITrackProvider implementation
    # ------------------------------------------------------------------

    async def fetch_tracks(self, playlist: TrackedPlaylist) -> ProviderFetch:
        """List the current tracks of a Spotify playlist via Chartmetric."""
        payload = await self._get(f"/playlist/spotify/{playlist.playlist_id}/current/tracks")
        items = payload if isinstance(payload, list) else (payload or {}).get("tracks", [])

        records: list[TrackRecord] = []
        for item in items:
            record = self._parse_track(item)
            if record is not None:
                records.append(record)

        self._logger.debug(
            "chartmetric_playlist_fetched",
            playlist_id=playlist.playlist_id,
            track_count=len(records),
        )
        return ProviderFetch(records=records, total_tracks=len(records))

    @staticmethod
    def _parse_track(item: dict[str, Any]) -> TrackRecord | None:
        spotify_id = item.get("spotify_track_id") or item.get("spotify_id")
        if isinstance(spotify_id, list):
            spotify_id = spotify_id[0] if spotify_id else None
        if not spotify_id or not item.get("name"):
            return None

        artists = item.get("artists") or []
        if artists and isinstance(artists[0], dict):
            artist_names = [a.get("name", "") for a in artists if a.get("name")]
        elif artists:
            artist_names = [str(a) for a in artists]
        else:
            artist_names = list(item.get("artist_names") or [])

        album = item.get("album") or {}
        chartmetric_id = item.get("cm_track") or item.get("id")
        return TrackRecord(
            track_name=item["name"],
            artists=artist_names,
            spotify_url=f"https://open.spotify.com/track/{spotify_id}",
            album_art=album.get("image_url") or item.get("image_url"),
            isrc=item.get("isrc") or None,
            label=item.get("label") or None,
            chartmetric_id=str(chartmetric_id) if chartmetric_id else None,
        )

    def get_provider_name(self) -> str:
        return "chartmetric"

    def is_available(self) -> bool:
        return bool(self._refresh_token)

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    async def fetch_track_enrichment(self, chartmetric_id: str) -> TrackEnrichment:
        """Look up credits and streaming stats for one track.

        Parameters
        ----------
        chartmetric_id:
            Chartmetric's numeric track ID (stored on ``Track.chartmetric_id``).

        Returns
        -------
        TrackEnrichment
            Cleaned songwriter/producer names plus Spotify and YouTube
            numbers.  YouTube stats are optional and a failure there does
            not fail the lookup.
        """
        metadata = await self._get(f"/track/{chartmetric_id}") or {}
        songwriters = process_credit_entries(self._credit_names(metadata, "songwriters", "composer_name"))
        producers = process_credit_entries(self._credit_names(metadata, "producers", "producer_name"))

        spotify_points = await self._get(f"/track/{chartmetric_id}/spotify/stats")
        streams, velocity = self._stream_velocity(spotify_points)

        youtube_views: int | None = None
        try:
            youtube_points = await self._get(f"/track/{chartmetric_id}/youtube/stats")
        except SongScoutError as exc:
            self._logger.debug("chartmetric_youtube_stats_unavailable", chartmetric_id=chartmetric_id, error=str(exc))
        else:
            if isinstance(youtube_points, list) and youtube_points:
                youtube_views = youtube_points[-1].get("value")

        return TrackEnrichment(
            songwriters=songwriters,
            producers=producers,
            publisher=metadata.get("publisher") or None,
            spotify_streams=streams,
            youtube_views=youtube_views,
            stream_velocity=velocity,
        )

    @staticmethod
    def _credit_names(metadata: dict[str, Any], list_key: str, text_key: str) -> list[str]:
        """Collect credit names from either a list field or a free-text field."""
        entries = metadata.get(list_key) or []
        names = [e.get("name", "") if isinstance(e, dict) else str(e) for e in entries]
        if not names and metadata.get(text_key):
            names = [str(metadata[text_key])]
        return names

    @staticmethod
    def _stream_velocity(points: Any) -> tuple[int | None, float | None]:
        """Latest stream count and percent change from the previous data point."""
        if not isinstance(points, list) or not points:
            return None, None
        latest = points[-1].get("value")
        if len(points) < 2:
            return latest, None
        previous = points[-2].get("value")
        if latest is None or not previous:
            return latest, None
        return latest, round((latest - previous) / previous * 100, 2)
