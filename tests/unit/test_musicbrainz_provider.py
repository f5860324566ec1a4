"""Unit tests for the MusicBrainz ISRC artist lookup."""

from __future__ import annotations

import urllib.error
from unittest.mock import patch

import musicbrainzngs
import pytest

from songscout.config.settings import Settings
from songscout.providers.music_db.musicbrainz_provider import MusicBrainzProvider, RecordingArtist
from songscout.utils.errors import ProviderUnavailableError


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        musicbrainz_app_name="songscout-test",
        musicbrainz_app_version="0.1.0",
        musicbrainz_contact="test@test.com",
    )


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError("https://musicbrainz.org/ws/2/isrc/X", code, "error", None, None)


_ISRC_RESPONSE = {
    "isrc": {
        "id": "USRC17607839",
        "recording-list": [
            {
                "id": "rec-1",
                "title": "Song",
                "artist-credit": [
                    {"artist": {"id": "mb-jane", "name": "Jane Doe"}},
                    " feat. ",
                    {"artist": {"id": "mb-john", "name": "John Roe"}},
                ],
            },
            {
                "id": "rec-2",
                "title": "Song (Radio Edit)",
                "artist-credit": [{"artist": {"id": "mb-jane", "name": "Jane Doe"}}],
            },
        ],
    }
}


class TestMusicBrainzProvider:
    def test_identifies_with_user_agent(self) -> None:
        with patch.object(musicbrainzngs, "set_useragent") as set_useragent:
            provider = MusicBrainzProvider(_settings())

        set_useragent.assert_called_once_with("songscout-test", "0.1.0", "test@test.com")
        assert provider.get_provider_name() == "musicbrainz"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_lookup_returns_distinct_artists(self) -> None:
        provider = MusicBrainzProvider(_settings())
        with patch.object(musicbrainzngs, "get_recordings_by_isrc", return_value=_ISRC_RESPONSE) as lookup:
            artists = await provider.lookup_isrc_artists("USRC17607839")

        lookup.assert_called_once_with("USRC17607839", includes=["artists"])
        assert artists == [
            RecordingArtist(mbid="mb-jane", name="Jane Doe"),
            RecordingArtist(mbid="mb-john", name="John Roe"),
        ]

    @pytest.mark.asyncio
    async def test_unknown_isrc_is_empty(self) -> None:
        provider = MusicBrainzProvider(_settings())
        error = musicbrainzngs.ResponseError(cause=_http_error(404))
        with patch.object(musicbrainzngs, "get_recordings_by_isrc", side_effect=error):
            assert await provider.lookup_isrc_artists("XX0000000000") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            musicbrainzngs.ResponseError(cause=_http_error(503)),
            musicbrainzngs.NetworkError(cause=OSError("connection reset")),
        ],
    )
    async def test_service_errors_raise_unavailable(self, error: Exception) -> None:
        provider = MusicBrainzProvider(_settings())
        with (
            patch.object(musicbrainzngs, "get_recordings_by_isrc", side_effect=error),
            pytest.raises(ProviderUnavailableError, match="USRC17607839"),
        ):
            await provider.lookup_isrc_artists("USRC17607839")
