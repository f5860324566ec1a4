"""Unit tests for domain model helpers and immutability."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from songscout.models.job import EnrichmentJob, JobStatus
from songscout.models.playlist import FetchMode, TrackedPlaylist
from songscout.models.songwriter import ConfidenceSource, ContactStage
from songscout.models.track import EnrichmentStatus, Track, TrackRecord

_NOW = datetime(2024, 3, 6, tzinfo=timezone.utc)  # noqa: UP017


class TestTrackRecord:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://open.spotify.com/track/abc123", "abc123"),
            ("https://open.spotify.com/track/abc123?si=xyz", "abc123"),
            ("https://open.spotify.com/album/abc123", None),
            ("https://open.spotify.com/track/", None),
        ],
    )
    def test_spotify_track_id(self, url: str, expected: str | None) -> None:
        assert TrackRecord(track_name="Song", spotify_url=url).spotify_track_id == expected

    def test_frozen(self) -> None:
        record = TrackRecord(track_name="Song", spotify_url="https://open.spotify.com/track/a")
        with pytest.raises(ValidationError):
            record.isrc = "X"  # type: ignore[misc]


class TestTrack:
    def test_defaults_and_dedup_key(self) -> None:
        track = Track(
            id="t1",
            week="2024-W10",
            playlist_id="pl1",
            playlist_name="Fresh Finds",
            track_name="Song",
            artist_name="Jane Doe",
            spotify_url="https://open.spotify.com/track/a",
        )
        assert track.enrichment_status is EnrichmentStatus.PENDING
        assert track.unsigned_score == 0
        assert track.dedup_key == ("pl1", "https://open.spotify.com/track/a")
        assert track.added_at.tzinfo is not None


def test_playlist_url() -> None:
    playlist = TrackedPlaylist(playlist_id="37i9dQZF1DX", name="Fresh Finds")
    assert playlist.url == "https://open.spotify.com/playlist/37i9dQZF1DX"
    assert playlist.is_editorial is False


@pytest.mark.parametrize(
    ("status", "terminal"),
    [
        (JobStatus.QUEUED, False),
        (JobStatus.RUNNING, False),
        (JobStatus.COMPLETED, True),
        (JobStatus.FAILED, True),
    ],
)
def test_job_terminal_states(status: JobStatus, terminal: bool) -> None:
    assert EnrichmentJob(id="j", status=status, created_at=_NOW).is_terminal is terminal


def test_enum_wire_values() -> None:
    assert FetchMode("non-editorial") is FetchMode.NON_EDITORIAL
    assert ConfidenceSource.NORMALIZED_FUZZY_MATCH.value == "normalized-fuzzy-match"
    assert ContactStage("discovery") is ContactStage.DISCOVERY
    assert EnrichmentStatus.NOT_FOUND.value == "not_found"
