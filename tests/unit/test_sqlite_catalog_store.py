"""Unit tests for SQLiteCatalogStore against a temporary database."""

from __future__ import annotations

import pytest

from songscout.models.playlist import CompletenessRecord, TrackedPlaylist
from songscout.models.songwriter import (
    ConfidenceSource,
    Contact,
    ContactStage,
    ExternalArtistLink,
    TrackSongwriter,
)
from songscout.models.track import EnrichmentStatus, Track
from songscout.providers.storage.sqlite_catalog_store import SQLiteCatalogStore


def _track(track_id: str, url: str = "https://open.spotify.com/track/a", week: str = "2024-W10", **kw) -> Track:
    data = {
        "id": track_id,
        "week": week,
        "playlist_id": "pl1",
        "playlist_name": "Fresh Finds",
        "track_name": "Song",
        "artist_name": "Jane Doe",
        "spotify_url": url,
    }
    data.update(kw)
    return Track(**data)


# ─── Initialization ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_initialize_is_idempotent(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.initialize()
    assert catalog_store.get_provider_name() == "sqlite_catalog"


# ─── Playlists ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_playlists_filter_by_editorial(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.upsert_playlist(TrackedPlaylist(playlist_id="ed", name="B Editorial", is_editorial=True))
    await catalog_store.upsert_playlist(TrackedPlaylist(playlist_id="al", name="A Algorithmic"))

    assert [p.playlist_id for p in await catalog_store.list_playlists()] == ["al", "ed"]
    assert [p.playlist_id for p in await catalog_store.list_playlists(is_editorial=True)] == ["ed"]
    assert [p.playlist_id for p in await catalog_store.list_playlists(is_editorial=False)] == ["al"]


@pytest.mark.asyncio
async def test_completeness_update(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.upsert_playlist(TrackedPlaylist(playlist_id="pl1", name="Fresh Finds"))
    record = CompletenessRecord(
        playlist_id="pl1", name="Fresh Finds", fetch_count=3, total_tracks=5, is_complete=False,
        fetch_method="chartmetric",
    )

    await catalog_store.update_playlist_completeness(record, curator="Spotify", followers=10)

    stored = await catalog_store.get_playlist("pl1")
    assert stored.last_fetch_count == 3
    assert stored.total_tracks == 5
    assert stored.is_complete is False
    assert stored.fetch_method == "chartmetric"
    assert stored.curator == "Spotify"
    assert stored.last_checked is not None


# ─── Tracks ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_insert_skips_week_duplicates(catalog_store: SQLiteCatalogStore) -> None:
    first = await catalog_store.insert_tracks([_track("t1")])
    again = await catalog_store.insert_tracks([_track("t2"), _track("t3", url="https://open.spotify.com/track/b")])
    next_week = await catalog_store.insert_tracks([_track("t4", week="2024-W11")])

    assert first == ["t1"]
    assert again == ["t3"]
    assert next_week == ["t4"]
    assert await catalog_store.get_week_track_keys("2024-W10") == {
        ("pl1", "https://open.spotify.com/track/a"),
        ("pl1", "https://open.spotify.com/track/b"),
    }


@pytest.mark.asyncio
async def test_insert_empty_list(catalog_store: SQLiteCatalogStore) -> None:
    assert await catalog_store.insert_tracks([]) == []


@pytest.mark.asyncio
async def test_save_track_enrichment(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.insert_tracks([_track("t1")])
    track = await catalog_store.get_track("t1")

    await catalog_store.save_track_enrichment(
        track.model_copy(
            update={
                "songwriter": "Jane Doe",
                "enrichment_status": EnrichmentStatus.SUCCESS,
                "unsigned_score": 6,
                "spotify_streams": 1200,
            }
        )
    )

    stored = await catalog_store.get_track("t1")
    assert stored.songwriter == "Jane Doe"
    assert stored.enrichment_status is EnrichmentStatus.SUCCESS
    assert stored.unsigned_score == 6
    assert stored.spotify_streams == 1200


# ─── Profiles, aliases, links ─────────────────────────────────────


@pytest.mark.asyncio
async def test_profile_lookup_paths(catalog_store: SQLiteCatalogStore) -> None:
    profile = await catalog_store.create_profile("  Robert Smith Jr. ")

    assert profile.name == "Robert Smith Jr."
    assert profile.normalized_name == "robert smith"
    assert (await catalog_store.find_profile_by_name("robert smith jr.")).id == profile.id
    assert [p.id for p in await catalog_store.find_profiles_by_normalized_name("robert smith")] == [profile.id]
    assert await catalog_store.find_profiles_by_normalized_name("") == []


@pytest.mark.asyncio
async def test_alias_unique_by_normalized_form(catalog_store: SQLiteCatalogStore) -> None:
    first = await catalog_store.create_profile("Jane Doe")
    second = await catalog_store.create_profile("J. Doe")

    created = await catalog_store.insert_alias(first.id, "Janie Doe")
    duplicate = await catalog_store.insert_alias(second.id, "JANIE DOE!")

    assert created is not None
    assert duplicate is None
    assert (await catalog_store.find_alias("janie doe")).songwriter_id == first.id


@pytest.mark.asyncio
async def test_track_songwriter_links_and_cowriters(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.insert_tracks([_track("t1")])
    jane = await catalog_store.create_profile("Jane Doe")
    john = await catalog_store.create_profile("John Roe")

    link = TrackSongwriter(
        track_id="t1", songwriter_id=jane.id,
        confidence_source=ConfidenceSource.EXACT_NAME_MATCH, source_text="Jane Doe",
    )
    assert await catalog_store.insert_track_songwriter(link) is True
    assert await catalog_store.insert_track_songwriter(link) is False
    await catalog_store.insert_track_songwriter(
        TrackSongwriter(
            track_id="t1", songwriter_id=john.id,
            confidence_source=ConfidenceSource.EXACT_NAME_MATCH, source_text="John Roe",
        )
    )

    assert await catalog_store.get_cowriter_ids(jane.id) == [john.id]
    assert [t.id for t in await catalog_store.get_songwriter_tracks(jane.id)] == ["t1"]
    assert len(await catalog_store.get_track_songwriters("t1")) == 2


@pytest.mark.asyncio
async def test_external_links_resolve_profile_by_name(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.insert_tracks([_track("t1")])
    jane = await catalog_store.create_profile("Jane Doe")
    await catalog_store.add_external_artist_link(
        ExternalArtistLink(track_id="t1", artist_name="jane doe", external_id="mbid-1")
    )
    await catalog_store.add_external_artist_link(
        ExternalArtistLink(track_id="t1", artist_name="Unknown", external_id="mbid-2")
    )

    links = {link.external_id: link for link in await catalog_store.get_external_artist_links("t1")}
    assert links["mbid-1"].songwriter_id == jane.id
    assert links["mbid-2"].songwriter_id is None


@pytest.mark.asyncio
async def test_profile_external_id_first_value_wins(catalog_store: SQLiteCatalogStore) -> None:
    jane = await catalog_store.create_profile("Jane Doe", external_ids={"mlc": "W123"})

    assert await catalog_store.set_profile_external_id(jane.id, "musicbrainz", "mbid-1") is True
    assert await catalog_store.set_profile_external_id(jane.id, "musicbrainz", "mbid-2") is False
    assert await catalog_store.set_profile_external_id("missing", "musicbrainz", "mbid-1") is False

    stored = await catalog_store.get_profile(jane.id)
    assert stored.external_ids == {"mlc": "W123", "musicbrainz": "mbid-1"}


# ─── Contacts and counts ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_contact_upsert_keeps_stage(catalog_store: SQLiteCatalogStore) -> None:
    jane = await catalog_store.create_profile("Jane Doe")
    await catalog_store.upsert_contact(Contact(id="c1", songwriter_id=jane.id, unsigned_score=5))
    await catalog_store.set_contact_stage(jane.id, ContactStage.WATCH)

    await catalog_store.upsert_contact(
        Contact(id="c1", songwriter_id=jane.id, unsigned_score=8, stage=ContactStage.DISCOVERY)
    )

    contact = await catalog_store.get_contact(jane.id)
    assert contact.unsigned_score == 8
    assert contact.stage is ContactStage.WATCH


@pytest.mark.asyncio
async def test_catalog_counts(catalog_store: SQLiteCatalogStore) -> None:
    await catalog_store.insert_tracks(
        [
            _track("t1", unsigned_score=8),
            _track("t2", url="https://open.spotify.com/track/b", unsigned_score=3),
        ]
    )
    await catalog_store.create_profile("Jane Doe")

    counts = await catalog_store.get_catalog_counts(unsigned_threshold=7)
    assert counts == {"tracks": 2, "profiles": 1, "contacts": 0, "unsigned_candidates": 1}
