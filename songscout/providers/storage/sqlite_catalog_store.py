"""SQLite-backed catalog store.

Persists tracked playlists, weekly track rows, songwriter profiles,
aliases, track/songwriter links, external artist links and contacts to a
local SQLite database (``data/songscout.db`` by default).  Uses
``aiosqlite`` for async I/O with one connection per operation.

Uniqueness lives in the schema, not in application code:

    tracks               UNIQUE (week, playlist_id, spotify_url)
    songwriter_aliases   UNIQUE (normalized_alias)
    track_songwriters    PRIMARY KEY (track_id, songwriter_id)
    contacts             UNIQUE (songwriter_id)

and every insert against those tables is ``ON CONFLICT DO NOTHING`` so a
re-run of the same enrichment job writes nothing new.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from songscout.interfaces.catalog_store import ICatalogStore
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
from songscout.utils.errors import PersistenceError
from songscout.utils.name_matching import normalize_songwriter_name

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/songscout.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS playlists (
    playlist_id      TEXT PRIMARY KEY,
    name             TEXT    NOT NULL,
    is_editorial     INTEGER NOT NULL DEFAULT 0,
    curator          TEXT,
    followers        INTEGER,
    last_fetch_count INTEGER,
    total_tracks     INTEGER,
    is_complete      INTEGER,
    fetch_method     TEXT,
    last_checked     TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS tracks (
    id                TEXT PRIMARY KEY,
    week              TEXT    NOT NULL,
    playlist_id       TEXT    NOT NULL,
    playlist_name     TEXT    NOT NULL,
    track_name        TEXT    NOT NULL,
    artist_name       TEXT    NOT NULL,
    spotify_url       TEXT    NOT NULL,
    album_art         TEXT,
    isrc              TEXT,
    label             TEXT,
    publisher         TEXT,
    songwriter        TEXT,
    producer          TEXT,
    enrichment_status TEXT    NOT NULL DEFAULT 'pending',
    spotify_streams   INTEGER,
    youtube_views     INTEGER,
    wow_growth_pct    REAL,
    unsigned_score    INTEGER NOT NULL DEFAULT 0,
    data_source       TEXT,
    chartmetric_id    TEXT,
    added_at          TEXT    NOT NULL,
    UNIQUE (week, playlist_id, spotify_url)
);
""",
    """\
CREATE TABLE IF NOT EXISTS songwriter_profiles (
    id              TEXT PRIMARY KEY,
    name            TEXT    NOT NULL,
    normalized_name TEXT    NOT NULL,
    external_ids    TEXT    NOT NULL DEFAULT '{}',
    total_tracks    INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS songwriter_aliases (
    id               TEXT PRIMARY KEY,
    songwriter_id    TEXT NOT NULL REFERENCES songwriter_profiles(id),
    alias            TEXT NOT NULL,
    normalized_alias TEXT NOT NULL UNIQUE
);
""",
    """\
CREATE TABLE IF NOT EXISTS track_songwriters (
    track_id          TEXT NOT NULL REFERENCES tracks(id),
    songwriter_id     TEXT NOT NULL REFERENCES songwriter_profiles(id),
    confidence_source TEXT NOT NULL,
    source_text       TEXT NOT NULL,
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    PRIMARY KEY (track_id, songwriter_id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS external_artist_links (
    track_id    TEXT NOT NULL REFERENCES tracks(id),
    artist_name TEXT NOT NULL,
    external_id TEXT NOT NULL,
    PRIMARY KEY (track_id, external_id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS contacts (
    id                   TEXT PRIMARY KEY,
    songwriter_id        TEXT    NOT NULL UNIQUE REFERENCES songwriter_profiles(id),
    unsigned_score       INTEGER NOT NULL DEFAULT 0,
    score_confidence     TEXT    NOT NULL DEFAULT 'low',
    collab_count         INTEGER NOT NULL DEFAULT 0,
    total_tracks         INTEGER NOT NULL DEFAULT 0,
    total_streams        INTEGER NOT NULL DEFAULT 0,
    stage                TEXT    NOT NULL DEFAULT 'discovery',
    musicbrainz_searched INTEGER NOT NULL DEFAULT 0,
    musicbrainz_found    INTEGER NOT NULL DEFAULT 0,
    mlc_searched         INTEGER NOT NULL DEFAULT 0,
    mlc_found            INTEGER NOT NULL DEFAULT 0,
    updated_at           TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_tracks_week ON tracks(week);",
    "CREATE INDEX IF NOT EXISTS idx_profiles_normalized ON songwriter_profiles(normalized_name);",
    "CREATE INDEX IF NOT EXISTS idx_profiles_name_nocase ON songwriter_profiles(name COLLATE NOCASE);",
    "CREATE INDEX IF NOT EXISTS idx_aliases_songwriter ON songwriter_aliases(songwriter_id);",
    "CREATE INDEX IF NOT EXISTS idx_track_songwriters_songwriter ON track_songwriters(songwriter_id);",
]

_UPSERT_PLAYLIST_SQL = """\
INSERT INTO playlists (playlist_id, name, is_editorial, curator, followers)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(playlist_id) DO UPDATE SET
    name = excluded.name,
    is_editorial = excluded.is_editorial,
    curator = COALESCE(excluded.curator, playlists.curator),
    followers = COALESCE(excluded.followers, playlists.followers);
"""

_SELECT_PLAYLISTS_SQL = "SELECT * FROM playlists"

_UPDATE_COMPLETENESS_SQL = """\
UPDATE playlists SET
    last_fetch_count = ?,
    total_tracks = ?,
    is_complete = ?,
    fetch_method = ?,
    last_checked = ?,
    curator = COALESCE(?, curator),
    followers = COALESCE(?, followers)
WHERE playlist_id = ?;
"""

_TRACK_COLUMNS = (
    "id", "week", "playlist_id", "playlist_name", "track_name", "artist_name",
    "spotify_url", "album_art", "isrc", "label", "publisher", "songwriter",
    "producer", "enrichment_status", "spotify_streams", "youtube_views",
    "wow_growth_pct", "unsigned_score", "data_source", "chartmetric_id", "added_at",
)

_INSERT_TRACK_SQL = (
    f"INSERT INTO tracks ({', '.join(_TRACK_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _TRACK_COLUMNS)}) "
    "ON CONFLICT(week, playlist_id, spotify_url) DO NOTHING;"
)

_SELECT_WEEK_KEYS_SQL = "SELECT playlist_id, spotify_url FROM tracks WHERE week = ?;"

_UPDATE_TRACK_ENRICHMENT_SQL = """\
UPDATE tracks SET
    isrc = ?,
    label = ?,
    publisher = ?,
    songwriter = ?,
    producer = ?,
    enrichment_status = ?,
    spotify_streams = ?,
    youtube_views = ?,
    wow_growth_pct = ?,
    unsigned_score = ?
WHERE id = ?;
"""

_SELECT_SONGWRITER_TRACKS_SQL = """\
SELECT t.* FROM tracks t
JOIN track_songwriters ts ON ts.track_id = t.id
WHERE ts.songwriter_id = ?
ORDER BY t.added_at;
"""

_INSERT_PROFILE_SQL = """\
INSERT INTO songwriter_profiles (id, name, normalized_name, external_ids, total_tracks, created_at)
VALUES (?, ?, ?, ?, 0, ?);
"""

_INSERT_ALIAS_SQL = """\
INSERT INTO songwriter_aliases (id, songwriter_id, alias, normalized_alias)
VALUES (?, ?, ?, ?)
ON CONFLICT(normalized_alias) DO NOTHING;
"""

_FIND_ALIAS_SQL = """\
SELECT id, songwriter_id, alias, normalized_alias FROM songwriter_aliases
WHERE alias = ? COLLATE NOCASE OR normalized_alias = ?
LIMIT 1;
"""

_INSERT_LINK_SQL = """\
INSERT INTO track_songwriters (track_id, songwriter_id, confidence_source, source_text)
VALUES (?, ?, ?, ?)
ON CONFLICT(track_id, songwriter_id) DO NOTHING;
"""

_SELECT_COWRITERS_SQL = """\
SELECT DISTINCT b.songwriter_id
FROM track_songwriters a
JOIN track_songwriters b ON a.track_id = b.track_id AND b.songwriter_id != a.songwriter_id
WHERE a.songwriter_id = ?;
"""

_INSERT_EXTERNAL_LINK_SQL = """\
INSERT INTO external_artist_links (track_id, artist_name, external_id)
VALUES (?, ?, ?)
ON CONFLICT(track_id, external_id) DO NOTHING;
"""

_SELECT_EXTERNAL_LINKS_SQL = """\
SELECT l.track_id, l.artist_name, l.external_id,
       p.id AS songwriter_id, p.name AS songwriter_name
FROM external_artist_links l
LEFT JOIN songwriter_profiles p ON p.name = l.artist_name COLLATE NOCASE
WHERE l.track_id = ?
ORDER BY p.created_at;
"""

_SET_PROFILE_EXTERNAL_ID_SQL = """\
UPDATE songwriter_profiles
SET external_ids = json_set(external_ids, ?, ?)
WHERE id = ? AND json_extract(external_ids, ?) IS NULL;
"""

_UPSERT_CONTACT_SQL = """\
INSERT INTO contacts (
    id, songwriter_id, unsigned_score, score_confidence, collab_count,
    total_tracks, total_streams, stage, musicbrainz_searched, musicbrainz_found,
    mlc_searched, mlc_found, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(songwriter_id) DO UPDATE SET
    unsigned_score = excluded.unsigned_score,
    score_confidence = excluded.score_confidence,
    collab_count = excluded.collab_count,
    total_tracks = excluded.total_tracks,
    total_streams = excluded.total_streams,
    musicbrainz_searched = excluded.musicbrainz_searched,
    musicbrainz_found = excluded.musicbrainz_found,
    mlc_searched = excluded.mlc_searched,
    mlc_found = excluded.mlc_found,
    updated_at = excluded.updated_at;
"""

_COUNT_SQL = {
    "tracks": ("SELECT COUNT(*) FROM tracks;", ()),
    "profiles": ("SELECT COUNT(*) FROM songwriter_profiles;", ()),
    "contacts": ("SELECT COUNT(*) FROM contacts;", ()),
}


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class SQLiteCatalogStore(ICatalogStore):
    """SQLite-backed catalog persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create all catalog tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("catalog_db_initialized", path=str(self._db_path))

    async def _fetch_all(self, sql: str, params: tuple | list = ()) -> list[aiosqlite.Row]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            return list(await cursor.fetchall())

    async def _fetch_one(self, sql: str, params: tuple | list = ()) -> aiosqlite.Row | None:
        rows = await self._fetch_all(sql, params)
        return rows[0] if rows else None

    async def _execute(self, sql: str, params: tuple | list = ()) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(sql, params)
            await db.commit()
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Row mappers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_playlist(row: aiosqlite.Row) -> TrackedPlaylist:
        data = dict(row)
        data["is_complete"] = None if data["is_complete"] is None else bool(data["is_complete"])
        data["is_editorial"] = bool(data["is_editorial"])
        return TrackedPlaylist(**data)

    @staticmethod
    def _row_to_track(row: aiosqlite.Row) -> Track:
        return Track(**{k: row[k] for k in _TRACK_COLUMNS})

    @staticmethod
    def _row_to_profile(row: aiosqlite.Row) -> SongwriterProfile:
        data = dict(row)
        data["external_ids"] = json.loads(data["external_ids"] or "{}")
        return SongwriterProfile(**data)

    @staticmethod
    def _row_to_contact(row: aiosqlite.Row) -> Contact:
        data = dict(row)
        for flag in ("musicbrainz_searched", "musicbrainz_found", "mlc_searched", "mlc_found"):
            data[flag] = bool(data[flag])
        return Contact(**data)

    # ------------------------------------------------------------------
    # Playlists
    # ------------------------------------------------------------------

    async def upsert_playlist(self, playlist: TrackedPlaylist) -> None:
        await self._execute(
            _UPSERT_PLAYLIST_SQL,
            (
                playlist.playlist_id,
                playlist.name,
                int(playlist.is_editorial),
                playlist.curator,
                playlist.followers,
            ),
        )

    async def get_playlist(self, playlist_id: str) -> TrackedPlaylist | None:
        row = await self._fetch_one(f"{_SELECT_PLAYLISTS_SQL} WHERE playlist_id = ?;", (playlist_id,))
        return self._row_to_playlist(row) if row else None

    async def list_playlists(self, is_editorial: bool | None = None) -> list[TrackedPlaylist]:
        if is_editorial is None:
            rows = await self._fetch_all(f"{_SELECT_PLAYLISTS_SQL} ORDER BY name;")
        else:
            rows = await self._fetch_all(
                f"{_SELECT_PLAYLISTS_SQL} WHERE is_editorial = ? ORDER BY name;",
                (int(is_editorial),),
            )
        return [self._row_to_playlist(r) for r in rows]

    async def update_playlist_completeness(
        self,
        record: CompletenessRecord,
        curator: str | None = None,
        followers: int | None = None,
    ) -> None:
        await self._execute(
            _UPDATE_COMPLETENESS_SQL,
            (
                record.fetch_count,
                record.total_tracks,
                int(record.is_complete),
                record.fetch_method,
                _now(),
                curator,
                followers,
                record.playlist_id,
            ),
        )

    # ------------------------------------------------------------------
    # Tracks
    # ------------------------------------------------------------------

    async def get_week_track_keys(self, week: str) -> set[tuple[str, str]]:
        rows = await self._fetch_all(_SELECT_WEEK_KEYS_SQL, (week,))
        return {(r["playlist_id"], r["spotify_url"]) for r in rows}

    async def insert_tracks(self, tracks: list[Track]) -> list[str]:
        """Insert *tracks* atomically; duplicates on the week key are skipped."""
        if not tracks:
            return []
        inserted: list[str] = []
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for track in tracks:
                    values = track.model_dump()
                    values["enrichment_status"] = track.enrichment_status.value
                    values["added_at"] = _iso(track.added_at)
                    cursor = await db.execute(_INSERT_TRACK_SQL, [values[c] for c in _TRACK_COLUMNS])
                    if cursor.rowcount:
                        inserted.append(track.id)
                await db.commit()
        except aiosqlite.Error as exc:
            logger.error("track_insert_failed", count=len(tracks), error=str(exc))
            raise PersistenceError(message=f"Failed to insert {len(tracks)} tracks: {exc}") from exc

        logger.info("tracks_inserted", requested=len(tracks), inserted=len(inserted))
        return inserted

    async def get_track(self, track_id: str) -> Track | None:
        row = await self._fetch_one("SELECT * FROM tracks WHERE id = ?;", (track_id,))
        return self._row_to_track(row) if row else None

    async def save_track_enrichment(self, track: Track) -> None:
        await self._execute(
            _UPDATE_TRACK_ENRICHMENT_SQL,
            (
                track.isrc,
                track.label,
                track.publisher,
                track.songwriter,
                track.producer,
                track.enrichment_status.value,
                track.spotify_streams,
                track.youtube_views,
                track.wow_growth_pct,
                track.unsigned_score,
                track.id,
            ),
        )

    async def get_songwriter_tracks(self, songwriter_id: str) -> list[Track]:
        rows = await self._fetch_all(_SELECT_SONGWRITER_TRACKS_SQL, (songwriter_id,))
        return [self._row_to_track(r) for r in rows]

    # ------------------------------------------------------------------
    # Profiles and aliases
    # ------------------------------------------------------------------

    async def create_profile(
        self, name: str, external_ids: dict[str, Any] | None = None
    ) -> SongwriterProfile:
        profile = SongwriterProfile(
            id=uuid.uuid4().hex,
            name=name.strip(),
            normalized_name=normalize_songwriter_name(name),
            external_ids=external_ids or {},
        )
        await self._execute(
            _INSERT_PROFILE_SQL,
            (
                profile.id,
                profile.name,
                profile.normalized_name,
                json.dumps(profile.external_ids),
                _iso(profile.created_at),
            ),
        )
        logger.info("songwriter_profile_created", songwriter_id=profile.id, name=profile.name)
        return profile

    async def get_profile(self, songwriter_id: str) -> SongwriterProfile | None:
        row = await self._fetch_one("SELECT * FROM songwriter_profiles WHERE id = ?;", (songwriter_id,))
        return self._row_to_profile(row) if row else None

    async def find_profile_by_name(self, name: str) -> SongwriterProfile | None:
        row = await self._fetch_one(
            "SELECT * FROM songwriter_profiles WHERE name = ? COLLATE NOCASE ORDER BY created_at LIMIT 1;",
            (name.strip(),),
        )
        return self._row_to_profile(row) if row else None

    async def find_profiles_by_normalized_name(self, normalized: str) -> list[SongwriterProfile]:
        if not normalized:
            return []
        rows = await self._fetch_all(
            "SELECT * FROM songwriter_profiles WHERE normalized_name = ? ORDER BY created_at;",
            (normalized,),
        )
        return [self._row_to_profile(r) for r in rows]

    async def list_profiles(self) -> list[SongwriterProfile]:
        rows = await self._fetch_all("SELECT * FROM songwriter_profiles ORDER BY created_at;")
        return [self._row_to_profile(r) for r in rows]

    async def update_profile_total_tracks(self, songwriter_id: str, total_tracks: int) -> None:
        await self._execute(
            "UPDATE songwriter_profiles SET total_tracks = ? WHERE id = ?;",
            (total_tracks, songwriter_id),
        )

    async def set_profile_external_id(self, songwriter_id: str, source: str, external_id: str) -> bool:
        path = f"$.{source}"
        updated = await self._execute(_SET_PROFILE_EXTERNAL_ID_SQL, (path, external_id, songwriter_id, path)) > 0
        if updated:
            logger.info("profile_external_id_set", songwriter_id=songwriter_id, source=source)
        return updated

    async def find_alias(self, alias: str) -> SongwriterAlias | None:
        row = await self._fetch_one(_FIND_ALIAS_SQL, (alias.strip(), normalize_songwriter_name(alias)))
        return SongwriterAlias(**dict(row)) if row else None

    async def insert_alias(self, songwriter_id: str, alias: str) -> SongwriterAlias | None:
        normalized = normalize_songwriter_name(alias)
        if not normalized:
            return None
        record = SongwriterAlias(
            id=uuid.uuid4().hex,
            songwriter_id=songwriter_id,
            alias=alias.strip(),
            normalized_alias=normalized,
        )
        rowcount = await self._execute(
            _INSERT_ALIAS_SQL,
            (record.id, record.songwriter_id, record.alias, record.normalized_alias),
        )
        return record if rowcount else None

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def insert_track_songwriter(self, link: TrackSongwriter) -> bool:
        rowcount = await self._execute(
            _INSERT_LINK_SQL,
            (link.track_id, link.songwriter_id, link.confidence_source.value, link.source_text),
        )
        return bool(rowcount)

    async def get_track_songwriters(self, track_id: str) -> list[TrackSongwriter]:
        rows = await self._fetch_all(
            "SELECT track_id, songwriter_id, confidence_source, source_text "
            "FROM track_songwriters WHERE track_id = ? ORDER BY created_at;",
            (track_id,),
        )
        return [TrackSongwriter(**dict(r)) for r in rows]

    async def get_cowriter_ids(self, songwriter_id: str) -> list[str]:
        rows = await self._fetch_all(_SELECT_COWRITERS_SQL, (songwriter_id,))
        return [r["songwriter_id"] for r in rows]

    async def add_external_artist_link(self, link: ExternalArtistLink) -> None:
        await self._execute(_INSERT_EXTERNAL_LINK_SQL, (link.track_id, link.artist_name, link.external_id))

    async def get_external_artist_links(self, track_id: str) -> list[ExternalArtistLink]:
        rows = await self._fetch_all(_SELECT_EXTERNAL_LINKS_SQL, (track_id,))
        links: dict[str, ExternalArtistLink] = {}
        for row in rows:
            # Oldest profile wins when several share the name.
            links.setdefault(row["external_id"], ExternalArtistLink(**dict(row)))
        return list(links.values())

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def get_contact(self, songwriter_id: str) -> Contact | None:
        row = await self._fetch_one("SELECT * FROM contacts WHERE songwriter_id = ?;", (songwriter_id,))
        return self._row_to_contact(row) if row else None

    async def upsert_contact(self, contact: Contact) -> None:
        await self._execute(
            _UPSERT_CONTACT_SQL,
            (
                contact.id,
                contact.songwriter_id,
                contact.unsigned_score,
                contact.score_confidence,
                contact.collab_count,
                contact.total_tracks,
                contact.total_streams,
                contact.stage.value,
                int(contact.musicbrainz_searched),
                int(contact.musicbrainz_found),
                int(contact.mlc_searched),
                int(contact.mlc_found),
                _iso(contact.updated_at),
            ),
        )

    async def set_contact_stage(self, songwriter_id: str, stage: ContactStage) -> None:
        await self._execute(
            "UPDATE contacts SET stage = ?, updated_at = ? WHERE songwriter_id = ?;",
            (stage.value, _now(), songwriter_id),
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def get_catalog_counts(self, unsigned_threshold: int) -> dict[str, int]:
        queries = dict(_COUNT_SQL)
        queries["unsigned_candidates"] = (
            "SELECT COUNT(*) FROM tracks WHERE unsigned_score >= ?;",
            (unsigned_threshold,),
        )
        counts: dict[str, int] = {}
        async with aiosqlite.connect(str(self._db_path)) as db:
            for key, (sql, params) in queries.items():
                cursor = await db.execute(sql, params)
                row = await cursor.fetchone()
                counts[key] = row[0] if row else 0
        return counts

    def get_provider_name(self) -> str:
        return "sqlite_catalog"
