"""SQLite-backed enrichment job store.

Jobs live in the same database file as the catalog by default.  The
``track_ids`` and ``logs`` columns are JSON arrays.

Connections are opened with ``isolation_level=None`` so transactions are
explicit.  :meth:`SQLiteJobStore.claim_next` runs its select-then-update
inside ``BEGIN IMMEDIATE``, which takes SQLite's RESERVED lock up front:
a second claimer blocks until the first commits and then sees the job as
``running``.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from songscout.interfaces.job_store import IJobStore
from songscout.models.job import EnrichmentJob, JobStatus

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/songscout.db")

_CREATE_JOBS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS enrichment_jobs (
    id              TEXT PRIMARY KEY,
    type            TEXT    NOT NULL,
    track_ids       TEXT    NOT NULL,
    playlist_id     TEXT,
    status          TEXT    NOT NULL,
    progress        INTEGER NOT NULL DEFAULT 0,
    total_tracks    INTEGER NOT NULL DEFAULT 0,
    enriched_tracks INTEGER NOT NULL DEFAULT 0,
    error_count     INTEGER NOT NULL DEFAULT 0,
    logs            TEXT    NOT NULL DEFAULT '[]',
    created_at      TEXT    NOT NULL,
    started_at      TEXT,
    completed_at    TEXT
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_jobs_status_created ON enrichment_jobs(status, created_at);",
]

_INSERT_JOB_SQL = """\
INSERT INTO enrichment_jobs (
    id, type, track_ids, playlist_id, status, progress, total_tracks,
    enriched_tracks, error_count, logs, created_at, started_at, completed_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_JOB_SQL = "SELECT * FROM enrichment_jobs WHERE id = ?;"

_SELECT_OLDEST_QUEUED_SQL = """\
SELECT id FROM enrichment_jobs
WHERE status = 'queued'
ORDER BY created_at, rowid
LIMIT 1;
"""

_MARK_RUNNING_SQL = """\
UPDATE enrichment_jobs SET status = 'running', started_at = ?
WHERE id = ? AND status = 'queued';
"""

_SELECT_RUNNING_SQL = "SELECT id, logs FROM enrichment_jobs WHERE status = 'running';"

_COUNT_BY_STATUS_SQL = "SELECT status, COUNT(*) AS n FROM enrichment_jobs GROUP BY status;"


class SQLiteJobStore(IJobStore):
    """SQLite-backed enrichment-job persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(str(self._db_path), isolation_level=None)

    async def initialize(self) -> None:
        """Create the enrichment_jobs table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute(_CREATE_JOBS_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
        logger.info("job_db_initialized", path=str(self._db_path))

    @staticmethod
    def _row_to_job(row: aiosqlite.Row) -> EnrichmentJob:
        data = dict(row)
        data["track_ids"] = json.loads(data["track_ids"])
        data["logs"] = json.loads(data["logs"])
        return EnrichmentJob(**data)

    async def insert_job(self, job: EnrichmentJob) -> None:
        async with self._connect() as db:
            await db.execute(
                _INSERT_JOB_SQL,
                (
                    job.id,
                    job.type,
                    json.dumps(job.track_ids),
                    job.playlist_id,
                    job.status.value,
                    job.progress,
                    job.total_tracks,
                    job.enriched_tracks,
                    job.error_count,
                    json.dumps(job.logs),
                    job.created_at.isoformat(),
                    job.started_at.isoformat() if job.started_at else None,
                    job.completed_at.isoformat() if job.completed_at else None,
                ),
            )

    async def get_job(self, job_id: str) -> EnrichmentJob | None:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_JOB_SQL, (job_id,))
            row = await cursor.fetchone()
        return self._row_to_job(row) if row else None

    async def list_jobs(self, limit: int = 50) -> list[EnrichmentJob]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM enrichment_jobs ORDER BY created_at DESC, rowid DESC LIMIT ?;",
                (limit,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_job(r) for r in rows]

    async def claim_next(self, started_at: datetime) -> EnrichmentJob | None:
        """Claim the oldest queued job inside a ``BEGIN IMMEDIATE`` transaction."""
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute(_SELECT_OLDEST_QUEUED_SQL)
                row = await cursor.fetchone()
                if row is None:
                    await db.execute("COMMIT;")
                    return None
                job_id = row["id"]
                await db.execute(_MARK_RUNNING_SQL, (started_at.isoformat(), job_id))
                cursor = await db.execute(_SELECT_JOB_SQL, (job_id,))
                claimed = await cursor.fetchone()
                await db.execute("COMMIT;")
            except aiosqlite.Error:
                await db.execute("ROLLBACK;")
                raise
        return self._row_to_job(claimed)

    async def update_progress(
        self,
        job_id: str,
        *,
        progress: int | None = None,
        enriched_tracks: int | None = None,
        error_count: int | None = None,
        log_lines: list[str] | None = None,
    ) -> bool:
        updates: dict[str, object] = {}
        if progress is not None:
            updates["progress"] = progress
        if enriched_tracks is not None:
            updates["enriched_tracks"] = enriched_tracks
        if error_count is not None:
            updates["error_count"] = error_count
        return await self._update(job_id, updates, log_lines or [])

    async def finish_job(
        self,
        job_id: str,
        status: JobStatus,
        completed_at: datetime,
        *,
        progress: int | None = None,
        log_lines: list[str] | None = None,
    ) -> bool:
        updates: dict[str, object] = {"status": status.value, "completed_at": completed_at.isoformat()}
        if progress is not None:
            updates["progress"] = progress
        return await self._update(job_id, updates, log_lines or [])

    async def _update(self, job_id: str, updates: dict[str, object], log_lines: list[str]) -> bool:
        """Apply column *updates* and append *log_lines* in one transaction."""
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute("SELECT logs FROM enrichment_jobs WHERE id = ?;", (job_id,))
                row = await cursor.fetchone()
                if row is None:
                    await db.execute("ROLLBACK;")
                    return False
                if log_lines:
                    updates = {**updates, "logs": json.dumps(json.loads(row["logs"]) + log_lines)}
                if updates:
                    assignments = ", ".join(f"{column} = ?" for column in updates)
                    await db.execute(
                        f"UPDATE enrichment_jobs SET {assignments} WHERE id = ?;",  # noqa: S608
                        (*updates.values(), job_id),
                    )
                await db.execute("COMMIT;")
            except aiosqlite.Error:
                await db.execute("ROLLBACK;")
                raise
        return True

    async def requeue_running(self, note: str) -> list[str]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute(_SELECT_RUNNING_SQL)
                rows = await cursor.fetchall()
                for row in rows:
                    logs = json.loads(row["logs"]) + [note]
                    await db.execute(
                        "UPDATE enrichment_jobs SET status = 'queued', started_at = NULL, logs = ? WHERE id = ?;",
                        (json.dumps(logs), row["id"]),
                    )
                await db.execute("COMMIT;")
            except aiosqlite.Error:
                await db.execute("ROLLBACK;")
                raise
        return [row["id"] for row in rows]

    async def count_by_status(self) -> dict[str, int]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_COUNT_BY_STATUS_SQL)
            rows = await cursor.fetchall()
        counts = {status.value: 0 for status in JobStatus}
        counts.update({row["status"]: row["n"] for row in rows})
        return counts

    def get_provider_name(self) -> str:
        return "sqlite_jobs"
