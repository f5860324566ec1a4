"""SQLite-backed system notification store.

Backs the dashboard's notification center: fetch completions, enrichment
completions and similar operator-facing events.  ``metadata`` is stored
as a JSON object.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from songscout.models.notification import SystemNotification

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/songscout.db")

_CREATE_NOTIFICATIONS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS system_notifications (
    id          TEXT PRIMARY KEY,
    type        TEXT    NOT NULL,
    title       TEXT    NOT NULL,
    message     TEXT    NOT NULL,
    playlist_id TEXT,
    metadata    TEXT    NOT NULL DEFAULT '{}',
    read        INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_notifications_read ON system_notifications(read, created_at);",
]

_INSERT_NOTIFICATION_SQL = """\
INSERT INTO system_notifications (id, type, title, message, playlist_id, metadata, read, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?);
"""


class SQLiteNotificationStore:
    """SQLite-backed notification persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the system_notifications table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_NOTIFICATIONS_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("notification_db_initialized", path=str(self._db_path))

    @staticmethod
    def _row_to_notification(row: aiosqlite.Row) -> SystemNotification:
        data = dict(row)
        data["metadata"] = json.loads(data["metadata"] or "{}")
        data["read"] = bool(data["read"])
        return SystemNotification(**data)

    async def insert(self, notification: SystemNotification) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _INSERT_NOTIFICATION_SQL,
                (
                    notification.id,
                    notification.type,
                    notification.title,
                    notification.message,
                    notification.playlist_id,
                    json.dumps(notification.metadata),
                    int(notification.read),
                    notification.created_at.isoformat(),
                ),
            )
            await db.commit()

    async def list_notifications(self, unread_only: bool = False, limit: int = 50) -> list[SystemNotification]:
        sql = "SELECT * FROM system_notifications"
        if unread_only:
            sql += " WHERE read = 0"
        sql += " ORDER BY created_at DESC LIMIT ?;"
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, (limit,))
            rows = await cursor.fetchall()
        return [self._row_to_notification(r) for r in rows]

    async def count_unread(self) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM system_notifications WHERE read = 0;")
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def mark_read(self, notification_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "UPDATE system_notifications SET read = 1 WHERE id = ?;", (notification_id,)
            )
            await db.commit()
        return bool(cursor.rowcount)

    async def mark_all_read(self) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("UPDATE system_notifications SET read = 1 WHERE read = 0;")
            await db.commit()
        return cursor.rowcount

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM system_notifications WHERE created_at < ?;", (cutoff.isoformat(),)
            )
            await db.commit()
        deleted = cursor.rowcount
        logger.info("notifications_pruned", deleted=deleted, cutoff=cutoff.isoformat())
        return deleted
