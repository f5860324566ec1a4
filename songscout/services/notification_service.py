"""Operator-facing notifications persisted for the dashboard.

Thin service over :class:`SQLiteNotificationStore` plus two convenience
constructors for the events the pipeline itself raises: fetch batch
completion and enrichment job completion.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from songscout.models.notification import SystemNotification
from songscout.models.playlist import BatchFetchResult
from songscout.providers.storage.sqlite_notification_store import SQLiteNotificationStore
from songscout.utils.logging import get_logger

FETCH_COMPLETE = "fetch_complete"
ENRICHMENT_COMPLETE = "enrichment_complete"


class NotificationService:
    """Creates, lists and prunes system notifications."""

    def __init__(self, store: SQLiteNotificationStore) -> None:
        self._store = store
        self._logger = get_logger(__name__)

    async def create(
        self,
        type: str,  # noqa: A002
        title: str,
        message: str,
        playlist_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SystemNotification:
        notification = SystemNotification(
            id=uuid.uuid4().hex,
            type=type,
            title=title,
            message=message,
            playlist_id=playlist_id,
            metadata=metadata or {},
            created_at=datetime.now(tz=timezone.utc),  # noqa: UP017
        )
        await self._store.insert(notification)
        self._logger.info("notification_created", type=type, title=title)
        return notification

    async def unread(self, limit: int = 50) -> list[SystemNotification]:
        return await self._store.list_notifications(unread_only=True, limit=limit)

    async def list_all(self, limit: int = 50) -> list[SystemNotification]:
        return await self._store.list_notifications(limit=limit)

    async def unread_count(self) -> int:
        return await self._store.count_unread()

    async def mark_read(self, notification_id: str) -> bool:
        return await self._store.mark_read(notification_id)

    async def mark_all_read(self) -> int:
        return await self._store.mark_all_read()

    async def clear_older_than(self, days: int) -> int:
        """Delete notifications created more than *days* days ago."""
        cutoff = datetime.now(tz=timezone.utc) - timedelta(days=days)  # noqa: UP017
        return await self._store.delete_older_than(cutoff)

    # ------------------------------------------------------------------
    # Pipeline events
    # ------------------------------------------------------------------

    async def notify_fetch_complete(self, result: BatchFetchResult) -> SystemNotification:
        incomplete = [c.name for c in result.completeness if not c.is_complete]
        message = (
            f"{result.tracks_inserted} new tracks from {result.playlists_succeeded} playlists"
            f" ({result.playlists_failed} failed)."
        )
        if incomplete:
            message += f" Incomplete: {', '.join(incomplete[:5])}"
            if len(incomplete) > 5:
                message += f" and {len(incomplete) - 5} more"
        return await self.create(
            type=FETCH_COMPLETE,
            title=f"Playlist fetch complete for {result.week}",
            message=message,
            metadata={
                "week": result.week,
                "tracks_inserted": result.tracks_inserted,
                "playlists_succeeded": result.playlists_succeeded,
                "playlists_failed": result.playlists_failed,
                "job_id": result.job_id,
            },
        )

    async def notify_enrichment_complete(
        self,
        job_id: str,
        enriched: int,
        errors: int,
        total: int,
        playlist_id: str | None = None,
    ) -> SystemNotification:
        message = f"Enriched {enriched} of {total} tracks"
        if errors:
            message += f" with {errors} errors"
        return await self.create(
            type=ENRICHMENT_COMPLETE,
            title="Enrichment complete",
            message=message + ".",
            playlist_id=playlist_id,
            metadata={"job_id": job_id, "enriched": enriched, "errors": errors, "total": total},
        )
