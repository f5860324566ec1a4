"""Pydantic request/response schemas for the songscout API.

Request schemas end with "Request", response schemas with "Response".
Domain models (``BatchFetchResult``, ``SystemNotification``) are reused
where the API shape is the domain shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from songscout.models.job import EnrichmentJob
from songscout.models.notification import SystemNotification
from songscout.models.playlist import FetchMode


class FetchPlaylistsRequest(BaseModel):
    """Which tracked playlists to fetch."""

    mode: FetchMode = FetchMode.ALL
    playlist_id: str | None = Field(default=None, description="Required when mode is 'specific'")


class EnqueueJobRequest(BaseModel):
    """Track IDs to enrich.  An empty list is rejected with 400."""

    track_ids: list[str] = Field(default_factory=list)
    playlist_id: str | None = None


class JobResponse(BaseModel):
    """Enrichment job status as seen by the dashboard."""

    id: str
    type: str
    status: str
    progress: int
    total_tracks: int
    enriched_tracks: int
    error_count: int
    playlist_id: str | None = None
    logs: list[str] = Field(default_factory=list)
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_job(cls, job: EnrichmentJob) -> JobResponse:
        return cls(
            id=job.id,
            type=job.type,
            status=job.status.value,
            progress=job.progress,
            total_tracks=job.total_tracks,
            enriched_tracks=job.enriched_tracks,
            error_count=job.error_count,
            playlist_id=job.playlist_id,
            logs=list(job.logs),
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )


class MetricsResponse(BaseModel):
    """Dashboard summary counts."""

    tracks: int = 0
    unsigned_candidates: int = 0
    profiles: int = 0
    contacts: int = 0
    jobs: dict[str, int] = Field(default_factory=dict)
    generated_at: str | None = None


class NotificationListResponse(BaseModel):
    notifications: list[SystemNotification] = Field(default_factory=list)
    unread_count: int = 0


class MarkReadResponse(BaseModel):
    updated: int


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
    worker_running: bool = False
    next_scheduled_fetch: datetime | None = None
    websocket_connections: int = 0


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
