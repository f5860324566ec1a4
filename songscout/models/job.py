"""Enrichment job model and its status state machine.

    queued ──claim──> running ──complete──> completed | failed
       ^                 │
       └──── recover ────┘   (process restart)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

ENRICH_TRACKS = "enrich-tracks"


class JobStatus(str, Enum):  # noqa: UP042
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class EnrichmentJob(BaseModel):
    """A unit of queued enrichment work over a list of track IDs."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str = ENRICH_TRACKS
    track_ids: list[str] = Field(default_factory=list)
    playlist_id: str | None = None
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    total_tracks: int = 0
    enriched_tracks: int = 0
    error_count: int = 0
    # Append-only, human-readable; never machine-parsed.
    logs: list[str] = Field(default_factory=list)
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)
