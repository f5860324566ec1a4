"""songscout domain models: re-exports all public model classes.

The models are organized by domain concern:
    - playlist.py      -- Tracked playlists, fetch completeness, batch results
    - track.py         -- Provider records, stored tracks, enrichment data
    - songwriter.py    -- Profiles, aliases, track links, contacts
    - job.py           -- Enrichment jobs and their status machine
    - scoring.py       -- Scoring inputs, signals, results, commentary
    - notification.py  -- Persisted system notifications
"""

from __future__ import annotations

from songscout.models.job import ENRICH_TRACKS, EnrichmentJob, JobStatus
from songscout.models.notification import SystemNotification
from songscout.models.playlist import (
    BatchFetchResult,
    CompletenessRecord,
    FetchMode,
    TrackedPlaylist,
)
from songscout.models.scoring import (
    MAJOR_LABEL_SIGNAL,
    CategoryComment,
    CategoryScore,
    ContactFacts,
    ContactTrackFacts,
    LabelClassification,
    LabelTier,
    Priority,
    ScoreResult,
    ScoreSignal,
    ScoringCommentary,
    TrackFacts,
)
from songscout.models.songwriter import (
    ConfidenceSource,
    Contact,
    ContactStage,
    ExternalArtistLink,
    SongwriterAlias,
    SongwriterProfile,
    TrackSongwriter,
)
from songscout.models.track import EnrichmentStatus, Track, TrackEnrichment, TrackRecord

__all__ = [
    "BatchFetchResult",
    "CategoryComment",
    "CategoryScore",
    "CompletenessRecord",
    "ConfidenceSource",
    "Contact",
    "ContactFacts",
    "ContactStage",
    "ContactTrackFacts",
    "ENRICH_TRACKS",
    "EnrichmentJob",
    "EnrichmentStatus",
    "ExternalArtistLink",
    "FetchMode",
    "JobStatus",
    "LabelClassification",
    "LabelTier",
    "MAJOR_LABEL_SIGNAL",
    "Priority",
    "ScoreResult",
    "ScoreSignal",
    "ScoringCommentary",
    "SongwriterAlias",
    "SongwriterProfile",
    "SystemNotification",
    "Track",
    "TrackEnrichment",
    "TrackFacts",
    "TrackRecord",
    "TrackSongwriter",
    "TrackedPlaylist",
]
