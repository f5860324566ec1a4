"""Scoring models: input facts, weighted signals, results, commentary.

Everything here is a plain value object.  The scoring engine
(:mod:`songscout.services.scoring_engine`) is a pure function from the
``*Facts`` models to a :class:`ScoreResult`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Signal name that marks confirmed major-label metadata.  Its presence
# forces the "likely signed" commentary branch.
MAJOR_LABEL_SIGNAL = "MAJOR_LABEL"


class LabelTier(str, Enum):  # noqa: UP042
    DIY = "diy"
    INDIE = "indie"
    MAJOR_DISTRIBUTION = "major_distribution"
    MAJOR = "major"
    UNKNOWN = "unknown"


class LabelClassification(BaseModel):
    """Outcome of classifying one or more label strings."""

    model_config = ConfigDict(frozen=True)

    tier: LabelTier
    score: int
    confidence: str
    reasoning: str
    matched_keyword: str | None = None
    matched_pattern: str | None = None


class ScoreSignal(BaseModel):
    """One weighted reason contributing to a score."""

    model_config = ConfigDict(frozen=True)

    signal: str
    weight: float
    description: str


class CategoryScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    score: float
    max_score: float
    signals: list[ScoreSignal] = Field(default_factory=list)


class ScoreResult(BaseModel):
    """Total score (0-10 integer) plus the signals that produced it."""

    model_config = ConfigDict(frozen=True)

    score: int
    raw_score: float
    confidence: str = "low"
    signals: list[ScoreSignal] = Field(default_factory=list)
    categories: list[CategoryScore] = Field(default_factory=list)

    @property
    def has_major_label(self) -> bool:
        return any(s.signal == MAJOR_LABEL_SIGNAL for s in self.signals)


class TrackFacts(BaseModel):
    """What is known about a single track at scoring time."""

    model_config = ConfigDict(frozen=True)

    playlist_name: str
    artist_name: str | None = None
    label: str | None = None
    publisher: str | None = None
    songwriter: str | None = None
    wow_growth_pct: float | None = None


class ContactTrackFacts(BaseModel):
    """Per-track metadata used by the contact rubric."""

    model_config = ConfigDict(frozen=True)

    playlist_name: str | None = None
    label: str | None = None
    publisher: str | None = None
    songwriter: str | None = None
    isrc: str | None = None
    spotify_streams: int | None = None
    # Rights-metadata fields that feed the completeness percentage.
    administrators: str | None = None
    ipi_number: str | None = None
    iswc: str | None = None
    release_date: str | None = None


class ContactFacts(BaseModel):
    """Portfolio-level facts for one songwriter."""

    model_config = ConfigDict(frozen=True)

    songwriter_name: str | None = None
    tracks: list[ContactTrackFacts] = Field(default_factory=list)
    musicbrainz_found: bool = False
    # Share of co-writers whose own contact score marks them unsigned;
    # ``None`` when the songwriter has no co-writers on record.
    peer_unsigned_ratio: float | None = None


class Priority(str, Enum):  # noqa: UP042
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CategoryComment(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    comment: str
    score: float
    max_score: float


class ScoringCommentary(BaseModel):
    """Rules-based natural-language summary of a score."""

    model_config = ConfigDict(frozen=True)

    top_line: str
    opportunity_note: str
    priority: Priority
    likely_signed: bool = False
    category_comments: list[CategoryComment] = Field(default_factory=list)
