"""Unsigned-likelihood scoring for tracks and songwriter contacts.

# ─── HOW SCORING WORKS ────────────────────────────────────────────────
#
# Two rubrics, both pure functions of their inputs (no I/O):
#
#   score_track(TrackFacts)      -- flat additive rubric, used for the
#                                   provisional score at fetch time and
#                                   again after enrichment.
#   score_contact(ContactFacts)  -- six categories over a songwriter's
#                                   whole catalog.
#
# Every contribution is a ScoreSignal with a fixed weight.  Totals are
# sums, so evaluation order never changes the number, and the result is
# clamped to [0, 10] and rounded to an int.
#
# MAJOR_LABEL carries no points but is the one disqualifying fact:
# summarize() checks for it before writing any prose, so a high raw score
# can never produce a "prime candidate" summary for a major-label act.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from songscout.config.label_knowledge import DISCOVERY_PLAYLIST_KEYWORDS
from songscout.models.scoring import (
    MAJOR_LABEL_SIGNAL,
    CategoryComment,
    CategoryScore,
    ContactFacts,
    ContactTrackFacts,
    LabelTier,
    Priority,
    ScoreResult,
    ScoreSignal,
    ScoringCommentary,
    TrackFacts,
)
from songscout.services.label_classifier import classify_label, classify_labels
from songscout.utils.name_matching import names_loosely_equal

# Track rubric weights.
MISSING_PUBLISHER_WEIGHT = 5
MISSING_SONGWRITER_WEIGHT = 3
SELF_WRITTEN_DISCOVERY_WEIGHT = 3
SELF_WRITTEN_INDIE_WEIGHT = 2
VELOCITY_HIGH_WEIGHT = 2
VELOCITY_MEDIUM_WEIGHT = 1
VELOCITY_HIGH_PCT = 50.0
VELOCITY_MEDIUM_PCT = 20.0

MAX_SCORE = 10

_PUBLISHING = "Publishing Status"
_RELEASE_PATHWAY = "Release Pathway"
_EARLY_CAREER = "Early Career Signals"
_METADATA = "Metadata Quality"
_CATALOG = "Catalog Patterns"
_VERIFICATION = "Profile Verification"

_TIER_SIGNALS = {
    LabelTier.DIY: "DIY_DISTRIBUTION",
    LabelTier.INDIE: "INDEPENDENT_DISTRIBUTOR",
    LabelTier.MAJOR_DISTRIBUTION: "MAJOR_DISTRIBUTION",
    LabelTier.MAJOR: MAJOR_LABEL_SIGNAL,
    LabelTier.UNKNOWN: "UNKNOWN_LABEL",
}


def _blank(value: object) -> bool:
    return value is None or value == "" or value == "[]"


def _clamp(raw: float) -> int:
    return max(0, min(MAX_SCORE, round(raw)))


class ScoringEngine:
    """Computes scores and rules-based commentary.

    Parameters
    ----------
    discovery_keywords:
        Playlist-name fragments marking a discovery playlist
        (case-insensitive substring match).
    """

    def __init__(self, discovery_keywords: list[str] | tuple[str, ...] | None = None) -> None:
        keywords = discovery_keywords or DISCOVERY_PLAYLIST_KEYWORDS
        self._discovery_keywords = tuple(k.lower() for k in keywords)

    def is_discovery_playlist(self, playlist_name: str | None) -> bool:
        if not playlist_name:
            return False
        lowered = playlist_name.lower()
        return any(k in lowered for k in self._discovery_keywords)

    # ------------------------------------------------------------------
    # Track rubric
    # ------------------------------------------------------------------

    def score_track(self, facts: TrackFacts) -> ScoreResult:
        """Score a single track from its currently known metadata."""
        signals: list[ScoreSignal] = []

        if _blank(facts.publisher):
            signals.append(ScoreSignal(
                signal="MISSING_PUBLISHER",
                weight=MISSING_PUBLISHER_WEIGHT,
                description="No publisher on record",
            ))
        if _blank(facts.songwriter):
            signals.append(ScoreSignal(
                signal="MISSING_SONGWRITER",
                weight=MISSING_SONGWRITER_WEIGHT,
                description="No songwriter credits on record",
            ))

        self_written = bool(
            facts.artist_name
            and facts.songwriter
            and names_loosely_equal(facts.artist_name, facts.songwriter)
        )
        if self_written and self.is_discovery_playlist(facts.playlist_name):
            signals.append(ScoreSignal(
                signal="SELF_WRITTEN_DISCOVERY",
                weight=SELF_WRITTEN_DISCOVERY_WEIGHT,
                description=f"Artist wrote the song and it sits on {facts.playlist_name}",
            ))

        if facts.label:
            label = classify_label(facts.label, facts.artist_name)
            if label.tier is LabelTier.MAJOR:
                signals.append(ScoreSignal(
                    signal=MAJOR_LABEL_SIGNAL,
                    weight=0,
                    description=label.reasoning,
                ))
            elif (
                self_written
                and label.tier in (LabelTier.DIY, LabelTier.INDIE)
                and label.confidence != "low"
            ):
                signals.append(ScoreSignal(
                    signal="SELF_WRITTEN_INDIE",
                    weight=SELF_WRITTEN_INDIE_WEIGHT,
                    description=f"Self-written release via {facts.label}",
                ))

        if facts.wow_growth_pct is not None:
            if facts.wow_growth_pct > VELOCITY_HIGH_PCT:
                signals.append(ScoreSignal(
                    signal="STREAM_VELOCITY_HIGH",
                    weight=VELOCITY_HIGH_WEIGHT,
                    description=f"Streams up {facts.wow_growth_pct:.0f}% week over week",
                ))
            elif facts.wow_growth_pct > VELOCITY_MEDIUM_PCT:
                signals.append(ScoreSignal(
                    signal="STREAM_VELOCITY_MEDIUM",
                    weight=VELOCITY_MEDIUM_WEIGHT,
                    description=f"Streams up {facts.wow_growth_pct:.0f}% week over week",
                ))

        raw = sum(s.weight for s in signals)
        return ScoreResult(
            score=_clamp(raw),
            raw_score=raw,
            confidence="high" if len(signals) >= 3 else "medium" if signals else "low",
            signals=sorted(signals, key=lambda s: s.weight, reverse=True),
        )

    # ------------------------------------------------------------------
    # Contact rubric
    # ------------------------------------------------------------------

    def score_contact(self, facts: ContactFacts) -> ScoreResult:
        """Score a songwriter across their whole catalog."""
        if not facts.tracks:
            return ScoreResult(score=0, raw_score=0.0, confidence="low")

        categories = [
            self._publishing_status(facts.tracks),
            self._release_pathway(facts.tracks, facts.songwriter_name),
            self._early_career(facts.tracks),
            self._metadata_quality(facts.tracks),
            self._catalog_patterns(facts),
            self._profile_verification(facts),
        ]
        raw = sum(c.score for c in categories)
        with_signals = sum(1 for c in categories if c.signals)
        if with_signals >= 4:
            confidence = "high"
        elif with_signals >= 2:
            confidence = "medium"
        else:
            confidence = "low"

        signals = [s for c in categories for s in c.signals]
        return ScoreResult(
            score=_clamp(raw),
            raw_score=round(raw, 2),
            confidence=confidence,
            signals=sorted(signals, key=lambda s: s.weight, reverse=True),
            categories=categories,
        )

    @staticmethod
    def _publishing_status(tracks: list[ContactTrackFacts]) -> CategoryScore:
        max_score = 4.0
        if all(_blank(t.publisher) for t in tracks):
            return CategoryScore(
                category=_PUBLISHING,
                score=max_score,
                max_score=max_score,
                signals=[ScoreSignal(
                    signal="NO_PUBLISHER",
                    weight=max_score,
                    description="No publisher metadata across all tracks",
                )],
            )
        return CategoryScore(category=_PUBLISHING, score=0.0, max_score=max_score)

    @staticmethod
    def _release_pathway(tracks: list[ContactTrackFacts], name: str | None) -> CategoryScore:
        classification = classify_labels([t.label for t in tracks], name)
        return CategoryScore(
            category=_RELEASE_PATHWAY,
            score=float(classification.score),
            max_score=3.0,
            signals=[ScoreSignal(
                signal=_TIER_SIGNALS[classification.tier],
                weight=float(classification.score),
                description=classification.reasoning,
            )],
        )

    def _early_career(self, tracks: list[ContactTrackFacts]) -> CategoryScore:
        max_score = 2.0
        if any(self.is_discovery_playlist(t.playlist_name) for t in tracks):
            return CategoryScore(
                category=_EARLY_CAREER,
                score=max_score,
                max_score=max_score,
                signals=[ScoreSignal(
                    signal="DISCOVERY_PLAYLIST",
                    weight=max_score,
                    description="Appears on a discovery playlist",
                )],
            )
        return CategoryScore(category=_EARLY_CAREER, score=0.0, max_score=max_score)

    @staticmethod
    def metadata_completeness(track: ContactTrackFacts) -> float:
        """Percentage of the nine rights/metadata fields that are filled in."""
        fields = [
            track.isrc, track.label, track.songwriter, track.publisher,
            track.administrators, track.ipi_number, track.iswc,
            track.spotify_streams, track.release_date,
        ]
        filled = sum(1 for f in fields if not _blank(f))
        return filled / len(fields) * 100

    def _metadata_quality(self, tracks: list[ContactTrackFacts]) -> CategoryScore:
        average = sum(self.metadata_completeness(t) for t in tracks) / len(tracks)
        if average < 25:
            score, signal = 1.0, "COMPLETENESS_UNDER_25"
        elif average < 50:
            score, signal = 0.7, "COMPLETENESS_25_50"
        elif average < 75:
            score, signal = 0.5, "COMPLETENESS_50_75"
        else:
            score, signal = 0.0, "COMPLETENESS_75_PLUS"
        return CategoryScore(
            category=_METADATA,
            score=score,
            max_score=1.0,
            signals=[ScoreSignal(
                signal=signal,
                weight=score,
                description=f"Average data completeness: {average:.0f}%",
            )],
        )

    @staticmethod
    def _catalog_patterns(facts: ContactFacts) -> CategoryScore:
        signals: list[ScoreSignal] = []
        independent = 0
        for track in facts.tracks:
            result = classify_label(track.label, facts.songwriter_name)
            if result.score >= 2 and result.confidence != "low":
                independent += 1
        share = independent / len(facts.tracks) * 100
        if share > 50:
            signals.append(ScoreSignal(
                signal="UNSIGNED_DISTRIBUTION_PATTERN",
                weight=0.5,
                description=f"{share:.0f}% DIY/indie releases",
            ))
        if facts.peer_unsigned_ratio is not None and facts.peer_unsigned_ratio > 0.5:
            signals.append(ScoreSignal(
                signal="UNSIGNED_COWRITERS",
                weight=0.5,
                description=f"{facts.peer_unsigned_ratio:.0%} of co-writers look unsigned",
            ))
        return CategoryScore(
            category=_CATALOG,
            score=sum(s.weight for s in signals),
            max_score=1.0,
            signals=signals,
        )

    @staticmethod
    def _profile_verification(facts: ContactFacts) -> CategoryScore:
        if facts.musicbrainz_found:
            return CategoryScore(
                category=_VERIFICATION,
                score=0.5,
                max_score=0.5,
                signals=[ScoreSignal(
                    signal="MUSICBRAINZ_PRESENT",
                    weight=0.5,
                    description="Verified via MusicBrainz",
                )],
            )
        return CategoryScore(category=_VERIFICATION, score=0.0, max_score=0.5)

    # ------------------------------------------------------------------
    # Commentary
    # ------------------------------------------------------------------

    def summarize(self, result: ScoreResult) -> ScoringCommentary:
        """Produce priority and prose for *result*.

        The major-label check runs first; when it fires, priority is LOW
        and every line reflects a likely-signed act regardless of how many
        positive signals are present.
        """
        comments = [
            CategoryComment(
                category=c.category,
                comment=_category_comment(c),
                score=c.score,
                max_score=c.max_score,
            )
            for c in result.categories
        ]

        if result.has_major_label:
            return ScoringCommentary(
                top_line="Likely signed: major-label release metadata on record.",
                opportunity_note="Deprioritise outreach and confirm publishing status before any approach.",
                priority=Priority.LOW,
                likely_signed=True,
                category_comments=comments,
            )

        return ScoringCommentary(
            top_line=_top_line(result.score),
            opportunity_note=_opportunity_note(result),
            priority=_priority(result.score),
            category_comments=comments,
        )


def _priority(score: int) -> Priority:
    if score >= 8:
        return Priority.HIGH
    if score >= 5:
        return Priority.MEDIUM
    return Priority.LOW


def _top_line(score: int) -> str:
    if score >= 9:
        return "High-upside unsigned candidate with clean rights and early traction."
    if score >= 7:
        return "Strong emerging profile with promising independent signals."
    if score >= 5:
        return "Developing writer with potential; worth monitoring for growth."
    if score >= 3:
        return "Mid-stage prospect with some unsigned indicators."
    return "Fewer immediate indicators; long-term watch."


def _opportunity_note(result: ScoreResult) -> str:
    names = {s.signal for s in result.signals}
    by_category = {c.category: c for c in result.categories}

    no_publisher = bool(names & {"NO_PUBLISHER", "MISSING_PUBLISHER"})
    pathway = by_category.get(_RELEASE_PATHWAY)
    independent = (pathway is not None and pathway.score >= 2) or "SELF_WRITTEN_INDIE" in names
    early = bool(names & {"DISCOVERY_PLAYLIST", "SELF_WRITTEN_DISCOVERY"})

    if no_publisher and independent:
        return "Prime outreach candidate: rights are open and the writer operates independently."
    if independent and early:
        return "Strong mid-stage prospect: reachable through indie channels with visible momentum."
    if no_publisher or independent:
        return "Good writer to monitor: indicators suggest independent operation."
    if result.score >= 4:
        return "Developing talent worth tracking."
    return "Indicator-based monitoring recommended."


def _category_comment(category: CategoryScore) -> str:
    signal = category.signals[0].signal if category.signals else None
    full = category.score == category.max_score and category.score > 0

    if category.category == _PUBLISHING:
        return "No songs are currently represented." if full else "Some works are already represented."
    if category.category == _RELEASE_PATHWAY:
        return {
            "DIY_DISTRIBUTION": "Fully independent release strategy.",
            "INDEPENDENT_DISTRIBUTOR": "Backed by an indie distributor or label.",
            "MAJOR_DISTRIBUTION": "Major-owned distribution detected.",
            MAJOR_LABEL_SIGNAL: "Major label backing confirmed.",
        }.get(signal or "", "Label information unclear.")
    if category.category == _EARLY_CAREER:
        return "Discovery-playlist exposure confirmed." if full else "No discovery playlists yet."
    if category.category == _METADATA:
        return {
            "COMPLETENESS_UNDER_25": "Sparse rights metadata, typical of unrepresented writers.",
            "COMPLETENESS_25_50": "Partial rights metadata.",
            "COMPLETENESS_50_75": "Moderate rights metadata coverage.",
        }.get(signal or "", "Rich rights metadata; likely administered.")
    if category.category == _CATALOG:
        if full:
            return "Consistent independence across the catalog and co-writers."
        return "Catalog shows some independent patterns." if category.score > 0 else "No clear catalog pattern."
    if category.category == _VERIFICATION:
        return "Profile verified via MusicBrainz." if full else "No external verification."
    return "No data available."
