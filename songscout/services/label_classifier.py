"""Label / distributor classification into release-pathway tiers.

Classification order for a single label string:

    1. Known DIY distributor keyword          -> diy   (3, high)
    2. Major label keyword                    -> major (0, high)
    3. Major-owned distribution keyword       -> major_distribution (1, high)
    4. Known indie distributor / label        -> indie (2, high)
    5. Label contains the artist's name       -> diy   (3, medium)
    6. Explicit self-release marker           -> diy   (3, high)
    7. Generic vanity-imprint pattern         -> diy   (3, medium)
    8. Multi-word, capitalised label name     -> indie (2, medium)
    9. Anything else                          -> diy   (3, low)

Majors are checked before indies so an imprint keyword never promotes a
major release into the indie tier.
"""

from __future__ import annotations

import re

from songscout.config.label_knowledge import (
    DIY_DISTRIBUTOR_KEYWORDS,
    INDIE_DISTRIBUTOR_KEYWORDS,
    INDIE_LABEL_KEYWORDS,
    MAJOR_DISTRIBUTION_KEYWORDS,
    SELF_RELEASE_PATTERNS,
    VANITY_IMPRINT_PATTERNS,
    all_major_keywords,
)
from songscout.models.scoring import LabelClassification, LabelTier

_PUNCTUATION_RE = re.compile(r"[.,/#!$%^&*+;:{}=\-_`~()\"']")
_WHITESPACE_RE = re.compile(r"\s+")

_CONFIDENCE_RANK = {"high": 3, "medium": 2, "low": 1}


def normalize_label(label: str) -> str:
    """Lowercase, fold punctuation to spaces, collapse whitespace."""
    text = _PUNCTUATION_RE.sub(" ", label.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def _first_match(normalized: str, keywords: tuple[str, ...]) -> str | None:
    padded = f" {normalized} "
    for keyword in keywords:
        if f" {keyword} " in padded:
            return keyword
    return None


def _looks_like_real_label(label: str) -> bool:
    words = label.strip().split()
    return len(words) >= 2 and words[0][:1].isupper()


def classify_label(label: str | None, artist_name: str | None = None) -> LabelClassification:
    """Classify one label string.

    Parameters
    ----------
    label:
        Label or distributor text as it appears in track metadata.
    artist_name:
        Used for vanity-imprint detection ("Jane Doe Music").
    """
    if not label or not label.strip():
        return LabelClassification(
            tier=LabelTier.UNKNOWN,
            score=3,
            confidence="low",
            reasoning="No label metadata; defaulting to DIY",
        )

    normalized = normalize_label(label)

    keyword_checks: list[tuple[tuple[str, ...], LabelTier, int, str]] = [
        (DIY_DISTRIBUTOR_KEYWORDS, LabelTier.DIY, 3, "DIY distributor"),
        (all_major_keywords(), LabelTier.MAJOR, 0, "major label"),
        (MAJOR_DISTRIBUTION_KEYWORDS, LabelTier.MAJOR_DISTRIBUTION, 1, "major distribution"),
        (INDIE_DISTRIBUTOR_KEYWORDS + INDIE_LABEL_KEYWORDS, LabelTier.INDIE, 2, "indie distributor/label"),
    ]
    for keywords, tier, score, description in keyword_checks:
        match = _first_match(normalized, keywords)
        if match:
            return LabelClassification(
                tier=tier,
                score=score,
                confidence="high",
                reasoning=f"Matched {description}: {match}",
                matched_keyword=match,
            )

    if artist_name and len(artist_name.strip()) >= 3:
        if normalize_label(artist_name) in normalized:
            return LabelClassification(
                tier=LabelTier.DIY,
                score=3,
                confidence="medium",
                reasoning="Label contains artist name; likely vanity imprint",
                matched_pattern="artist_vanity_label",
            )

    self_release = _first_match(normalized, SELF_RELEASE_PATTERNS)
    if self_release:
        return LabelClassification(
            tier=LabelTier.DIY,
            score=3,
            confidence="high",
            reasoning=f"Explicit self-release indicator: {self_release}",
            matched_pattern=self_release,
        )

    vanity = _first_match(normalized, VANITY_IMPRINT_PATTERNS)
    if vanity:
        return LabelClassification(
            tier=LabelTier.DIY,
            score=3,
            confidence="medium",
            reasoning=f"Generic vanity label pattern: {vanity}",
            matched_pattern=vanity,
        )

    if _looks_like_real_label(label):
        return LabelClassification(
            tier=LabelTier.INDIE,
            score=2,
            confidence="medium",
            reasoning="Multi-word label name suggests independent label",
            matched_pattern="multi_word_label",
        )

    return LabelClassification(
        tier=LabelTier.DIY,
        score=3,
        confidence="low",
        reasoning="Unknown label; defaulting to DIY",
    )


def classify_labels(labels: list[str | None], artist_name: str | None = None) -> LabelClassification:
    """Classify a catalog's labels into one representative tier.

    Any major wins outright, then any major distribution.  Otherwise the
    highest-scoring explicit (high confidence) match wins, then pattern
    matches, then the low-confidence DIY default.
    """
    valid = [label for label in labels if label and label.strip()]
    if not valid:
        return LabelClassification(
            tier=LabelTier.UNKNOWN,
            score=0,
            confidence="low",
            reasoning="No valid labels; cannot determine distribution",
        )

    results = [classify_label(label, artist_name) for label in valid]

    for tier in (LabelTier.MAJOR, LabelTier.MAJOR_DISTRIBUTION):
        for result in results:
            if result.tier is tier:
                return result

    return max(results, key=lambda r: (_CONFIDENCE_RANK[r.confidence], r.score))
