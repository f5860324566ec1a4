"""Static label and distributor knowledge used by the label classifier.

# ─── PURPOSE ──────────────────────────────────────────────────────────
#
# The "release pathway" scoring category asks one question: how did this
# track reach the streaming services?  A DistroKid upload says something
# very different about a songwriter's deal status than a Columbia release.
# The lists below are hand-curated keywords matched as whole words against
# a normalized label string (lowercase, punctuation folded to spaces).
#
# Tiers, best to worst for an "unsigned" lead:
#
#   diy                -- self-serve distributors and self-release markers
#   indie              -- independent distributors and labels
#   major_distribution -- distribution arms owned by a major
#   major              -- the three major label groups and their imprints
#
# All structures are built at import time and never mutated.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

# ═════════════════════════════════════════════════════════════════════════
# 1. DIY DISTRIBUTION
# ═════════════════════════════════════════════════════════════════════════

DIY_DISTRIBUTOR_KEYWORDS: tuple[str, ...] = (
    "distrokid", "tunecore", "cd baby", "cdbaby", "amuse", "ditto",
    "routenote", "landr", "unitedmasters", "united masters", "symphonic",
    "soundrop", "spinnup", "repost network", "awal recordings diy",
    "record union", "onerpm", "fresh tunes", "freshtunes", "level music",
    "dk", "diy",
)

# ═════════════════════════════════════════════════════════════════════════
# 2. MAJOR LABEL GROUPS (checked before indie to avoid false positives
#    such as "Atlantic" matching a generic indie keyword)
# ═════════════════════════════════════════════════════════════════════════

MAJOR_LABEL_KEYWORDS: dict[str, tuple[str, ...]] = {
    "sony": (
        "sony music", "columbia", "rca records", "epic records", "arista",
        "legacy recordings", "ministry of sound", "syco", "kemosabe",
    ),
    "warner": (
        "warner", "atlantic records", "elektra", "parlophone", "asylum records",
        "reprise", "nonesuch", "300 entertainment", "fueled by ramen",
    ),
    "universal": (
        "universal music", "interscope", "republic records", "island records",
        "def jam", "capitol records", "virgin records", "polydor", "geffen",
        "motown", "emi records", "decca", "island def jam",
    ),
}

# ═════════════════════════════════════════════════════════════════════════
# 3. MAJOR-OWNED DISTRIBUTION
# ═════════════════════════════════════════════════════════════════════════

MAJOR_DISTRIBUTION_KEYWORDS: tuple[str, ...] = (
    "ada", "alternative distribution alliance", "ingrooves", "caroline",
    "the orchard", "orchard enterprises", "virgin music group", "awal",
    "platoon", "create music group", "stem disintermedia",
)

# ═════════════════════════════════════════════════════════════════════════
# 4. INDEPENDENT DISTRIBUTORS AND LABELS
# ═════════════════════════════════════════════════════════════════════════

INDIE_DISTRIBUTOR_KEYWORDS: tuple[str, ...] = (
    "empire", "believe", "fuga", "secretly distribution", "redeye",
    "proper music", "altafonte", "good soldier", "vydia",
)

INDIE_LABEL_KEYWORDS: tuple[str, ...] = (
    "sub pop", "matador", "merge records", "domino", "xl recordings",
    "4ad", "rough trade", "warp", "ninja tune", "secretly canadian",
    "jagjaguwar", "dead oceans", "mom pop", "epitaph", "saddle creek",
    "stones throw", "ghostly", "anti records", "partisan records",
)

# ═════════════════════════════════════════════════════════════════════════
# 5. FALLBACK PATTERNS
# ═════════════════════════════════════════════════════════════════════════

SELF_RELEASE_PATTERNS: tuple[str, ...] = (
    "self released", "self release", "independent", "indie release",
    "unsigned", "no label", "not on label", "self publish",
)

VANITY_IMPRINT_PATTERNS: tuple[str, ...] = (
    "music group", "records llc", "entertainment llc", "productions",
    "music llc", "media llc", "records inc", "house of",
)

# Playlist-name fragments that mark a discovery ("early career") playlist.
DISCOVERY_PLAYLIST_KEYWORDS: tuple[str, ...] = ("fresh finds",)


def all_major_keywords() -> tuple[str, ...]:
    """Flatten :data:`MAJOR_LABEL_KEYWORDS` into one tuple."""
    return tuple(kw for group in MAJOR_LABEL_KEYWORDS.values() for kw in group)
