"""Songwriter name normalization and token-agreement matching.

``normalize_songwriter_name`` produces the value stored in
``songwriter_profiles.normalized_name`` and ``songwriter_aliases.normalized_alias``;
both columns are indexed, so the identity resolver can pre-filter
candidates with a single equality lookup before applying the stricter
token checks in :class:`TokenMatchPolicy`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_GENERATIONAL_SUFFIXES: frozenset[str] = frozenset({"jr", "sr", "ii", "iii", "iv"})


def normalize_songwriter_name(name: str) -> str:
    """Lowercase, strip punctuation and generational suffixes, collapse spaces.

    >>> normalize_songwriter_name("  Robert  Smith, Jr. ")
    'robert smith'
    """
    text = _NON_WORD_RE.sub("", name.lower().strip())
    tokens = [t for t in _WHITESPACE_RE.split(text) if t and t not in _GENERATIONAL_SUFFIXES]
    return " ".join(tokens)


def tokenize_name(name: str) -> set[str]:
    """Return the set of normalized tokens longer than one character."""
    return {t for t in normalize_songwriter_name(name).split(" ") if len(t) > 1}


def names_loosely_equal(a: str, b: str) -> bool:
    """Case-insensitive equality, or one name contained in the other.

    Used only against verified external-artist links, where the identity
    is already established and the check only confirms the surface form.
    """
    left = a.strip().lower()
    right = b.strip().lower()
    if not left or not right:
        return False
    return left == right or left in right or right in left


@dataclass(frozen=True)
class TokenMatchPolicy:
    """Structural token-agreement rule for the normalized fuzzy tier.

    Attributes
    ----------
    min_shared_tokens:
        Shared tokens required when either name has more than one token.
    """

    min_shared_tokens: int = 2

    def matches(self, candidate: str, profile_name: str) -> bool:
        """Return ``True`` when the two names agree token-wise.

        Single-token names only match another single-token name with the
        same token.  Multi-token names need ``min_shared_tokens`` in common.
        """
        left = tokenize_name(candidate)
        right = tokenize_name(profile_name)
        if not left or not right:
            return False
        if len(left) == 1 or len(right) == 1:
            return len(left) == 1 and len(right) == 1 and left == right
        return len(left & right) >= self.min_shared_tokens
