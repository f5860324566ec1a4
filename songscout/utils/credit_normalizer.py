"""Credit-string normalization for songwriter/producer fields.

Provider credit fields arrive in every imaginable shape:

    "Jane Doe & John Smith"
    "Jane Doe / John Smith; Ana Ruiz"
    "Christopher BoysMcKinley LanguedocNoah VarleyJoe Agius"   <- glued

This module turns them into a clean, ordered list of candidate names via a
pipeline of small named stages, each a pure function that can be tested on
its own:

    canonicalize_delimiters -> find_glue_points -> filter_known_prefixes
        -> split_at_points -> title_case_names -> dedupe_names

``normalize_credit_list`` composes the full pipeline.  A second, stricter
entry point (``split_concatenated_names``) is used when processing credit
*arrays* from providers, where each element is usually already a single
name and false splits of stage names ("DaBaby") are the bigger risk.
"""

from __future__ import annotations

import re

# Surname prefixes that legitimately precede a capital letter inside one
# word: McDonald, MacKenzie, VanZandt, DeAndre, LaToya.  "O'" and "St." end
# in punctuation so they never form a lowercase->uppercase transition, but
# they are listed for the interior-capital rule in title_case_names.
KNOWN_NAME_PREFIXES: frozenset[str] = frozenset(
    {"mc", "mac", "o'", "st.", "van", "de", "von", "la", "le"}
)

_DELIMITER_RE = re.compile(r"\s*(?:&|/|\||;|\r?\n)\s*")
_COMMA_RE = re.compile(r"\s*,\s*")
_SPACES_RE = re.compile(r"[ \t]+")
_MIN_NAME_LENGTH = 2


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


def canonicalize_delimiters(text: str) -> str:
    """Replace ``& / | ;`` and newlines with commas and tidy whitespace."""
    text = _DELIMITER_RE.sub(", ", text)
    text = _SPACES_RE.sub(" ", text)
    return _COMMA_RE.sub(", ", text).strip(" ,")


def find_glue_points(text: str) -> list[int]:
    """Return indices of every uppercase letter directly after a lowercase one."""
    return [
        i for i in range(1, len(text))
        if text[i - 1].islower() and text[i].isupper()
    ]


def _word_start(text: str, index: int, boundaries: set[int]) -> int:
    """Index where the word containing *index* begins.

    A word starts after whitespace or a comma, or at an accepted split
    point from *boundaries*.
    """
    start = index
    while start > 0 and not text[start - 1].isspace() and text[start - 1] != ",":
        if start in boundaries:
            break
        start -= 1
    return start


def filter_known_prefixes(text: str, points: list[int]) -> list[int]:
    """Drop glue points that sit right after a known surname prefix.

    Points are examined left to right; an accepted split starts a new word,
    so in ``"BoysMcKinley"`` the split before ``M`` is kept and the later
    ``c|K`` transition sees the word ``"Mc"`` and is discarded.
    """
    accepted: list[int] = []
    boundaries: set[int] = set()
    for point in points:
        prefix = text[_word_start(text, point, boundaries):point].lower()
        if prefix in KNOWN_NAME_PREFIXES:
            continue
        accepted.append(point)
        boundaries.add(point)
    return accepted


def split_at_points(text: str, points: list[int]) -> list[str]:
    """Split *text* at glue *points* and on commas; return trimmed pieces."""
    pieces: list[str] = []
    last = 0
    for point in sorted(points):
        pieces.append(text[last:point])
        last = point
    pieces.append(text[last:])

    names: list[str] = []
    for piece in pieces:
        names.extend(part.strip() for part in piece.split(","))
    return [name for name in names if name]


def _title_case_word(word: str) -> str:
    if not word:
        return word
    # Leave words that already carry a capital alone (McDonald, DJ, LaToya).
    if any(ch.isupper() for ch in word):
        return word[0].upper() + word[1:]
    # "mac" is left out: macy, mace and mack are ordinary names.
    for prefix in ("mc", "o'"):
        if word.startswith(prefix) and len(word) > len(prefix) and word[len(prefix)].isalpha():
            rest = word[len(prefix):]
            return prefix[0].upper() + prefix[1:] + rest[0].upper() + rest[1:]
    return word[0].upper() + word[1:]


def title_case_names(names: list[str]) -> list[str]:
    """Capitalise the first letter of every word, preserving interior capitals.

    ``"daniel mcdonald"`` becomes ``"Daniel McDonald"``; a word that already
    contains a capital keeps its existing casing.
    """
    return [" ".join(_title_case_word(w) for w in name.split(" ")) for name in names]


def dedupe_names(names: list[str]) -> list[str]:
    """Remove case-insensitive duplicates while keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result


# ---------------------------------------------------------------------------
# Composed entry points
# ---------------------------------------------------------------------------


def normalize_credit_list(raw: str | None) -> list[str]:
    """Run the full normalization pipeline over one raw credit string.

    Parameters
    ----------
    raw:
        The credit field as delivered by a provider (may be ``None``).

    Returns
    -------
    list[str]
        Ordered, de-duplicated candidate names.

    Examples
    --------
    >>> normalize_credit_list("Daniel McDonaldJohn Smith")
    ['Daniel McDonald', 'John Smith']
    """
    if not raw or not raw.strip():
        return []
    text = canonicalize_delimiters(raw)
    points = filter_known_prefixes(text, find_glue_points(text))
    names = split_at_points(text, points)
    names = [n for n in names if len(n) >= _MIN_NAME_LENGTH]
    return dedupe_names(title_case_names(names))


def split_concatenated_names(full_name: str) -> list[str]:
    """Conservatively split a single credit entry that may hold glued names.

    A split is accepted only when there are two or more glue points, or
    exactly one glue point and one of the resulting segments contains a
    space (``"Alex JonesKendall Quarles"``).  Otherwise the entry is
    returned unchanged, which protects mononyms and stage names such as
    ``"DaBaby"``.
    """
    name = full_name.strip()
    points = filter_known_prefixes(name, find_glue_points(name))
    if not points:
        return [name] if name else []

    segments = split_at_points(name, points)
    if len(points) >= 2 or any(" " in segment for segment in segments):
        return segments
    return [name]


def process_credit_entries(entries: list[str]) -> list[str]:
    """Clean a provider's credit array into an ordered list of unique names."""
    names: list[str] = []
    for entry in entries:
        if not entry or not entry.strip():
            continue
        for piece in canonicalize_delimiters(entry).split(","):
            names.extend(split_concatenated_names(piece))
    return dedupe_names([n for n in names if len(n) >= _MIN_NAME_LENGTH])
