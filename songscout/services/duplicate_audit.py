"""Duplicate-profile audit.

Reports groups of songwriter profiles that probably describe the same
person.  The report is for manual review only: nothing here merges,
re-links or deletes profiles.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations

from rapidfuzz import fuzz

from songscout.interfaces.catalog_store import ICatalogStore
from songscout.models.songwriter import SongwriterProfile
from songscout.utils.logging import get_logger

DEFAULT_SIMILARITY_THRESHOLD = 92

REASON_SAME_NORMALIZED = "same_normalized_name"
REASON_SIMILAR_NAME = "similar_name"
REASON_SHARED_EXTERNAL_ID = "shared_external_id"


@dataclass(frozen=True)
class DuplicateGroup:
    """Profiles suspected to be one person.

    Attributes
    ----------
    reason:
        Which check flagged the group.
    profile_ids / names:
        Parallel lists, oldest profile first.
    detail:
        The shared normalized name, the similarity score, or the shared
        ``source:id`` pair.
    """

    reason: str
    profile_ids: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    detail: str = ""


class DuplicateAuditService:
    """Finds likely duplicate profiles with three independent checks."""

    def __init__(self, store: ICatalogStore, threshold: int = DEFAULT_SIMILARITY_THRESHOLD) -> None:
        self._store = store
        self._threshold = threshold
        self._logger = get_logger(__name__)

    async def find_duplicates(self, threshold: int | None = None) -> list[DuplicateGroup]:
        """Return every suspected duplicate group.

        Parameters
        ----------
        threshold:
            rapidfuzz ``token_sort_ratio`` (0-100) at or above which two
            distinct normalized names are reported.  Defaults to the
            value given at construction.
        """
        cutoff = self._threshold if threshold is None else threshold
        profiles = await self._store.list_profiles()

        groups = [
            *self._same_normalized(profiles),
            *self._similar_names(profiles, cutoff),
            *self._shared_external_ids(profiles),
        ]
        self._logger.info("duplicate_audit_complete", profiles=len(profiles), groups=len(groups))
        return groups

    @staticmethod
    def _same_normalized(profiles: list[SongwriterProfile]) -> list[DuplicateGroup]:
        by_name: dict[str, list[SongwriterProfile]] = defaultdict(list)
        for profile in profiles:
            by_name[profile.normalized_name].append(profile)
        return [
            DuplicateGroup(
                reason=REASON_SAME_NORMALIZED,
                profile_ids=[p.id for p in members],
                names=[p.name for p in members],
                detail=normalized,
            )
            for normalized, members in by_name.items()
            if len(members) > 1
        ]

    @staticmethod
    def _similar_names(profiles: list[SongwriterProfile], cutoff: int) -> list[DuplicateGroup]:
        # One representative per normalized name; identical names are
        # already reported by _same_normalized.
        representatives: dict[str, SongwriterProfile] = {}
        for profile in profiles:
            representatives.setdefault(profile.normalized_name, profile)

        groups: list[DuplicateGroup] = []
        for left, right in combinations(representatives.values(), 2):
            score = fuzz.token_sort_ratio(left.normalized_name, right.normalized_name)
            if score >= cutoff:
                groups.append(
                    DuplicateGroup(
                        reason=REASON_SIMILAR_NAME,
                        profile_ids=[left.id, right.id],
                        names=[left.name, right.name],
                        detail=f"{score:.0f}",
                    )
                )
        return groups

    @staticmethod
    def _shared_external_ids(profiles: list[SongwriterProfile]) -> list[DuplicateGroup]:
        by_key: dict[str, list[SongwriterProfile]] = defaultdict(list)
        for profile in profiles:
            for source, value in profile.external_ids.items():
                if value:
                    by_key[f"{source}:{value}"].append(profile)
        return [
            DuplicateGroup(
                reason=REASON_SHARED_EXTERNAL_ID,
                profile_ids=[p.id for p in members],
                names=[p.name for p in members],
                detail=key,
            )
            for key, members in by_key.items()
            if len(members) > 1
        ]
