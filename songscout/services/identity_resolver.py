"""Identity resolution: map raw credit strings to songwriter profiles.

# ─── HOW RESOLUTION WORKS ─────────────────────────────────────────────
#
# A track's ``songwriter`` field is split into candidate names by
# normalize_credit_list().  Each candidate is matched against the store
# with four tiers, first hit wins:
#
#   1. external link   -- a verified external artist on this track whose
#                         name loosely equals the candidate     exact-id-match
#   2. exact name      -- case-insensitive profile name          exact-name-match
#   3. normalized      -- indexed normalized_name lookup, then
#                         TokenMatchPolicy agreement             normalized-fuzzy-match
#   4. alias table     -- exact or normalized alias              exact-name-match
#
# A hit inserts a TrackSongwriter link (idempotent).  Tier 3 hits, and
# tier 1 hits whose profile name differs from the candidate, also record
# the candidate as an alias unless that normalized alias already belongs
# to a different profile.  That conflict is logged and left for a human.
#
# No hit means no link and no new profile.  Profiles are only created by
# ContactSyncService.ensure_profiles(), which does its own uniqueness
# checks first.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from songscout.interfaces.catalog_store import ICatalogStore
from songscout.models.songwriter import (
    ConfidenceSource,
    ExternalArtistLink,
    SongwriterProfile,
    TrackSongwriter,
)
from songscout.models.track import Track
from songscout.utils.credit_normalizer import normalize_credit_list
from songscout.utils.logging import get_logger
from songscout.utils.name_matching import (
    TokenMatchPolicy,
    names_loosely_equal,
    normalize_songwriter_name,
)


@dataclass(frozen=True)
class IdentityMatch:
    """A candidate name bound to a profile, with the tier that bound it.

    Attributes
    ----------
    candidate:
        The surface form taken from the credit string.
    profile:
        The matched profile.
    tier:
        Which matching strategy produced the match.
    link_created:
        ``False`` when the track/songwriter link already existed.
    alias_created:
        ``True`` when the candidate was stored as a new alias.
    """

    candidate: str
    profile: SongwriterProfile
    tier: ConfidenceSource
    link_created: bool = False
    alias_created: bool = False


class IdentityResolver:
    """Resolves credit candidates to existing profiles.

    Parameters
    ----------
    store:
        Catalog store holding profiles, aliases and links.
    policy:
        Token agreement rule for the normalized tier.
    """

    def __init__(self, store: ICatalogStore, policy: TokenMatchPolicy | None = None) -> None:
        self._store = store
        self._policy = policy or TokenMatchPolicy()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve_track(self, track: Track) -> list[IdentityMatch]:
        """Resolve every candidate in *track*'s songwriter credit."""
        candidates = normalize_credit_list(track.songwriter)
        if not candidates:
            return []

        external_links = await self._store.get_external_artist_links(track.id)
        matches: list[IdentityMatch] = []
        for candidate in candidates:
            match = await self.resolve_candidate(track.id, candidate, external_links)
            if match is not None:
                matches.append(match)

        self._logger.debug(
            "track_identities_resolved",
            track_id=track.id,
            candidates=len(candidates),
            matched=len(matches),
        )
        return matches

    async def resolve_candidate(
        self,
        track_id: str,
        candidate: str,
        external_links: list[ExternalArtistLink] | None = None,
    ) -> IdentityMatch | None:
        """Match one candidate, then persist the link and any alias."""
        found = await self.find_match(candidate, external_links or [])
        if found is None:
            self._logger.debug("identity_unmatched", track_id=track_id, candidate=candidate)
            return None

        profile, tier = found
        link_created = await self._store.insert_track_songwriter(
            TrackSongwriter(
                track_id=track_id,
                songwriter_id=profile.id,
                confidence_source=tier,
                source_text=candidate,
            )
        )

        alias_created = False
        needs_alias = tier is ConfidenceSource.NORMALIZED_FUZZY_MATCH or (
            tier is ConfidenceSource.EXACT_ID_MATCH and profile.name.lower() != candidate.lower()
        )
        if needs_alias:
            alias_created = await self._record_alias(profile, candidate)

        return IdentityMatch(
            candidate=candidate,
            profile=profile,
            tier=tier,
            link_created=link_created,
            alias_created=alias_created,
        )

    async def find_match(
        self,
        candidate: str,
        external_links: list[ExternalArtistLink],
    ) -> tuple[SongwriterProfile, ConfidenceSource] | None:
        """Run the tier stack for *candidate* without writing anything."""
        for link in external_links:
            if link.songwriter_id and names_loosely_equal(link.artist_name, candidate):
                profile = await self._store.get_profile(link.songwriter_id)
                if profile is not None:
                    return profile, ConfidenceSource.EXACT_ID_MATCH

        profile = await self._store.find_profile_by_name(candidate)
        if profile is not None:
            return profile, ConfidenceSource.EXACT_NAME_MATCH

        normalized = normalize_songwriter_name(candidate)
        for profile in await self._store.find_profiles_by_normalized_name(normalized):
            if self._policy.matches(candidate, profile.name):
                return profile, ConfidenceSource.NORMALIZED_FUZZY_MATCH

        alias = await self._store.find_alias(candidate)
        if alias is not None:
            profile = await self._store.get_profile(alias.songwriter_id)
            if profile is not None:
                return profile, ConfidenceSource.EXACT_NAME_MATCH

        return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _record_alias(self, profile: SongwriterProfile, candidate: str) -> bool:
        existing = await self._store.find_alias(candidate)
        if existing is not None:
            if existing.songwriter_id != profile.id:
                self._logger.warning(
                    "alias_conflict",
                    alias=candidate,
                    normalized_alias=existing.normalized_alias,
                    existing_songwriter_id=existing.songwriter_id,
                    candidate_songwriter_id=profile.id,
                )
            return False

        created = await self._store.insert_alias(profile.id, candidate)
        if created is None:
            # Lost a race with another writer for the same normalized alias.
            self._logger.warning("alias_insert_skipped", alias=candidate, songwriter_id=profile.id)
            return False
        self._logger.info("alias_created", alias=candidate, songwriter_id=profile.id)
        return True
