"""Contact population and refresh.

Two responsibilities, both driven by the enrichment worker:

- :meth:`ContactSyncService.ensure_profiles` is the only code path that
  creates songwriter profiles.  A name gets a new profile only when no
  profile matches it by exact name, alias or normalized name.
- :meth:`ContactSyncService.refresh_contact` recomputes the derived
  contact row for one profile from its linked tracks and co-writers.
"""

from __future__ import annotations

import uuid

import structlog

from songscout.interfaces.catalog_store import ICatalogStore
from songscout.models.scoring import ContactFacts, ContactTrackFacts
from songscout.models.songwriter import Contact, ContactStage, SongwriterProfile
from songscout.models.track import Track
from songscout.services.scoring_engine import ScoringEngine
from songscout.utils.logging import get_logger
from songscout.utils.name_matching import normalize_songwriter_name

# A co-writer counts as unsigned at or above this contact score.
UNSIGNED_PEER_THRESHOLD = 7


class ContactSyncService:
    """Creates missing profiles and keeps contacts in step with the catalog."""

    def __init__(
        self,
        store: ICatalogStore,
        scoring: ScoringEngine,
        unsigned_peer_threshold: int = UNSIGNED_PEER_THRESHOLD,
    ) -> None:
        self._store = store
        self._scoring = scoring
        self._peer_threshold = unsigned_peer_threshold
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def ensure_profiles(self, names: list[str]) -> list[SongwriterProfile]:
        """Create a profile for each name that matches nothing existing.

        Parameters
        ----------
        names:
            Cleaned credit names (output of ``normalize_credit_list``).

        Returns
        -------
        list[SongwriterProfile]
            Only the profiles created by this call.
        """
        created: list[SongwriterProfile] = []
        seen: set[str] = set()
        for name in names:
            normalized = normalize_songwriter_name(name)
            if not normalized or normalized in seen:
                continue
            seen.add(normalized)

            if await self._store.find_profile_by_name(name) is not None:
                continue
            if await self._store.find_alias(name) is not None:
                continue
            if await self._store.find_profiles_by_normalized_name(normalized):
                continue

            created.append(await self._store.create_profile(name))

        if created:
            self._logger.info("profiles_populated", created=len(created), candidates=len(names))
        return created

    async def refresh_contact(self, songwriter_id: str) -> Contact | None:
        """Recompute and store the contact for *songwriter_id*.

        Returns ``None`` (and logs) if the profile does not exist.  An
        existing contact keeps its funnel stage.
        """
        profile = await self._store.get_profile(songwriter_id)
        if profile is None:
            self._logger.warning("contact_refresh_missing_profile", songwriter_id=songwriter_id)
            return None

        tracks = await self._store.get_songwriter_tracks(songwriter_id)
        cowriter_ids = await self._store.get_cowriter_ids(songwriter_id)
        peer_ratio = await self._peer_unsigned_ratio(cowriter_ids)
        external = profile.external_ids

        result = self._scoring.score_contact(
            ContactFacts(
                songwriter_name=profile.name,
                tracks=[self._track_facts(t) for t in tracks],
                musicbrainz_found=bool(external.get("musicbrainz")),
                peer_unsigned_ratio=peer_ratio,
            )
        )

        existing = await self._store.get_contact(songwriter_id)
        contact = Contact(
            id=existing.id if existing else uuid.uuid4().hex,
            songwriter_id=songwriter_id,
            unsigned_score=result.score,
            score_confidence=result.confidence,
            collab_count=len(cowriter_ids),
            total_tracks=len(tracks),
            total_streams=sum(t.spotify_streams or 0 for t in tracks),
            stage=existing.stage if existing else ContactStage.DISCOVERY,
            # A key present with an empty value means "searched, nothing found".
            musicbrainz_searched="musicbrainz" in external,
            musicbrainz_found=bool(external.get("musicbrainz")),
            mlc_searched="mlc" in external,
            mlc_found=bool(external.get("mlc")),
        )
        await self._store.upsert_contact(contact)
        await self._store.update_profile_total_tracks(songwriter_id, len(tracks))

        self._logger.debug(
            "contact_refreshed",
            songwriter_id=songwriter_id,
            score=contact.unsigned_score,
            confidence=contact.score_confidence,
            collab_count=contact.collab_count,
        )
        return contact

    async def _peer_unsigned_ratio(self, cowriter_ids: list[str]) -> float | None:
        scored = [c for c in [await self._store.get_contact(i) for i in cowriter_ids] if c is not None]
        if not scored:
            return None
        unsigned = sum(1 for c in scored if c.unsigned_score >= self._peer_threshold)
        return unsigned / len(scored)

    @staticmethod
    def _track_facts(track: Track) -> ContactTrackFacts:
        return ContactTrackFacts(
            playlist_name=track.playlist_name,
            label=track.label,
            publisher=track.publisher,
            songwriter=track.songwriter,
            isrc=track.isrc,
            spotify_streams=track.spotify_streams,
        )
