"""Abstract interfaces for songscout's external collaborators.

Every provider and store is consumed through one of these ABCs so the
pipeline can be wired with real adapters in ``main.py`` and with fakes in
tests:

    - track_provider.py  -- playlist track sources (Chartmetric, Spotify, scrape)
    - catalog_store.py   -- playlists, tracks, songwriter identities, contacts
    - job_store.py       -- durable enrichment-job persistence
    - snapshot_cache.py  -- cached dashboard metrics snapshot
"""

from songscout.interfaces.catalog_store import ICatalogStore
from songscout.interfaces.job_store import IJobStore
from songscout.interfaces.snapshot_cache import ISnapshotCache
from songscout.interfaces.track_provider import ITrackProvider, ProviderFetch

__all__ = [
    "ICatalogStore",
    "IJobStore",
    "ISnapshotCache",
    "ITrackProvider",
    "ProviderFetch",
]
