"""Dashboard summary metrics with a TTL cache in front.

The snapshot is cheap to compute but read on every dashboard poll, so it
is cached under one key.  :class:`MetricsUpdateManager` calls
:meth:`MetricsService.invalidate` whenever the pipeline changes the
underlying data.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from songscout.interfaces.snapshot_cache import ISnapshotCache
from songscout.interfaces.catalog_store import ICatalogStore
from songscout.interfaces.job_store import IJobStore
from songscout.utils.logging import get_logger

DASHBOARD_METRICS_KEY = "dashboard_metrics"
UNSIGNED_CANDIDATE_THRESHOLD = 7


class MetricsService:
    """Computes and caches the dashboard metrics snapshot."""

    def __init__(
        self,
        catalog: ICatalogStore,
        jobs: IJobStore,
        cache: ISnapshotCache,
        unsigned_threshold: int = UNSIGNED_CANDIDATE_THRESHOLD,
    ) -> None:
        self._catalog = catalog
        self._jobs = jobs
        self._cache = cache
        self._unsigned_threshold = unsigned_threshold
        self._logger = get_logger(__name__)

    async def get_dashboard_metrics(self) -> dict[str, Any]:
        """Return the cached snapshot, computing it on a miss.

        Keys: ``tracks``, ``unsigned_candidates``, ``profiles``,
        ``contacts``, ``jobs`` (counts by status) and ``generated_at``.
        """
        cached = await self._cache.get(DASHBOARD_METRICS_KEY)
        if cached is not None:
            return cached

        metrics: dict[str, Any] = await self._catalog.get_catalog_counts(self._unsigned_threshold)
        metrics["jobs"] = await self._jobs.count_by_status()
        metrics["generated_at"] = datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017
        await self._cache.set(DASHBOARD_METRICS_KEY, metrics)
        self._logger.debug("dashboard_metrics_computed", tracks=metrics["tracks"])
        return metrics

    async def invalidate(self) -> None:
        await self._cache.delete(DASHBOARD_METRICS_KEY)
