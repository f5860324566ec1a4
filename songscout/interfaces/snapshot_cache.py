"""Contract for the store that holds computed dashboard snapshots."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ISnapshotCache(ABC):
    """Holds expensive-to-compute snapshots under a key until they go stale.

    :class:`~songscout.services.metrics_service.MetricsService` is the only
    reader and writer; :class:`~songscout.pipeline.metrics_updates.MetricsUpdateManager`
    drops the snapshot (through the service) whenever the catalog changes.
    """

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Return the snapshot stored under *key*, or ``None`` once it is stale."""

    @abstractmethod
    async def set(self, key: str, snapshot: dict[str, Any]) -> None:
        """Store *snapshot* under *key*, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop the snapshot under *key*; a no-op when nothing is stored."""
