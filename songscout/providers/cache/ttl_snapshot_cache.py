"""Dashboard snapshot cache on top of ``cachetools.TTLCache``.

A snapshot expires ``max_age`` seconds after it was stored even when no
invalidation arrives, which bounds staleness from writers outside this
process (the CLI running against the same database file).
"""

from __future__ import annotations

import copy
from typing import Any

import structlog
from cachetools import TTLCache

from songscout.interfaces.snapshot_cache import ISnapshotCache

logger = structlog.get_logger(logger_name=__name__)

# One key per dashboard view; the metrics service uses a single one today.
_MAX_SNAPSHOTS = 8


class TTLSnapshotCache(ISnapshotCache):
    """In-process snapshot cache with a fixed maximum age.

    Snapshots are deep-copied on the way in and out so a caller mutating
    the dict it was handed cannot corrupt what the next reader sees.
    """

    def __init__(self, max_age: float = 300) -> None:
        self._snapshots: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=_MAX_SNAPSHOTS, ttl=max_age)

    async def get(self, key: str) -> dict[str, Any] | None:
        snapshot = self._snapshots.get(key)
        if snapshot is None:
            logger.debug("snapshot_cache_miss", key=key)
            return None
        return copy.deepcopy(snapshot)

    async def set(self, key: str, snapshot: dict[str, Any]) -> None:
        self._snapshots[key] = copy.deepcopy(snapshot)

    async def delete(self, key: str) -> None:
        if self._snapshots.pop(key, None) is not None:
            logger.debug("snapshot_cache_invalidated", key=key)
