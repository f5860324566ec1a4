"""Unit tests for the dashboard snapshot cache."""

from __future__ import annotations

import asyncio

import pytest

from songscout.providers.cache.ttl_snapshot_cache import TTLSnapshotCache


@pytest.mark.asyncio
async def test_set_get_delete() -> None:
    cache = TTLSnapshotCache(max_age=60)
    await cache.set("dashboard_metrics", {"tracks": 3})

    assert await cache.get("dashboard_metrics") == {"tracks": 3}

    await cache.delete("dashboard_metrics")
    assert await cache.get("dashboard_metrics") is None


@pytest.mark.asyncio
async def test_delete_missing_key_is_a_noop() -> None:
    cache = TTLSnapshotCache()
    await cache.delete("dashboard_metrics")
    assert await cache.get("dashboard_metrics") is None


@pytest.mark.asyncio
async def test_snapshots_expire_after_max_age() -> None:
    cache = TTLSnapshotCache(max_age=0.5)
    await cache.set("dashboard_metrics", {"tracks": 1})
    await asyncio.sleep(0.6)
    assert await cache.get("dashboard_metrics") is None


@pytest.mark.asyncio
async def test_callers_cannot_mutate_the_stored_snapshot() -> None:
    cache = TTLSnapshotCache()
    snapshot = {"tracks": 1, "jobs": {"queued": 0}}
    await cache.set("dashboard_metrics", snapshot)

    snapshot["jobs"]["queued"] = 99
    read = await cache.get("dashboard_metrics")
    read["tracks"] = 42

    assert await cache.get("dashboard_metrics") == {"tracks": 1, "jobs": {"queued": 0}}
