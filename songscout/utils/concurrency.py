"""Shared concurrency helpers for the fetch and enrichment pipelines.

``settle_all`` is the "settle all, then aggregate" primitive the playlist
orchestrator is built on: every task runs to completion (success or
failure) inside a bounded pool, and failures come back as exception
objects in the result list instead of cancelling siblings.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from songscout.utils.logging import get_logger
from songscout.utils.rate_limiter import ConcurrencyRateLimiter

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def settle_all(
    tasks: list[Callable[[], Awaitable[_T]]],
    limiter: ConcurrencyRateLimiter,
) -> list[_T | BaseException]:
    """Run task factories with bounded concurrency and collect every outcome.

    Parameters
    ----------
    tasks:
        Zero-argument callables returning awaitables.  Factories (rather
        than bare coroutines) mean nothing starts before it holds a slot.
    limiter:
        Pool bounding how many tasks execute at once.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as *tasks*; a task that raised is
        represented by its exception.
    """
    if not tasks:
        return []
    results = await asyncio.gather(
        *(limiter.run(task) for task in tasks),
        return_exceptions=True,
    )
    failures = sum(1 for r in results if isinstance(r, BaseException))
    if failures:
        _logger.debug("settle_all_partial_failure", total=len(tasks), failed=failures)
    return results
