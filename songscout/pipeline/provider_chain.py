"""Ordered provider fallback as an explicit combinator.

``try_in_order`` evaluates strategies strictly in sequence and stops at
the first one that returns a non-empty fetch.  An exception or an empty
result counts as a miss and is recorded in the attempt log; nothing is
raised to the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from songscout.interfaces.track_provider import ProviderFetch
from songscout.utils.errors import SongScoutError
from songscout.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass(frozen=True)
class FetchStrategy:
    """One provider attempt: a name and a zero-argument fetch coroutine factory."""

    provider: str
    run: Callable[[], Awaitable[ProviderFetch]]


@dataclass(frozen=True)
class ProviderAttempt:
    provider: str
    outcome: str  # "empty" or "error"
    error: str | None = None


@dataclass(frozen=True)
class ChainSuccess:
    provider: str
    fetch: ProviderFetch
    attempts: list[ProviderAttempt] = field(default_factory=list)


@dataclass(frozen=True)
class ChainFailure:
    attempts: list[ProviderAttempt] = field(default_factory=list)

    @property
    def summary(self) -> str:
        if not self.attempts:
            return "no providers available"
        return "; ".join(
            f"{a.provider}: {a.error}" if a.error else f"{a.provider}: empty" for a in self.attempts
        )


ChainResult = ChainSuccess | ChainFailure


async def try_in_order(strategies: list[FetchStrategy]) -> ChainResult:
    """Run *strategies* sequentially until one yields records.

    Any exception raised by a strategy, or an empty result, falls through
    to the next strategy.
    """
    attempts: list[ProviderAttempt] = []
    for strategy in strategies:
        try:
            fetch = await strategy.run()
        except Exception as exc:
            error = str(exc) if isinstance(exc, SongScoutError) else f"{type(exc).__name__}: {exc}"
            _logger.warning("provider_attempt_failed", provider=strategy.provider, error=error)
            attempts.append(ProviderAttempt(provider=strategy.provider, outcome="error", error=error))
            continue

        if not fetch.records:
            _logger.info("provider_attempt_empty", provider=strategy.provider)
            attempts.append(ProviderAttempt(provider=strategy.provider, outcome="empty"))
            continue

        return ChainSuccess(provider=strategy.provider, fetch=fetch, attempts=attempts)

    return ChainFailure(attempts=attempts)
