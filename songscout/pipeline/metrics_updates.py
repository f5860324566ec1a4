"""Debounced metrics invalidation and broadcast.

# ─── STATE MACHINE ────────────────────────────────────────────────────
#
#            schedule_update()                 window elapses / flush()
#   IDLE ───────────────────────> PENDING ───────────────────────────> FIRED
#    ^                              │  ^                                 │
#    │                              └──┘ schedule_update()               │
#    │                                   (timer restarts)                │
#    └──────────────── shutdown() ──── any state        schedule_update()┘
#                                                         (back to PENDING)
#
# Leading edge:  the metrics cache is invalidated on the first
#                schedule_update() after at least one window without an
#                invalidation, so stale reads last at most one window.
# Trailing edge: one ``metric_update`` broadcast once the window passes
#                with no further calls.
#
# trigger_update() bypasses the debounce: invalidate and broadcast now.
# flush() resolves a pending debounce immediately.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from enum import Enum

import structlog

from songscout.pipeline.notification_hub import NotificationHub
from songscout.services.metrics_service import MetricsService
from songscout.utils.logging import get_logger

DEFAULT_DEBOUNCE_WINDOW = 8.0


class DebounceState(str, Enum):  # noqa: UP042
    IDLE = "idle"
    PENDING = "pending"
    FIRED = "fired"


class MetricsUpdateManager:
    """Collapses bursts of metrics-changing events into one broadcast.

    Parameters
    ----------
    metrics:
        Owner of the cached dashboard snapshot.
    hub:
        Where ``metric_update`` events are broadcast.
    window:
        Debounce window in seconds.
    clock:
        Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        metrics: MetricsService,
        hub: NotificationHub,
        window: float = DEFAULT_DEBOUNCE_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._metrics = metrics
        self._hub = hub
        self._window = window
        self._clock = clock
        self._state = DebounceState.IDLE
        self._timer: asyncio.Task | None = None
        self._last_invalidated: float | None = None
        self._pending_source: str | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def state(self) -> DebounceState:
        return self._state

    async def trigger_update(self, source: str = "unknown") -> None:
        """Invalidate and broadcast immediately."""
        self._logger.debug("metrics_update_triggered", source=source)
        await self._invalidate()
        await self._broadcast(source)

    async def schedule_update(self, source: str = "unknown") -> None:
        """Debounced update: leading-edge invalidation, trailing-edge broadcast."""
        now = self._clock()
        if self._last_invalidated is None or now - self._last_invalidated >= self._window:
            self._logger.debug("metrics_leading_edge_invalidation", source=source)
            await self._invalidate()

        self._pending_source = source
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._fire_after_window())
        self._state = DebounceState.PENDING

    async def flush(self) -> None:
        """Resolve a pending update now; a no-op when nothing is pending."""
        if self._state is not DebounceState.PENDING:
            return
        self._cancel_timer()
        source = self._pending_source or "unknown"
        self._logger.debug("metrics_update_flushed", source=source)
        await self._invalidate()
        await self._fire(source)

    async def shutdown(self) -> None:
        """Drop any pending update without broadcasting."""
        self._cancel_timer()
        self._pending_source = None
        self._state = DebounceState.IDLE

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fire_after_window(self) -> None:
        await asyncio.sleep(self._window)
        self._timer = None
        await self._fire(self._pending_source or "unknown")

    async def _fire(self, source: str) -> None:
        self._pending_source = None
        self._state = DebounceState.FIRED
        await self._broadcast(source)

    async def _invalidate(self) -> None:
        await self._metrics.invalidate()
        self._last_invalidated = self._clock()

    async def _broadcast(self, source: str) -> None:
        await self._hub.broadcast({"type": "metric_update", "source": source})

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
