"""Push-event fan-out to connected dashboard clients.

# ─── HOW THE HUB WORKS ────────────────────────────────────────────────
#
# Observer pattern, one channel for everyone:
#
#   worker / metrics manager ──broadcast()──> NotificationHub ──callback()──> WebSocket 1
#                                                              ──callback()──> WebSocket 2
#
# Every event is a dict with a ``type`` key: enrichment_progress,
# track_enriched, batch_complete or metric_update.  Delivery is best
# effort and at most once.  Listeners are sent to concurrently and each
# send is bounded by ``send_timeout``; a listener that raises or times out
# is logged and skipped, so one slow or dropped browser connection never
# stalls the worker.  Clients that miss an event recover by re-querying
# state over HTTP.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from songscout.utils.logging import get_logger

DEFAULT_SEND_TIMEOUT = 5.0


class NotificationHub:
    """Broadcasts push events to every registered listener."""

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT) -> None:
        self._listeners: list[Callable] = []
        self._send_timeout = send_timeout
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def connection_count(self) -> int:
        return len(self._listeners)

    def register(self, callback: Callable) -> None:
        """Register a sync or async callable taking one event dict."""
        if callback not in self._listeners:
            self._listeners.append(callback)
            self._logger.debug("listener_registered", total_listeners=len(self._listeners))

    def unregister(self, callback: Callable) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)
            self._logger.debug("listener_unregistered", remaining_listeners=len(self._listeners))

    async def broadcast(self, event: dict[str, Any]) -> int:
        """Send *event* to all listeners concurrently.

        Returns
        -------
        int
            Number of listeners that accepted the event within
            ``send_timeout`` without raising.
        """
        # Copy: a listener may unregister itself during delivery.
        listeners = list(self._listeners)
        if not listeners:
            return 0
        results = await asyncio.gather(*(self._deliver(callback, event) for callback in listeners))
        return sum(results)

    async def _deliver(self, callback: Callable, event: dict[str, Any]) -> bool:
        name = getattr(callback, "__name__", repr(callback))
        try:
            result = callback(event)
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=self._send_timeout)
        except asyncio.TimeoutError:  # noqa: UP041
            self._logger.warning(
                "listener_send_timeout",
                event_type=event.get("type"),
                timeout=self._send_timeout,
                callback=name,
            )
            return False
        except Exception as exc:
            self._logger.warning(
                "listener_callback_error",
                event_type=event.get("type"),
                error=str(exc),
                callback=name,
            )
            return False
        return True
