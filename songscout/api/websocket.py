"""WebSocket endpoint for dashboard push events.

Every connection registers one listener with the :class:`NotificationHub`
and receives every broadcast event (``enrichment_progress``,
``track_enriched``, ``batch_complete``, ``metric_update``) as JSON.

# ─── CONNECTION LIFECYCLE ─────────────────────────────────────────────
#
#   Dashboard                         Backend (this file)
#   ─────────                         ───────────────────
#   new WebSocket("/ws")   ──────→    websocket.accept()
#                                     hub.register(callback)
#                          ←──────    {"type": "connected", ...}
#                          ←──────    pushed events (JSON)
#   ws.close()             ──────→    WebSocketDisconnect
#                                     hub.unregister(callback)
#
# A send that fails because the socket has gone is logged by the hub and
# skipped; the ``finally`` block below removes the listener.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from songscout.pipeline.notification_hub import NotificationHub
from songscout.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_events(websocket: WebSocket) -> None:
    """Stream push events to one dashboard client until it disconnects."""
    hub: NotificationHub = websocket.app.state.notification_hub

    await websocket.accept()

    async def _on_event(event: dict[str, Any]) -> None:
        await websocket.send_json(event)

    hub.register(_on_event)
    _logger.info("websocket_connected", connections=hub.connection_count)

    try:
        await websocket.send_json({"type": "connected", "connections": hub.connection_count})
        # Inbound messages are keep-alives only.
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected")

    finally:
        hub.unregister(_on_event)
        _logger.debug("websocket_listener_cleaned_up", connections=hub.connection_count)
