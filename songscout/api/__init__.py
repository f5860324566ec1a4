"""songscout API layer: routes, schemas, WebSocket, and middleware."""

from songscout.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from songscout.api.routes import router
from songscout.api.schemas import (
    EnqueueJobRequest,
    ErrorResponse,
    FetchPlaylistsRequest,
    HealthResponse,
    JobResponse,
    MetricsResponse,
    NotificationListResponse,
)
from songscout.api.websocket import websocket_events

__all__ = [
    "EnqueueJobRequest",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "FetchPlaylistsRequest",
    "HealthResponse",
    "JobResponse",
    "MetricsResponse",
    "NotificationListResponse",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "websocket_events",
]
