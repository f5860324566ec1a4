"""FastAPI routes for the songscout pipeline.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                        Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/health                  GET     Health check + provider status
# /api/v1/playlists/fetch         POST    Run a fetch batch
# /api/v1/jobs                    POST    Enqueue an enrichment job
# /api/v1/jobs                    GET     Recent jobs, newest first
# /api/v1/jobs/{job_id}           GET     Job status and log
# /api/v1/metrics                 GET     Cached dashboard metrics
# /api/v1/notifications           GET     Notification list + unread count
# /api/v1/notifications/read      POST    Mark every notification read
#
# Each ``_get_*`` helper reads one component that main.py's _build_all
# placed on app.state.  Tests set app.state directly.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from songscout import __version__
from songscout.api.schemas import (
    EnqueueJobRequest,
    ErrorResponse,
    FetchPlaylistsRequest,
    HealthResponse,
    JobResponse,
    MarkReadResponse,
    MetricsResponse,
    NotificationListResponse,
)
from songscout.models.playlist import BatchFetchResult
from songscout.pipeline.job_queue import JobQueue
from songscout.pipeline.playlist_fetch import PlaylistFetchOrchestrator
from songscout.services.metrics_service import MetricsService
from songscout.services.notification_service import NotificationService
from songscout.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------


def _get_fetch_orchestrator(request: Request) -> PlaylistFetchOrchestrator:
    return request.app.state.fetch_orchestrator


def _get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue


def _get_metrics_service(request: Request) -> MetricsService:
    return request.app.state.metrics_service


def _get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


FetchDep = Annotated[PlaylistFetchOrchestrator, Depends(_get_fetch_orchestrator)]
JobQueueDep = Annotated[JobQueue, Depends(_get_job_queue)]
MetricsDep = Annotated[MetricsService, Depends(_get_metrics_service)]
NotificationsDep = Annotated[NotificationService, Depends(_get_notification_service)]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request) -> HealthResponse:
    """Report provider availability, background loops and open websockets."""
    providers: dict[str, Any] = getattr(request.app.state, "provider_status", {})
    worker = getattr(request.app.state, "worker", None)
    scheduler = getattr(request.app.state, "fetch_scheduler", None)
    hub = getattr(request.app.state, "notification_hub", None)
    return HealthResponse(
        status="ok",
        version=__version__,
        providers=providers,
        worker_running=bool(worker and worker.is_running),
        next_scheduled_fetch=scheduler.next_run_at if scheduler else None,
        websocket_connections=hub.connection_count if hub else 0,
    )


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------


@router.post(
    "/playlists/fetch",
    response_model=BatchFetchResult,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Fetch tracked playlists and queue enrichment",
)
async def fetch_playlists(body: FetchPlaylistsRequest, orchestrator: FetchDep) -> BatchFetchResult:
    _logger.info("fetch_requested", mode=body.mode.value, playlist_id=body.playlist_id)
    return await orchestrator.fetch_playlists(body.mode, body.playlist_id)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@router.post(
    "/jobs",
    response_model=JobResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Enqueue an enrichment job",
)
async def enqueue_job(body: EnqueueJobRequest, job_queue: JobQueueDep) -> JobResponse:
    job = await job_queue.enqueue(body.track_ids, playlist_id=body.playlist_id)
    return JobResponse.from_job(job)


@router.get("/jobs", response_model=list[JobResponse], summary="List recent jobs")
async def list_jobs(
    job_queue: JobQueueDep,
    limit: int = Query(default=50, ge=1, le=200),
) -> list[JobResponse]:
    return [JobResponse.from_job(job) for job in await job_queue.list_jobs(limit=limit)]


@router.get(
    "/jobs/{job_id}",
    response_model=JobResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get enrichment job status",
)
async def get_job(job_id: str, job_queue: JobQueueDep) -> JobResponse:
    job = await job_queue.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return JobResponse.from_job(job)


# ---------------------------------------------------------------------------
# Metrics & notifications
# ---------------------------------------------------------------------------


@router.get("/metrics", response_model=MetricsResponse, summary="Dashboard metrics")
async def get_metrics(metrics: MetricsDep) -> MetricsResponse:
    return MetricsResponse(**await metrics.get_dashboard_metrics())


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List system notifications",
)
async def list_notifications(
    notifications: NotificationsDep,
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
) -> NotificationListResponse:
    items = await (notifications.unread(limit) if unread_only else notifications.list_all(limit))
    return NotificationListResponse(
        notifications=items,
        unread_count=await notifications.unread_count(),
    )


@router.post(
    "/notifications/read",
    response_model=MarkReadResponse,
    summary="Mark all notifications read",
)
async def mark_notifications_read(notifications: NotificationsDep) -> MarkReadResponse:
    return MarkReadResponse(updated=await notifications.mark_all_read())
