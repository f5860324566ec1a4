"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from songscout.api.middleware import ErrorHandlingMiddleware
from songscout.api.routes import router as api_router
from songscout.api.websocket import websocket_events
from songscout.models.job import EnrichmentJob, JobStatus
from songscout.models.notification import SystemNotification
from songscout.models.playlist import BatchFetchResult, CompletenessRecord, FetchMode
from songscout.pipeline.job_queue import JobQueue
from songscout.pipeline.notification_hub import NotificationHub
from songscout.pipeline.playlist_fetch import PlaylistFetchOrchestrator
from songscout.pipeline.scheduler import FetchScheduler
from songscout.pipeline.worker import EnrichmentWorker
from songscout.services.metrics_service import MetricsService
from songscout.services.notification_service import NotificationService
from songscout.utils.errors import (
    JobQueueError,
    PersistenceError,
    PlaylistValidationError,
    RateLimitError,
)

_NOW = datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job(**overrides) -> EnrichmentJob:
    data = {
        "id": "job-1",
        "track_ids": ["t1", "t2"],
        "total_tracks": 2,
        "logs": ["[2024-03-06T12:00:00+00:00] Job queued with 2 tracks"],
        "created_at": _NOW,
    }
    data.update(overrides)
    return EnrichmentJob(**data)


def _batch_result() -> BatchFetchResult:
    return BatchFetchResult(
        week="2024-W10",
        tracks_inserted=2,
        playlists_succeeded=1,
        completeness=[
            CompletenessRecord(
                playlist_id="pl1", name="Fresh Finds", fetch_count=2, total_tracks=2,
                is_complete=True, fetch_method="chartmetric",
            )
        ],
        inserted_track_ids=["t1", "t2"],
        job_id="job-1",
    )


@pytest.fixture
def app() -> FastAPI:
    """Bare app with the router and mocked components on app.state."""
    application = FastAPI()
    application.add_middleware(ErrorHandlingMiddleware)
    application.include_router(api_router)

    @application.websocket("/ws")
    async def ws_events(websocket: WebSocket) -> None:
        await websocket_events(websocket)

    orchestrator = MagicMock(spec=PlaylistFetchOrchestrator)
    orchestrator.fetch_playlists = AsyncMock(return_value=_batch_result())

    job_queue = MagicMock(spec=JobQueue)
    job_queue.enqueue = AsyncMock(return_value=_job())
    job_queue.get_job = AsyncMock(return_value=_job(status=JobStatus.RUNNING, progress=40))
    job_queue.list_jobs = AsyncMock(return_value=[_job()])

    metrics = MagicMock(spec=MetricsService)
    metrics.get_dashboard_metrics = AsyncMock(
        return_value={
            "tracks": 10,
            "unsigned_candidates": 3,
            "profiles": 4,
            "contacts": 4,
            "jobs": {"queued": 1, "running": 0, "completed": 2, "failed": 0},
            "generated_at": _NOW.isoformat(),
        }
    )

    notifications = MagicMock(spec=NotificationService)
    notice = SystemNotification(
        id="n1", type="fetch_complete", title="Playlist fetch complete", message="2 new tracks",
        created_at=_NOW,
    )
    notifications.list_all = AsyncMock(return_value=[notice])
    notifications.unread = AsyncMock(return_value=[])
    notifications.unread_count = AsyncMock(return_value=1)
    notifications.mark_all_read = AsyncMock(return_value=1)

    worker = MagicMock(spec=EnrichmentWorker)
    worker.is_running = True

    application.state.fetch_orchestrator = orchestrator
    application.state.job_queue = job_queue
    application.state.metrics_service = metrics
    application.state.notification_service = notifications
    application.state.notification_hub = NotificationHub()
    application.state.worker = worker
    application.state.provider_status = {"chartmetric": True, "spotify_api": False, "editorial_scrape": True}
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_reports_providers_and_worker(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["providers"]["spotify_api"] is False
        assert body["worker_running"] is True
        assert body["websocket_connections"] == 0
        assert body["next_scheduled_fetch"] is None

    def test_reports_next_scheduled_fetch(self, app: FastAPI, client: TestClient) -> None:
        scheduler = MagicMock(spec=FetchScheduler)
        scheduler.next_run_at = _NOW
        app.state.fetch_scheduler = scheduler

        body = client.get("/api/v1/health").json()

        assert body["next_scheduled_fetch"].startswith("2024-03-06T12:00:00")


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------


class TestFetch:
    def test_fetch_returns_batch_result(self, app: FastAPI, client: TestClient) -> None:
        response = client.post("/api/v1/playlists/fetch", json={"mode": "editorial"})

        assert response.status_code == 200
        body = response.json()
        assert body["tracks_inserted"] == 2
        assert body["job_id"] == "job-1"
        assert body["completeness"][0]["fetch_method"] == "chartmetric"
        app.state.fetch_orchestrator.fetch_playlists.assert_awaited_once_with(FetchMode.EDITORIAL, None)

    def test_validation_error_maps_to_400(self, app: FastAPI, client: TestClient) -> None:
        app.state.fetch_orchestrator.fetch_playlists.side_effect = PlaylistValidationError(
            message="playlist_id is required for mode 'specific'"
        )

        response = client.post("/api/v1/playlists/fetch", json={"mode": "specific"})

        assert response.status_code == 400
        assert response.json() == {
            "error": "PlaylistValidationError",
            "detail": "playlist_id is required for mode 'specific'",
        }

    def test_persistence_error_maps_to_500(self, app: FastAPI, client: TestClient) -> None:
        app.state.fetch_orchestrator.fetch_playlists.side_effect = PersistenceError(message="disk full")

        response = client.post("/api/v1/playlists/fetch", json={})

        assert response.status_code == 500
        assert response.json()["error"] == "PersistenceError"

    def test_rate_limit_maps_to_429(self, app: FastAPI, client: TestClient) -> None:
        app.state.fetch_orchestrator.fetch_playlists.side_effect = RateLimitError(provider_name="chartmetric")

        assert client.post("/api/v1/playlists/fetch", json={}).status_code == 429

    def test_unknown_mode_is_rejected(self, client: TestClient) -> None:
        assert client.post("/api/v1/playlists/fetch", json={"mode": "weekly"}).status_code == 422


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestJobs:
    def test_enqueue(self, app: FastAPI, client: TestClient) -> None:
        response = client.post("/api/v1/jobs", json={"track_ids": ["t1", "t2"], "playlist_id": "pl1"})

        assert response.status_code == 201
        assert response.json()["status"] == "queued"
        app.state.job_queue.enqueue.assert_awaited_once_with(["t1", "t2"], playlist_id="pl1")

    def test_enqueue_empty_is_400(self, app: FastAPI, client: TestClient) -> None:
        app.state.job_queue.enqueue.side_effect = JobQueueError(message="Cannot enqueue a job with no track IDs")

        response = client.post("/api/v1/jobs", json={"track_ids": []})

        assert response.status_code == 400
        assert response.json()["error"] == "JobQueueError"

    def test_get_job(self, client: TestClient) -> None:
        response = client.get("/api/v1/jobs/job-1")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "running"
        assert body["progress"] == 40
        assert body["logs"][0].endswith("Job queued with 2 tracks")

    def test_missing_job_is_404(self, app: FastAPI, client: TestClient) -> None:
        app.state.job_queue.get_job.return_value = None

        response = client.get("/api/v1/jobs/nope")

        assert response.status_code == 404
        assert "nope" in response.json()["detail"]

    def test_list_jobs_limit_bounds(self, app: FastAPI, client: TestClient) -> None:
        assert client.get("/api/v1/jobs", params={"limit": 5}).status_code == 200
        app.state.job_queue.list_jobs.assert_awaited_once_with(limit=5)
        assert client.get("/api/v1/jobs", params={"limit": 0}).status_code == 422


# ---------------------------------------------------------------------------
# Metrics & notifications
# ---------------------------------------------------------------------------


class TestMetricsAndNotifications:
    def test_metrics(self, client: TestClient) -> None:
        response = client.get("/api/v1/metrics")

        assert response.status_code == 200
        body = response.json()
        assert body["tracks"] == 10
        assert body["unsigned_candidates"] == 3
        assert body["jobs"]["completed"] == 2

    def test_list_notifications(self, client: TestClient) -> None:
        response = client.get("/api/v1/notifications")

        assert response.status_code == 200
        body = response.json()
        assert body["unread_count"] == 1
        assert body["notifications"][0]["id"] == "n1"

    def test_unread_only(self, app: FastAPI, client: TestClient) -> None:
        response = client.get("/api/v1/notifications", params={"unread_only": "true", "limit": 10})

        assert response.json()["notifications"] == []
        app.state.notification_service.unread.assert_awaited_once_with(10)

    def test_mark_all_read(self, client: TestClient) -> None:
        response = client.post("/api/v1/notifications/read")

        assert response.status_code == 200
        assert response.json() == {"updated": 1}


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


class TestWebSocket:
    def test_connect_registers_listener(self, app: FastAPI, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            greeting = ws.receive_json()
            assert greeting == {"type": "connected", "connections": 1}

        assert app.state.notification_hub.connection_count == 0
