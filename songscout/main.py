"""songscout FastAPI application entry point.

Wires together all providers, stores, services, and routes via dependency
injection.  Loads configuration from ``.env`` and ``config/config.yaml``,
configures structured logging, and starts the enrichment worker (and,
when enabled, the periodic fetch scheduler) inside the application
lifespan.

``_build_all`` / ``initialize_components`` / ``shutdown_components`` are
shared with the CLI, which runs the same components without a server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from songscout import __version__
from songscout.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from songscout.api.routes import router as api_router
from songscout.api.websocket import websocket_events
from songscout.config.loader import load_config
from songscout.config.settings import Settings
from songscout.models.playlist import FetchMode
from songscout.pipeline.job_queue import JobQueue
from songscout.pipeline.metrics_updates import MetricsUpdateManager
from songscout.pipeline.notification_hub import NotificationHub
from songscout.pipeline.playlist_fetch import PlaylistFetchOrchestrator
from songscout.pipeline.scheduler import FetchScheduler
from songscout.pipeline.worker import EnrichmentWorker
from songscout.providers.cache.ttl_snapshot_cache import TTLSnapshotCache
from songscout.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from songscout.providers.storage.sqlite_catalog_store import SQLiteCatalogStore
from songscout.providers.storage.sqlite_job_store import SQLiteJobStore
from songscout.providers.storage.sqlite_notification_store import SQLiteNotificationStore
from songscout.providers.tracks.chartmetric_provider import ChartmetricProvider
from songscout.providers.tracks.editorial_scrape_provider import EditorialScrapeProvider
from songscout.providers.tracks.spotify_provider import SpotifyProvider
from songscout.services.contact_sync import ContactSyncService
from songscout.services.duplicate_audit import DuplicateAuditService
from songscout.services.identity_resolver import IdentityResolver
from songscout.services.metrics_service import MetricsService
from songscout.services.notification_service import NotificationService
from songscout.services.scoring_engine import ScoringEngine
from songscout.utils.logging import configure_logging, get_logger
from songscout.utils.name_matching import TokenMatchPolicy
from songscout.utils.rate_limiter import RateLimiterRegistry

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider, store and service.

    Returns a flat dict of named components to be stored on ``app.state``.
    Nothing here touches the network or the database; see
    :func:`initialize_components`.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout)
    limiters = RateLimiterRegistry(
        chartmetric_interval=app_settings.chartmetric_min_interval,
        spotify_concurrency=app_settings.spotify_concurrency,
        scraper_concurrency=app_settings.scraper_concurrency,
        playlist_concurrency=app_settings.playlist_concurrency,
        musicbrainz_interval=app_settings.musicbrainz_min_interval,
    )

    # -- Track providers --
    chartmetric = ChartmetricProvider(app_settings, http_client)
    spotify = SpotifyProvider(app_settings, http_client)
    editorial_scrape = EditorialScrapeProvider(app_settings, http_client)
    track_providers = [chartmetric, spotify, editorial_scrape]
    musicbrainz = MusicBrainzProvider(app_settings) if app_settings.musicbrainz_enabled else None

    # -- Stores (one SQLite file by default) --
    catalog_store = SQLiteCatalogStore(app_settings.database_path)
    job_store = SQLiteJobStore(app_settings.database_path)
    notification_store = SQLiteNotificationStore(app_settings.database_path)
    cache = TTLSnapshotCache(max_age=app_settings.metrics_cache_ttl)

    # -- Policy from YAML --
    fetch_config = app_config.get("fetch", {})
    scoring = ScoringEngine(
        discovery_keywords=app_config.get("scoring", {}).get("discovery_playlist_keywords")
    )
    policy = TokenMatchPolicy(
        min_shared_tokens=app_config.get("matching", {}).get("min_shared_tokens", 2)
    )

    # -- Services --
    identity_resolver = IdentityResolver(catalog_store, policy=policy)
    contact_sync = ContactSyncService(catalog_store, scoring)
    duplicate_audit = DuplicateAuditService(
        catalog_store,
        threshold=app_config.get("audit", {}).get("similarity_threshold", 92),
    )
    notification_service = NotificationService(notification_store)
    metrics_service = MetricsService(catalog_store, job_store, cache)

    # -- Pipeline --
    notification_hub = NotificationHub()
    metrics_updates = MetricsUpdateManager(
        metrics_service,
        notification_hub,
        window=app_settings.metrics_debounce_seconds,
    )
    job_queue = JobQueue(job_store)
    fetch_orchestrator = PlaylistFetchOrchestrator(
        store=catalog_store,
        providers=track_providers,
        limiters=limiters,
        scoring=scoring,
        job_queue=job_queue,
        metrics_updates=metrics_updates,
        notifications=notification_service,
        chains=fetch_config.get("chains"),
        isrc_provider=spotify if fetch_config.get("isrc_backfill", True) else None,
    )
    worker = EnrichmentWorker(
        job_queue=job_queue,
        store=catalog_store,
        identity=identity_resolver,
        contacts=contact_sync,
        scoring=scoring,
        limiters=limiters,
        chartmetric=chartmetric,
        musicbrainz=musicbrainz,
        hub=notification_hub,
        metrics_updates=metrics_updates,
        notifications=notification_service,
        poll_interval=app_settings.worker_poll_interval,
        auto_populate_contacts=app_config.get("contacts", {}).get("auto_populate", True),
    )

    schedule = app_config.get("schedule", {})
    fetch_scheduler = FetchScheduler(
        fetch_orchestrator,
        interval_seconds=schedule.get("interval_hours", app_settings.fetch_interval_hours) * 3600,
        mode=FetchMode(schedule.get("mode", app_settings.fetch_schedule_mode)),
    )

    provider_status = {p.get_provider_name(): p.is_available() for p in track_providers}

    return {
        "http_client": http_client,
        "rate_limiters": limiters,
        "catalog_store": catalog_store,
        "job_store": job_store,
        "notification_store": notification_store,
        "scoring_engine": scoring,
        "identity_resolver": identity_resolver,
        "contact_sync": contact_sync,
        "duplicate_audit": duplicate_audit,
        "notification_service": notification_service,
        "metrics_service": metrics_service,
        "notification_hub": notification_hub,
        "metrics_updates": metrics_updates,
        "job_queue": job_queue,
        "fetch_orchestrator": fetch_orchestrator,
        "worker": worker,
        "fetch_scheduler": fetch_scheduler,
        "musicbrainz": musicbrainz,
        "provider_status": provider_status,
    }


async def initialize_components(components: dict[str, Any]) -> list[str]:
    """Create schemas and run job recovery.

    Returns the IDs of jobs that were reset from ``running`` to ``queued``.
    """
    await components["catalog_store"].initialize()
    await components["notification_store"].initialize()
    return await components["job_queue"].initialize()


async def shutdown_components(components: dict[str, Any]) -> None:
    """Stop the background loops, drop any pending metrics update, close HTTP."""
    await components["fetch_scheduler"].stop()
    await components["worker"].stop()
    await components["metrics_updates"].shutdown()
    components["rate_limiters"].reset()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build and initialise components on startup, tear down on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    recovered = await initialize_components(components)
    if settings.worker_enabled:
        components["worker"].start()
    if settings.fetch_schedule_enabled:
        components["fetch_scheduler"].start()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        providers=components["provider_status"],
        recovered_jobs=len(recovered),
        worker_enabled=settings.worker_enabled,
        fetch_schedule_enabled=settings.fetch_schedule_enabled,
    )

    yield

    await shutdown_components(components)
    _logger.info("app_shutdown", message="Worker and scheduler stopped, HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="songscout API",
        version=__version__,
        description=(
            "Monitor curated playlists, enrich new tracks with songwriter "
            "credits, and surface songwriters who look unsigned."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws")
    async def ws_events(websocket: WebSocket) -> None:
        await websocket_events(websocket)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "songscout.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
