"""Unit tests for component wiring in songscout/main.py."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from songscout.config.loader import load_config
from songscout.config.settings import Settings
from songscout import main
from songscout.main import _build_all, create_app, initialize_components, shutdown_components
from songscout.models.playlist import FetchMode
from songscout.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from songscout.models.job import JobStatus


def _settings(tmp_path: Path, **overrides) -> Settings:
    defaults = {
        "database_path": str(tmp_path / "app.db"),
        "chartmetric_refresh_token": "",
        "spotify_client_id": "",
        "spotify_client_secret": "",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestBuildAll:
    @pytest.mark.asyncio
    async def test_provider_status_follows_credentials(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, chartmetric_refresh_token="rt")
        components = _build_all(settings, load_config(str(tmp_path / "none.yaml"), settings=settings))
        try:
            assert components["provider_status"] == {
                "chartmetric": True,
                "spotify_api": False,
                "editorial_scrape": True,
            }
        finally:
            await components["http_client"].aclose()

    @pytest.mark.asyncio
    async def test_initialize_recovers_running_jobs(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)
        config = load_config(str(tmp_path / "none.yaml"), settings=settings)

        first = _build_all(settings, config)
        await initialize_components(first)
        job = await first["job_queue"].enqueue(["t1"])
        await first["job_queue"].claim_next()
        await shutdown_components(first)

        second = _build_all(settings, config)
        recovered = await initialize_components(second)
        try:
            assert recovered == [job.id]
            assert (await second["job_queue"].get_job(job.id)).status is JobStatus.QUEUED
        finally:
            await shutdown_components(second)

    @pytest.mark.asyncio
    async def test_musicbrainz_and_scheduler_follow_settings(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, fetch_interval_hours=24, fetch_schedule_mode="editorial")
        components = _build_all(settings, load_config(str(tmp_path / "none.yaml"), settings=settings))
        disabled = _settings(tmp_path, musicbrainz_enabled=False)
        without_mb = _build_all(disabled, load_config(str(tmp_path / "none.yaml"), settings=disabled))
        try:
            assert isinstance(components["musicbrainz"], MusicBrainzProvider)
            assert without_mb["musicbrainz"] is None
            scheduler = components["fetch_scheduler"]
            assert scheduler._interval == 24 * 3600
            assert scheduler._mode is FetchMode.EDITORIAL
            assert not scheduler.is_running
        finally:
            await components["http_client"].aclose()
            await without_mb["http_client"].aclose()


def test_lifespan_starts_scheduler_when_enabled(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(tmp_path, worker_enabled=False, fetch_schedule_enabled=True)
    monkeypatch.setattr(main, "settings", settings)
    monkeypatch.setattr(main, "config", load_config(str(tmp_path / "none.yaml"), settings=settings))

    with TestClient(create_app()) as client:
        scheduler = client.app.state.fetch_scheduler
        assert scheduler.is_running
        assert scheduler.next_run_at is not None
        assert not client.app.state.worker.is_running

    assert not scheduler.is_running


def test_lifespan_leaves_scheduler_off_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(tmp_path, worker_enabled=False)
    monkeypatch.setattr(main, "settings", settings)
    monkeypatch.setattr(main, "config", load_config(str(tmp_path / "none.yaml"), settings=settings))

    with TestClient(create_app()) as client:
        assert not client.app.state.fetch_scheduler.is_running


def test_create_app_registers_routes() -> None:
    app = create_app()

    assert isinstance(app, FastAPI)
    paths = {route.path for route in app.routes}
    assert {"/api/v1/health", "/api/v1/playlists/fetch", "/api/v1/jobs/{job_id}", "/ws"} <= paths
