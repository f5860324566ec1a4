"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority
# order):
#
#   1. **Environment variables** -- e.g. CHARTMETRIC_REFRESH_TOKEN=abc
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``spotify_client_id`` maps to env var ``SPOTIFY_CLIENT_ID``.
# An empty credential means "not configured": main.py still builds the
# provider, but ``is_available()`` reports False and the fetch
# orchestrator leaves it out of every chain.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """songscout application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Track providers ===
    chartmetric_refresh_token: str = ""
    chartmetric_base_url: str = "https://api.chartmetric.com/api"
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    # Base URL of the headless-browser scraper service; empty means the
    # editorial adapter parses the public embed page itself.
    editorial_scraper_url: str = ""

    # === MusicBrainz (ISRC artist lookup) ===
    musicbrainz_enabled: bool = True
    musicbrainz_app_name: str = "songscout"
    musicbrainz_app_version: str = "0.1.0"
    musicbrainz_contact: str = ""

    # === Storage ===
    database_path: str = "data/songscout.db"

    # === Rate limits / concurrency ===
    playlist_concurrency: int = 3
    chartmetric_min_interval: float = 2.0
    spotify_concurrency: int = 3
    scraper_concurrency: int = 2
    musicbrainz_min_interval: float = 1.0
    http_timeout: float = 30.0

    # === Enrichment worker ===
    worker_poll_interval: float = 2.0
    worker_enabled: bool = True

    # === Scheduled playlist fetch ===
    fetch_schedule_enabled: bool = False
    fetch_interval_hours: float = 168.0
    fetch_schedule_mode: str = "all"

    # === Metrics fan-out ===
    metrics_debounce_seconds: float = 8.0
    metrics_cache_ttl: int = 300

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_configured_providers(self) -> list[str]:
        """Return track provider names whose credentials are present."""
        providers: list[str] = []
        if self.chartmetric_refresh_token:
            providers.append("chartmetric")
        if self.spotify_client_id and self.spotify_client_secret:
            providers.append("spotify_api")
        # The scrape adapter needs no credentials.
        providers.append("editorial_scrape")
        return providers
