"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- Static defaults checked into the repo
#   2. .env file           -- Local developer overrides (not committed)
#   3. Environment vars    -- Set at deploy time
#
# YAML holds the tunables that are policy rather than secrets: provider
# chain order per playlist type, identity-matching thresholds, discovery
# playlist keywords.  Settings (pydantic-settings) holds credentials and
# runtime knobs and is deep-merged on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from songscout.config.settings import Settings
from songscout.utils.errors import ConfigurationError

_DEFAULT_CHAINS = {
    "editorial": ["chartmetric", "editorial_scrape"],
    "algorithmic": ["spotify_api", "chartmetric"],
}

_KNOWN_PROVIDERS = frozenset({"chartmetric", "spotify_api", "editorial_scrape"})

# "specific" needs a playlist id, so it cannot be scheduled.
_SCHEDULE_MODES = frozenset({"all", "editorial", "non-editorial"})


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If a provider chain names an unknown provider.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "storage": {
            "database_path": settings.database_path,
        },
        "rate_limits": {
            "chartmetric_min_interval": settings.chartmetric_min_interval,
            "spotify_concurrency": settings.spotify_concurrency,
            "scraper_concurrency": settings.scraper_concurrency,
            "playlist_concurrency": settings.playlist_concurrency,
            "musicbrainz_min_interval": settings.musicbrainz_min_interval,
        },
        "providers": {
            "configured": settings.get_configured_providers(),
        },
        "schedule": {
            "enabled": settings.fetch_schedule_enabled,
            "interval_hours": settings.fetch_interval_hours,
            "mode": settings.fetch_schedule_mode,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    yaml_config.setdefault("fetch", {})
    chains = yaml_config["fetch"].setdefault("chains", {})
    for kind, default in _DEFAULT_CHAINS.items():
        chains.setdefault(kind, list(default))
    _validate_chains(chains)
    _validate_schedule(yaml_config["schedule"])
    return yaml_config


def _validate_schedule(schedule: dict) -> None:
    if schedule["mode"] not in _SCHEDULE_MODES:
        raise ConfigurationError(
            message=f"Unknown scheduled fetch mode '{schedule['mode']}'; expected one of {sorted(_SCHEDULE_MODES)}"
        )
    if schedule["interval_hours"] <= 0:
        raise ConfigurationError(message="fetch_interval_hours must be positive")


def _validate_chains(chains: dict) -> None:
    for kind, names in chains.items():
        unknown = [n for n in names if n not in _KNOWN_PROVIDERS]
        if unknown:
            raise ConfigurationError(
                message=f"Unknown provider(s) {unknown} in fetch.chains.{kind}",
            )


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
