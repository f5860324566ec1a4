"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from songscout.config.loader import load_config
from songscout.config.settings import Settings
from songscout.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _write(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestSettings:
    def test_scraper_is_always_configured(self) -> None:
        assert _settings().get_configured_providers() == ["editorial_scrape"]

    def test_spotify_needs_both_credentials(self) -> None:
        assert "spotify_api" not in _settings(spotify_client_id="id").get_configured_providers()
        configured = _settings(
            chartmetric_refresh_token="rt", spotify_client_id="id", spotify_client_secret="s"
        ).get_configured_providers()
        assert configured == ["chartmetric", "spotify_api", "editorial_scrape"]

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLAYLIST_CONCURRENCY", "5")
        monkeypatch.setenv("WORKER_ENABLED", "false")

        settings = _settings()

        assert settings.playlist_concurrency == 5
        assert settings.worker_enabled is False


class TestLoadConfig:
    def test_yaml_and_settings_are_merged(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "app:\n  name: songscout\n  port: 1\nscoring:\n  discovery_playlist_keywords: [new music]\n",
        )

        config = load_config(path, settings=_settings(app_port=9000, database_path="x.db"))

        assert config["app"]["name"] == "songscout"
        assert config["app"]["port"] == 9000
        assert config["storage"]["database_path"] == "x.db"
        assert config["scoring"]["discovery_playlist_keywords"] == ["new music"]
        assert config["providers"]["configured"] == ["editorial_scrape"]

    def test_missing_chains_get_defaults(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "fetch:\n  chains:\n    editorial: [editorial_scrape]\n")

        chains = load_config(path, settings=_settings())["fetch"]["chains"]

        assert chains["editorial"] == ["editorial_scrape"]
        assert chains["algorithmic"] == ["spotify_api", "chartmetric"]

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert config["fetch"]["chains"]["editorial"] == ["chartmetric", "editorial_scrape"]

    def test_unknown_provider_in_chain(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "fetch:\n  chains:\n    editorial: [chartmetric, soundcloud]\n")

        with pytest.raises(ConfigurationError, match="soundcloud"):
            load_config(path, settings=_settings())

    def test_schedule_defaults_to_weekly_and_off(self, tmp_path: Path) -> None:
        schedule = load_config(str(tmp_path / "absent.yaml"), settings=_settings())["schedule"]

        assert schedule == {"enabled": False, "interval_hours": 168.0, "mode": "all"}

    @pytest.mark.parametrize(
        ("overrides", "match"),
        [
            ({"fetch_schedule_mode": "specific"}, "specific"),
            ({"fetch_interval_hours": 0}, "positive"),
        ],
    )
    def test_invalid_schedule(self, tmp_path: Path, overrides: dict, match: str) -> None:
        with pytest.raises(ConfigurationError, match=match):
            load_config(str(tmp_path / "absent.yaml"), settings=_settings(**overrides))

    def test_repository_config_is_valid(self) -> None:
        root = Path(__file__).resolve().parents[2]
        config = load_config(str(root / "config" / "config.yaml"), settings=_settings())

        assert config["audit"]["similarity_threshold"] == 92
        assert config["matching"]["min_shared_tokens"] == 2
