"""Tests for orbital.core.config - OrbitalSettings and global config management."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from orbital.core.config import OrbitalSettings, clear_config_cache, get_config


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch, tmp_path):
    """Keep a developer's local .env out of the tests."""
    monkeypatch.chdir(tmp_path)


class TestOrbitalSettingsDefaults:
    """Test that OrbitalSettings loads with correct default values."""

    def test_roster_defaults(self):
        settings = OrbitalSettings()

        assert settings.api_url == "http://localhost:3000/api/pnodes"
        assert settings.poll_interval_seconds == 30.0
        assert settings.request_timeout_seconds == 10.0
        assert settings.seed_list == []
        assert settings.geo_lookup_url == "https://ip-api.com/batch"
        assert settings.geo_enabled is True

    def test_history_default(self):
        assert OrbitalSettings().snapshot_capacity == 500

    def test_server_defaults(self):
        settings = OrbitalSettings()

        assert settings.host == "127.0.0.1"
        assert settings.port == 8430
        assert settings.allowed_origins == ["*"]

    def test_logging_defaults(self):
        settings = OrbitalSettings()

        assert settings.log_level == "INFO"
        assert settings.log_format == ""
        assert settings.log_file is None


class TestOrbitalSettingsEnv:
    """Environment variable overrides."""

    def test_roster_overrides(self, monkeypatch):
        monkeypatch.setenv("ORBITAL_API_URL", "https://dash.example.com/api/pnodes")
        monkeypatch.setenv("ORBITAL_POLL_INTERVAL_SECONDS", "5")
        monkeypatch.setenv("ORBITAL_SNAPSHOT_CAPACITY", "20")

        settings = OrbitalSettings()
        assert settings.api_url == "https://dash.example.com/api/pnodes"
        assert settings.poll_interval_seconds == 5.0
        assert settings.snapshot_capacity == 20

    def test_seed_list_parsing(self, monkeypatch):
        monkeypatch.setenv("ORBITAL_SEED_NODES", "http://a:6000/rpc, http://b:6000/rpc,,")
        assert OrbitalSettings().seed_list == ["http://a:6000/rpc", "http://b:6000/rpc"]

    def test_allowed_origins_parsing(self, monkeypatch):
        monkeypatch.setenv("ORBITAL_ALLOWED_ORIGINS", "https://a.example, https://b.example")
        assert OrbitalSettings().allowed_origins == ["https://a.example", "https://b.example"]

    def test_invalid_number_rejected(self, monkeypatch):
        monkeypatch.setenv("ORBITAL_PORT", "not-a-port")
        with pytest.raises(ValidationError):
            OrbitalSettings()

    @pytest.mark.parametrize(
        "name, value",
        [
            ("ORBITAL_POLL_INTERVAL_SECONDS", "0"),
            ("ORBITAL_REQUEST_TIMEOUT_SECONDS", "-1"),
            ("ORBITAL_SNAPSHOT_CAPACITY", "1"),
            ("ORBITAL_PORT", "70000"),
        ],
    )
    def test_out_of_range_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError, match=name):
            OrbitalSettings()

    def test_geo_overrides(self, monkeypatch):
        monkeypatch.setenv("ORBITAL_GEO_LOOKUP_URL", "http://geo.internal/batch")
        monkeypatch.setenv("ORBITAL_GEO_ENABLED", "false")

        settings = OrbitalSettings()
        assert settings.geo_lookup_url == "http://geo.internal/batch"
        assert settings.geo_enabled is False

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("ORBITAL_PORT=9999\n")
        assert OrbitalSettings().port == 9999


class TestGlobalConfig:
    """Singleton behavior."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_clear_config_cache(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("ORBITAL_PORT", "9001")
        assert get_config().port == first.port

        clear_config_cache()
        assert get_config().port == 9001
