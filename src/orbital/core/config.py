# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Core configuration - centralized config for the orbital package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from orbital.core.config import get_config
    config = get_config()

    # Access settings
    api_url = config.api_url
    log_level = config.log_level

Scoring thresholds and weights are deliberately NOT settings: they are
module constants in health.py / partitions.py so every deployment scores
nodes the same way.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class OrbitalSettings(BaseSettings):
    """Configuration settings for the pNode analytics service.

    Settings can be configured via environment variables with the
    ORBITAL_ prefix, or a local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # ROSTER FEED SETTINGS
    # ==========================================================================

    api_url: str = Field(
        default="http://localhost:3000/api/pnodes",
        description="Endpoint returning the pNode roster ({nodes: [...]} or a bare list)",
        validation_alias="ORBITAL_API_URL",
    )
    poll_interval_seconds: float = Field(
        default=30.0,
        description="Seconds between roster fetches",
        validation_alias="ORBITAL_POLL_INTERVAL_SECONDS",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for roster fetches and pRPC calls",
        validation_alias="ORBITAL_REQUEST_TIMEOUT_SECONDS",
    )
    seed_nodes: str | None = Field(
        default=None,
        description="Comma-separated list of seed pRPC endpoints for discovery",
        validation_alias="ORBITAL_SEED_NODES",
    )
    geo_lookup_url: str = Field(
        default="https://ip-api.com/batch",
        description="ip-api.com compatible batch endpoint used to geolocate discovered pNodes",
        validation_alias="ORBITAL_GEO_LOOKUP_URL",
    )
    geo_enabled: bool = Field(
        default=True,
        description="Geolocate discovered pNodes by their gossip address",
        validation_alias="ORBITAL_GEO_ENABLED",
    )

    # ==========================================================================
    # HISTORY SETTINGS
    # ==========================================================================

    snapshot_capacity: int = Field(
        default=500,
        description="Maximum number of roster snapshots kept in memory",
        validation_alias="ORBITAL_SNAPSHOT_CAPACITY",
    )

    # ==========================================================================
    # SERVER SETTINGS
    # ==========================================================================

    host: str = Field(
        default="127.0.0.1",
        description="Host to bind the HTTP API to",
        validation_alias="ORBITAL_HOST",
    )
    port: int = Field(
        default=8430,
        description="Port to bind the HTTP API to",
        validation_alias="ORBITAL_PORT",
    )
    allowed_origins_raw: str = Field(
        default="*",
        description="Comma-separated CORS origins for the HTTP API",
        validation_alias="ORBITAL_ALLOWED_ORIGINS",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="ORBITAL_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="ORBITAL_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="ORBITAL_LOG_FILE",
    )

    @model_validator(mode="after")
    def validate_ranges(self) -> OrbitalSettings:
        """Reject settings that would stall the poller or break the server."""
        if self.poll_interval_seconds <= 0:
            raise ValueError("ORBITAL_POLL_INTERVAL_SECONDS must be greater than 0")
        if self.request_timeout_seconds <= 0:
            raise ValueError("ORBITAL_REQUEST_TIMEOUT_SECONDS must be greater than 0")
        if self.snapshot_capacity < 2:
            # sudden-drop detection needs a previous snapshot
            raise ValueError("ORBITAL_SNAPSHOT_CAPACITY must be at least 2")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"ORBITAL_PORT must be between 1 and 65535, got {self.port}")
        return self

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def seed_list(self) -> list[str]:
        """Seed endpoints as a list."""
        return _split_csv(self.seed_nodes)

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins as a list."""
        return _split_csv(self.allowed_origins_raw) or ["*"]


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: OrbitalSettings | None = None


def get_config() -> OrbitalSettings:
    """Get the global configuration instance.

    Returns:
        The singleton OrbitalSettings instance.
    """
    global _config
    if _config is None:
        _config = OrbitalSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
