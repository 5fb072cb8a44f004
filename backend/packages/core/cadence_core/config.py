"""
Catalog configuration.

This module provides configuration settings for the feed registry,
snapshot files, and feed parsing behaviour loaded from environment variables.
"""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file in project root
_project_root = Path(__file__).parent.parent.parent.parent.parent
_env_file = _project_root / ".env"

# Any of these being set means the filesystem is read-only and time is short.
_SERVERLESS_ENV_VARS = ("VERCEL", "AWS_LAMBDA_FUNCTION_NAME", "NETLIFY", "RAILWAY_ENVIRONMENT")


def _detect_serverless() -> bool:
    return any(os.getenv(name) for name in _SERVERLESS_ENV_VARS)


class CatalogSettings(BaseSettings):
    """
    Catalog configuration from environment variables.

    All settings are prefixed with CADENCE_ in environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage locations
    data_dir: Path = _project_root / "data"
    public_dir: Path = _project_root / "public"
    registry_filename: str = "feeds.json"
    static_albums_filename: str = "static-albums.json"
    static_cached_filename: str = "albums-static-cached.json"
    slug_overrides_path: Path | None = None
    database_url: str = f"sqlite+aiosqlite:///{_project_root / 'data' / 'feeds.db'}"

    # Site (used to fetch snapshots over HTTP in serverless deployments)
    site_url: str | None = None
    serverless: bool = Field(default_factory=_detect_serverless)

    # Feed fetching
    user_agent: str = "Cadence/1.0"
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    parse_timeout_seconds: float = Field(default=30.0, gt=0)
    serverless_parse_timeout_seconds: float = Field(default=10.0, gt=0)
    snapshot_http_timeout_seconds: float = Field(default=5.0, gt=0)

    # Throttling
    classify_delay_seconds: float = Field(default=0.2, ge=0)
    slow_hosts: list[str] = Field(default_factory=lambda: ["wavlake.com"])
    slow_host_delay_seconds: float = Field(default=0.5, ge=0)

    # Caching
    albums_cache_ttl_seconds: int = Field(default=300, ge=0)
    album_cache_ttl_seconds: int = Field(default=600, ge=0)

    @property
    def registry_path(self) -> Path:
        return self.data_dir / self.registry_filename

    @property
    def static_albums_path(self) -> Path:
        return self.public_dir / self.static_albums_filename

    @property
    def static_cached_path(self) -> Path:
        return self.public_dir / self.static_cached_filename

    @property
    def effective_parse_timeout(self) -> float:
        """Per-feed parse timeout, shortened when running serverless."""
        if self.serverless:
            return self.serverless_parse_timeout_seconds
        return self.parse_timeout_seconds


# Global instance
catalog_settings = CatalogSettings()
