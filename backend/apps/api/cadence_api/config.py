"""
API configuration.

Application-level settings for the HTTP service. Catalog paths and
feed fetching options live in ``cadence_core.config``.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_project_root = Path(__file__).parent.parent.parent.parent.parent
_env_file = _project_root / ".env"


class Settings(BaseSettings):
    """
    API settings from environment variables.

    All settings are prefixed with CADENCE_API_ in environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_API_",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Task queue; builds run inline when unset
    redis_url: str | None = None


settings = Settings()
