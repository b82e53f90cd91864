"""Runtime configuration for servicefetch."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__


class Settings(BaseSettings):
    """Configuration values mapped from ``SERVICEFETCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICEFETCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field("Service Fetch API")
    version: str = Field(__version__)
    agent_name: str = Field("servicefetch", description="Tool name sent in the User-Agent header")

    # Artifact repository
    repository_url: str = Field("https://artefacts.example.com/artifactory/releases")
    repository_username: Optional[str] = Field(None)
    repository_password: Optional[str] = Field(None)

    # Timeouts in seconds
    http_timeout_seconds: float = Field(30.0, gt=0)
    fetch_timeout_seconds: float = Field(30 * 60.0, gt=0)

    # Default root for installs requested over HTTP
    install_dir: str = Field("./services")

    log_level: str = Field("INFO")


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance for dependency injection."""
    return Settings()
