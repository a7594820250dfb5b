"""Pydantic Settings model for application configuration."""

from pathlib import Path

import typer
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "notehub"


def default_data_dir() -> Path:
    """Per-user application directory holding the cache database."""
    return Path(typer.get_app_dir(APP_NAME))


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False
    NOTEHUB_DATA_DIR: Path = Field(default_factory=default_data_dir)

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_PAT_TOKEN: str | None = None

    # Sync settings
    NOTEHUB_PAGE_SIZE: int = Field(default=50, ge=1, le=100)
