"""Configuration management using Pydantic Settings.

This module provides centralized configuration for the mahjong league
application, supporting environment variables and .env file loading.

Example:
    >>> from mahjong_league.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.db_path)
    'data/mahjong.db'
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables take precedence over .env file values.

    Attributes:
        db_path: Path to SQLite database file.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory for log files.
        season_games: Games each team plays in a full season.
        unaffiliated_label: Team name shown for players without a team.
        unaffiliated_color: Color tag shown for players without a team.
        default_team_color: Color tag given to teams imported without one.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_path: str = Field(
        default="data/mahjong.db",
        alias="MAHJONG_DB_PATH",
        description="Path to SQLite database file",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    log_dir: str = Field(
        default="logs",
        alias="LOG_DIR",
        description="Directory for log files",
    )

    # League
    season_games: int = Field(
        default=64,
        alias="SEASON_GAMES",
        ge=1,
        description="Games each team plays over a full season",
    )
    unaffiliated_label: str = Field(
        default="Unaffiliated",
        alias="UNAFFILIATED_LABEL",
        min_length=1,
        description="Team name displayed for players without a team",
    )
    unaffiliated_color: str = Field(
        default="bg-gray-100 text-gray-800",
        alias="UNAFFILIATED_COLOR",
        description="Color tag displayed for players without a team",
    )
    default_team_color: str = Field(
        default="bg-gray-100 text-gray-800",
        alias="DEFAULT_TEAM_COLOR",
        description="Color tag for imported teams that carry none",
    )

    @field_validator("db_path", "log_dir")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure path strings are valid."""
        if not v or v.isspace():
            raise ValueError("Path cannot be empty or whitespace")
        return v

    @property
    def db_path_obj(self) -> Path:
        """Return database path as Path object."""
        return Path(self.db_path)

    @property
    def log_dir_obj(self) -> Path:
        """Return log directory as Path object."""
        return Path(self.log_dir)

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.db_path_obj.parent.mkdir(parents=True, exist_ok=True)
        self.log_dir_obj.mkdir(parents=True, exist_ok=True)


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> print(settings.season_games)
        64
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
