"""
Configuration Settings.

This module defines the client configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_HOME = Path.home() / ".muktsar_ngo"


class Settings(BaseSettings):
    """
    Client settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # =====================================================================
    # Backend Configuration
    # =====================================================================
    api_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the Muktsar NGO REST backend",
        alias="MUKTSAR_API_BASE_URL",
    )
    api_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout (seconds) applied to every HTTP request",
        alias="MUKTSAR_API_TIMEOUT",
    )

    # =====================================================================
    # Local Storage Configuration
    # =====================================================================
    credentials_path: Path = Field(
        default=_DEFAULT_HOME / "credentials.json",
        description="File holding the access token and cached user record",
        alias="MUKTSAR_CREDENTIALS_PATH",
    )
    acknowledgements_path: Path = Field(
        default=_DEFAULT_HOME / "acknowledgements.json",
        description="File holding alerts acknowledged on this device",
        alias="MUKTSAR_ACKNOWLEDGEMENTS_PATH",
    )

    # =====================================================================
    # Alert Configuration
    # =====================================================================
    alert_poll_interval: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between two checks for new active alerts",
        alias="MUKTSAR_ALERT_POLL_INTERVAL",
    )
    alert_expiry_hours: int = Field(
        default=24,
        ge=1,
        description="Lifetime of a newly created emergency alert",
        alias="MUKTSAR_ALERT_EXPIRY_HOURS",
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="MUKTSAR_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format (simple, detailed, json)",
        alias="MUKTSAR_LOG_FORMAT",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="MUKTSAR_LOG_FILE_DIR",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Also write logs to <log_file_dir>/muktsar_ngo.log",
        alias="MUKTSAR_ENABLE_FILE_LOGGING",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


def reset_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
