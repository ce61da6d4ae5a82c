"""
Configuration Management for Bearpaw Cabin Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The store connection target (project/namespace) and the listening port
are the only things that differ between deployments, so they live here
and nowhere else.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bearpaw.models.charts import ChartWindow


class StoreBackend(str, Enum):
    """Which record store implementation to build at startup."""
    DATASTORE = "datastore"
    MEMORY = "memory"


class DatastoreSettings(BaseSettings):
    """Google Cloud Datastore connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATASTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    project_id: Optional[str] = Field(
        default=None,
        description="GCP project id (falls back to the ambient project)"
    )
    namespace: str = Field(
        default="bearpaw-cabin",
        description="Datastore namespace holding all collections"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to a service account JSON file"
    )
    emulator_host: Optional[str] = Field(
        default=None,
        description="host:port of a local Datastore emulator"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Datastore credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    `PORT` is read unprefixed so the service runs unchanged on Cloud Run.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    # Storage
    store_backend: StoreBackend = Field(
        default=StoreBackend.DATASTORE,
        description="Record store implementation"
    )

    # HTTP server
    host: str = Field(
        default="0.0.0.0",
        description="Interface the API server binds to"
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the API server listens on"
    )

    # Charts
    chart_window: ChartWindow = Field(
        default=ChartWindow.CALENDAR_YEAR,
        description="Default bucketing window for the monthly chart"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def datastore(self) -> DatastoreSettings:
        return DatastoreSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries describing any failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.datastore
        results["datastore"] = True
    except Exception as e:
        results["datastore"] = False
        results["datastore_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
