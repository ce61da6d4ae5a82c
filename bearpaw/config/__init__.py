"""Configuration package."""

from bearpaw.config.settings import (
    AppSettings,
    DatastoreSettings,
    Settings,
    StoreBackend,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "DatastoreSettings",
    "Settings",
    "StoreBackend",
    "get_settings",
    "validate_all_settings",
]
