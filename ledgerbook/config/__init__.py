"""Configuration package."""

from ledgerbook.config.settings import (
    AppSettings,
    GateSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GateSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
