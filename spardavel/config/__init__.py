"""Configuration package."""

from spardavel.config.settings import (
    FALLBACK_INTEREST_RATE,
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "FALLBACK_INTEREST_RATE",
    "LedgerSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
