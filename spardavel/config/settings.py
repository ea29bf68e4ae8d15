"""
Configuration Management for Spardavel

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger core never reads the environment itself; the store is handed
the values it needs (default rate, reminder interval, storage paths).
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


FALLBACK_INTEREST_RATE = Decimal("3.5")


class LedgerSettings(BaseSettings):
    """Interest and reminder configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPARDAVEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_interest_rate: Decimal = Field(
        default=FALLBACK_INTEREST_RATE,
        ge=0,
        le=100,
        description="Annual rate (percent) used where no rate change applies"
    )
    export_reminder_days: int = Field(
        default=14,
        ge=1,
        le=365,
        description="Days between export reminders"
    )


class StorageSettings(BaseSettings):
    """Persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPARDAVEL_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_path: str = Field(
        default="spardavel_state.json",
        description="Path of the JSON document holding the event log"
    )
    audit_log_path: Optional[str] = Field(
        default=None,
        description="Path of the JSON-lines audit trail (local logging only if unset)"
    )
    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a state write is attempted"
    )

    @field_validator('data_path')
    @classmethod
    def validate_data_path(cls, v: str) -> str:
        """Warn if the parent directory is missing (it may be created later)."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            import warnings
            warnings.warn(
                f"Directory for state file does not exist: {parent}. "
                "It must exist before the first save."
            )
        return v


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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an
    ``<name>_error`` entry for each failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    return results
