"""
Configuration Management for the Budget Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which knobs the engine exposes and
ensures all configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from budget_ledger.models.entry import SeriesIdentity


class LedgerSettings(BaseSettings):
    """Ledger, scheduler and persistence behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    series_identity: SeriesIdentity = Field(
        default=SeriesIdentity.SERIES_ID,
        description="How entries are grouped into a series (series_id or value)"
    )
    refresh_interval_seconds: float = Field(
        default=3600.0,
        ge=1.0,
        description="Cadence of the background reconciliation tick"
    )

    storage_backend: str = Field(
        default="json",
        pattern="^(memory|json|google_sheets)$",
        description="Which persistence gateway to use"
    )
    json_path: str = Field(
        default="ledger_store.json",
        description="Location of the JSON key-value store"
    )

    # Flush retries (tenacity)
    flush_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
    )
    flush_retry_max_wait_seconds: float = Field(
        default=4.0,
        ge=0.0,
        le=60.0,
    )

    @field_validator("json_path")
    @classmethod
    def validate_json_path(cls, v: str) -> str:
        """The file may not exist yet, but its directory must."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            raise ValueError(f"Directory for ledger store does not exist: {parent}")
        return v


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    committed_sheet_name: str = Field(
        default="Committed",
    )
    pending_sheet_name: str = Field(
        default="Pending",
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
    )
    debug_mode: bool = Field(
        default=False,
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )

    # Input boundary
    future_date_tolerance_days: int = Field(
        default=365,
        ge=0,
        description="How far ahead a one-time entry can be dated before we warn"
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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
