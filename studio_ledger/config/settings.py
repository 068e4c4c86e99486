"""
Configuration Management for Studio Ledger

Settings come from environment variables (and an optional .env file)
through pydantic-settings.

DESIGN DECISION: All configuration is centralized here, and the settings
object is passed explicitly to the repository factory. The backend choice
is read from it once, when the repository is built, and never re-read.
"""

import warnings
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Remote backend (Google Sheets) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        min_length=1,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="ID of the spreadsheet holding the ledger tables"
    )

    # One worksheet per table
    services_sheet_name: str = Field(
        default="services",
        description="Name of the worksheet for services"
    )
    appointments_sheet_name: str = Field(
        default="appointments",
        description="Name of the worksheet for appointments"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Only warn on a missing file; the secret may be mounted after startup."""
        if not Path(v).exists():
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "The remote backend cannot connect until it is present."
            )
        return v


class LocalStoreSettings(BaseSettings):
    """Local fallback store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_LOCAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".ledger_data",
        description="Directory holding the JSON records of the local store"
    )


class AppSettings(BaseSettings):
    """
    Process-wide application settings.

    log_level is applied to the studio_ledger logger by create_ledger().
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

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
        description="Minimum level for the structured log"
    )


class Settings(BaseSettings):
    """
    Entry point for all configuration sections.

    Each section is built on access, so the local backend works with no
    Google Sheets variables set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def local_store(self) -> LocalStoreSettings:
        return LocalStoreSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def remote_configured(self) -> bool:
        """True when the Google Sheets credentials and spreadsheet are set."""
        try:
            _ = self.google_sheets
        except ValidationError:
            return False
        return True


@lru_cache()
def get_settings() -> Settings:
    """
    Return the process settings.

    Built once and cached; tests build Settings() directly instead.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Report which configuration sections load.

    Returns {section: loaded}, plus {section}_error for failures.
    An unconfigured google_sheets section only means the local store is used.
    """
    results = {}

    settings = get_settings()

    sections = {
        "google_sheets": lambda: settings.google_sheets,
        "local_store": lambda: settings.local_store,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except ValidationError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
