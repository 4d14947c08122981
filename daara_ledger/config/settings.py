"""
Configuration Management for Daara Ledger

Uses pydantic-settings for type-safe configuration from environment variables
and an optional .env file.

These are deployment settings (where data lives, logging, defaults for a
fresh install). The organization's own configuration (percent split, member
roster, contact details) is ledger data and lives in AppConfig.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DAARA_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".daara_ledger",
        description="Directory holding the data and filter files"
    )
    data_file_name: str = Field(
        default="daara_maha_data.json",
        description="File holding the whole ledger (records + configuration)"
    )
    filters_file_name: str = Field(
        default="daara_maha_browser_filters.json",
        description="File holding the last saved browsing filters"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed file write is attempted"
    )

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.data_file_name

    @property
    def filters_path(self) -> Path:
        return self.data_dir / self.filters_file_name


class AllocationSettings(BaseSettings):
    """Fund split used for a fresh install (before any configuration is saved)."""

    model_config = SettingsConfigDict(
        env_prefix="DAARA_ALLOCATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_renovation_percent: int = Field(default=40, ge=0, le=100)
    default_social_percent: int = Field(default=30, ge=0, le=100)
    default_board_percent: int = Field(default=30, ge=0, le=100)


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

    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )
    organization_name: str = Field(
        default="DAARA MAHA",
        description="Name printed on reports"
    )
    currency_label: str = Field(
        default="FCFA",
        description="Currency shown next to amounts"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def allocation(self) -> AllocationSettings:
        return AllocationSettings()

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
    Validate every settings section.

    Returns a dict of {section_name: is_valid}, plus "<section>_error"
    entries holding the message for invalid sections.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "allocation", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
