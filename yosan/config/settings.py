"""
Configuration Management for Yosan

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Defaults applied when no settings row exists in the store, logging
behaviour and the optional snapshot file all come from this one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class YosanSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from YOSAN_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="YOSAN_",
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

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON (False for console output)"
    )

    # Persistence
    data_path: Optional[Path] = Field(
        default=None,
        description="JSON snapshot file. Leave unset for a purely in-memory store"
    )

    # Defaults used when the settings table is empty
    default_total_budget: float = Field(
        default=50000.0,
        ge=0,
        description="Monthly budget seeded on first run"
    )
    default_currency: str = Field(
        default="INR",
        min_length=1,
        description="ISO currency code seeded on first run"
    )
    default_currency_symbol: str = Field(
        default="₹",
        min_length=1,
        description="Symbol prefixed to formatted amounts"
    )
    default_month_start_day: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Day of month on which the budgeting month starts"
    )
    currency_locale: str = Field(
        default="en_IN",
        description="Locale used for digit grouping in formatted amounts"
    )

    # Live queries
    max_notification_rounds: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Cap on re-notification rounds caused by writes inside listeners"
    )

    seed_default_data: bool = Field(
        default=True,
        description="Seed default settings, categories and a sample project on first run"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing, reject unknown level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('data_path')
    @classmethod
    def expand_data_path(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand ~ in configured snapshot paths."""
        if v is None:
            return None
        return Path(v).expanduser()


@lru_cache()
def get_settings() -> YosanSettings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return YosanSettings()
