# src/fxengine/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Every tunable of the engine (staleness threshold, triangulation base,
retry policy, worker pool size, payoff horizon) is an environment variable
with a validated default.

Files that USE this module:
- fxengine.app (loads settings to wire the engine and logging)
- fxengine.adapters.providers.* (API keys, URLs and timeouts)
- fxengine.adapters.persistence.loan_store (loan snapshot file path)
- fxengine.application.* (services read their defaults from settings)

Files that this module USES:
- fxengine.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from pathlib import Path  # Object-oriented filesystem paths
from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from fxengine.shared.validators import (
    is_currency_code_shape,  # Validate ISO-4217 code shape
    normalize_currency_code,  # Upper-case and strip currency codes
    validate_api_key,  # Validate API key format
)


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Upstream Providers ---
    alpha_vantage_key: str = Field(default="", alias="ALPHA_VANTAGE_API_KEY")
    alpha_vantage_url: str = Field(default="https://www.alphavantage.co/query", alias="ALPHA_VANTAGE_URL")
    frankfurter_url: str = Field(default="https://api.frankfurter.app", alias="FRANKFURTER_URL")
    use_reference_rates: bool = Field(default=False, alias="FX_USE_REFERENCE_RATES")  # Static table as last provider

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)
    upstream_max_requests: int = Field(default=60, alias="UPSTREAM_MAX_REQUESTS", ge=1)
    upstream_window_seconds: int = Field(default=60, alias="UPSTREAM_WINDOW_SECONDS", ge=1)

    # --- Rate Resolution ---
    staleness_minutes: int = Field(default=60, alias="FX_STALENESS_MINUTES", ge=1, le=1440)
    triangulation_base: str = Field(default="USD", alias="FX_TRIANGULATION_BASE")
    default_currency: str = Field(default="USD", alias="FX_DEFAULT_CURRENCY")
    fetch_retries: int = Field(default=2, alias="FX_FETCH_RETRIES", ge=1, le=10)
    retry_delay_seconds: float = Field(default=0.5, alias="FX_RETRY_DELAY_SECONDS", ge=0.0, le=30.0)
    fetch_wait_seconds: float = Field(default=30.0, alias="FX_FETCH_WAIT_SECONDS", gt=0.0)
    batch_max_workers: int = Field(default=8, alias="FX_BATCH_MAX_WORKERS", ge=1, le=64)

    # --- Debt Payoff ---
    payoff_max_months: int = Field(default=600, alias="FX_PAYOFF_MAX_MONTHS", ge=1, le=1200)

    # --- Persistence ---
    loan_store_file: Path = Field(default=Path("./data/loans.json"), alias="LOAN_STORE_FILE")

    # --- Logging ---
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="FXENGINE_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @property
    def staleness_seconds(self) -> int:
        return self.staleness_minutes * 60

    @property
    def has_alpha_vantage_key(self) -> bool:
        """Alpha Vantage is only wired in with a real (non-demo) key."""
        return self.alpha_vantage_key != "demo" and validate_api_key(self.alpha_vantage_key, min_length=8)

    @field_validator("triangulation_base", "default_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Normalize and validate currency code settings."""
        code = normalize_currency_code(v)
        if not is_currency_code_shape(code):
            raise ValueError("Currency settings must be three-letter ISO-4217 codes")
        return code

    @field_validator("alpha_vantage_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        return v.strip()


# Global settings instance
settings = Settings()
