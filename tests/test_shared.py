# tests/test_shared.py
"""
Shared Utility Tests - Validators, Rate Limiter and Settings

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- fxengine.shared.validators (coercion and code helpers)
- fxengine.shared.rate_limiter (RateLimiter)
- fxengine.config.settings (Settings)
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from fxengine.config.settings import Settings
from fxengine.shared.rate_limiter import RateLimitConfig, RateLimiter
from fxengine.shared.validators import (
    is_currency_code_shape,
    normalize_currency_code,
    to_decimal,
    validate_api_key,
)


class TestValidators:
    def test_normalize_currency_code(self):
        assert normalize_currency_code(" usd ") == "USD"
        assert normalize_currency_code(None) == ""

    def test_currency_code_shape(self):
        assert is_currency_code_shape("EUR")
        assert not is_currency_code_shape("EURO")
        assert not is_currency_code_shape("")

    def test_to_decimal(self):
        assert to_decimal("1,000.25") == Decimal("1000.25")
        assert to_decimal(7) == Decimal("7")
        with pytest.raises(ValueError):
            to_decimal("NaN")

    def test_validate_api_key(self):
        assert validate_api_key("abcdefghij")
        assert not validate_api_key("short")
        assert not validate_api_key("")


class TestRateLimiter:
    def test_blocks_after_quota(self):
        limiter = RateLimiter()
        config = RateLimitConfig(max_requests=2, time_window=60)

        assert limiter.is_allowed("p", config)
        assert limiter.is_allowed("p", config)
        assert not limiter.is_allowed("p", config)
        assert limiter.get_remaining_requests("p", config) == 0

    def test_identifiers_are_independent(self):
        limiter = RateLimiter()
        config = RateLimitConfig(max_requests=1, time_window=60)

        assert limiter.is_allowed("a", config)
        assert limiter.is_allowed("b", config)

    def test_reset(self):
        limiter = RateLimiter()
        config = RateLimitConfig(max_requests=1, time_window=60)
        limiter.is_allowed("a", config)

        limiter.reset("a")

        assert limiter.get_remaining_requests("a", config) == 1


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("FX_STALENESS_MINUTES", "FX_TRIANGULATION_BASE", "FX_USE_REFERENCE_RATES",
                    "ALPHA_VANTAGE_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        s = Settings(_env_file=None)

        assert s.staleness_minutes == 60
        assert s.staleness_seconds == 3600
        assert s.triangulation_base == "USD"
        assert s.payoff_max_months == 600
        assert s.use_reference_rates is False
        assert not s.has_alpha_vantage_key

    def test_env_overrides_normalized(self, monkeypatch):
        monkeypatch.setenv("FX_TRIANGULATION_BASE", " eur ")
        monkeypatch.setenv("ALPHA_VANTAGE_API_KEY", "  REALKEY123  ")

        s = Settings(_env_file=None)

        assert s.triangulation_base == "EUR"
        assert s.alpha_vantage_key == "REALKEY123"
        assert s.has_alpha_vantage_key

    def test_demo_key_not_used(self, monkeypatch):
        monkeypatch.setenv("ALPHA_VANTAGE_API_KEY", "demo")
        assert not Settings(_env_file=None).has_alpha_vantage_key

    def test_invalid_currency_setting(self, monkeypatch):
        monkeypatch.setenv("FX_DEFAULT_CURRENCY", "dollars")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_bounds(self, monkeypatch):
        monkeypatch.setenv("FX_STALENESS_MINUTES", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
