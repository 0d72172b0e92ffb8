# src/fxengine/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation and decimal coercion (validators)
- Rate limiting of upstream calls (rate_limiter, depends on config)
- Logging configuration (logging_conf)

Only the dependency-free validators are re-exported here, since
fxengine.config itself imports them.
"""

from fxengine.shared.validators import (
    normalize_country_code,
    normalize_currency_code,
    to_decimal,
    validate_api_key,
)

__all__ = [
    "normalize_country_code",
    "normalize_currency_code",
    "to_decimal",
    "validate_api_key",
]
