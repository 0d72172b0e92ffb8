# src/fxengine/shared/validators.py
"""
Input Validation Utilities - Currency Codes and Numeric Inputs

This module provides the small validation and normalization helpers shared by
configuration, domain models and the application services: ISO-4217 and
ISO-3166 code shapes, decimal coercion and API key checks.

Files that USE this module:
- fxengine.config.settings (field validators)
- fxengine.domain.models (MonetaryAmount and Loan validation)
- fxengine.application.detector (country and symbol normalization)

Files that this module USES:
- None (pure utility functions)
"""
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Union

Number = Union[Decimal, int, float, str]

_CURRENCY_RE = re.compile(r'^[A-Z]{3}$')


def normalize_currency_code(code: str) -> str:
    """Upper-case and strip a currency code. Non-strings become ''."""
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def is_currency_code_shape(code: str) -> bool:
    """
    Check that a value looks like an ISO-4217 code (three letters).

    Args:
        code: Already-normalized code

    Returns:
        True if the code has the right shape, False otherwise
    """
    return bool(code) and bool(_CURRENCY_RE.match(code))


def normalize_country_code(code: str) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def to_decimal(value: Number) -> Decimal:
    """
    Coerce a number to a finite Decimal.

    Floats go through str() so 0.1 becomes Decimal('0.1') rather than its
    binary expansion.

    Args:
        value: Decimal, int, float or numeric string

    Returns:
        Finite Decimal

    Raises:
        ValueError: If the value is not numeric or not finite
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Amount must be finite: {value!r}")
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).replace(",", "").strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Not a numeric amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def validate_api_key(api_key: str, min_length: int = 10) -> bool:
    """
    Validate API key format.

    Args:
        api_key: API key to validate
        min_length: Minimum length requirement

    Returns:
        True if valid, False otherwise
    """
    if not api_key:
        return False

    return len(api_key) >= min_length and not api_key.isspace()

