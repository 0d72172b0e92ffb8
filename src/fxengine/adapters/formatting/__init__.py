# src/fxengine/adapters/formatting/__init__.py
"""
Formatting Adapters - Text Output

This package contains currency-aware formatting for amounts, rates and plans.
"""

from fxengine.adapters.formatting.formatter import (
    format_amount,
    format_conversion,
    format_payoff_plan,
    format_rate,
)

__all__ = [
    "format_amount",
    "format_conversion",
    "format_payoff_plan",
    "format_rate",
]
