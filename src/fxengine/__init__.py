# src/fxengine/__init__.py
"""
FXEngine - Currency & Exchange-Rate Engine

Resolves currency codes, fetches and caches exchange rates from upstream
providers with a graceful fallback ladder, converts single amounts, batches
and historical series with currency-aware rounding, and computes debt payoff
strategies and debt-to-income ratios over a user's loans.
"""

__version__ = "1.0.0"
