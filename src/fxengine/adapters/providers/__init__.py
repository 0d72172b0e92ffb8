# src/fxengine/adapters/providers/__init__.py
"""
Provider Adapters - External Rate Sources

This package contains adapters for upstream exchange rate sources.
All providers implement the RateProvider interface.
"""

from fxengine.adapters.providers.base import RateProvider
from fxengine.adapters.providers.alphavantage import AlphaVantageProvider
from fxengine.adapters.providers.frankfurter import FrankfurterProvider
from fxengine.adapters.providers.static import REFERENCE_USD_RATES, StaticRateProvider

__all__ = [
    "RateProvider",
    "AlphaVantageProvider",
    "FrankfurterProvider",
    "StaticRateProvider",
    "REFERENCE_USD_RATES",
]
