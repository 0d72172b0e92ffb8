# src/fxengine/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains application services that orchestrate domain logic.
No direct I/O dependencies - uses adapters through interfaces.
"""

from fxengine.application.rate_cache import RateCache
from fxengine.application.rate_resolver import ProviderChain, RateResolver
from fxengine.application.converter import CurrencyConverter, HistoricalSeries
from fxengine.application.detector import CurrencyDetector
from fxengine.application.payoff import DebtPayoffStrategist, amortization_schedule
from fxengine.application.debt_to_income import DebtToIncomeCalculator
from fxengine.application.exposure import CurrencyExposureAnalyzer
from fxengine.application.engine import CurrencyEngine

__all__ = [
    "RateCache",
    "ProviderChain",
    "RateResolver",
    "CurrencyConverter",
    "HistoricalSeries",
    "CurrencyDetector",
    "DebtPayoffStrategist",
    "amortization_schedule",
    "DebtToIncomeCalculator",
    "CurrencyExposureAnalyzer",
    "CurrencyEngine",
]
