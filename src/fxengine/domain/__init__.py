# src/fxengine/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models, static currency tables and business
errors. No dependencies on infrastructure or external systems.
"""

from fxengine.domain.currencies import (
    COUNTRY_CURRENCY,
    MARKET_SUFFIX_CURRENCY,
    SUPPORTED_CURRENCIES,
    Currency,
)
from fxengine.domain.models import (
    AmortizationRow,
    BatchError,
    ConversionRequest,
    ConversionResult,
    CurrencyExposure,
    CurrencyRiskAnalysis,
    DebtToIncomeReport,
    ExchangeRate,
    HistoricalPoint,
    HistoricalResult,
    Loan,
    MonetaryAmount,
    PayoffPlan,
    PayoffStrategy,
    RateSource,
    RiskTier,
)
from fxengine.domain.errors import (
    CurrencyMismatchError,
    DomainError,
    InvalidCurrencyCode,
    InvalidDateRange,
    InvalidLoanError,
    ProviderUnavailableError,
    RateUnavailable,
    UnknownCountry,
)

__all__ = [
    "Currency",
    "SUPPORTED_CURRENCIES",
    "COUNTRY_CURRENCY",
    "MARKET_SUFFIX_CURRENCY",
    "MonetaryAmount",
    "ExchangeRate",
    "RateSource",
    "ConversionRequest",
    "ConversionResult",
    "BatchError",
    "HistoricalPoint",
    "HistoricalResult",
    "Loan",
    "PayoffPlan",
    "PayoffStrategy",
    "AmortizationRow",
    "DebtToIncomeReport",
    "RiskTier",
    "CurrencyExposure",
    "CurrencyRiskAnalysis",
    "DomainError",
    "InvalidCurrencyCode",
    "InvalidDateRange",
    "UnknownCountry",
    "RateUnavailable",
    "CurrencyMismatchError",
    "InvalidLoanError",
    "ProviderUnavailableError",
]
