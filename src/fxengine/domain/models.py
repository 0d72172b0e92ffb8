# src/fxengine/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Monetary amounts and exchange rates
- Conversion requests, results and batch error slots
- Historical rate points
- Loans, payoff plans and debt-to-income reports
- Currency exposure and risk analysis

Files that USE this module:
- fxengine.application.* (all services use domain models)
- fxengine.adapters.* (adapters create and use domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- fxengine.domain.currencies (supported currency table)
- fxengine.domain.errors (validation errors)
- fxengine.shared.validators (decimal coercion, code normalization)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field  # Decorator for creating data classes
from datetime import date, datetime  # Date/time utilities for timestamps
from decimal import ROUND_HALF_EVEN, Decimal, localcontext  # Exact decimal arithmetic for money
from enum import Enum  # Closed sets of tags
from typing import Dict, List, Optional, Tuple, Union  # Type hints

from fxengine.domain.currencies import SUPPORTED_CURRENCIES, Currency
from fxengine.domain.errors import CurrencyMismatchError, InvalidCurrencyCode, InvalidLoanError
from fxengine.shared.validators import Number, normalize_currency_code, to_decimal

LoanId = Union[int, str]


def require_currency(code: str) -> Currency:
    """
    Look up a supported currency by (case-insensitive) code.

    Raises:
        InvalidCurrencyCode: If the code is not in the supported table
    """
    normalized = normalize_currency_code(code)
    try:
        return SUPPORTED_CURRENCIES[normalized]
    except KeyError:
        raise InvalidCurrencyCode(normalized or str(code)) from None


def quantize_for(amount: Decimal, code: str, rounding: str = ROUND_HALF_EVEN) -> Decimal:
    """Round an amount to the minor unit of a currency (half-to-even by default)."""
    places = require_currency(code).decimal_places
    with localcontext() as ctx:
        # quantize needs every integer digit plus the minor unit in the working precision
        ctx.prec = max(ctx.prec, amount.adjusted() + places + 2)
        return amount.quantize(Decimal(1).scaleb(-places), rounding=rounding)


class RateSource(str, Enum):
    """Where an exchange rate came from."""
    API = "api"
    CACHE = "cache"
    FALLBACK = "fallback"
    IDENTITY = "identity"


@dataclass(frozen=True)
class MonetaryAmount:
    """
    An amount of money in a supported currency.

    Attributes:
        amount: Finite Decimal value (may be signed for gain/loss deltas)
        currency: Normalized ISO-4217 code
    """
    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", require_currency(self.currency).code)

    @classmethod
    def of(cls, amount: Number, currency: str) -> MonetaryAmount:
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str) -> MonetaryAmount:
        return cls(amount=Decimal("0"), currency=currency)

    def _check_same_currency(self, other: MonetaryAmount) -> None:
        if not isinstance(other, MonetaryAmount):
            raise TypeError(f"Cannot combine MonetaryAmount with {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(f"Cannot combine {self.currency} with {other.currency}")

    def __add__(self, other: MonetaryAmount) -> MonetaryAmount:
        self._check_same_currency(other)
        return MonetaryAmount(self.amount + other.amount, self.currency)

    def __sub__(self, other: MonetaryAmount) -> MonetaryAmount:
        self._check_same_currency(other)
        return MonetaryAmount(self.amount - other.amount, self.currency)

    def __mul__(self, factor: Number) -> MonetaryAmount:
        return MonetaryAmount(self.amount * to_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: MonetaryAmount) -> bool:
        self._check_same_currency(other)
        return self.amount < other.amount

    def rounded(self) -> MonetaryAmount:
        """Return a copy rounded half-to-even to the currency's decimal places."""
        return MonetaryAmount(quantize_for(self.amount, self.currency), self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict:
        return {"amount": str(self.amount), "currency": self.currency}


@dataclass(frozen=True)
class ExchangeRate:
    """
    Rate quoted for an ordered currency pair: 1 `from_currency` = `rate` `to_currency`.

    Attributes:
        from_currency: Base currency code
        to_currency: Quote currency code
        rate: Positive Decimal rate
        timestamp: When the rate was fetched (aware UTC)
        source: Where the rate came from
        stale: True when served past the freshness threshold
        provider: Name of the upstream provider, if any
    """
    from_currency: str
    to_currency: str
    rate: Decimal
    timestamp: datetime
    source: RateSource = RateSource.API
    stale: bool = False
    provider: Optional[str] = None

    def __post_init__(self) -> None:
        rate = to_decimal(self.rate)
        if rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {rate}")
        object.__setattr__(self, "rate", rate)

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.from_currency, self.to_currency)

    def inverse(self) -> ExchangeRate:
        """Derive the reciprocal quote for the reversed pair."""
        return ExchangeRate(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            rate=Decimal(1) / self.rate,
            timestamp=self.timestamp,
            source=self.source,
            stale=self.stale,
            provider=self.provider,
        )

    def tagged(self, source: RateSource, stale: bool = False) -> ExchangeRate:
        return ExchangeRate(
            from_currency=self.from_currency,
            to_currency=self.to_currency,
            rate=self.rate,
            timestamp=self.timestamp,
            source=source,
            stale=stale,
            provider=self.provider,
        )

    def to_dict(self) -> dict:
        return {
            "from": self.from_currency,
            "to": self.to_currency,
            "rate": str(self.rate),
            "timestamp": self.timestamp.isoformat(),
            "source": self.source.value,
            "stale": self.stale,
            "provider": self.provider,
        }


@dataclass(frozen=True)
class ConversionRequest:
    amount: Decimal
    from_currency: str
    to_currency: str

    @classmethod
    def from_dict(cls, data: dict) -> ConversionRequest:
        """Build from a handler payload like {"amount": 10, "from": "USD", "to": "EUR"}."""
        return cls(
            amount=data.get("amount"),
            from_currency=data.get("from", data.get("from_currency", "")),
            to_currency=data.get("to", data.get("to_currency", "")),
        )


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of a successful conversion.

    Attributes:
        amount: Converted, rounded amount in the target currency
        original: Amount that was converted
        rate: Rate used (carries source and staleness)
    """
    amount: MonetaryAmount
    original: MonetaryAmount
    rate: ExchangeRate
    ok: bool = field(default=True, init=False)

    @property
    def stale(self) -> bool:
        return self.rate.stale

    def to_dict(self) -> dict:
        return {
            "amount": str(self.amount.amount),
            "currency": self.amount.currency,
            "originalAmount": str(self.original.amount),
            "originalCurrency": self.original.currency,
            "rate": str(self.rate.rate),
            "source": self.rate.source.value,
            "stale": self.stale,
            "lastUpdated": self.rate.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class BatchError:
    """A failed slot in a batch response, at the same index as its request."""
    index: int
    error: str
    message: str
    ok: bool = field(default=False, init=False)

    @classmethod
    def from_exception(cls, index: int, exc: Exception) -> BatchError:
        return cls(index=index, error=type(exc).__name__, message=str(exc))

    def to_dict(self) -> dict:
        return {"index": self.index, "error": self.error, "message": self.message}


@dataclass(frozen=True)
class HistoricalPoint:
    day: date
    rate: Decimal
    source: RateSource = RateSource.API

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "rate": str(self.rate), "source": self.source.value}


@dataclass(frozen=True)
class HistoricalResult:
    """
    Daily rates over an inclusive date range.

    Days that could not be resolved are left out of `points` and listed in
    `missing` so callers can warn about the gaps.
    """
    from_currency: str
    to_currency: str
    start: date
    end: date
    points: List[HistoricalPoint]
    missing: List[date]

    @property
    def complete(self) -> bool:
        return not self.missing

    def to_dict(self) -> dict:
        return {
            "from": self.from_currency,
            "to": self.to_currency,
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "rates": [p.to_dict() for p in self.points],
            "missingDates": [d.isoformat() for d in self.missing],
        }


@dataclass(frozen=True)
class Loan:
    """
    Read-only snapshot of a loan owned by the persistence layer.

    Attributes:
        id: Loan identifier (used as the deterministic tiebreaker)
        current_balance: Outstanding balance (non-negative)
        interest_rate: Annual interest rate in percent (e.g. 5.5)
        monthly_payment: Minimum monthly payment (non-negative)
        principal: Original principal, defaults to the current balance
        next_payment_date: Date of the next scheduled payment
        term_months: Remaining term, if known
    """
    id: LoanId
    current_balance: MonetaryAmount
    interest_rate: Decimal
    monthly_payment: MonetaryAmount
    principal: Optional[MonetaryAmount] = None
    name: str = ""
    start_date: Optional[date] = None
    next_payment_date: Optional[date] = None
    term_months: Optional[int] = None

    def __post_init__(self) -> None:
        try:
            rate = to_decimal(self.interest_rate)
        except ValueError as e:
            raise InvalidLoanError(f"Loan {self.id}: {e}") from e
        object.__setattr__(self, "interest_rate", rate)
        if self.principal is None:
            object.__setattr__(self, "principal", self.current_balance)

        if rate < 0:
            raise InvalidLoanError(f"Loan {self.id}: interest rate must be non-negative")
        for label, value in (("balance", self.current_balance), ("monthly payment", self.monthly_payment),
                             ("principal", self.principal)):
            if value.is_negative:
                raise InvalidLoanError(f"Loan {self.id}: {label} must be non-negative")
        if self.monthly_payment.currency != self.current_balance.currency:
            raise InvalidLoanError(f"Loan {self.id}: payment and balance currencies differ")

    @property
    def currency(self) -> str:
        return self.current_balance.currency

    @property
    def is_active(self) -> bool:
        return self.current_balance.amount > 0

    @property
    def monthly_rate(self) -> Decimal:
        return self.interest_rate / Decimal(100) / Decimal(12)


class PayoffStrategy(str, Enum):
    SNOWBALL = "snowball"
    AVALANCHE = "avalanche"


@dataclass(frozen=True)
class PayoffPlan:
    """
    Simulated payoff of a loan set under one strategy.

    `horizon_exceeded` is set when the simulation hit the month cap before
    every balance reached zero; `payoff_months` is then the cap.
    `stale_rates` is set when a loan had to be converted at a stale rate.
    """
    strategy: PayoffStrategy
    order: Tuple[LoanId, ...]
    total_interest: Decimal
    payoff_months: int
    currency: Optional[str] = None
    horizon_exceeded: bool = False
    payoff_month_by_loan: Dict[LoanId, int] = field(default_factory=dict)
    stale_rates: bool = False

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "order": list(self.order),
            "totalInterest": str(self.total_interest),
            "payoffMonths": self.payoff_months,
            "currency": self.currency,
            "horizonExceeded": self.horizon_exceeded,
            "payoffMonthByLoan": {str(k): v for k, v in self.payoff_month_by_loan.items()},
            "staleRates": self.stale_rates,
        }


@dataclass(frozen=True)
class AmortizationRow:
    payment_number: int
    payment_date: Optional[date]
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class DebtToIncomeReport:
    ratio: Decimal
    risk_tier: RiskTier
    recommendation: str
    monthly_income: MonetaryAmount
    total_monthly_payments: MonetaryAmount
    total_debt: MonetaryAmount
    stale_rates: bool = False

    def to_dict(self) -> dict:
        return {
            "debtToIncomeRatio": str(self.ratio),
            "riskLevel": self.risk_tier.value,
            "recommendation": self.recommendation,
            "monthlyIncome": str(self.monthly_income.amount),
            "totalMonthlyPayments": str(self.total_monthly_payments.amount),
            "totalDebt": str(self.total_debt.amount),
            "currency": self.monthly_income.currency,
            "staleRates": self.stale_rates,
        }


@dataclass(frozen=True)
class CurrencyExposure:
    """
    Share of a portfolio held in one currency.

    Attributes:
        currency: Currency the holdings are denominated in
        total_value: Holdings in their own currency
        converted_value: Holdings in the analysis currency
        percentage: Share of the converted total, in percent
        risk_tier: Base currency risk plus concentration risk
    """
    currency: str
    total_value: MonetaryAmount
    converted_value: MonetaryAmount
    percentage: Decimal
    risk_tier: RiskTier

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "totalValue": self.total_value.to_dict(),
            "convertedValue": self.converted_value.to_dict(),
            "percentage": str(self.percentage),
            "riskLevel": self.risk_tier.value,
        }


@dataclass(frozen=True)
class CurrencyRiskAnalysis:
    currency: str
    exposures: List[CurrencyExposure]
    risk_score: Decimal
    recommendations: List[str]
    stale_rates: bool = False

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "totalExposure": [e.to_dict() for e in self.exposures],
            "riskScore": str(self.risk_score),
            "recommendations": list(self.recommendations),
            "staleRates": self.stale_rates,
        }
