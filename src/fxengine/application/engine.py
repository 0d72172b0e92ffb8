# src/fxengine/application/engine.py
"""
Currency Engine - Operation Surface

This module exposes the engine's operations to callers (an HTTP layer, a
CLI or another service). It wires the converter, detector, payoff strategist
and debt-to-income calculator together and, for the loan analyses, converts
loans into one common currency before handing them to the pure calculators.

Files that USE this module:
- fxengine.app (build_engine composition root)
- tests.test_engine (unit tests)

Files that this module USES:
- fxengine.application.converter (CurrencyConverter)
- fxengine.application.detector (CurrencyDetector)
- fxengine.application.payoff (DebtPayoffStrategist, schedules and per-loan summaries)
- fxengine.application.debt_to_income (DebtToIncomeCalculator)
- fxengine.application.exposure (CurrencyExposureAnalyzer)
- fxengine.adapters.persistence (LoanRepository)
- fxengine.adapters.formatting (format_amount)
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from fxengine.adapters.formatting import format_amount
from fxengine.adapters.persistence import LoanRepository
from fxengine.application.converter import CurrencyConverter, PairLike
from fxengine.application.debt_to_income import DebtToIncomeCalculator
from fxengine.application.detector import CurrencyDetector
from fxengine.application.exposure import CurrencyExposureAnalyzer
from fxengine.application.payoff import (
    DebtPayoffStrategist,
    amortization_schedule,
    loan_payoff_date,
    loan_total_interest,
)
from fxengine.config import settings
from fxengine.domain.currencies import Currency
from fxengine.domain.errors import DomainError
from fxengine.domain.models import (
    AmortizationRow,
    BatchError,
    ConversionRequest,
    ConversionResult,
    CurrencyRiskAnalysis,
    DebtToIncomeReport,
    ExchangeRate,
    HistoricalResult,
    Loan,
    MonetaryAmount,
    PayoffPlan,
    require_currency,
)
from fxengine.shared.validators import Number

logger = logging.getLogger(__name__)


class CurrencyEngine:
    """Facade over the currency, rate and loan analysis components."""

    def __init__(
        self,
        converter: CurrencyConverter,
        detector: Optional[CurrencyDetector] = None,
        strategist: Optional[DebtPayoffStrategist] = None,
        dti: Optional[DebtToIncomeCalculator] = None,
        loans: Optional[LoanRepository] = None,
        exposure: Optional[CurrencyExposureAnalyzer] = None,
    ):
        self.converter = converter
        self.resolver = converter.resolver
        self.detector = detector or CurrencyDetector()
        self.strategist = strategist or DebtPayoffStrategist()
        self.dti = dti or DebtToIncomeCalculator()
        self.loans = loans
        self.exposure = exposure or CurrencyExposureAnalyzer()

    # -------------------------------------------------------------- rates

    def convert(self, amount: Number, from_currency: str, to_currency: str) -> ConversionResult:
        return self.converter.convert(amount, from_currency, to_currency)

    def convert_batch(
        self, requests: Iterable[Union[ConversionRequest, dict]]
    ) -> List[Union[ConversionResult, BatchError]]:
        return self.converter.convert_batch(requests)

    def get_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        return self.resolver.resolve(from_currency, to_currency)

    def get_rates(self, pairs: Iterable[PairLike]) -> List[Union[ExchangeRate, BatchError]]:
        return self.converter.get_rates(pairs)

    def get_historical_rates(self, from_currency: str, to_currency: str, start: date, end: date) -> HistoricalResult:
        """
        Daily rates for [start, end], ascending; unresolvable days are listed in `missing`.

        Raises:
            InvalidDateRange: If start is after end
            InvalidCurrencyCode: If either code is unsupported
        """
        return self.converter.historical_series(from_currency, to_currency, start, end).collect()

    def cache_status(self) -> dict:
        return self.resolver.cache.status()

    def refresh_rates(self) -> None:
        """Drop cached spot rates so the next requests go upstream."""
        self.resolver.cache.clear()

    # ---------------------------------------------------------- detection

    def detect_from_country(self, country_code: str) -> str:
        return self.detector.from_country_code(country_code)

    def detect_from_market(self, market_symbol: str) -> str:
        return self.detector.from_market_symbol(market_symbol)

    def detect_currency(self, country_code: Optional[str] = None, market_symbol: Optional[str] = None) -> str:
        return self.detector.detect(country_code=country_code, market_symbol=market_symbol)

    def supported_currencies(self) -> List[Currency]:
        return self.detector.supported_currencies()

    def currency_info(self, code: str) -> Currency:
        return self.detector.currency_info(code)

    def format_amount(self, amount: Number, currency: str) -> str:
        return format_amount(MonetaryAmount.of(amount, currency))

    # -------------------------------------------------------------- loans

    def _loan_in(self, loan: Loan, currency: str) -> Tuple[Loan, bool]:
        if loan.currency == currency:
            return loan, False
        convert = self.converter.convert
        balance = convert(loan.current_balance.amount, loan.currency, currency)
        payment = convert(loan.monthly_payment.amount, loan.currency, currency)
        principal = convert(loan.principal.amount, loan.principal.currency, currency)
        converted = dataclasses.replace(
            loan,
            current_balance=balance.amount,
            monthly_payment=payment.amount,
            principal=principal.amount,
        )
        return converted, balance.stale or payment.stale or principal.stale

    def loans_in(self, loans: Iterable[Loan], currency: str) -> Tuple[List[Loan], bool]:
        """
        Express every loan in one currency.

        Returns:
            (converted loans, True if any conversion used a stale rate)

        Raises:
            InvalidCurrencyCode: If the target currency is unsupported
            RateUnavailable: If a loan's currency cannot be converted
        """
        currency = require_currency(currency).code
        converted = [self._loan_in(loan, currency) for loan in loans]
        stale = any(flag for _, flag in converted)
        if stale:
            logger.warning("Loans converted to %s using stale exchange rates", currency)
        return [loan for loan, _ in converted], stale

    def get_payoff_strategies(
        self,
        loans: Iterable[Loan],
        currency: Optional[str] = None,
        extra_payment: Number = 0,
    ) -> Dict[str, PayoffPlan]:
        """
        Snowball and avalanche plans for the same loan set.

        Loans in mixed currencies are first converted to `currency` (defaults
        to the first active loan's currency, then the configured default).
        Plans built from stale conversions carry `stale_rates=True`.
        """
        loans = [loan for loan in loans if loan.is_active]
        target = currency or (loans[0].currency if loans else settings.default_currency)
        converted, stale = self.loans_in(loans, target)
        plans = self.strategist.strategies(converted, extra_payment)
        return {name: dataclasses.replace(plan, stale_rates=stale) for name, plan in plans.items()}

    def get_debt_to_income(self, monthly_income: MonetaryAmount, loans: Iterable[Loan]) -> DebtToIncomeReport:
        """Debt-to-income report with loans converted to the income currency."""
        converted, stale = self.loans_in(loans, monthly_income.currency)
        return dataclasses.replace(self.dti.report(monthly_income, converted), stale_rates=stale)

    def get_loan_currency_exposure(self, loans: Iterable[Loan], currency: Optional[str] = None) -> CurrencyRiskAnalysis:
        """
        Share of outstanding debt held in each currency, measured in `currency`
        (default: the configured default currency), with a risk score and
        recommendations.
        """
        target = require_currency(currency or settings.default_currency).code
        loans = [loan for loan in loans if loan.is_active]
        converted, stale = self.loans_in(loans, target)
        holdings = [(loan.current_balance, same.current_balance) for loan, same in zip(loans, converted)]
        return self.exposure.analyze(holdings, target, stale_rates=stale)

    def amortization_schedule(self, loan: Loan, max_payments: Optional[int] = None) -> List[AmortizationRow]:
        return amortization_schedule(loan, max_payments)

    def loan_payoff_date(self, loan: Loan) -> Optional[date]:
        return loan_payoff_date(loan)

    def loan_total_interest(self, loan: Loan) -> Decimal:
        return loan_total_interest(loan)

    def _repository(self) -> LoanRepository:
        if self.loans is None:
            raise DomainError("No loan repository configured")
        return self.loans

    def get_user_payoff_strategies(self, user_id: str, extra_payment: Number = 0) -> Dict[str, PayoffPlan]:
        loans = self._repository().get_active_loans(user_id)
        logger.info("Computing payoff strategies for user %s (%d loans)", user_id, len(loans))
        return self.get_payoff_strategies(loans, extra_payment=extra_payment)

    def get_user_currency_exposure(self, user_id: str, currency: Optional[str] = None) -> CurrencyRiskAnalysis:
        return self.get_loan_currency_exposure(self._repository().get_active_loans(user_id), currency)

    def get_user_debt_to_income(self, user_id: str) -> DebtToIncomeReport:
        """
        Debt-to-income report from the stored snapshot.

        Users without recorded income get a zero income in the currency of
        their first loan (or the default currency), which yields ratio 0.
        """
        repository = self._repository()
        loans = repository.get_active_loans(user_id)
        income = repository.get_monthly_income(user_id)
        if income is None:
            currency = loans[0].currency if loans else settings.default_currency
            income = MonetaryAmount.zero(currency)
        return self.get_debt_to_income(income, loans)
