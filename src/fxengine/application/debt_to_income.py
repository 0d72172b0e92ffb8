# src/fxengine/application/debt_to_income.py
"""
Debt-to-Income Calculator

Combines total monthly debt service and monthly income into a percentage
ratio and a qualitative risk tier with a recommendation.

A zero (or missing) income yields ratio 0: "ratio unavailable", not an
error. The tier is then forced to medium with a prompt to add income data.

Files that USE this module:
- fxengine.application.engine (debt-to-income endpoint)
- tests.test_debt_to_income (unit tests)

Files that this module USES:
- fxengine.domain.models (MonetaryAmount, Loan, DebtToIncomeReport, RiskTier)
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable

from fxengine.domain.errors import CurrencyMismatchError
from fxengine.domain.models import DebtToIncomeReport, Loan, MonetaryAmount, RiskTier

LOW_RISK_MAX = Decimal("20")
MEDIUM_RISK_MAX = Decimal("36")

RECOMMENDATIONS = {
    RiskTier.LOW: "Your debt-to-income ratio is excellent. You have good financial flexibility.",
    RiskTier.MEDIUM: ("Your debt-to-income ratio is manageable but could be improved. "
                      "Consider paying down high-interest debt first."),
    RiskTier.HIGH: ("Your debt-to-income ratio is high. Focus on reducing debt and increasing "
                    "income to improve your financial health."),
}
NO_INCOME_RECOMMENDATION = "Add your income information to get a complete debt-to-income analysis."


class DebtToIncomeCalculator:

    @staticmethod
    def ratio(monthly_income: MonetaryAmount, total_monthly_payments: MonetaryAmount) -> Decimal:
        """
        Monthly debt service as a percentage of monthly income (2 decimals).

        Returns 0 when income is zero or negative.

        Raises:
            CurrencyMismatchError: If the two amounts use different currencies
        """
        if monthly_income.amount <= 0:
            return Decimal("0")
        if monthly_income.currency != total_monthly_payments.currency:
            raise CurrencyMismatchError(
                f"Income in {monthly_income.currency}, payments in {total_monthly_payments.currency}"
            )
        percent = total_monthly_payments.amount / monthly_income.amount * 100
        return percent.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)

    @staticmethod
    def risk_tier(ratio: Decimal, has_income: bool = True) -> RiskTier:
        if not has_income:
            return RiskTier.MEDIUM
        if ratio <= LOW_RISK_MAX:
            return RiskTier.LOW
        if ratio <= MEDIUM_RISK_MAX:
            return RiskTier.MEDIUM
        return RiskTier.HIGH

    @staticmethod
    def total_monthly_payments(loans: Iterable[Loan], currency: str) -> MonetaryAmount:
        """Sum of minimum payments over active loans, in `currency`."""
        total = MonetaryAmount.zero(currency)
        for loan in loans:
            if loan.is_active:
                total = total + loan.monthly_payment
        return total

    @staticmethod
    def total_debt(loans: Iterable[Loan], currency: str) -> MonetaryAmount:
        total = MonetaryAmount.zero(currency)
        for loan in loans:
            if loan.is_active:
                total = total + loan.current_balance
        return total

    def report(self, monthly_income: MonetaryAmount, loans: Iterable[Loan]) -> DebtToIncomeReport:
        """
        Full debt-to-income analysis for loans already expressed in the income currency.

        Raises:
            CurrencyMismatchError: If a loan is not in the income currency
        """
        loans = list(loans)
        payments = self.total_monthly_payments(loans, monthly_income.currency)
        debt = self.total_debt(loans, monthly_income.currency)
        has_income = monthly_income.amount > 0
        ratio = self.ratio(monthly_income, payments)
        tier = self.risk_tier(ratio, has_income)
        recommendation = RECOMMENDATIONS[tier] if has_income else NO_INCOME_RECOMMENDATION
        return DebtToIncomeReport(
            ratio=ratio,
            risk_tier=tier,
            recommendation=recommendation,
            monthly_income=monthly_income,
            total_monthly_payments=payments,
            total_debt=debt,
        )
