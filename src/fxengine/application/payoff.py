# src/fxengine/application/payoff.py
"""
Debt Payoff Strategist - Snowball and Avalanche Simulations

This module orders a user's active loans by the snowball (smallest balance
first) and avalanche (highest rate first) policies and simulates month-by-
month payoff for each ordering. Every month interest accrues on each open
balance, minimum payments are applied, and the capacity freed by loans that
are already paid off rolls into the next loan in the ordering.

The simulation is a pure function of the loan snapshot: loans are sorted
deterministically (loan id breaks ties) and never mutated.

Files that USE this module:
- fxengine.application.engine (payoff strategies and amortization schedules)
- tests.test_payoff (unit tests)

Files that this module USES:
- fxengine.domain.models (Loan, PayoffPlan, AmortizationRow, quantize_for)
- fxengine.config (simulation horizon)
"""
from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from fxengine.config import settings
from fxengine.domain.errors import CurrencyMismatchError
from fxengine.domain.models import AmortizationRow, Loan, LoanId, PayoffPlan, PayoffStrategy, quantize_for
from fxengine.shared.validators import Number, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Upper bound for single-loan schedules when the loan has no term
MAX_SCHEDULE_PAYMENTS = 720


def add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of short months."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def _id_key(loan: Loan):
    # ints sort before strings so mixed id types stay comparable
    return (isinstance(loan.id, str), loan.id)


def order_snowball(loans: Iterable[Loan]) -> List[Loan]:
    """Smallest current balance first, ties broken by loan id."""
    return sorted(loans, key=lambda loan: (loan.current_balance.amount, _id_key(loan)))


def order_avalanche(loans: Iterable[Loan]) -> List[Loan]:
    """Highest interest rate first, ties broken by loan id."""
    return sorted(loans, key=lambda loan: (-loan.interest_rate, _id_key(loan)))


_ORDERINGS = {
    PayoffStrategy.SNOWBALL: order_snowball,
    PayoffStrategy.AVALANCHE: order_avalanche,
}


def common_currency(loans: List[Loan]) -> Optional[str]:
    """
    The single currency shared by all loans (None for an empty list).

    Raises:
        CurrencyMismatchError: If loans are in different currencies
    """
    currencies = {loan.currency for loan in loans}
    if len(currencies) > 1:
        raise CurrencyMismatchError(f"Loans are in multiple currencies: {sorted(currencies)}")
    return next(iter(currencies), None)


class DebtPayoffStrategist:
    """Computes snowball and avalanche payoff plans."""

    def __init__(self, max_months: Optional[int] = None):
        self.max_months = max_months or settings.payoff_max_months

    def strategies(self, loans: Iterable[Loan], extra_payment: Number = 0) -> Dict[str, PayoffPlan]:
        """Return {"snowball": PayoffPlan, "avalanche": PayoffPlan} for the same loan set."""
        loans = list(loans)
        return {
            strategy.value: self.plan(loans, strategy, extra_payment)
            for strategy in (PayoffStrategy.SNOWBALL, PayoffStrategy.AVALANCHE)
        }

    def plan(self, loans: Iterable[Loan], strategy: PayoffStrategy, extra_payment: Number = 0) -> PayoffPlan:
        """
        Simulate payoff of all active loans under one strategy.

        Args:
            loans: Loan snapshots (inactive, zero-balance loans are ignored)
            strategy: Ordering policy
            extra_payment: Monthly amount paid on top of the minimums

        Returns:
            PayoffPlan with ordering, total interest and payoff horizon

        Raises:
            CurrencyMismatchError: If active loans use different currencies
            ValueError: If extra_payment is negative
        """
        strategy = PayoffStrategy(strategy)
        extra = to_decimal(extra_payment)
        if extra < 0:
            raise ValueError("extra_payment must be non-negative")

        active = [loan for loan in loans if loan.is_active]
        currency = common_currency(active)
        ordered = _ORDERINGS[strategy](active)
        if not ordered:
            return PayoffPlan(strategy=strategy, order=(), total_interest=ZERO, payoff_months=0, currency=currency)

        return self._simulate(ordered, strategy, currency, extra)

    def _simulate(self, ordered: List[Loan], strategy: PayoffStrategy, currency: str, extra: Decimal) -> PayoffPlan:
        balances = [loan.current_balance.amount for loan in ordered]
        minimums = [loan.monthly_payment.amount for loan in ordered]
        rates = [loan.monthly_rate for loan in ordered]
        # Total monthly capacity stays constant; paid-off loans free their share for the rest.
        budget = sum(minimums, ZERO) + extra

        total_interest = ZERO
        paid_off: Dict[LoanId, int] = {}
        month = 0
        while month < self.max_months and any(b > 0 for b in balances):
            month += 1

            for i, balance in enumerate(balances):
                if balance > 0:
                    interest = quantize_for(balance * rates[i], currency)
                    balances[i] = balance + interest
                    total_interest += interest

            available = budget
            for i, balance in enumerate(balances):
                if balance > 0:
                    payment = min(minimums[i], balance, available)
                    balances[i] = balance - payment
                    available -= payment

            for i, balance in enumerate(balances):
                if available <= 0:
                    break
                if balance > 0:
                    payment = min(balance, available)
                    balances[i] = balance - payment
                    available -= payment

            for i, loan in enumerate(ordered):
                if balances[i] <= 0 and loan.id not in paid_off:
                    paid_off[loan.id] = month

        horizon_exceeded = any(b > 0 for b in balances)
        if horizon_exceeded:
            logger.warning("%s payoff not reached within %d months; reporting capped horizon",
                           strategy.value, self.max_months)

        return PayoffPlan(
            strategy=strategy,
            order=tuple(loan.id for loan in ordered),
            total_interest=quantize_for(total_interest, currency),
            payoff_months=self.max_months if horizon_exceeded else month,
            currency=currency,
            horizon_exceeded=horizon_exceeded,
            payoff_month_by_loan=paid_off,
        )


def amortization_schedule(loan: Loan, max_payments: Optional[int] = None) -> List[AmortizationRow]:
    """
    Payment-by-payment schedule for a single loan at its minimum payment.

    Stops when the balance is cleared, when the payment no longer covers the
    interest, or after `max_payments` (default: the loan's term, capped at 720).
    """
    if not loan.is_active or loan.monthly_payment.amount <= 0:
        return []

    currency = loan.currency
    limit = max_payments or min(loan.term_months or MAX_SCHEDULE_PAYMENTS, MAX_SCHEDULE_PAYMENTS)
    payment = loan.monthly_payment.amount
    remaining = loan.current_balance.amount
    rows: List[AmortizationRow] = []

    for number in range(1, limit + 1):
        if remaining <= 0:
            break
        interest = quantize_for(remaining * loan.monthly_rate, currency)
        principal = min(payment - interest, remaining)
        if principal <= 0:
            logger.warning("Loan %s payment is less than interest, amortization will not complete", loan.id)
            break
        remaining -= principal
        rows.append(AmortizationRow(
            payment_number=number,
            payment_date=add_months(loan.next_payment_date, number - 1) if loan.next_payment_date else None,
            principal=quantize_for(principal, currency),
            interest=interest,
            remaining_balance=max(ZERO, quantize_for(remaining, currency)),
        ))
    return rows


def loan_payoff_date(loan: Loan) -> Optional[date]:
    """Date of the last scheduled payment, or None when the loan has no dated schedule."""
    rows = amortization_schedule(loan)
    return rows[-1].payment_date if rows else None


def loan_total_interest(loan: Loan) -> Decimal:
    """Interest still to be paid over the loan's remaining schedule."""
    return sum((row.interest for row in amortization_schedule(loan)), ZERO)
