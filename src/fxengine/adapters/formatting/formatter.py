# src/fxengine/adapters/formatting/formatter.py
"""
Money Formatter - Currency-Aware Text Presentation

This module renders amounts, rates, conversion results and payoff plans as
plain text, using each currency's symbol and decimal places.

Files that USE this module:
- fxengine.application.engine (format_amount endpoint)
- fxengine.app (health summary output)
- tests.test_formatter (unit tests)

Files that this module USES:
- fxengine.domain.models (MonetaryAmount, ExchangeRate, ConversionResult, PayoffPlan)
- fxengine.domain.currencies (symbols and decimal places)
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN
from typing import Optional

from fxengine.domain.currencies import SUPPORTED_CURRENCIES
from fxengine.domain.models import ConversionResult, ExchangeRate, MonetaryAmount, PayoffPlan, quantize_for


def format_amount(money: MonetaryAmount, with_code: bool = False) -> str:
    """
    Format an amount with its currency symbol and grouping.

    Args:
        money: Amount to format
        with_code: Append the ISO code (useful where symbols are ambiguous, e.g. "$")

    Returns:
        String like "$1,234.50", "-€12.00" or "¥1,235"
    """
    currency = SUPPORTED_CURRENCIES[money.currency]
    value = quantize_for(money.amount, money.currency, ROUND_HALF_EVEN)
    sign = "-" if value < 0 else ""
    text = f"{sign}{currency.symbol}{abs(value):,.{currency.decimal_places}f}"
    if with_code:
        text = f"{text} {currency.code}"
    return text


def format_rate(rate: ExchangeRate, decimals: int = 4) -> str:
    """Format a rate as "1 EUR = 1.0850 USD", marking stale values."""
    msg = f"1 {rate.from_currency} = {rate.rate:.{decimals}f} {rate.to_currency}"
    if rate.stale:
        msg = f"{msg} (stale, as of {rate.timestamp.strftime('%Y-%m-%d %H:%M UTC')})"
    return msg


def format_conversion(result: ConversionResult) -> str:
    line = f"{format_amount(result.original, with_code=True)} = {format_amount(result.amount, with_code=True)}"
    if result.stale:
        line += " [stale rate]"
    return line


def format_payoff_plan(plan: PayoffPlan, currency: Optional[str] = None) -> str:
    """
    Summarize a payoff plan in a few lines.

    Args:
        plan: Simulated plan
        currency: Currency for the interest figure (defaults to the plan's currency)
    """
    currency = currency or plan.currency
    lines = [f"Strategy: {plan.strategy.value}"]
    if not plan.order:
        lines.append("No active loans")
        return "\n".join(lines)

    lines.append("Order: " + " -> ".join(str(loan_id) for loan_id in plan.order))
    if currency:
        lines.append(f"Total interest: {format_amount(MonetaryAmount(plan.total_interest, currency))}")
    else:
        lines.append(f"Total interest: {plan.total_interest}")

    years, months = divmod(plan.payoff_months, 12)
    horizon = f"{years}y {months}m" if years else f"{months}m"
    if plan.horizon_exceeded:
        horizon = f"not paid off within {horizon}"
    lines.append(f"Payoff: {horizon}")
    if plan.stale_rates:
        lines.append("Note: some loans were converted at stale exchange rates")
    return "\n".join(lines)
