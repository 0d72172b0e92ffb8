# src/fxengine/application/exposure.py
"""
Currency Exposure Analyzer

Groups holdings (loan balances, for the engine) by currency, expresses each
group as a share of the total in one analysis currency, and scores the
concentration and base volatility of the mix.

Holdings arrive already converted: each entry pairs the amount in its own
currency with the same amount in the analysis currency. The analyzer never
resolves rates itself.

Files that USE this module:
- fxengine.application.engine (loan currency exposure)
- tests.test_exposure (unit tests)

Files that this module USES:
- fxengine.domain.models (MonetaryAmount, CurrencyExposure, CurrencyRiskAnalysis, RiskTier)
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Dict, Iterable, List, Tuple

from fxengine.domain.errors import CurrencyMismatchError
from fxengine.domain.models import CurrencyExposure, CurrencyRiskAnalysis, MonetaryAmount, RiskTier

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")

# Relative volatility per currency; anything unlisted is treated as riskier
BASE_RISK: Dict[str, int] = {
    "USD": 10,
    "EUR": 15,
    "GBP": 20,
    "JPY": 12,
    "CHF": 8,
    "CAD": 18,
    "AUD": 25,
}
DEFAULT_BASE_RISK = 30

CONCENTRATION_WARNING_PCT = Decimal("70")
MIN_CURRENCIES = 3
HIGH_RISK_SHARE_PCT = Decimal("20")

Holding = Tuple[MonetaryAmount, MonetaryAmount]


def base_risk(currency: str) -> int:
    return BASE_RISK.get(currency, DEFAULT_BASE_RISK)


def risk_tier(currency: str, percentage: Decimal) -> RiskTier:
    """Base risk plus 20 above a 50% share (10 above 30%): <20 low, <40 medium, else high."""
    concentration = 20 if percentage > 50 else 10 if percentage > 30 else 0
    total = base_risk(currency) + concentration
    if total < 20:
        return RiskTier.LOW
    if total < 40:
        return RiskTier.MEDIUM
    return RiskTier.HIGH


class CurrencyExposureAnalyzer:

    @staticmethod
    def exposures(holdings: Iterable[Holding]) -> List[CurrencyExposure]:
        """
        Per-currency shares of the converted total, largest share first.

        Raises:
            CurrencyMismatchError: If converted amounts are not all in one currency
        """
        native: Dict[str, MonetaryAmount] = {}
        converted: Dict[str, MonetaryAmount] = {}
        for own, target in holdings:
            if own.is_zero:
                continue
            if own.currency in native:
                native[own.currency] += own
                converted[own.currency] += target
            else:
                native[own.currency] = own
                converted[own.currency] = target

        if not converted:
            return []
        targets = {amount.currency for amount in converted.values()}
        if len(targets) > 1:
            raise CurrencyMismatchError(f"Holdings converted to multiple currencies: {sorted(targets)}")

        total = sum((amount.amount for amount in converted.values()), ZERO)
        if total <= 0:
            return []

        result = []
        for currency, value in converted.items():
            percentage = (value.amount / total * HUNDRED).quantize(TWO_PLACES, rounding=ROUND_HALF_EVEN)
            result.append(CurrencyExposure(
                currency=currency,
                total_value=native[currency],
                converted_value=value,
                percentage=percentage,
                risk_tier=risk_tier(currency, percentage),
            ))
        return sorted(result, key=lambda e: (-e.percentage, e.currency))

    @staticmethod
    def risk_score(exposures: Iterable[CurrencyExposure]) -> Decimal:
        """0-100: concentration above 50% counts double, plus each share weighted by base risk."""
        score = ZERO
        for exposure in exposures:
            if exposure.percentage > 50:
                score += (exposure.percentage - 50) * 2
            score += exposure.percentage / HUNDRED * base_risk(exposure.currency)
        score = min(HUNDRED, max(ZERO, score))
        return score.quantize(TWO_PLACES, rounding=ROUND_HALF_EVEN)

    @staticmethod
    def recommendations(exposures: List[CurrencyExposure]) -> List[str]:
        if not exposures:
            return []

        tips = []
        concentrated = next((e for e in exposures if e.percentage > CONCENTRATION_WARNING_PCT), None)
        if concentrated is not None:
            tips.append(
                f"Consider reducing {concentrated.currency} exposure (currently "
                f"{concentrated.percentage:.1f}%) by diversifying into other currencies."
            )
        if len(exposures) < MIN_CURRENCIES:
            tips.append("Consider diversifying across more currencies to reduce concentration risk.")
        risky = [e.currency for e in exposures if e.risk_tier == RiskTier.HIGH and e.percentage > HIGH_RISK_SHARE_PCT]
        if risky:
            tips.append(f"Consider hedging or reducing exposure to high-risk currencies: {', '.join(risky)}.")
        return tips

    def analyze(self, holdings: Iterable[Holding], currency: str, stale_rates: bool = False) -> CurrencyRiskAnalysis:
        exposures = self.exposures(holdings)
        return CurrencyRiskAnalysis(
            currency=currency,
            exposures=exposures,
            risk_score=self.risk_score(exposures),
            recommendations=self.recommendations(exposures),
            stale_rates=stale_rates,
        )
