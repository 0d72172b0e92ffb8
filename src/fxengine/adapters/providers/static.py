# src/fxengine/adapters/providers/static.py
"""
Static Reference-Rate Provider

Deterministic, offline rates for every supported currency, quoted against
USD. Used as the resolver's last resort when it is enabled
(FX_USE_REFERENCE_RATES) and in tests. Rates from this provider are never
live, so the resolver tags them as fallback.

Files that USE this module:
- fxengine.app (wired as the resolver's reference provider)
- tests.* (deterministic provider for engine tests)

Files that this module USES:
- fxengine.adapters.providers.base (RateProvider interface)
- fxengine.domain.errors (ProviderUnavailableError)
"""
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from fxengine.adapters.providers.base import RateProvider
from fxengine.domain.errors import ProviderUnavailableError

# Units of each currency per 1 USD
REFERENCE_USD_RATES: Mapping[str, Decimal] = MappingProxyType({
    "USD": Decimal("1"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "JPY": Decimal("110.0"),
    "CHF": Decimal("0.92"),
    "CAD": Decimal("1.25"),
    "AUD": Decimal("1.35"),
    "INR": Decimal("87.0"),
    "CNY": Decimal("7.15"),
    "KRW": Decimal("1320.0"),
    "SGD": Decimal("1.35"),
    "HKD": Decimal("7.80"),
    "NOK": Decimal("10.50"),
    "SEK": Decimal("10.80"),
    "DKK": Decimal("6.85"),
    "NZD": Decimal("1.65"),
    "MXN": Decimal("17.50"),
    "BRL": Decimal("5.20"),
    "RUB": Decimal("75.0"),
    "ZAR": Decimal("18.50"),
})


class StaticRateProvider(RateProvider):
    """Cross rates derived from a fixed USD-based table."""

    name = "reference"
    is_live = False

    def __init__(self, usd_rates: Optional[Mapping[str, Decimal]] = None):
        self.usd_rates = MappingProxyType(dict(usd_rates or REFERENCE_USD_RATES))

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        try:
            from_per_usd = self.usd_rates[from_currency]
            to_per_usd = self.usd_rates[to_currency]
        except KeyError as e:
            raise ProviderUnavailableError(f"No reference rate for {e.args[0]}") from e
        return to_per_usd / from_per_usd

    def get_historical_rate(self, from_currency: str, to_currency: str, day: date) -> Decimal:
        return self.get_rate(from_currency, to_currency)
