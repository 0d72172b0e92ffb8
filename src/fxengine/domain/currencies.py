# src/fxengine/domain/currencies.py
"""
Currency Tables - Static Reference Data

Process-wide, read-only lookup tables: supported currencies (with symbol and
decimal places), country → currency and exchange-suffix → currency. Built
once at import and exposed as read-only mappings.

Files that USE this module:
- fxengine.domain.models (currency validation and decimal places)
- fxengine.application.detector (country and market lookups)
- fxengine.adapters.providers.static (reference rate table)
- fxengine.adapters.formatting.formatter (symbols)

Files that this module USES:
- None (static data only)
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class Currency:
    """
    A supported currency.

    Attributes:
        code: ISO-4217 code (e.g. "USD")
        name: Display name
        symbol: Display symbol (e.g. "$")
        decimal_places: Minor-unit digits used when rounding (2 for USD, 0 for JPY)
        countries: Countries using the currency
    """
    code: str
    name: str
    symbol: str
    decimal_places: int
    countries: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "symbol": self.symbol,
            "decimalPlaces": self.decimal_places,
            "countries": list(self.countries),
        }


def _currency(code: str, name: str, symbol: str, decimal_places: int, *countries: str) -> Currency:
    return Currency(code=code, name=name, symbol=symbol, decimal_places=decimal_places, countries=tuple(countries))


_CURRENCY_LIST = (
    _currency("USD", "US Dollar", "$", 2, "United States"),
    _currency(
        "EUR", "Euro", "€", 2,
        "Germany", "France", "Italy", "Spain", "Netherlands", "Belgium", "Austria", "Portugal",
        "Finland", "Ireland", "Luxembourg", "Slovenia", "Slovakia", "Estonia", "Latvia",
        "Lithuania", "Malta", "Cyprus",
    ),
    _currency("GBP", "British Pound Sterling", "£", 2, "United Kingdom"),
    _currency("JPY", "Japanese Yen", "¥", 0, "Japan"),
    _currency("CHF", "Swiss Franc", "CHF", 2, "Switzerland", "Liechtenstein"),
    _currency("CAD", "Canadian Dollar", "C$", 2, "Canada"),
    _currency("AUD", "Australian Dollar", "A$", 2, "Australia"),
    _currency("CNY", "Chinese Yuan", "¥", 2, "China"),
    _currency("INR", "Indian Rupee", "₹", 2, "India"),
    _currency("KRW", "South Korean Won", "₩", 0, "South Korea"),
    _currency("SGD", "Singapore Dollar", "S$", 2, "Singapore"),
    _currency("HKD", "Hong Kong Dollar", "HK$", 2, "Hong Kong"),
    _currency("NOK", "Norwegian Krone", "kr", 2, "Norway"),
    _currency("SEK", "Swedish Krona", "kr", 2, "Sweden"),
    _currency("DKK", "Danish Krone", "kr", 2, "Denmark"),
    _currency("NZD", "New Zealand Dollar", "NZ$", 2, "New Zealand"),
    _currency("MXN", "Mexican Peso", "$", 2, "Mexico"),
    _currency("BRL", "Brazilian Real", "R$", 2, "Brazil"),
    _currency("RUB", "Russian Ruble", "₽", 2, "Russia"),
    _currency("ZAR", "South African Rand", "R", 2, "South Africa"),
)

SUPPORTED_CURRENCIES: Mapping[str, Currency] = MappingProxyType({c.code: c for c in _CURRENCY_LIST})

# ISO-3166 alpha-2 → currency
COUNTRY_CURRENCY: Mapping[str, str] = MappingProxyType({
    "US": "USD", "CA": "CAD", "GB": "GBP", "DE": "EUR", "FR": "EUR", "IT": "EUR", "ES": "EUR",
    "NL": "EUR", "BE": "EUR", "AT": "EUR", "PT": "EUR", "FI": "EUR", "IE": "EUR", "LU": "EUR",
    "SI": "EUR", "SK": "EUR", "EE": "EUR", "LV": "EUR", "LT": "EUR", "MT": "EUR", "CY": "EUR",
    "JP": "JPY", "CH": "CHF", "LI": "CHF", "AU": "AUD", "CN": "CNY", "IN": "INR", "KR": "KRW",
    "SG": "SGD", "HK": "HKD", "NO": "NOK", "SE": "SEK", "DK": "DKK", "NZ": "NZD", "MX": "MXN",
    "BR": "BRL", "RU": "RUB", "ZA": "ZAR",
})

# Ticker suffix (text after the last '.') → trading currency
MARKET_SUFFIX_CURRENCY: Mapping[str, str] = MappingProxyType({
    "L": "GBP",    # London Stock Exchange
    "TO": "CAD",   # Toronto Stock Exchange
    "T": "JPY",    # Tokyo Stock Exchange
    "HK": "HKD",   # Hong Kong Stock Exchange
    "AX": "AUD",   # Australian Securities Exchange
    "PA": "EUR",   # Euronext Paris
    "DE": "EUR",   # XETRA
    "MI": "EUR",   # Borsa Italiana
    "AS": "EUR",   # Euronext Amsterdam
    "BR": "EUR",   # Euronext Brussels
    "SW": "CHF",   # SIX Swiss Exchange
    "ST": "SEK",   # Nasdaq Stockholm
    "OL": "NOK",   # Oslo Stock Exchange
    "CO": "DKK",   # Nasdaq Copenhagen
})

MARKET_DEFAULT_CURRENCY = "USD"
