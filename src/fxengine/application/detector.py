# src/fxengine/application/detector.py
"""
Currency Detector - Country and Market Symbol Lookups

Maps an ISO-3166 country code or a market ticker (e.g. "VOD.L") to the
currency it trades or lives in, using the static tables in
fxengine.domain.currencies. When both inputs are supplied, the country code
wins and the market table is never consulted.

Files that USE this module:
- fxengine.application.engine (detection endpoints and currency info)
- tests.test_detector (unit tests)

Files that this module USES:
- fxengine.domain.currencies (lookup tables)
- fxengine.shared.validators (code normalization)
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fxengine.config import settings
from fxengine.domain.currencies import (
    COUNTRY_CURRENCY,
    MARKET_DEFAULT_CURRENCY,
    MARKET_SUFFIX_CURRENCY,
    SUPPORTED_CURRENCIES,
    Currency,
)
from fxengine.domain.errors import UnknownCountry
from fxengine.domain.models import require_currency
from fxengine.shared.validators import normalize_country_code

logger = logging.getLogger(__name__)


class CurrencyDetector:
    def __init__(self, default_currency: Optional[str] = None):
        self.default_currency = require_currency(default_currency or settings.default_currency).code

    def from_country_code(self, code: str) -> str:
        """
        Currency for a two-letter country code.

        Raises:
            UnknownCountry: If the code is not in the country table
        """
        normalized = normalize_country_code(code)
        try:
            return COUNTRY_CURRENCY[normalized]
        except KeyError:
            raise UnknownCountry(normalized or str(code)) from None

    def from_market_symbol(self, symbol: str) -> str:
        """
        Currency for a ticker, from the suffix after its last '.'.

        Symbols without a recognized suffix (plain US tickers like "AAPL",
        share classes like "BRK.B") default to USD.
        """
        if not isinstance(symbol, str) or "." not in symbol:
            return MARKET_DEFAULT_CURRENCY
        suffix = symbol.strip().rsplit(".", 1)[1].upper()
        return MARKET_SUFFIX_CURRENCY.get(suffix, MARKET_DEFAULT_CURRENCY)

    def detect(self, country_code: Optional[str] = None, market_symbol: Optional[str] = None) -> str:
        """
        Combined detection: an explicit country code always wins.

        Falls back to the configured default currency when neither input is given.
        """
        if country_code:
            return self.from_country_code(country_code)
        if market_symbol:
            return self.from_market_symbol(market_symbol)
        logger.debug("No country or market given, using default currency %s", self.default_currency)
        return self.default_currency

    @staticmethod
    def supported_currencies() -> List[Currency]:
        return list(SUPPORTED_CURRENCIES.values())

    @staticmethod
    def currency_info(code: str) -> Currency:
        return require_currency(code)
