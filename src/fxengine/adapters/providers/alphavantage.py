# src/fxengine/adapters/providers/alphavantage.py
"""
Alpha Vantage API Provider for Spot and Daily Exchange Rates

This module implements the Alpha Vantage client used for live quotes
(CURRENCY_EXCHANGE_RATE) and daily closes (FX_DAILY). Daily series are kept
for a short TTL so a historical range costs one request per pair rather than
one per day.

Files that USE this module:
- fxengine.app (wired into the provider chain when an API key is configured)
- tests.test_providers (unit tests)

Files that this module USES:
- fxengine.adapters.providers.base (RateProvider interface)
- fxengine.shared.rate_limiter (upstream quota)
- fxengine.config (settings for API configuration)
"""
import logging
import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

import requests

from fxengine.adapters.providers.base import RateProvider
from fxengine.config import settings
from fxengine.domain.errors import ProviderUnavailableError
from fxengine.shared.rate_limiter import UPSTREAM_LIMIT, RateLimitConfig, RateLimiter, rate_limiter
from fxengine.shared.validators import to_decimal, validate_api_key

log = logging.getLogger(__name__)

_REALTIME_KEY = "Realtime Currency Exchange Rate"
_DAILY_KEY = "Time Series FX (Daily)"


class AlphaVantageProvider(RateProvider):
    name = "alphavantage"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        limiter: Optional[RateLimiter] = None,
        limit: Optional[RateLimitConfig] = None,
    ):
        """
        Initialize Alpha Vantage API provider.

        Args:
            api_key: Optional API key (defaults to settings.alpha_vantage_key)
            base_url: Optional custom API URL (defaults to settings.alpha_vantage_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            limiter: Optional rate limiter (defaults to the shared one)
            limit: Optional quota (defaults to UPSTREAM_LIMIT)

        Raises:
            ValueError: If the API key is missing or empty
        """
        self.api_key = api_key if api_key is not None else settings.alpha_vantage_key
        if not validate_api_key(self.api_key, min_length=4):
            raise ValueError("Alpha Vantage API key not configured")
        self.url = base_url or settings.alpha_vantage_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.limiter = limiter or rate_limiter
        self.limit = limit or UPSTREAM_LIMIT
        self.series_ttl = timedelta(minutes=settings.staleness_minutes)
        self._series: Dict[Tuple[str, str], Tuple[datetime, Dict[str, Any]]] = {}
        self._series_lock = threading.Lock()

    def remaining_requests(self) -> int:
        return self.limiter.get_remaining_requests(self.name, self.limit)

    def _query(self, params: Dict[str, str]) -> Dict[str, Any]:
        """
        Run one API query and return the decoded JSON body.

        Raises:
            ProviderUnavailableError: On quota, transport, HTTP or payload errors
        """
        if not self.limiter.is_allowed(self.name, self.limit):
            log.warning("Alpha Vantage request quota exhausted, skipping call")
            raise ProviderUnavailableError("Alpha Vantage rate limit reached")

        try:
            resp = requests.get(self.url, params={**params, "apikey": self.api_key}, timeout=self.timeout)
            if resp.status_code >= 500:
                log.warning("Alpha Vantage returned 5xx error (%d), will trigger fallback", resp.status_code)
                raise ProviderUnavailableError(f"Alpha Vantage returned {resp.status_code} (server error)")
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.Timeout as e:
            log.warning("Alpha Vantage timeout after %d seconds, will trigger fallback", self.timeout)
            raise ProviderUnavailableError(f"Alpha Vantage timeout after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            log.warning("Alpha Vantage request failed, will trigger fallback: %s", e)
            raise ProviderUnavailableError(f"Alpha Vantage request failed: {e}") from e
        except ValueError as e:
            log.error("Alpha Vantage returned invalid JSON: %s", e)
            raise ProviderUnavailableError(f"Alpha Vantage returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProviderUnavailableError("Alpha Vantage returned non-dict JSON")
        if "Error Message" in data:
            raise ProviderUnavailableError(f"Alpha Vantage API error: {data['Error Message']}")
        # "Note" and "Information" carry quota messages on the free tier
        for key in ("Note", "Information"):
            if key in data:
                raise ProviderUnavailableError(f"Alpha Vantage API limit: {data[key]}")
        return data

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        log.info("Fetching %s->%s from Alpha Vantage", from_currency, to_currency)
        data = self._query({
            "function": "CURRENCY_EXCHANGE_RATE",
            "from_currency": from_currency,
            "to_currency": to_currency,
        })
        try:
            raw = data[_REALTIME_KEY]["5. Exchange Rate"]
            rate = to_decimal(raw)
        except (KeyError, TypeError, ValueError) as e:
            log.error("Alpha Vantage unexpected schema: %s", data)
            raise ProviderUnavailableError(f"Alpha Vantage schema error: {e}") from e
        if rate <= 0:
            raise ProviderUnavailableError(f"Alpha Vantage returned non-positive rate: {rate}")
        return rate

    def _daily_series(self, from_currency: str, to_currency: str) -> Dict[str, Any]:
        key = (from_currency, to_currency)
        with self._series_lock:
            cached = self._series.get(key)
            if cached and datetime.now(timezone.utc) - cached[0] < self.series_ttl:
                return cached[1]
            data = self._query({
                "function": "FX_DAILY",
                "from_symbol": from_currency,
                "to_symbol": to_currency,
                "outputsize": "full",
            })
            series = data.get(_DAILY_KEY)
            if not isinstance(series, dict):
                raise ProviderUnavailableError("Invalid historical response format from Alpha Vantage")
            self._series[key] = (datetime.now(timezone.utc), series)
            return series

    def get_historical_rate(self, from_currency: str, to_currency: str, day: date) -> Decimal:
        series = self._daily_series(from_currency, to_currency)
        day_key = day.isoformat()
        if day_key not in series:
            # Weekends and holidays: use the closest earlier trading day
            earlier = [d for d in series if d <= day_key]
            if not earlier:
                raise ProviderUnavailableError(f"No historical data available for {day_key} or earlier")
            day_key = max(earlier)
        try:
            rate = to_decimal(series[day_key]["4. close"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderUnavailableError(f"Invalid historical rate for {day_key}: {e}") from e
        if rate <= 0:
            raise ProviderUnavailableError(f"Non-positive historical rate for {day_key}")
        return rate
