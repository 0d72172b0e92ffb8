# src/fxengine/adapters/providers/frankfurter.py
"""
Frankfurter API Provider (ECB Reference Rates)

Keyless client for api.frankfurter.app. Spot quotes use /latest, past days
use /YYYY-MM-DD (the API answers with the closest earlier business day).

Files that USE this module:
- fxengine.app (always wired into the provider chain)
- tests.test_providers (unit tests)

Files that this module USES:
- fxengine.adapters.providers.base (RateProvider interface)
- fxengine.shared.rate_limiter (upstream quota)
- fxengine.config (settings for API configuration)
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from fxengine.adapters.providers.base import RateProvider
from fxengine.config import settings
from fxengine.domain.errors import ProviderUnavailableError
from fxengine.shared.rate_limiter import UPSTREAM_LIMIT, RateLimitConfig, RateLimiter, rate_limiter
from fxengine.shared.validators import to_decimal

log = logging.getLogger(__name__)


class FrankfurterProvider(RateProvider):
    name = "frankfurter"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        limiter: Optional[RateLimiter] = None,
        limit: Optional[RateLimitConfig] = None,
    ):
        self.url = (base_url or settings.frankfurter_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.limiter = limiter or rate_limiter
        self.limit = limit or UPSTREAM_LIMIT

    def remaining_requests(self) -> int:
        return self.limiter.get_remaining_requests(self.name, self.limit)

    def _fetch(self, endpoint: str, from_currency: str, to_currency: str) -> Decimal:
        if not self.limiter.is_allowed(self.name, self.limit):
            log.warning("Frankfurter request quota exhausted, skipping call")
            raise ProviderUnavailableError("Frankfurter rate limit reached")

        url = f"{self.url}/{endpoint}"
        try:
            resp = requests.get(url, params={"from": from_currency, "to": to_currency}, timeout=self.timeout)
            resp.raise_for_status()
            data: Dict[str, Any] = resp.json()
        except requests.exceptions.Timeout as e:
            log.warning("Frankfurter timeout after %d seconds", self.timeout)
            raise ProviderUnavailableError(f"Frankfurter timeout after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            log.warning("Frankfurter request failed: %s", e)
            raise ProviderUnavailableError(f"Frankfurter request failed: {e}") from e
        except ValueError as e:
            log.error("Frankfurter returned invalid JSON: %s", e)
            raise ProviderUnavailableError(f"Frankfurter returned invalid JSON: {e}") from e

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict) or to_currency not in rates:
            log.error("Frankfurter response missing rates.%s: %s", to_currency, data)
            raise ProviderUnavailableError(f"Frankfurter response missing rate for {to_currency}")
        try:
            rate = to_decimal(rates[to_currency])
        except ValueError as e:
            raise ProviderUnavailableError(f"Frankfurter schema error: {e}") from e
        if rate <= 0:
            raise ProviderUnavailableError(f"Frankfurter returned non-positive rate: {rate}")
        return rate

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        log.info("Fetching %s->%s from Frankfurter", from_currency, to_currency)
        return self._fetch("latest", from_currency, to_currency)

    def get_historical_rate(self, from_currency: str, to_currency: str, day: date) -> Decimal:
        return self._fetch(day.isoformat(), from_currency, to_currency)
