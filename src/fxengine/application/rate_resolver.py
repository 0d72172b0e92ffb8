# src/fxengine/application/rate_resolver.py
"""
Rate Resolver - Exchange Rate Resolution with a Fallback Ladder

This module contains the core business logic for producing an exchange rate
for a currency pair. Resolution walks an ordered list of steps and returns
the first rate produced:

1. identity (same currency, rate 1)
2. fresh cache (direct entry or inverse of the reversed pair)
3. direct upstream fetch (single-flight through the cache)
4. triangulation through the configured base currency
5. stale cache entry, flagged as stale
6. reference rates (only when a reference provider is configured)

Only when every step comes back empty does resolution fail.

Files that USE this module:
- fxengine.application.converter (CurrencyConverter resolves through RateResolver)
- fxengine.application.health (probes the ProviderChain)
- fxengine.app (wires providers, caches and resolver)
- tests.test_rate_resolver (unit tests)

Files that this module USES:
- fxengine.adapters.providers.base (RateProvider interface)
- fxengine.application.rate_cache (RateCache)
- fxengine.domain.models (ExchangeRate, HistoricalPoint, RateSource)
- fxengine.config (retry, base currency and wait defaults)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Sequence, Tuple

from fxengine.adapters.providers.base import RateProvider
from fxengine.application.rate_cache import RateCache
from fxengine.config import settings
from fxengine.domain.errors import ProviderUnavailableError, RateUnavailable
from fxengine.domain.models import ExchangeRate, HistoricalPoint, RateSource, require_currency

log = logging.getLogger(__name__)


class ProviderChain:
    """
    Provider chain that tries multiple upstream providers in order.

    Each provider gets a bounded number of attempts with linear backoff
    before the chain moves to the next one. Tracks which provider was
    actually used.
    """

    def __init__(
        self,
        providers: Sequence[RateProvider],
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize provider chain.

        Args:
            providers: Providers in priority order
            retries: Attempts per provider (defaults to settings.fetch_retries)
            retry_delay: Base backoff in seconds, multiplied by the attempt number
            sleep: Sleep function (injectable for tests)
        """
        self.providers = list(providers)
        self.retries = retries if retries is not None else settings.fetch_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay_seconds
        self._sleep = sleep
        self.last_used_provider: Optional[str] = None

    def _call(self, description: str, op: Callable[[RateProvider], Decimal]) -> Tuple[Decimal, RateProvider]:
        errors: List[str] = []
        for provider in self.providers:
            for attempt in range(1, self.retries + 1):
                try:
                    rate = op(provider)
                    self.last_used_provider = provider.name
                    return rate, provider
                except ProviderUnavailableError as e:
                    log.warning("%s: %s attempt %d/%d failed: %s",
                                description, provider.name, attempt, self.retries, e)
                    errors.append(f"{provider.name}: {e}")
                    if attempt < self.retries and self.retry_delay:
                        self._sleep(self.retry_delay * attempt)
        if not self.providers:
            errors.append("no providers configured")
        raise ProviderUnavailableError(f"All providers failed for {description}: " + "; ".join(errors))

    def fetch(self, from_currency: str, to_currency: str) -> ExchangeRate:
        """
        Fetch a spot rate from the first provider that answers.

        Raises:
            ProviderUnavailableError: If every provider fails
        """
        description = f"{from_currency}->{to_currency}"
        rate, provider = self._call(description, lambda p: p.get_rate(from_currency, to_currency))
        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            timestamp=_now(),
            source=RateSource.API if provider.is_live else RateSource.FALLBACK,
            provider=provider.name,
        )

    def fetch_historical(self, from_currency: str, to_currency: str, day: date) -> ExchangeRate:
        description = f"{from_currency}->{to_currency} on {day.isoformat()}"
        rate, provider = self._call(
            description, lambda p: p.get_historical_rate(from_currency, to_currency, day)
        )
        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            timestamp=_now(),
            source=RateSource.API if provider.is_live else RateSource.FALLBACK,
            provider=provider.name,
        )

    def get_last_provider(self) -> Optional[str]:
        return self.last_used_provider


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Attempt:
    """Errors collected while walking the ladder for one resolution."""
    from_currency: str
    to_currency: str
    errors: List[str] = field(default_factory=list)

    def record(self, step: str, exc: Exception) -> None:
        self.errors.append(f"{step}: {exc}")


Step = Callable[[_Attempt], Optional[ExchangeRate]]


class RateResolver:
    """Resolves spot and historical rates through the fallback ladder."""

    def __init__(
        self,
        chain: ProviderChain,
        cache: Optional[RateCache] = None,
        history_cache: Optional[RateCache] = None,
        base_currency: Optional[str] = None,
        reference: Optional[RateProvider] = None,
        wait_timeout: Optional[float] = None,
    ):
        """
        Args:
            chain: Upstream provider chain
            cache: Spot cache (defaults to one aged by settings.staleness_minutes)
            history_cache: Cache for (from, to, day) quotes, never aged
            base_currency: Triangulation base (defaults to settings.triangulation_base)
            reference: Optional non-live provider used as the very last step
            wait_timeout: Seconds to wait on another caller's in-flight fetch
        """
        self.chain = chain
        self.cache = cache or RateCache(staleness_seconds=settings.staleness_seconds)
        self.history_cache = history_cache or RateCache(staleness_seconds=None)
        self.base_currency = require_currency(base_currency or settings.triangulation_base).code
        self.reference = reference
        self.wait_timeout = wait_timeout if wait_timeout is not None else settings.fetch_wait_seconds
        self._steps: List[Tuple[str, Step]] = [
            ("identity", self._identity),
            ("fresh-cache", self._fresh_cache),
            ("direct", self._direct),
            ("triangulation", self._triangulate),
            ("stale-cache", self._stale_cache),
        ]
        if reference is not None:
            self._steps.append(("reference", self._reference))

    # ------------------------------------------------------------------ spot

    def resolve(self, from_currency: str, to_currency: str) -> ExchangeRate:
        """
        Resolve the rate for an ordered pair.

        Raises:
            InvalidCurrencyCode: If either code is unsupported
            RateUnavailable: If no step produced a rate
        """
        attempt = _Attempt(
            from_currency=require_currency(from_currency).code,
            to_currency=require_currency(to_currency).code,
        )
        for name, step in self._steps:
            rate = step(attempt)
            if rate is not None:
                log.debug("Resolved %s->%s via %s: %s (%s)",
                          attempt.from_currency, attempt.to_currency, name, rate.rate, rate.source.value)
                return rate
        log.error("No rate for %s->%s: %s", attempt.from_currency, attempt.to_currency, attempt.errors)
        raise RateUnavailable(attempt.from_currency, attempt.to_currency, "; ".join(attempt.errors))

    def _identity(self, attempt: _Attempt) -> Optional[ExchangeRate]:
        if attempt.from_currency != attempt.to_currency:
            return None
        return ExchangeRate(
            from_currency=attempt.from_currency,
            to_currency=attempt.to_currency,
            rate=Decimal(1),
            timestamp=_now(),
            source=RateSource.IDENTITY,
        )

    def _cached(self, from_currency: str, to_currency: str, fresh: bool) -> Optional[ExchangeRate]:
        lookup = self.cache.get_fresh if fresh else self.cache.get
        direct = lookup((from_currency, to_currency))
        if direct is not None:
            return direct
        reverse = lookup((to_currency, from_currency))
        if reverse is not None:
            return reverse.inverse()
        return None

    def _fresh_cache(self, attempt: _Attempt) -> Optional[ExchangeRate]:
        rate = self._cached(attempt.from_currency, attempt.to_currency, fresh=True)
        if rate is None:
            return None
        return rate.tagged(RateSource.CACHE)

    def _fetch_pair(self, from_currency: str, to_currency: str) -> ExchangeRate:
        return self.cache.fetch_once(
            (from_currency, to_currency),
            lambda: self.chain.fetch(from_currency, to_currency),
            timeout=self.wait_timeout,
        )

    def _direct(self, attempt: _Attempt) -> Optional[ExchangeRate]:
        try:
            return self._fetch_pair(attempt.from_currency, attempt.to_currency)
        except ProviderUnavailableError as e:
            log.warning("Direct fetch for %s->%s failed, trying triangulation via %s",
                        attempt.from_currency, attempt.to_currency, self.base_currency)
            attempt.record("direct", e)
            return None

    def _leg(self, from_currency: str, to_currency: str) -> ExchangeRate:
        cached = self._cached(from_currency, to_currency, fresh=True)
        if cached is not None:
            return cached
        return self._fetch_pair(from_currency, to_currency)

    def _triangulate(self, attempt: _Attempt) -> Optional[ExchangeRate]:
        base = self.base_currency
        if base in (attempt.from_currency, attempt.to_currency):
            return None
        try:
            first = self._leg(attempt.from_currency, base)
            second = self._leg(base, attempt.to_currency)
        except ProviderUnavailableError as e:
            log.warning("Triangulation via %s failed for %s->%s",
                        base, attempt.from_currency, attempt.to_currency)
            attempt.record("triangulation", e)
            return None
        log.info("Triangulated %s->%s via %s", attempt.from_currency, attempt.to_currency, base)
        return ExchangeRate(
            from_currency=attempt.from_currency,
            to_currency=attempt.to_currency,
            rate=first.rate * second.rate,
            timestamp=min(first.timestamp, second.timestamp),
            source=RateSource.FALLBACK,
            provider=f"triangulated:{base}",
        )

    def _stale_cache(self, attempt: _Attempt) -> Optional[ExchangeRate]:
        rate = self._cached(attempt.from_currency, attempt.to_currency, fresh=False)
        if rate is None:
            return None
        log.warning("Using stale exchange rate for %s->%s from %s",
                    attempt.from_currency, attempt.to_currency, rate.timestamp.isoformat())
        return rate.tagged(RateSource.CACHE, stale=True)

    def _reference(self, attempt: _Attempt) -> Optional[ExchangeRate]:
        try:
            value = self.reference.get_rate(attempt.from_currency, attempt.to_currency)
        except ProviderUnavailableError as e:
            attempt.record("reference", e)
            return None
        log.warning("Using reference exchange rate for %s->%s", attempt.from_currency, attempt.to_currency)
        return ExchangeRate(
            from_currency=attempt.from_currency,
            to_currency=attempt.to_currency,
            rate=value,
            timestamp=_now(),
            source=RateSource.FALLBACK,
            provider=self.reference.name,
        )

    # ------------------------------------------------------------ historical

    def _fetch_day(self, from_currency: str, to_currency: str, day: date) -> ExchangeRate:
        return self.history_cache.fetch_once(
            (from_currency, to_currency, day),
            lambda: self.chain.fetch_historical(from_currency, to_currency, day),
            timeout=self.wait_timeout,
        )

    def resolve_historical(self, from_currency: str, to_currency: str, day: date) -> HistoricalPoint:
        """
        Resolve the rate for one past day: identity, cached day, direct
        historical fetch, then triangulation through the base currency.

        Raises:
            InvalidCurrencyCode: If either code is unsupported
            RateUnavailable: If the day cannot be resolved
        """
        src = require_currency(from_currency).code
        dst = require_currency(to_currency).code
        if src == dst:
            return HistoricalPoint(day=day, rate=Decimal(1), source=RateSource.IDENTITY)

        try:
            rate = self._fetch_day(src, dst, day)
            return HistoricalPoint(day=day, rate=rate.rate, source=rate.source)
        except ProviderUnavailableError as e:
            direct_error = e

        base = self.base_currency
        if base not in (src, dst):
            try:
                first = self._fetch_day(src, base, day)
                second = self._fetch_day(base, dst, day)
                return HistoricalPoint(day=day, rate=first.rate * second.rate, source=RateSource.FALLBACK)
            except ProviderUnavailableError as e:
                raise RateUnavailable(src, dst, f"{day.isoformat()}: {direct_error}; triangulation: {e}") from e
        raise RateUnavailable(src, dst, f"{day.isoformat()}: {direct_error}") from direct_error
