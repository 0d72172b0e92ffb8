# src/fxengine/application/rate_cache.py
"""
Rate Cache - In-Memory Exchange Rate Storage with Single-Flight Fetches

This module holds fetched exchange rates keyed by currency pair (or pair and
day for historical quotes), ages them against a staleness threshold, and
makes sure concurrent callers missing the same key share one upstream fetch.

Files that USE this module:
- fxengine.application.rate_resolver (spot and historical caches)
- fxengine.application.health (cache status)
- fxengine.app (cache construction)
- tests.test_rate_cache (unit tests)

Files that this module USES:
- fxengine.domain.models (ExchangeRate)
- fxengine.domain.errors (ProviderUnavailableError on wait timeout)
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Hashable, Optional

from fxengine.domain.errors import ProviderUnavailableError
from fxengine.domain.models import ExchangeRate

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateCache:
    """
    Thread-safe rate cache.

    A failed fetch never evicts an existing entry, so a stale value stays
    available as a last resort. With `staleness_seconds=None` entries never
    age (used for historical days).
    """

    def __init__(self, staleness_seconds: Optional[float] = None, clock: Optional[Clock] = None):
        self.staleness = timedelta(seconds=staleness_seconds) if staleness_seconds is not None else None
        self._clock = clock or _utcnow
        self._entries: Dict[Hashable, ExchangeRate] = {}
        self._in_flight: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()
        self._last_update: Optional[datetime] = None

    def now(self) -> datetime:
        return self._clock()

    def is_stale(self, rate: ExchangeRate, now: Optional[datetime] = None) -> bool:
        if self.staleness is None:
            return False
        now = now or self.now()
        return now - rate.timestamp > self.staleness

    def get(self, key: Hashable) -> Optional[ExchangeRate]:
        """Return the entry for a key regardless of age, or None."""
        with self._lock:
            return self._entries.get(key)

    def get_fresh(self, key: Hashable) -> Optional[ExchangeRate]:
        """Return the entry for a key only if it is within the staleness threshold."""
        rate = self.get(key)
        if rate is None or self.is_stale(rate):
            return None
        return rate

    def put(self, key: Hashable, rate: ExchangeRate) -> None:
        with self._lock:
            self._entries[key] = rate
            self._last_update = self.now()

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry. In-flight fetches still complete and write back."""
        with self._lock:
            self._entries.clear()
            self._last_update = None
        logger.info("Rate cache cleared - fresh rates will be fetched")

    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def fetch_once(
        self,
        key: Hashable,
        fetcher: Callable[[], ExchangeRate],
        timeout: Optional[float] = None,
    ) -> ExchangeRate:
        """
        Fetch a rate with at most one in-flight upstream call per key.

        The first caller for a key runs `fetcher` and writes the result
        through to the cache; callers arriving while it runs wait for the
        same result (or exception). A caller that arrives after a fresh
        value was written gets that value without fetching.

        Args:
            key: Cache key
            fetcher: Zero-argument callable performing the upstream fetch
            timeout: Maximum seconds a waiting caller blocks on another
                caller's fetch (None waits until the fetch finishes)

        Returns:
            The fetched (or just-fetched) rate

        Raises:
            ProviderUnavailableError: If waiting timed out, or re-raised from the fetch
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None and not self.is_stale(existing):
                return existing
            future = self._in_flight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._in_flight[key] = future

        if not leader:
            logger.debug("Joining in-flight fetch for %s", key)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError as e:
                logger.warning("Timed out after %ss waiting for in-flight fetch of %s", timeout, key)
                raise ProviderUnavailableError(f"Timed out waiting for fetch of {key}") from e

        try:
            rate = fetcher()
        except Exception as e:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._entries[key] = rate
            self._last_update = self.now()
            self._in_flight.pop(key, None)
        future.set_result(rate)
        return rate

    def status(self) -> dict:
        """Summarize cache contents for health checks and the cache-status endpoint."""
        now = self.now()
        with self._lock:
            entries = list(self._entries.values())
            in_flight = len(self._in_flight)
            last_update = self._last_update
        stale = sum(1 for rate in entries if self.is_stale(rate, now))
        next_update = None
        if last_update is not None and self.staleness is not None:
            next_update = last_update + self.staleness
        return {
            "entries": len(entries),
            "fresh": len(entries) - stale,
            "stale": stale,
            "inFlight": in_flight,
            "lastUpdated": last_update.isoformat() if last_update else None,
            "nextUpdate": next_update.isoformat() if next_update else None,
        }
