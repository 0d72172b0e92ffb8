# src/fxengine/shared/rate_limiter.py
"""
Rate Limiter - Upstream Quota Protection

This module implements a sliding-window rate limiter that keeps the engine
inside the request quotas of upstream rate APIs. A provider that is over its
quota fails fast instead of waiting, which lets the resolver's fallback
ladder take over.

Files that USE this module:
- fxengine.adapters.providers.alphavantage (guards Alpha Vantage calls)
- fxengine.adapters.providers.frankfurter (guards Frankfurter calls)

Files that this module USES:
- fxengine.config (default quota from settings)
"""
import threading
import time
from typing import Dict, Optional
from collections import defaultdict, deque
from dataclasses import dataclass

from fxengine.config import settings


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""
    max_requests: int
    time_window: int  # in seconds
    block_duration: int = 0  # extra cool-down once the limit is hit


class RateLimiter:
    """Thread-safe in-memory rate limiter."""

    def __init__(self):
        self._requests: Dict[str, deque] = defaultdict(deque)
        self._blocked: Dict[str, float] = {}
        self._lock = threading.Lock()

    def is_allowed(self, identifier: str, config: RateLimitConfig) -> bool:
        """
        Check if a request is allowed for the given identifier and record it.

        Args:
            identifier: Unique identifier (e.g., provider name)
            config: Rate limit configuration

        Returns:
            True if request is allowed, False if rate limited
        """
        now = time.monotonic()

        with self._lock:
            if identifier in self._blocked:
                if now < self._blocked[identifier]:
                    return False
                del self._blocked[identifier]

            cutoff = now - config.time_window
            requests = self._requests[identifier]
            while requests and requests[0] < cutoff:
                requests.popleft()

            if len(requests) >= config.max_requests:
                if config.block_duration:
                    self._blocked[identifier] = now + config.block_duration
                return False

            requests.append(now)
            return True

    def get_remaining_requests(self, identifier: str, config: RateLimitConfig) -> int:
        """
        Get remaining requests available for an identifier within the time window.

        Returns:
            Number of remaining requests (0 or positive)
        """
        now = time.monotonic()
        cutoff = now - config.time_window
        with self._lock:
            requests = self._requests[identifier]
            while requests and requests[0] < cutoff:
                requests.popleft()
            return max(0, config.max_requests - len(requests))

    def reset(self, identifier: Optional[str] = None) -> None:
        with self._lock:
            if identifier is None:
                self._requests.clear()
                self._blocked.clear()
            else:
                self._requests.pop(identifier, None)
                self._blocked.pop(identifier, None)


# Global rate limiter instance shared by all providers
rate_limiter = RateLimiter()

UPSTREAM_LIMIT = RateLimitConfig(
    max_requests=settings.upstream_max_requests,
    time_window=settings.upstream_window_seconds,
)
