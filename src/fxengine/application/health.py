# src/fxengine/application/health.py
"""
Health Checker - Provider and Cache Diagnostics

This module probes each upstream rate provider with a cheap spot request and
summarizes the rate cache (when one is given), to tell whether the engine is answering from live
data, from fallbacks, or not at all.

Files that USE this module:
- fxengine.app (startup health report)
- tests.test_health (unit tests)

Files that this module USES:
- fxengine.application.rate_resolver (ProviderChain)
- fxengine.application.rate_cache (RateCache)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fxengine.application.rate_cache import RateCache
from fxengine.application.rate_resolver import ProviderChain
from fxengine.domain.errors import ProviderUnavailableError

logger = logging.getLogger(__name__)

PROBE_PAIR: Tuple[str, str] = ("EUR", "USD")


@dataclass
class HealthStatus:
    """Represents the health status of a component."""
    is_healthy: bool
    message: str
    last_check: datetime
    details: Optional[Dict[str, Any]] = None


class HealthChecker:
    """Health checks for upstream providers and the rate cache."""

    def __init__(
        self,
        chain: ProviderChain,
        cache: Optional[RateCache] = None,
        probe_pair: Tuple[str, str] = PROBE_PAIR,
    ):
        self.chain = chain
        self.cache = cache
        self.probe_pair = probe_pair

    def check_providers(self) -> Dict[str, HealthStatus]:
        """Probe every provider directly (bypassing cache and retries)."""
        from_currency, to_currency = self.probe_pair
        results: Dict[str, HealthStatus] = {}
        for provider in self.chain.providers:
            try:
                rate = provider.get_rate(from_currency, to_currency)
                results[provider.name] = HealthStatus(
                    is_healthy=True,
                    message=f"{provider.name} healthy, 1 {from_currency} = {rate} {to_currency}",
                    last_check=datetime.now(timezone.utc),
                    details={
                        "rate": str(rate),
                        "live": provider.is_live,
                        "remaining_requests": provider.remaining_requests(),
                    },
                )
            except ProviderUnavailableError as e:
                logger.error("%s health check failed: %s", provider.name, e)
                results[provider.name] = HealthStatus(
                    is_healthy=False,
                    message=f"{provider.name} error: {e}",
                    last_check=datetime.now(timezone.utc),
                    details={"live": provider.is_live, "remaining_requests": provider.remaining_requests()},
                )
        return results

    def check_cache(self) -> HealthStatus:
        status = self.cache.status()
        healthy = status["entries"] == 0 or status["fresh"] > 0
        message = (
            f"Rate cache: {status['entries']} entries, {status['fresh']} fresh, {status['stale']} stale"
        )
        return HealthStatus(
            is_healthy=healthy,
            message=message,
            last_check=datetime.now(timezone.utc),
            details=status,
        )

    def get_overall_health(self) -> Dict[str, Any]:
        """
        Aggregate status of all components.

        Healthy when at least one live provider answers and the cache (if
        checked) is not entirely stale; degraded otherwise.
        """
        providers = self.check_providers()
        checks: Dict[str, HealthStatus] = {f"provider:{name}": status for name, status in providers.items()}
        if self.cache is not None:
            checks["cache"] = self.check_cache()

        live_ok = any(
            status.is_healthy and (status.details or {}).get("live", True) for status in providers.values()
        )
        failed_checks = [name for name, check in checks.items() if not check.is_healthy]
        cache_ok = checks["cache"].is_healthy if "cache" in checks else True
        overall_healthy = live_ok and cache_ok

        if overall_healthy and not failed_checks:
            status_message = "All systems healthy"
        elif overall_healthy:
            status_message = f"Healthy with failures: {', '.join(failed_checks)}"
        else:
            status_message = f"Degraded - {len(failed_checks)} component(s) failed: {', '.join(failed_checks)}"

        return {
            "overall_healthy": overall_healthy,
            "status": "healthy" if overall_healthy else "degraded",
            "message": status_message,
            "failed_components": failed_checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                name: {
                    "healthy": check.is_healthy,
                    "message": check.message,
                    "last_check": check.last_check.isoformat(),
                    "details": check.details,
                }
                for name, check in checks.items()
            },
        }
