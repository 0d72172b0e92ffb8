# src/fxengine/adapters/providers/base.py
"""
Base Provider Interface for Exchange Rate Providers

This module defines the abstract base class for all exchange rate providers.
It establishes the contract that all provider implementations must follow:
a spot quote for an ordered pair and, optionally, a quote for a past day.

Files that USE this module:
- fxengine.adapters.providers.* (all providers implement RateProvider)
- fxengine.application.rate_resolver (ProviderChain calls providers)
- tests.* (fake providers subclass RateProvider)

Files that this module USES:
- fxengine.domain.errors (ProviderUnavailableError)
"""
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional

from fxengine.domain.errors import ProviderUnavailableError


class RateProvider(ABC):
    name: str = "provider"
    # Live providers quote the market; non-live ones (reference tables) are tagged as fallback.
    is_live: bool = True

    @abstractmethod
    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """
        Return how many `to_currency` units one `from_currency` unit buys.

        Raises:
            ProviderUnavailableError: On transport, quota or schema failures
        """
        raise NotImplementedError

    def get_historical_rate(self, from_currency: str, to_currency: str, day: date) -> Decimal:
        """Return the closing rate for `day` (or the closest earlier trading day)."""
        raise ProviderUnavailableError(f"{self.name} does not provide historical rates")

    def remaining_requests(self) -> Optional[int]:
        """Requests left in the current quota window (None when the provider is not rate limited)."""
        return None
