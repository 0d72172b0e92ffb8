# tests/test_rate_resolver.py
"""
Rate Resolver Tests - Provider Chain and Fallback Ladder

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- fxengine.application.rate_resolver (ProviderChain, RateResolver)
- fxengine.adapters.providers.static (StaticRateProvider as reference step)
- tests.conftest (fake providers)
"""
import threading
import time
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from fxengine.adapters.providers.static import StaticRateProvider
from fxengine.application.rate_resolver import ProviderChain
from fxengine.domain.errors import InvalidCurrencyCode, ProviderUnavailableError, RateUnavailable
from fxengine.domain.models import ExchangeRate, RateSource


def old_rate(from_currency, to_currency, value, hours=3):
    return ExchangeRate(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=Decimal(value),
        timestamp=datetime.now(timezone.utc) - timedelta(hours=hours),
        source=RateSource.API,
    )


class TestProviderChain:
    def test_first_success_wins(self, provider_factory):
        first = provider_factory({("EUR", "USD"): "1.08"}, name="first")
        second = provider_factory({("EUR", "USD"): "1.10"}, name="second")
        chain = ProviderChain([first, second], retries=1, retry_delay=0)

        rate = chain.fetch("EUR", "USD")

        assert rate.rate == Decimal("1.08")
        assert rate.source == RateSource.API
        assert rate.provider == "first"
        second.get_rate.assert_not_called()

    def test_falls_through_to_next_provider_with_backoff(self, provider_factory):
        failing = provider_factory({}, name="failing")
        working = provider_factory({("EUR", "USD"): "1.09"}, name="working")
        sleep = Mock()
        chain = ProviderChain([failing, working], retries=3, retry_delay=0.5, sleep=sleep)

        rate = chain.fetch("EUR", "USD")

        assert rate.rate == Decimal("1.09")
        assert failing.get_rate.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]
        assert chain.get_last_provider() == "working"

    def test_non_live_provider_tags_fallback(self):
        chain = ProviderChain([StaticRateProvider()], retries=1, retry_delay=0)
        rate = chain.fetch("USD", "EUR")
        assert rate.source == RateSource.FALLBACK
        assert rate.provider == "reference"

    def test_all_failed_raises(self, provider_factory):
        chain = ProviderChain([provider_factory({}, name="a"), provider_factory({}, name="b")],
                              retries=1, retry_delay=0)
        with pytest.raises(ProviderUnavailableError, match="All providers failed"):
            chain.fetch("EUR", "USD")

    def test_empty_chain_raises(self):
        with pytest.raises(ProviderUnavailableError, match="no providers configured"):
            ProviderChain([], retries=1).fetch("EUR", "USD")


class TestResolveLadder:
    def test_identity_skips_cache_and_upstream(self, resolver, provider):
        rate = resolver.resolve("usd", "USD")

        assert rate.rate == Decimal(1)
        assert rate.source == RateSource.IDENTITY
        provider.get_rate.assert_not_called()
        assert resolver.cache.status()["entries"] == 0

    def test_direct_fetch_then_cache_hit(self, resolver, provider):
        first = resolver.resolve("USD", "EUR")
        second = resolver.resolve("USD", "EUR")

        assert first.source == RateSource.API
        assert second.source == RateSource.CACHE
        assert second.rate == first.rate == Decimal("0.85")
        provider.get_rate.assert_called_once_with("USD", "EUR")

    def test_inverse_of_cached_pair(self, resolver, provider):
        resolver.resolve("USD", "GBP")
        rate = resolver.resolve("GBP", "USD")

        assert rate.rate == Decimal(1) / Decimal("0.73")
        assert rate.source == RateSource.CACHE
        assert provider.get_rate.call_count == 1

    def test_triangulation_via_base(self, resolver, provider):
        rate = resolver.resolve("EUR", "GBP")

        assert rate.source == RateSource.FALLBACK
        assert rate.provider == "triangulated:USD"
        assert rate.rate == Decimal("1.17647") * Decimal("0.73")
        assert not rate.stale
        # legs are cached, the derived pair is not
        assert resolver.cache.get(("EUR", "GBP")) is None
        assert resolver.cache.get(("EUR", "USD")) is not None
        assert resolver.cache.get(("USD", "GBP")) is not None

    def test_triangulation_uses_inverse_leg_from_cache(self, provider_factory, resolver_factory):
        provider = provider_factory({("USD", "GBP"): "0.75", ("USD", "JPY"): "150"})
        resolver = resolver_factory(provider)
        resolver.resolve("USD", "GBP")

        rate = resolver.resolve("GBP", "JPY")

        assert rate.rate == (Decimal(1) / Decimal("0.75")) * Decimal("150")
        assert rate.source == RateSource.FALLBACK

    def test_stale_entry_used_when_upstream_fails(self, provider_factory, resolver_factory):
        resolver = resolver_factory(provider_factory({}))
        resolver.cache.put(("EUR", "GBP"), old_rate("EUR", "GBP", "0.86"))

        rate = resolver.resolve("EUR", "GBP")

        assert rate.stale is True
        assert rate.source == RateSource.CACHE
        assert rate.rate == Decimal("0.86")

    def test_stale_inverse_entry(self, provider_factory, resolver_factory):
        resolver = resolver_factory(provider_factory({}))
        resolver.cache.put(("USD", "EUR"), old_rate("USD", "EUR", "0.80"))

        rate = resolver.resolve("EUR", "USD")

        assert rate.stale is True
        assert rate.rate == Decimal("1.25")

    def test_stale_entry_replaced_when_upstream_recovers(self, provider_factory, resolver_factory):
        resolver = resolver_factory(provider_factory({("EUR", "USD"): "1.10"}))
        resolver.cache.put(("EUR", "USD"), old_rate("EUR", "USD", "1.00"))

        rate = resolver.resolve("EUR", "USD")

        assert rate.rate == Decimal("1.10")
        assert not rate.stale
        assert resolver.cache.get(("EUR", "USD")).rate == Decimal("1.10")

    def test_unavailable_when_every_step_fails(self, provider_factory, resolver_factory):
        resolver = resolver_factory(provider_factory({}))
        with pytest.raises(RateUnavailable) as exc_info:
            resolver.resolve("EUR", "GBP")
        assert exc_info.value.from_currency == "EUR"
        assert exc_info.value.to_currency == "GBP"

    def test_reference_rates_as_last_step(self, provider_factory, resolver_factory):
        resolver = resolver_factory(provider_factory({}), reference=StaticRateProvider())

        rate = resolver.resolve("USD", "EUR")

        assert rate.source == RateSource.FALLBACK
        assert rate.provider == "reference"
        assert rate.rate == Decimal("0.85")

    def test_invalid_code_rejected_before_lookup(self, resolver, provider):
        with pytest.raises(InvalidCurrencyCode):
            resolver.resolve("USD", "XYZ")
        provider.get_rate.assert_not_called()


class TestConcurrentResolve:
    def test_simultaneous_callers_share_one_upstream_fetch(self, provider_factory, resolver_factory):
        provider = provider_factory({})

        def slow_quote(from_currency, to_currency):
            time.sleep(0.2)
            return Decimal("0.86")

        provider.get_rate.side_effect = slow_quote
        resolver = resolver_factory(provider)
        callers = 10
        barrier = threading.Barrier(callers)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            rate = resolver.resolve("EUR", "GBP")
            with results_lock:
                results.append(rate.rate)

        threads = [threading.Thread(target=worker) for _ in range(callers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert provider.get_rate.call_count == 1
        assert results == [Decimal("0.86")] * callers


class TestResolveHistorical:
    DAY = date(2024, 3, 15)

    def test_identity(self, resolver):
        point = resolver.resolve_historical("EUR", "EUR", self.DAY)
        assert point.rate == Decimal(1)
        assert point.source == RateSource.IDENTITY

    def test_direct_and_cached(self, provider_factory, resolver_factory):
        provider = provider_factory(history={("EUR", "USD", self.DAY): "1.09"})
        resolver = resolver_factory(provider)

        first = resolver.resolve_historical("EUR", "USD", self.DAY)
        second = resolver.resolve_historical("EUR", "USD", self.DAY)

        assert first.rate == second.rate == Decimal("1.09")
        provider.get_historical_rate.assert_called_once_with("EUR", "USD", self.DAY)

    def test_triangulated_day(self, provider_factory, resolver_factory):
        provider = provider_factory(history={
            ("EUR", "USD", self.DAY): "1.10",
            ("USD", "JPY", self.DAY): "150",
        })
        resolver = resolver_factory(provider)

        point = resolver.resolve_historical("EUR", "JPY", self.DAY)

        assert point.rate == Decimal("165.00")
        assert point.source == RateSource.FALLBACK

    def test_unresolvable_day(self, provider_factory, resolver_factory):
        resolver = resolver_factory(provider_factory())
        with pytest.raises(RateUnavailable, match="2024-03-15"):
            resolver.resolve_historical("EUR", "USD", self.DAY)
