# tests/conftest.py
"""
Shared Test Fixtures

Fake upstream providers built from Mock, loan factories and a wired
resolver/converter stack that never touches the network.

Files that USE this module:
- pytest (fixtures are injected into every test module)

Files that this module USES:
- fxengine.adapters.providers.base (RateProvider spec for mocks)
- fxengine.application (ProviderChain, RateResolver, RateCache, CurrencyConverter)
- fxengine.domain.models (Loan, MonetaryAmount)
"""
from decimal import Decimal
from unittest.mock import Mock

import pytest

from fxengine.adapters.providers.base import RateProvider
from fxengine.application.converter import CurrencyConverter
from fxengine.application.rate_cache import RateCache
from fxengine.application.rate_resolver import ProviderChain, RateResolver
from fxengine.domain.errors import ProviderUnavailableError
from fxengine.domain.models import Loan, MonetaryAmount


def fake_provider(rates=None, history=None, name="fake", is_live=True):
    """
    Mock provider answering from dicts.

    Args:
        rates: {(from, to): rate} for spot quotes; missing pairs fail
        history: {(from, to, day): rate} for daily quotes; missing days fail
    """
    rates = {k: Decimal(str(v)) for k, v in (rates or {}).items()}
    history = {k: Decimal(str(v)) for k, v in (history or {}).items()}

    def get_rate(from_currency, to_currency):
        try:
            return rates[(from_currency, to_currency)]
        except KeyError:
            raise ProviderUnavailableError(f"{name} has no quote for {from_currency}->{to_currency}")

    def get_historical_rate(from_currency, to_currency, day):
        try:
            return history[(from_currency, to_currency, day)]
        except KeyError:
            raise ProviderUnavailableError(f"{name} has no quote for {from_currency}->{to_currency} on {day}")

    provider = Mock(spec=RateProvider)
    provider.name = name
    provider.is_live = is_live
    provider.remaining_requests.return_value = None
    provider.get_rate.side_effect = get_rate
    provider.get_historical_rate.side_effect = get_historical_rate
    return provider


def build_resolver(provider, reference=None, staleness_seconds=3600):
    chain = ProviderChain([provider], retries=1, retry_delay=0)
    return RateResolver(
        chain,
        cache=RateCache(staleness_seconds=staleness_seconds),
        history_cache=RateCache(staleness_seconds=None),
        base_currency="USD",
        reference=reference,
        wait_timeout=5,
    )


def make_loan(loan_id, balance, rate=0, payment=100, currency="USD", **kwargs):
    return Loan(
        id=loan_id,
        current_balance=MonetaryAmount.of(balance, currency),
        interest_rate=rate,
        monthly_payment=MonetaryAmount.of(payment, currency),
        **kwargs,
    )


@pytest.fixture
def spot_rates():
    return {
        ("USD", "EUR"): "0.85",
        ("EUR", "USD"): "1.17647",
        ("USD", "GBP"): "0.73",
        ("USD", "JPY"): "110",
    }


@pytest.fixture
def provider(spot_rates):
    return fake_provider(spot_rates)


@pytest.fixture
def resolver(provider):
    return build_resolver(provider)


@pytest.fixture
def converter(resolver):
    return CurrencyConverter(resolver, max_workers=4)


@pytest.fixture
def loan_factory():
    return make_loan


@pytest.fixture
def provider_factory():
    return fake_provider


@pytest.fixture
def resolver_factory():
    return build_resolver
