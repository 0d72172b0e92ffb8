# tests/test_engine.py
"""
Currency Engine Tests - Facade Operations

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- fxengine.application.engine (CurrencyEngine under test)
- tests.conftest (fake providers, resolver and loan factory)
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest

from fxengine.application.converter import CurrencyConverter
from fxengine.application.engine import CurrencyEngine
from fxengine.domain.errors import DomainError
from fxengine.domain.models import ExchangeRate, MonetaryAmount, RiskTier


@pytest.fixture
def loans_repo():
    return Mock()


@pytest.fixture
def engine(converter, loans_repo):
    return CurrencyEngine(converter, loans=loans_repo)


class TestRates:
    def test_convert(self, engine):
        result = engine.convert(100, "USD", "EUR")
        assert result.amount == MonetaryAmount.of("85.00", "EUR")

    def test_get_rate(self, engine):
        assert engine.get_rate("USD", "JPY").rate == Decimal("110")

    def test_get_rates_and_batch(self, engine):
        rates = engine.get_rates([("USD", "EUR"), ("USD", "GBP")])
        batch = engine.convert_batch([{"amount": 1, "from": "USD", "to": "GBP"}])
        assert [r.rate for r in rates] == [Decimal("0.85"), Decimal("0.73")]
        assert batch[0].amount.amount == Decimal("0.73")

    def test_historical_rates(self, provider_factory, resolver_factory):
        day = date(2024, 2, 1)
        provider = provider_factory(history={("USD", "EUR", day): "0.92"})
        engine = CurrencyEngine(CurrencyConverter(resolver_factory(provider)))

        result = engine.get_historical_rates("USD", "EUR", day, day)

        assert [p.rate for p in result.points] == [Decimal("0.92")]

    def test_refresh_rates_clears_cache(self, engine, provider):
        engine.get_rate("USD", "EUR")
        assert engine.cache_status()["entries"] == 1

        engine.refresh_rates()
        engine.get_rate("USD", "EUR")

        assert provider.get_rate.call_count == 2


class TestDetection:
    def test_detect_country_precedence(self, engine):
        with patch.object(engine.detector, "from_market_symbol") as market:
            assert engine.detect_currency(country_code="GB", market_symbol="7203.T") == "GBP"
        market.assert_not_called()

    def test_detect_from_market_and_country(self, engine):
        assert engine.detect_from_market("VOD.L") == "GBP"
        assert engine.detect_from_country("ch") == "CHF"

    def test_currency_lookups_and_formatting(self, engine):
        assert len(engine.supported_currencies()) == 20
        assert engine.currency_info("KRW").decimal_places == 0
        assert engine.format_amount("1234.5", "USD") == "$1,234.50"


class TestLoanAnalyses:
    def test_payoff_strategies_single_currency(self, engine, loan_factory):
        loans = [loan_factory(1, 5000, rate=5), loan_factory(2, 1000, rate=12), loan_factory(3, 3000, rate=8)]

        plans = engine.get_payoff_strategies(loans)

        assert list(plans["snowball"].order) == [2, 3, 1]
        assert list(plans["avalanche"].order) == [2, 3, 1]
        assert plans["snowball"].currency == "USD"

    def test_payoff_strategies_converts_mixed_currencies(self, engine, loan_factory):
        loans = [loan_factory(1, 1000, payment=100), loan_factory(2, 1000, payment=100, currency="EUR")]

        plans = engine.get_payoff_strategies(loans, currency="USD")

        # 1000 EUR is ~1176 USD, so the USD loan is the smaller one
        assert list(plans["snowball"].order) == [1, 2]
        assert plans["snowball"].currency == "USD"

    def test_debt_to_income_converts_to_income_currency(self, engine, loan_factory):
        income = MonetaryAmount.of(1000, "EUR")
        loans = [loan_factory(1, 5000, payment=200)]

        report = engine.get_debt_to_income(income, loans)

        assert report.total_monthly_payments == MonetaryAmount.of("170.00", "EUR")
        assert report.ratio == Decimal("17.00")
        assert report.risk_tier == RiskTier.LOW

    def test_user_payoff_from_repository(self, engine, loans_repo, loan_factory):
        loans_repo.get_active_loans.return_value = [loan_factory(1, 600, payment=100)]

        plans = engine.get_user_payoff_strategies("user-1")

        loans_repo.get_active_loans.assert_called_once_with("user-1")
        assert plans["snowball"].payoff_months == 6

    def test_user_debt_to_income_without_income(self, engine, loans_repo, loan_factory):
        loans_repo.get_active_loans.return_value = [loan_factory(1, 600, payment=100)]
        loans_repo.get_monthly_income.return_value = None

        report = engine.get_user_debt_to_income("user-1")

        assert report.ratio == Decimal("0")
        assert report.risk_tier == RiskTier.MEDIUM

    def test_user_operations_need_repository(self, converter):
        engine = CurrencyEngine(converter)
        with pytest.raises(DomainError, match="No loan repository"):
            engine.get_user_debt_to_income("user-1")

    def test_amortization_schedule(self, engine, loan_factory):
        rows = engine.amortization_schedule(loan_factory(1, 300, payment=100))
        assert [r.remaining_balance for r in rows] == [Decimal("200"), Decimal("100"), Decimal("0")]

    def test_per_loan_payoff_date_and_interest(self, engine, loan_factory):
        loan = loan_factory(1, 200, rate=12, payment=110, next_payment_date=date(2024, 5, 1))

        assert engine.loan_payoff_date(loan) == date(2024, 6, 1)
        assert engine.loan_total_interest(loan) == Decimal("2.92")


@pytest.fixture
def stale_eur_engine(provider_factory, resolver_factory):
    """EUR->USD only available as a three-hour-old cache entry."""
    resolver = resolver_factory(provider_factory({}))
    resolver.cache.put(("EUR", "USD"), ExchangeRate(
        "EUR", "USD", Decimal("1.10"), datetime.now(timezone.utc) - timedelta(hours=3)
    ))
    return CurrencyEngine(CurrencyConverter(resolver))


class TestStaleConversions:
    def test_payoff_plans_flag_stale_rates(self, stale_eur_engine, loan_factory):
        loans = [loan_factory(1, 1000, payment=100, currency="EUR"), loan_factory(2, 500, payment=50)]

        plans = stale_eur_engine.get_payoff_strategies(loans, currency="USD")

        assert plans["snowball"].stale_rates is True
        assert plans["avalanche"].stale_rates is True
        assert plans["snowball"].to_dict()["staleRates"] is True

    def test_debt_to_income_flags_stale_rates(self, stale_eur_engine, loan_factory):
        income = MonetaryAmount.of(2000, "USD")

        report = stale_eur_engine.get_debt_to_income(income, [loan_factory(1, 1000, payment=100, currency="EUR")])

        assert report.total_monthly_payments == MonetaryAmount.of("110.00", "USD")
        assert report.ratio == Decimal("5.50")
        assert report.stale_rates is True

    def test_fresh_rates_not_flagged(self, engine, loan_factory):
        loans = [loan_factory(1, 1000, payment=100, currency="EUR")]

        plans = engine.get_payoff_strategies(loans, currency="USD")
        report = engine.get_debt_to_income(MonetaryAmount.of(2000, "USD"), loans)

        assert plans["snowball"].stale_rates is False
        assert report.stale_rates is False


class TestCurrencyExposure:
    def test_loan_exposure_in_target_currency(self, engine, loan_factory):
        loans = [
            loan_factory(1, 1000, payment=100),
            loan_factory(2, 1000, payment=100, currency="EUR"),
            loan_factory(3, 0, payment=0, currency="GBP"),
        ]

        analysis = engine.get_loan_currency_exposure(loans, "USD")

        # 1000 EUR -> 1176.47 USD, total 2176.47 USD
        assert [e.currency for e in analysis.exposures] == ["EUR", "USD"]
        assert analysis.exposures[0].percentage == Decimal("54.05")
        assert analysis.exposures[0].total_value == MonetaryAmount.of(1000, "EUR")
        assert analysis.exposures[0].converted_value == MonetaryAmount.of("1176.47", "USD")
        assert analysis.currency == "USD"
        assert analysis.stale_rates is False

    def test_user_exposure_from_repository(self, engine, loans_repo, loan_factory):
        loans_repo.get_active_loans.return_value = [loan_factory(1, 600, payment=100)]

        analysis = engine.get_user_currency_exposure("user-1")

        loans_repo.get_active_loans.assert_called_once_with("user-1")
        assert analysis.exposures[0].percentage == Decimal("100.00")

    def test_no_loans(self, engine):
        analysis = engine.get_loan_currency_exposure([])
        assert analysis.exposures == []
        assert analysis.risk_score == Decimal("0.00")
