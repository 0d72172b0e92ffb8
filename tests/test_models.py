# tests/test_models.py
"""
Domain Model Tests - Value Objects and Snapshots

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- fxengine.domain.models (MonetaryAmount, ExchangeRate, Loan, ...)
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fxengine.domain.errors import CurrencyMismatchError, InvalidCurrencyCode, InvalidLoanError
from fxengine.domain.models import (
    BatchError,
    ConversionRequest,
    ExchangeRate,
    Loan,
    MonetaryAmount,
    RateSource,
)

TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestMonetaryAmount:
    def test_normalizes_currency_and_amount(self):
        money = MonetaryAmount.of("1,250.50", " eur ")
        assert money.amount == Decimal("1250.50")
        assert money.currency == "EUR"

    def test_float_goes_through_str(self):
        assert MonetaryAmount.of(0.1, "USD").amount == Decimal("0.1")

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "abc", True])
    def test_rejects_non_finite_or_non_numeric(self, bad):
        with pytest.raises(ValueError):
            MonetaryAmount.of(bad, "USD")

    def test_rejects_unknown_currency(self):
        with pytest.raises(InvalidCurrencyCode):
            MonetaryAmount.of(1, "ABC")

    def test_arithmetic(self):
        a = MonetaryAmount.of("10.10", "USD")
        b = MonetaryAmount.of("0.90", "USD")
        assert (a + b).amount == Decimal("11.00")
        assert (a - b).amount == Decimal("9.20")
        assert (a * 2).amount == Decimal("20.20")
        assert (3 * b).amount == Decimal("2.70")
        assert b < a

    def test_mixed_currency_arithmetic(self):
        with pytest.raises(CurrencyMismatchError):
            MonetaryAmount.of(1, "USD") + MonetaryAmount.of(1, "EUR")

    def test_rounded_is_half_even(self):
        assert MonetaryAmount.of("2.345", "USD").rounded().amount == Decimal("2.34")
        assert MonetaryAmount.of("2.355", "USD").rounded().amount == Decimal("2.36")
        assert MonetaryAmount.of("2.5", "JPY").rounded().amount == Decimal("2")

    def test_immutable(self):
        money = MonetaryAmount.of(1, "USD")
        with pytest.raises(AttributeError):
            money.amount = Decimal("2")

    def test_zero(self):
        assert MonetaryAmount.zero("JPY").is_zero


class TestExchangeRate:
    def test_positive_rate_required(self):
        with pytest.raises(ValueError):
            ExchangeRate("EUR", "USD", Decimal("0"), TS)

    def test_inverse(self):
        rate = ExchangeRate("USD", "EUR", Decimal("0.8"), TS, provider="x")
        inverse = rate.inverse()
        assert inverse.pair == ("EUR", "USD")
        assert inverse.rate == Decimal("1.25")
        assert inverse.timestamp == TS

    def test_tagged_keeps_value(self):
        rate = ExchangeRate("USD", "EUR", Decimal("0.8"), TS)
        stale = rate.tagged(RateSource.CACHE, stale=True)
        assert stale.rate == rate.rate
        assert stale.stale is True
        assert stale.to_dict()["source"] == "cache"


class TestRequestsAndErrors:
    def test_request_from_dict(self):
        request = ConversionRequest.from_dict({"amount": 5, "from": "USD", "to": "EUR"})
        assert request.from_currency == "USD"
        assert request.to_currency == "EUR"

    def test_batch_error_from_exception(self):
        error = BatchError.from_exception(2, InvalidCurrencyCode("QQQ"))
        assert error.to_dict() == {"index": 2, "error": "InvalidCurrencyCode", "message": "Currency 'QQQ' not supported"}
        assert error.ok is False


class TestLoan:
    def _loan(self, **overrides):
        fields = dict(
            id=1,
            current_balance=MonetaryAmount.of(1000, "USD"),
            interest_rate="6",
            monthly_payment=MonetaryAmount.of(50, "USD"),
        )
        fields.update(overrides)
        return Loan(**fields)

    def test_defaults(self):
        loan = self._loan()
        assert loan.principal == loan.current_balance
        assert loan.monthly_rate == Decimal("0.005")
        assert loan.is_active

    def test_negative_rate(self):
        with pytest.raises(InvalidLoanError):
            self._loan(interest_rate=-1)

    def test_negative_balance(self):
        with pytest.raises(InvalidLoanError):
            self._loan(current_balance=MonetaryAmount.of(-1, "USD"))

    def test_payment_currency_must_match(self):
        with pytest.raises(InvalidLoanError):
            self._loan(monthly_payment=MonetaryAmount.of(50, "EUR"))
