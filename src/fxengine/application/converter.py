# src/fxengine/application/converter.py
"""
Currency Converter - Single, Batch and Historical Conversions

This module composes the RateResolver with MonetaryAmount to convert single
amounts, batches of amounts and pairs, and to reconstruct daily historical
rate series. Converted amounts are rounded half-to-even to the target
currency's decimal places.

Batch and series operations isolate per-item failures: the output always has
one slot per request, and a failed slot holds a BatchError (or, for series,
the day is listed as missing).

Files that USE this module:
- fxengine.application.engine (CurrencyEngine delegates conversions)
- tests.test_converter (unit tests)

Files that this module USES:
- fxengine.application.rate_resolver (RateResolver)
- fxengine.domain.models (MonetaryAmount, ConversionResult, BatchError, ...)
- fxengine.config (worker pool size)
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, TypeVar, Union

from fxengine.application.rate_resolver import RateResolver
from fxengine.config import settings
from fxengine.domain.errors import DomainError, InvalidDateRange
from fxengine.domain.models import (
    BatchError,
    ConversionRequest,
    ConversionResult,
    ExchangeRate,
    HistoricalPoint,
    HistoricalResult,
    MonetaryAmount,
    require_currency,
)
from fxengine.shared.validators import Number

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Errors that mark a single slot as failed instead of aborting the batch
ITEM_ERRORS = (DomainError, ValueError, TypeError, ArithmeticError)

PairLike = Union[dict, Sequence[str]]


def _run_isolated(items: Sequence[T], fn: Callable[[T], R], max_workers: int) -> List[Union[R, BatchError]]:
    """Apply fn to every item in parallel, keeping input order and turning failures into BatchErrors."""

    def guarded(index: int, item: T) -> Union[R, BatchError]:
        try:
            return fn(item)
        except ITEM_ERRORS as e:
            logger.warning("Batch entry %d failed: %s", index, e)
            return BatchError.from_exception(index, e)

    if not items:
        return []
    workers = max(1, min(max_workers, len(items)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fx-batch") as pool:
        futures = [pool.submit(guarded, i, item) for i, item in enumerate(items)]
        return [f.result() for f in futures]


def _pair_of(pair: PairLike):
    if isinstance(pair, dict):
        return pair.get("from", pair.get("from_currency", "")), pair.get("to", pair.get("to_currency", ""))
    from_currency, to_currency = pair
    return from_currency, to_currency


class HistoricalSeries:
    """
    Lazy, finite, restartable sequence of daily rates over [start, end].

    Each iteration resolves every day independently; days that fail are
    skipped and recorded in `missing` (reset at the start of every pass).
    `collect()` resolves days in parallel instead.
    """

    def __init__(
        self,
        resolver: RateResolver,
        from_currency: str,
        to_currency: str,
        start: date,
        end: date,
        max_workers: Optional[int] = None,
    ):
        if start > end:
            raise InvalidDateRange(start, end)
        self.resolver = resolver
        self.from_currency = require_currency(from_currency).code
        self.to_currency = require_currency(to_currency).code
        self.start = start
        self.end = end
        self.max_workers = max_workers or settings.batch_max_workers
        self.missing: List[date] = []

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        for offset in range(len(self)):
            yield self.start + timedelta(days=offset)

    def _resolve(self, day: date) -> HistoricalPoint:
        return self.resolver.resolve_historical(self.from_currency, self.to_currency, day)

    def __iter__(self) -> Iterator[HistoricalPoint]:
        self.missing = []
        for day in self.days():
            try:
                yield self._resolve(day)
            except DomainError as e:
                logger.warning("No historical rate for %s->%s on %s: %s",
                               self.from_currency, self.to_currency, day, e)
                self.missing.append(day)

    def collect(self) -> HistoricalResult:
        """Resolve all days (in parallel) and return points in ascending date order."""
        days = list(self.days())
        resolved = _run_isolated(days, self._resolve, self.max_workers)
        points = [r for r in resolved if isinstance(r, HistoricalPoint)]
        missing = [day for day, r in zip(days, resolved) if isinstance(r, BatchError)]
        self.missing = missing
        if missing:
            logger.warning("Historical series %s->%s missing %d of %d days",
                           self.from_currency, self.to_currency, len(missing), len(days))
        return HistoricalResult(
            from_currency=self.from_currency,
            to_currency=self.to_currency,
            start=self.start,
            end=self.end,
            points=points,
            missing=missing,
        )


class CurrencyConverter:
    """Converts amounts between currencies using a RateResolver."""

    def __init__(self, resolver: RateResolver, max_workers: Optional[int] = None):
        self.resolver = resolver
        self.max_workers = max_workers or settings.batch_max_workers

    def convert(self, amount: Number, from_currency: str, to_currency: str) -> ConversionResult:
        """
        Convert an amount and round it to the target currency.

        Same-currency conversions return the amount unchanged (no rounding).

        Raises:
            InvalidCurrencyCode: If either code is unsupported
            RateUnavailable: If no rate can be resolved
            ValueError: If the amount is not a finite number
        """
        original = MonetaryAmount.of(amount, from_currency)
        rate = self.resolver.resolve(original.currency, to_currency)
        if rate.from_currency == rate.to_currency:
            return ConversionResult(amount=original, original=original, rate=rate)

        converted = MonetaryAmount(original.amount * rate.rate, rate.to_currency).rounded()
        logger.debug("Currency conversion: %s %s -> %s %s (rate: %s, source: %s)",
                     original.amount, original.currency, converted.amount, converted.currency,
                     rate.rate, rate.source.value)
        return ConversionResult(amount=converted, original=original, rate=rate)

    def convert_request(self, request: Union[ConversionRequest, dict]) -> ConversionResult:
        if isinstance(request, dict):
            request = ConversionRequest.from_dict(request)
        return self.convert(request.amount, request.from_currency, request.to_currency)

    def convert_batch(
        self, requests: Iterable[Union[ConversionRequest, dict]]
    ) -> List[Union[ConversionResult, BatchError]]:
        """Convert every request independently; failed entries become BatchError slots."""
        return _run_isolated(list(requests), self.convert_request, self.max_workers)

    def get_rates(self, pairs: Iterable[PairLike]) -> List[Union[ExchangeRate, BatchError]]:
        """Resolve many pairs ({"from", "to"} dicts or 2-tuples), preserving order."""
        return _run_isolated(
            list(pairs), lambda pair: self.resolver.resolve(*_pair_of(pair)), self.max_workers
        )

    def historical_series(self, from_currency: str, to_currency: str, start: date, end: date) -> HistoricalSeries:
        """
        Build the daily series for [start, end].

        Raises:
            InvalidDateRange: If start is after end
            InvalidCurrencyCode: If either code is unsupported
        """
        return HistoricalSeries(self.resolver, from_currency, to_currency, start, end, self.max_workers)
