# src/fxengine/app.py
"""
Application Entry Point - Engine Composition and CLI

This module is the composition root: it wires providers, caches, the rate
resolver and the engine facade from settings, and exposes a small
command-line interface for operators (health checks, conversions, loan
analyses from the JSON loan store).

Files that USE this module:
- fxengine.__main__ (python -m fxengine)
- tests.test_app (unit tests)

Files that this module USES:
- fxengine.shared.logging_conf (setup_logging for logging configuration)
- fxengine.config (settings for configuration management)
- fxengine.adapters.providers (upstream rate providers)
- fxengine.adapters.persistence (JsonLoanStore)
- fxengine.adapters.formatting (text output)
- fxengine.application (resolver, converter, engine, health)
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import typer

from fxengine.adapters.formatting import format_amount, format_conversion, format_payoff_plan, format_rate
from fxengine.adapters.persistence import JsonLoanStore
from fxengine.adapters.providers import (
    AlphaVantageProvider,
    FrankfurterProvider,
    RateProvider,
    StaticRateProvider,
)
from fxengine.application.converter import CurrencyConverter
from fxengine.application.engine import CurrencyEngine
from fxengine.application.health import HealthChecker
from fxengine.application.rate_cache import RateCache
from fxengine.application.rate_resolver import ProviderChain, RateResolver
from fxengine.config import settings
from fxengine.domain.errors import DomainError
from fxengine.shared.logging_conf import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Currency & exchange-rate engine")


def build_providers() -> List[RateProvider]:
    """Upstream providers in priority order; Alpha Vantage only when a real key is configured."""
    providers: List[RateProvider] = []
    if settings.has_alpha_vantage_key:
        providers.append(AlphaVantageProvider())
    else:
        logger.info("Alpha Vantage API key not configured, skipping provider")
    providers.append(FrankfurterProvider())
    return providers


def build_engine(providers: Optional[List[RateProvider]] = None) -> CurrencyEngine:
    """
    Wire the engine from settings.

    Args:
        providers: Override the upstream providers (defaults to build_providers())
    """
    chain = ProviderChain(providers if providers is not None else build_providers())
    reference = StaticRateProvider() if settings.use_reference_rates else None
    resolver = RateResolver(
        chain,
        cache=RateCache(staleness_seconds=settings.staleness_seconds),
        history_cache=RateCache(staleness_seconds=None),
        reference=reference,
    )
    engine = CurrencyEngine(CurrencyConverter(resolver), loans=JsonLoanStore())
    logger.info(
        "Engine ready: providers=%s, base=%s, staleness=%d min, reference rates=%s",
        [p.name for p in chain.providers], resolver.base_currency, settings.staleness_minutes,
        settings.use_reference_rates,
    )
    return engine


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    """Set up logging before any command runs."""
    setup_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        log_to_stdout=settings.log_stdout,
    )


@app.command("health")
def health() -> None:
    """
    Probe upstream providers and report their remaining request quota.

    Each CLI run starts with an empty rate cache, so the cache is not part of this report.
    """
    engine = build_engine()
    checker = HealthChecker(engine.resolver.chain)
    report = checker.get_overall_health()
    typer.echo(json.dumps(report, indent=2, default=str))
    if not report["overall_healthy"]:
        raise typer.Exit(code=1)


@app.command("convert")
def convert(
    amount: str = typer.Argument(..., help="Amount, e.g. 100 or 1,250.50"),
    from_currency: str = typer.Argument(..., help="Source currency code"),
    to_currency: str = typer.Argument(..., help="Target currency code"),
) -> None:
    """Convert an amount between currencies."""
    try:
        result = build_engine().convert(amount, from_currency, to_currency)
    except (DomainError, ValueError) as e:
        typer.secho(f"Conversion failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(format_conversion(result))


@app.command("rate")
def rate(from_currency: str, to_currency: str) -> None:
    """Show the current rate for a pair."""
    try:
        exchange_rate = build_engine().get_rate(from_currency, to_currency)
    except DomainError as e:
        typer.secho(f"Rate lookup failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(format_rate(exchange_rate))


@app.command("detect")
def detect(
    country: Optional[str] = typer.Option(None, "--country", "-c", help="ISO country code, e.g. GB"),
    symbol: Optional[str] = typer.Option(None, "--symbol", "-s", help="Market ticker, e.g. VOD.L"),
) -> None:
    """Detect the currency for a country or a market ticker."""
    try:
        code = build_engine().detect_currency(country_code=country, market_symbol=symbol)
    except DomainError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(code)


@app.command("payoff")
def payoff(
    user_id: str,
    extra: str = typer.Option("0", "--extra", "-e", help="Extra monthly payment"),
) -> None:
    """Snowball and avalanche payoff plans for a user's stored loans."""
    try:
        plans = build_engine().get_user_payoff_strategies(user_id, extra_payment=extra)
    except (DomainError, ValueError) as e:
        typer.secho(f"Payoff analysis failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo("\n\n".join(format_payoff_plan(plan) for plan in plans.values()))


@app.command("dti")
def dti(user_id: str) -> None:
    """Debt-to-income ratio for a user's stored income and loans."""
    try:
        report = build_engine().get_user_debt_to_income(user_id)
    except DomainError as e:
        typer.secho(f"Debt-to-income analysis failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Ratio: {report.ratio}% ({report.risk_tier.value} risk)")
    typer.echo(f"Monthly payments: {format_amount(report.total_monthly_payments)}")
    typer.echo(f"Total debt: {format_amount(report.total_debt)}")
    typer.echo(report.recommendation)
    if report.stale_rates:
        typer.echo("Note: some loans were converted at stale exchange rates")


@app.command("exposure")
def exposure(
    user_id: str,
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Currency to measure shares in"),
) -> None:
    """Share of a user's outstanding debt held in each currency."""
    try:
        analysis = build_engine().get_user_currency_exposure(user_id, currency)
    except DomainError as e:
        typer.secho(f"Exposure analysis failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if not analysis.exposures:
        typer.echo("No active loans")
        return
    for item in analysis.exposures:
        typer.echo(f"{item.currency}: {item.percentage}% ({format_amount(item.converted_value, with_code=True)}, "
                   f"{item.risk_tier.value} risk)")
    typer.echo(f"Risk score: {analysis.risk_score}")
    for tip in analysis.recommendations:
        typer.echo(f"- {tip}")


if __name__ == "__main__":
    app()
