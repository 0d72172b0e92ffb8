# tests/test_app.py
"""
Application Tests - Composition Root and CLI Commands

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- fxengine.app (build_engine, typer app)
- typer.testing (CliRunner)
"""
from unittest.mock import Mock, patch

from typer.testing import CliRunner

from fxengine import app as app_module
from fxengine.adapters.providers.static import StaticRateProvider
from fxengine.application.engine import CurrencyEngine
from fxengine.domain.models import Loan, MonetaryAmount

runner = CliRunner()
_real_build_engine = app_module.build_engine


def static_engine():
    return _real_build_engine(providers=[StaticRateProvider()])


class TestBuildEngine:
    def test_wires_resolver_and_store(self):
        engine = static_engine()
        assert isinstance(engine, CurrencyEngine)
        assert engine.resolver.base_currency == "USD"
        assert engine.loans is not None

    def test_default_providers_without_key(self):
        with patch.object(app_module.settings, "alpha_vantage_key", ""):
            names = [p.name for p in app_module.build_providers()]
        assert names == ["frankfurter"]


class TestCli:
    @patch("fxengine.app.setup_logging")
    def test_convert_command(self, _setup_logging):
        with patch.object(app_module, "build_engine", side_effect=static_engine):
            result = runner.invoke(app_module.app, ["convert", "100", "USD", "EUR"])
        assert result.exit_code == 0
        assert "€85.00 EUR" in result.output

    @patch("fxengine.app.setup_logging")
    def test_convert_unknown_currency(self, _setup_logging):
        with patch.object(app_module, "build_engine", side_effect=static_engine):
            result = runner.invoke(app_module.app, ["convert", "1", "USD", "ABC"])
        assert result.exit_code == 1

    @patch("fxengine.app.setup_logging")
    def test_detect_command(self, _setup_logging):
        with patch.object(app_module, "build_engine", side_effect=static_engine):
            result = runner.invoke(app_module.app, ["detect", "--symbol", "VOD.L"])
        assert result.exit_code == 0
        assert result.output.strip() == "GBP"

    @patch("fxengine.app.setup_logging")
    def test_health_without_live_provider_fails(self, _setup_logging):
        with patch.object(app_module, "build_engine", side_effect=static_engine):
            result = runner.invoke(app_module.app, ["health"])
        assert result.exit_code == 1
        assert '"provider:reference"' in result.output
        assert '"cache"' not in result.output

    @patch("fxengine.app.setup_logging")
    def test_exposure_command(self, _setup_logging):
        def engine_with_loans():
            engine = static_engine()
            engine.loans = Mock()
            engine.loans.get_active_loans.return_value = [
                Loan(id=1, current_balance=MonetaryAmount.of(1000, "USD"), interest_rate=5,
                     monthly_payment=MonetaryAmount.of(100, "USD")),
                Loan(id=2, current_balance=MonetaryAmount.of(1000, "EUR"), interest_rate=5,
                     monthly_payment=MonetaryAmount.of(100, "EUR")),
            ]
            return engine

        with patch.object(app_module, "build_engine", side_effect=engine_with_loans):
            result = runner.invoke(app_module.app, ["exposure", "user-1", "--currency", "USD"])

        assert result.exit_code == 0
        assert "EUR: " in result.output
        assert "USD: " in result.output
        assert "Risk score:" in result.output
