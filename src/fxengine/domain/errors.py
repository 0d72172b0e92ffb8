# src/fxengine/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions that represent
business rule violations and domain errors.
"""


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class InvalidCurrencyCode(DomainError):
    """Raised when a currency code is not in the supported currency table."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Currency {code!r} not supported")


class UnknownCountry(DomainError):
    """Raised when a country code has no currency mapping."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown country code {code!r}")


class RateUnavailable(DomainError):
    """Raised when every resolution path for a pair is exhausted."""

    def __init__(self, from_currency: str, to_currency: str, reason: str = ""):
        self.from_currency = from_currency
        self.to_currency = to_currency
        message = f"No exchange rate available for {from_currency}->{to_currency}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidDateRange(DomainError):
    """Raised when a date range starts after it ends."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Start date {start} is after end date {end}")


class CurrencyMismatchError(DomainError):
    """Raised when amounts in different currencies are combined."""
    pass


class InvalidLoanError(DomainError):
    """Raised when a loan snapshot violates its invariants (e.g. negative balance)."""
    pass


class ProviderUnavailableError(DomainError):
    """Raised when an upstream rate provider is unavailable or returns bad data."""
    pass
