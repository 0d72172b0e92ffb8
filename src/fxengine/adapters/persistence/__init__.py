# src/fxengine/adapters/persistence/__init__.py
"""
Persistence Adapters - Loan and Income Snapshots

This package contains the read contract the engine consumes from the
document store, and a JSON file implementation of it.
"""

from fxengine.adapters.persistence.loan_store import JsonLoanStore, LoanRepository, loan_from_json

__all__ = [
    "JsonLoanStore",
    "LoanRepository",
    "loan_from_json",
]
