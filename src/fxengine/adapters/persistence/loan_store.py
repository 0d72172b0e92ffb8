# src/fxengine/adapters/persistence/loan_store.py
"""
Loan Store - Read Contract for Loan and Income Snapshots

The engine never owns loan data; it reads a per-user snapshot through the
LoanRepository protocol. JsonLoanStore is a file-backed implementation used
by the CLI and tests. The document layout is:

    {"users": {"<user_id>": {
        "monthlyIncome": {"amount": "5000", "currency": "USD"},
        "loans": [{"id": 1, "name": "Car", "currentBalance": {...},
                   "monthlyPayment": {...}, "interestRate": 5.5,
                   "principal": {...}, "startDate": "2023-01-01",
                   "nextPaymentDate": "2024-06-01", "termMonths": 60}]}}}

Files that USE this module:
- fxengine.application.engine (per-user payoff and debt-to-income)
- fxengine.app (constructs the store from settings)
- tests.test_loan_store (unit tests)

Files that this module USES:
- fxengine.domain.models (Loan, MonetaryAmount)
- fxengine.config (settings for file path)
"""
from __future__ import annotations

import json
import logging
import shutil
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from fxengine.config import settings
from fxengine.domain.errors import DomainError
from fxengine.domain.models import Loan, MonetaryAmount

log = logging.getLogger(__name__)


class LoanRepository(Protocol):
    """Persistence read contract consumed by the engine."""

    def get_active_loans(self, user_id: str) -> List[Loan]:
        ...

    def get_monthly_income(self, user_id: str) -> Optional[MonetaryAmount]:
        ...


def _money(data: Dict[str, Any]) -> MonetaryAmount:
    return MonetaryAmount.of(data["amount"], data["currency"])


def _date(raw: Optional[str]) -> Optional[date]:
    return date.fromisoformat(raw[:10]) if raw else None


def loan_from_json(data: Dict[str, Any]) -> Loan:
    """
    Build a Loan from its stored JSON form.

    Raises:
        KeyError/ValueError/DomainError: If required fields are missing or invalid
    """
    return Loan(
        id=data["id"],
        name=data.get("name", ""),
        current_balance=_money(data["currentBalance"]),
        interest_rate=data.get("interestRate", 0),
        monthly_payment=_money(data["monthlyPayment"]),
        principal=_money(data["principal"]) if data.get("principal") else None,
        start_date=_date(data.get("startDate")),
        next_payment_date=_date(data.get("nextPaymentDate")),
        term_months=data.get("termMonths"),
    )


class JsonLoanStore:
    """Loads loan/income snapshots from a JSON document."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or settings.loan_store_file)

    def _load(self) -> Dict[str, Any]:
        """
        Read the whole document.

        Handles corrupt files gracefully by backing the file up and treating
        the store as empty.
        """
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            backup_path = self.path.with_suffix(".json.corrupt")
            try:
                shutil.copy2(self.path, backup_path)
                log.warning("Loan store corrupted (JSON decode error), backed up to %s: %s", backup_path, e)
            except OSError as backup_error:
                log.error("Failed to backup corrupt loan store: %s", backup_error)
            return {}
        if not isinstance(data, dict):
            log.error("Loan store has unexpected top-level type: %r", type(data))
            return {}
        return data

    def _user(self, user_id: str) -> Dict[str, Any]:
        users = self._load().get("users") or {}
        return users.get(str(user_id)) or {}

    def get_active_loans(self, user_id: str) -> List[Loan]:
        """Active (non-zero balance) loans for a user; malformed records are skipped."""
        loans: List[Loan] = []
        for raw in self._user(user_id).get("loans", []):
            try:
                loan = loan_from_json(raw)
            except (KeyError, TypeError, ValueError, DomainError) as e:
                log.warning("Skipping malformed loan record for user %s: %s", user_id, e)
                continue
            if loan.is_active:
                loans.append(loan)
        return loans

    def get_monthly_income(self, user_id: str) -> Optional[MonetaryAmount]:
        raw = self._user(user_id).get("monthlyIncome")
        if not raw:
            return None
        try:
            return _money(raw)
        except (KeyError, TypeError, ValueError, DomainError) as e:
            log.warning("Invalid monthly income for user %s: %s", user_id, e)
            return None
