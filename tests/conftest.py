"""Pytest fixtures for testing"""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

import pytest

from ledgerbook.config import LedgerSettings
from ledgerbook.models.transaction import Transaction, TransactionKind


@pytest.fixture
def roster() -> tuple[str, ...]:
    """Small roster used across engine tests"""
    return ("A", "B", "C", "D", "E")


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    """Ledger rules with a three-member roster"""
    return LedgerSettings(members="A,B,C")


@pytest.fixture
def make_tx() -> Callable[..., Transaction]:
    """Factory for transactions with terse arguments"""

    def _make(
        from_member: str,
        to_member: str,
        kind: str,
        amount,
        note: Optional[str] = None,
        occurred_on: Optional[date] = None,
        recorded_at: Optional[datetime] = None,
    ) -> Transaction:
        fields = dict(
            from_member=from_member,
            to_member=to_member,
            kind=TransactionKind(kind),
            amount=Decimal(str(amount)),
            note=note,
            occurred_on=occurred_on,
        )
        if recorded_at is not None:
            fields["recorded_at"] = recorded_at
        return Transaction(**fields)

    return _make
