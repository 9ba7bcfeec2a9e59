"""
Shared fixtures.

Every fixture builds fresh in-memory state; no test touches Google Sheets
or reads a .env file.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from cofinance.config import LedgerSettings
from cofinance.models.ledger import Account, AccountType


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    """Default ledger settings, isolated from the environment."""
    return LedgerSettings(_env_file=None)


@pytest.fixture
def accounts() -> list[Account]:
    """Two reconciled accounts at zero."""
    return [
        Account(name="Main", account_type=AccountType.BANK, created_at=datetime(2024, 1, 1)),
        Account(name="Card", account_type=AccountType.CREDIT, created_at=datetime(2024, 1, 2)),
    ]


def balance_of(accounts: list[Account], name: str) -> Decimal:
    for account in accounts:
        if account.name == name:
            return account.balance
    raise KeyError(name)
