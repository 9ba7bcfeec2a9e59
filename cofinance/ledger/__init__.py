"""Ledger engine package."""

from cofinance.ledger.engine import LedgerEngine, signed_amount
from cofinance.ledger.errors import (
    AccountInUseError,
    AccountNotFoundError,
    DuplicateAccountError,
    InvalidIntervalError,
    LedgerError,
)

__all__ = [
    "LedgerEngine",
    "signed_amount",
    # Exceptions
    "AccountInUseError",
    "AccountNotFoundError",
    "DuplicateAccountError",
    "InvalidIntervalError",
    "LedgerError",
]
