"""Validation package."""

from cofinance.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
