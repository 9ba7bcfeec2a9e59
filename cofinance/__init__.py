"""
CoFinance - Source Package

A personal finance ledger: accounts, income and expense transactions,
and recurring subscriptions charged into those accounts.

DESIGN PRINCIPLES:
1. Every balance is backed by the transactions that reference it
2. Fail early, fail visibly (missing accounts are reported, never ignored)
3. No silent corrections
4. Every balance change must be auditable
5. Storage layer is swappable
"""

__version__ = "0.1.0"
__author__ = "CoFinance Team"
