"""Ledger summaries package."""

from cofinance.queries.formatting import format_currency, quantize_amount
from cofinance.queries.summary import (
    AccountOverview,
    SubscriptionOverview,
    SummaryService,
)

__all__ = [
    "AccountOverview",
    "SubscriptionOverview",
    "SummaryService",
    "format_currency",
    "quantize_amount",
]
