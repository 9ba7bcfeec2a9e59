"""
Money Formatting

Turns the raw Decimals the engine and summaries produce into display
strings. Currency code and precision come from LedgerSettings; nothing
here is ever written back to storage.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from cofinance.config import LedgerSettings, get_settings


def quantize_amount(amount: Decimal, settings: Optional[LedgerSettings] = None) -> Decimal:
    """Round to the configured number of decimal places (half up)."""
    settings = settings or get_settings().ledger
    return amount.quantize(Decimal(1).scaleb(-settings.decimal_places), rounding=ROUND_HALF_UP)


def format_currency(
    amount: Decimal,
    settings: Optional[LedgerSettings] = None,
    with_sign: bool = False,
) -> str:
    """
    Format an amount as e.g. "USD 1,234.50" or "USD -15.99".

    Args:
        amount: Value to format
        settings: Supplies currency_code and decimal_places
        with_sign: Prefix positive amounts with "+" (for signed transaction amounts)
    """
    settings = settings or get_settings().ledger
    value = quantize_amount(Decimal(amount), settings)
    number = f"{value:,.{settings.decimal_places}f}"
    if with_sign and value > 0:
        number = f"+{number}"
    return f"{settings.currency_code} {number}"
