"""
Ledger Exceptions

Hard failures only. Business-rule conditions such as a transaction that
references a missing account are NOT exceptions; they travel as
LedgerCondition values on the operation result.
"""


class LedgerError(Exception):
    """Base exception for ledger and scheduler errors."""
    pass


class InvalidIntervalError(LedgerError, ValueError):
    """A custom recurrence interval below one day reached the date math."""

    def __init__(self, interval_days):
        self.interval_days = interval_days
        super().__init__(
            f"Custom interval must be at least 1 day (got {interval_days})"
        )


class AccountNotFoundError(LedgerError):
    """An operation that requires an existing account could not find it."""

    def __init__(self, account_name: str):
        self.account_name = account_name
        super().__init__(f"Account not found: {account_name}")


class DuplicateAccountError(LedgerError):
    """Account names are unique within the dataset."""

    def __init__(self, account_name: str):
        self.account_name = account_name
        super().__init__(f"An account named '{account_name}' already exists")


class AccountInUseError(LedgerError):
    """
    Account deletion is blocked while records still reference it.

    Deleting it would orphan those transactions and drop them from every
    future balance computation.
    """

    def __init__(self, account_name: str, transaction_count: int, subscription_count: int):
        self.account_name = account_name
        self.transaction_count = transaction_count
        self.subscription_count = subscription_count
        super().__init__(
            f"Account '{account_name}' is still referenced by "
            f"{transaction_count} transaction(s) and "
            f"{subscription_count} subscription(s)"
        )
