"""
Ledger Summaries

DESIGN DECISION: Summaries are DETERMINISTIC reads over storage snapshots.
They never write, never touch balances and never format currency; the
formatting collaborator turns the raw Decimals into display strings.

This is also where the "active only" convention lives: the scheduler
itself never filters inactive subscriptions, so every aggregate here
does it explicitly.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from cofinance.config import get_settings
from cofinance.models.ledger import (
    Account,
    AccountStatus,
    AccountType,
    BalanceState,
    Subscription,
    SubscriptionFrequency,
    Transaction,
)
from cofinance.scheduling.scheduler import SubscriptionScheduler
from cofinance.services.storage import LedgerStorageInterface


ALL_ACCOUNTS = "all"

# Approximation factors used for cost projections (not calendar exact)
WEEKS_PER_MONTH = Decimal("4")
DAYS_PER_MONTH = Decimal("30")
MONTHS_PER_YEAR = Decimal("12")


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

def monthly_approximate_cost(subscription: Subscription) -> Decimal:
    """
    Approximate monthly cost of one subscription.

    weekly = 4 charges a month, yearly = 1/12, custom = 30 days' worth.
    """
    amount = subscription.amount
    if subscription.frequency == SubscriptionFrequency.MONTHLY:
        return amount
    if subscription.frequency == SubscriptionFrequency.WEEKLY:
        return amount * WEEKS_PER_MONTH
    if subscription.frequency == SubscriptionFrequency.YEARLY:
        return amount / MONTHS_PER_YEAR
    return amount / Decimal(max(1, subscription.interval_days)) * DAYS_PER_MONTH


def yearly_approximate_cost(subscription: Subscription) -> Decimal:
    return monthly_approximate_cost(subscription) * MONTHS_PER_YEAR


def active(subscriptions: Iterable[Subscription]) -> list[Subscription]:
    return [s for s in subscriptions if s.is_active]


def inactive(subscriptions: Iterable[Subscription]) -> list[Subscription]:
    return [s for s in subscriptions if not s.is_active]


def total_monthly_cost(subscriptions: Iterable[Subscription]) -> Decimal:
    """Sum of approximate monthly costs of the ACTIVE subscriptions."""
    return sum(
        (monthly_approximate_cost(s) for s in active(subscriptions)),
        Decimal("0"),
    )


def total_yearly_cost(subscriptions: Iterable[Subscription]) -> Decimal:
    return total_monthly_cost(subscriptions) * MONTHS_PER_YEAR


def due_soon(
    subscriptions: Iterable[Subscription],
    scheduler: SubscriptionScheduler,
    reference: Optional[datetime] = None,
    window_days: Optional[int] = None,
) -> list[Subscription]:
    """Active subscriptions charging within the window, soonest first."""
    matches = [
        s for s in active(subscriptions)
        if scheduler.is_due_soon(s, reference, window_days)
    ]
    return sorted(matches, key=lambda s: s.next_charge_date)


def overdue(
    subscriptions: Iterable[Subscription],
    scheduler: SubscriptionScheduler,
    reference: Optional[datetime] = None,
) -> list[Subscription]:
    """Active subscriptions whose next charge date has passed, oldest first."""
    matches = [s for s in active(subscriptions) if scheduler.is_overdue(s, reference)]
    return sorted(matches, key=lambda s: s.next_charge_date)


def group_by_next_charge_month(
    subscriptions: Iterable[Subscription],
) -> list[tuple[str, list[Subscription]]]:
    """Bucket subscriptions by the "YYYY-MM" of their next charge, in calendar order."""
    groups: dict[str, list[Subscription]] = defaultdict(list)
    for subscription in subscriptions:
        groups[subscription.next_charge_date.strftime("%Y-%m")].append(subscription)
    return sorted(groups.items())


def matches_search(subscription: Subscription, search_text: str) -> bool:
    """Case-insensitive match over name, category, account and notes."""
    if not search_text:
        return True
    needle = search_text.lower()
    haystacks = [
        subscription.name,
        subscription.category,
        subscription.account_name,
        subscription.notes or "",
    ]
    return any(needle in h.lower() for h in haystacks)


def belongs_to_account(subscription: Subscription, account_name: str) -> bool:
    return account_name == ALL_ACCOUNTS or subscription.account_name == account_name


# =============================================================================
# ACCOUNTS AND TRANSACTIONS
# =============================================================================

def total_balance(accounts: Iterable[Account]) -> Decimal:
    return sum((a.balance for a in accounts), Decimal("0"))


def balance_by_type(accounts: Iterable[Account]) -> dict[AccountType, Decimal]:
    totals: dict[AccountType, Decimal] = defaultdict(lambda: Decimal("0"))
    for account in accounts:
        totals[account.account_type] += account.balance
    return dict(totals)


def account_status(
    account: Account,
    healthy_threshold: Optional[Decimal] = None,
) -> AccountStatus:
    """
    HEALTHY above the threshold, LOW from zero up to it, NEGATIVE below zero.

    The threshold defaults to the `healthy_balance_threshold` setting.
    """
    if healthy_threshold is None:
        healthy_threshold = get_settings().ledger.healthy_balance_threshold
    if account.balance > healthy_threshold:
        return AccountStatus.HEALTHY
    if account.balance >= 0:
        return AccountStatus.LOW
    return AccountStatus.NEGATIVE


def transactions_for_account(

    transactions: Iterable[Transaction],
    account_name: str,
) -> list[Transaction]:
    """Transactions posted to one account, newest first."""
    matches = [t for t in transactions if t.account_name == account_name]
    return sorted(matches, key=lambda t: t.posted_at, reverse=True)


def income_and_expenses(
    transactions: Iterable[Transaction],
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> tuple[Decimal, Decimal]:
    """
    Total income and total expenses (both as magnitudes) in a date range.

    Both bounds are inclusive; a missing bound is open.
    """
    income = Decimal("0")
    expenses = Decimal("0")
    for transaction in transactions:
        if date_from and transaction.posted_at < date_from:
            continue
        if date_to and transaction.posted_at > date_to:
            continue
        if transaction.is_income:
            income += transaction.amount
        else:
            expenses += transaction.amount
    return income, expenses


def net_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expenses over all the given transactions."""
    income, expenses = income_and_expenses(transactions)
    return income - expenses


def transaction_matches_search(transaction: Transaction, search_text: str) -> bool:
    """Case-insensitive match over name, category, account and notes."""
    if not search_text:
        return True
    needle = search_text.lower()
    haystacks = [
        transaction.name,
        transaction.category,
        transaction.account_name,
        transaction.notes or "",
    ]
    return any(needle in h.lower() for h in haystacks)


def transaction_belongs_to_account(transaction: Transaction, account_name: str) -> bool:
    return account_name == ALL_ACCOUNTS or transaction.account_name == account_name


def is_this_month(transaction: Transaction, reference: Optional[datetime] = None) -> bool:
    reference = reference or datetime.now()
    posted = transaction.posted_at
    return (posted.year, posted.month) == (reference.year, reference.month)


def is_this_week(transaction: Transaction, reference: Optional[datetime] = None) -> bool:
    """Same ISO week (Monday to Sunday) as `reference`."""
    reference = reference or datetime.now()
    return transaction.posted_at.isocalendar()[:2] == reference.isocalendar()[:2]


def _group_newest_first(
    transactions: Iterable[Transaction],
    key,
) -> list[tuple[str, list[Transaction]]]:
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for transaction in sorted(transactions, key=lambda t: t.posted_at, reverse=True):
        groups[key(transaction)].append(transaction)
    return sorted(groups.items(), reverse=True)


def group_transactions_by_month(
    transactions: Iterable[Transaction],
) -> list[tuple[str, list[Transaction]]]:
    """Bucket by "YYYY-MM" of the posting date, newest month and transaction first."""
    return _group_newest_first(transactions, lambda t: t.posted_at.strftime("%Y-%m"))


def group_transactions_by_week(
    transactions: Iterable[Transaction],
) -> list[tuple[str, list[Transaction]]]:
    """Bucket by ISO week ("2024-W18"), newest week and transaction first."""
    def week_key(transaction: Transaction) -> str:
        year, week, _ = transaction.posted_at.isocalendar()
        return f"{year}-W{week:02d}"

    return _group_newest_first(transactions, week_key)



# =============================================================================
# OVERVIEWS
# =============================================================================

class AccountOverview(BaseModel):
    """Dashboard numbers for the accounts screen."""

    total_balance: Decimal
    balance_by_type: dict[AccountType, Decimal] = Field(default_factory=dict)
    account_count: int = Field(ge=0)
    overridden_accounts: list[str] = Field(
        default_factory=list,
        description="Accounts whose balance was set manually and not yet recalculated"
    )
    account_statuses: dict[str, AccountStatus] = Field(default_factory=dict)
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class SubscriptionOverview(BaseModel):
    """Dashboard numbers for the subscriptions screen."""

    active_count: int = Field(ge=0)
    inactive_count: int = Field(ge=0)
    monthly_total: Decimal
    yearly_total: Decimal
    due_soon: list[Subscription] = Field(default_factory=list)
    overdue: list[Subscription] = Field(default_factory=list)


class SummaryService:
    """
    Builds overviews straight from the persistence gateway.

    GUARANTEES:
    - Only reports what storage holds
    - Never writes
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        scheduler: Optional[SubscriptionScheduler] = None,
    ):
        self._storage = storage
        self._scheduler = scheduler or SubscriptionScheduler()

    async def account_overview(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> AccountOverview:
        accounts = await self._storage.list_accounts()
        transactions = await self._storage.list_transactions()
        income, expenses = income_and_expenses(transactions, date_from, date_to)

        return AccountOverview(
            total_balance=total_balance(accounts),
            balance_by_type=balance_by_type(accounts),
            account_count=len(accounts),
            overridden_accounts=[
                a.name for a in accounts
                if a.balance_state == BalanceState.MANUALLY_OVERRIDDEN
            ],
            account_statuses={a.name: account_status(a) for a in accounts},
            income=income,
            expenses=expenses,
        )

    async def subscription_overview(
        self,
        reference: Optional[datetime] = None,
        window_days: Optional[int] = None,
    ) -> SubscriptionOverview:
        subscriptions = await self._storage.list_subscriptions()
        active_subscriptions = active(subscriptions)

        return SubscriptionOverview(
            active_count=len(active_subscriptions),
            inactive_count=len(subscriptions) - len(active_subscriptions),
            monthly_total=total_monthly_cost(subscriptions),
            yearly_total=total_yearly_cost(subscriptions),
            due_soon=due_soon(subscriptions, self._scheduler, reference, window_days),
            overdue=overdue(subscriptions, self._scheduler, reference),
        )
