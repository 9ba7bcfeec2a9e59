"""
Subscription Scheduler

Rolls subscriptions forward and turns a "charge now" into a real expense
posted through the Ledger Engine.

GUARANTEES:
- Charging is always "charge THEN advance". The posted transaction is
  dated at the moment of charging, and the subscription's next charge date
  only moves forward after the transaction has been posted.
- Nothing fires on its own. There is no background sweep here; charging
  is an explicit caller action.
- The scheduler never filters on `is_active`. Excluding inactive
  subscriptions from due-soon, overdue and cost views is the caller's job
  at query time (see cofinance.queries.summary).
"""

from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence, Union

from cofinance.config import LedgerSettings, get_settings
from cofinance.ledger.engine import LedgerEngine
from cofinance.models.ledger import (
    Account,
    ChargeResult,
    Subscription,
    Transaction,
)
from cofinance.scheduling.frequency import next_occurrence


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_between(reference: Union[date, datetime], target: Union[date, datetime]) -> int:
    """
    Whole calendar days from `reference` to `target` (negative if in the past).

    Counting is done on calendar dates, so a charge due later today is
    0 days away regardless of the time of day.
    """
    return (_as_date(target) - _as_date(reference)).days


class SubscriptionScheduler:
    """
    Advances subscriptions and realizes charges.

    State machine (per subscription):
        Active --charge_now--> Active (next charge date advanced)
        Active --deactivate--> Inactive
        Inactive --reactivate--> Active
    """

    def __init__(
        self,
        engine: Optional[LedgerEngine] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize scheduler.

        Args:
            engine: Ledger engine used to post charges
            settings: Ledger settings (charge note, fallback category,
                      due-soon window, reminder lead time)
            clock: Source of "now", injectable for tests
        """
        self._engine = engine or LedgerEngine()
        self._settings = settings or get_settings().ledger
        self._clock = clock

    def advance(self, subscription: Subscription) -> Subscription:
        """Return a copy with `next_charge_date` rolled forward one cycle."""
        next_date = next_occurrence(
            subscription.next_charge_date,
            subscription.frequency,
            subscription.interval_days,
        )
        return subscription.model_copy(update={"next_charge_date": next_date})

    def build_charge_transaction(
        self,
        subscription: Subscription,
        now: Optional[datetime] = None,
    ) -> Transaction:
        """Synthesize the expense a charge of `subscription` produces."""
        return Transaction(
            name=subscription.name,
            amount=subscription.amount,
            is_income=False,
            account_name=subscription.account_name,
            category=subscription.category or self._settings.subscription_fallback_category,
            posted_at=now or self._clock(),
            notes=self._settings.subscription_charge_note,
        )

    def charge_now(
        self,
        subscription: Subscription,
        accounts: Sequence[Account],
        transactions: Iterable[Transaction],
        now: Optional[datetime] = None,
    ) -> ChargeResult:
        """
        Charge a subscription immediately.

        1. Build an expense transaction dated `now`
        2. Post it through the ledger engine
        3. Advance the subscription's next charge date

        A missing account does not stop the charge: the transaction is
        still returned for persistence and the ACCOUNT_NOT_FOUND condition
        is carried on the result.
        """
        transaction = self.build_charge_transaction(subscription, now)
        posted = self._engine.post_transaction(transaction, accounts)
        advanced = self.advance(subscription)

        return ChargeResult(
            accounts=posted.accounts,
            transactions=[*transactions, transaction],
            subscription=advanced,
            transaction=transaction,
            conditions=posted.conditions,
        )

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def days_until_next_charge(
        self,
        subscription: Subscription,
        reference: Optional[datetime] = None,
    ) -> int:
        """Days until the next charge; negative when overdue."""
        return days_between(reference or self._clock(), subscription.next_charge_date)

    def is_due_soon(
        self,
        subscription: Subscription,
        reference: Optional[datetime] = None,
        window_days: Optional[int] = None,
    ) -> bool:
        """True iff 0 <= days until the next charge <= window_days."""
        if window_days is None:
            window_days = self._settings.due_soon_window_days
        days = self.days_until_next_charge(subscription, reference)
        return 0 <= days <= window_days

    def is_overdue(
        self,
        subscription: Subscription,
        reference: Optional[datetime] = None,
    ) -> bool:
        """
        True iff the next charge falls on a calendar day before `reference`.

        Same day counting as is_due_soon, so a charge due today is due soon
        and never overdue, whatever its time of day.
        """
        return self.days_until_next_charge(subscription, reference) < 0

    def reminder_date(
        self,
        subscription: Subscription,
        lead_days: Optional[int] = None,
    ) -> datetime:
        """When the notification collaborator should remind the user."""
        if lead_days is None:
            lead_days = self._settings.reminder_lead_days
        return subscription.next_charge_date - timedelta(days=lead_days)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def deactivate(subscription: Subscription) -> Subscription:
        return subscription.model_copy(update={"is_active": False})

    @staticmethod
    def reactivate(subscription: Subscription) -> Subscription:
        return subscription.model_copy(update={"is_active": True})
