"""
In-Memory Storage Implementation

Dictionary-backed gateways for tests and for running the flows without
any external service. Records are copied on the way in and on the way
out, so callers can never mutate stored state by accident.
"""

from typing import Optional
from uuid import UUID

from cofinance.models.audit import AuditEvent
from cofinance.models.ledger import Account, Subscription, Transaction
from cofinance.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger gateway that keeps everything in process memory."""

    def __init__(
        self,
        accounts: Optional[list[Account]] = None,
        transactions: Optional[list[Transaction]] = None,
        subscriptions: Optional[list[Subscription]] = None,
    ):
        self._accounts: dict[UUID, Account] = {a.id: a.model_copy() for a in accounts or []}
        self._transactions: dict[UUID, Transaction] = {t.id: t.model_copy() for t in transactions or []}
        self._subscriptions: dict[UUID, Subscription] = {s.id: s.model_copy() for s in subscriptions or []}

    async def list_accounts(self) -> list[Account]:
        accounts = [a.model_copy() for a in self._accounts.values()]
        accounts.sort(key=lambda a: a.created_at)
        return accounts

    async def save_account(self, account: Account) -> bool:
        self._accounts[account.id] = account.model_copy()
        return True

    async def delete_account(self, account_id: UUID) -> bool:
        return self._accounts.pop(account_id, None) is not None

    async def list_transactions(self) -> list[Transaction]:
        transactions = [t.model_copy() for t in self._transactions.values()]
        transactions.sort(key=lambda t: t.posted_at, reverse=True)
        return transactions

    async def save_transaction(self, transaction: Transaction) -> bool:
        self._transactions[transaction.id] = transaction.model_copy()
        return True

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def list_subscriptions(self) -> list[Subscription]:
        subscriptions = [s.model_copy() for s in self._subscriptions.values()]
        subscriptions.sort(key=lambda s: s.next_charge_date)
        return subscriptions

    async def save_subscription(self, subscription: Subscription) -> bool:
        self._subscriptions[subscription.id] = subscription.model_copy()
        return True

    async def delete_subscription(self, subscription_id: UUID) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
