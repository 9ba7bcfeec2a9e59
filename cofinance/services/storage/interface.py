"""
Abstract Storage Interface (Persistence Gateway)

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the ledger engine and scheduler completely storage-agnostic
4. Pass the gateway explicitly instead of reaching for a global singleton

The interface is intentionally simple: list, upsert and delete for each of
the three top-level entities. The engine never calls it; the application
flows in cofinance.orchestrator do.

CONCURRENCY: the gateway does not serialize read-modify-write sequences
itself. Callers that update balances must run each logical ledger
operation under one lock (LedgerFlow does).
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from cofinance.models.audit import AuditEvent
from cofinance.models.ledger import Account, Subscription, Transaction


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (Google Sheets, SQLite, in-memory...)
    must implement these methods. `save_*` methods have upsert semantics.
    """

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """
        List all accounts, oldest first.

        Returns:
            List of accounts ordered by creation time
        """
        pass

    @abstractmethod
    async def save_account(self, account: Account) -> bool:
        """
        Insert or update an account (matched by id).

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: UUID) -> bool:
        """
        Delete an account by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        List all transactions, newest first.
        """
        pass

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """Insert or update a transaction (matched by id)."""
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """Delete a transaction by ID."""
        pass

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_subscriptions(self) -> list[Subscription]:
        """
        List all subscriptions, soonest next charge first.
        """
        pass

    @abstractmethod
    async def save_subscription(self, subscription: Subscription) -> bool:
        """Insert or update a subscription (matched by id)."""
        pass

    @abstractmethod
    async def delete_subscription(self, subscription_id: UUID) -> bool:
        """Delete a subscription by ID."""
        pass

    # -------------------------------------------------------------------------
    # Convenience lookups (built on the list methods)
    # -------------------------------------------------------------------------

    async def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        for account in await self.list_accounts():
            if account.id == account_id:
                return account
        return None

    async def get_account_by_name(self, name: str) -> Optional[Account]:
        for account in await self.list_accounts():
            if account.name == name:
                return account
        return None

    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        for transaction in await self.list_transactions():
            if transaction.id == transaction_id:
                return transaction
        return None

    async def get_subscription_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        for subscription in await self.list_subscriptions():
            if subscription.id == subscription_id:
                return subscription
        return None


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one subscription charge).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'account', 'transaction')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
