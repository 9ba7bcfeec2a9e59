"""
Main Orchestrator for CoFinance

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger (accounts and transactions → engine → storage → audit)
2. Subscriptions (charge → engine → storage → audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The engine and scheduler compute, the flows persist
- Every post / revert / update / delete runs under one lock, so two
  edits can never interleave their read-modify-write of a balance
- Every step is audited, with one correlation ID per user action,
  gateway failures included (audited, then re-raised)

The storage gateway is injected. There is no process-wide store.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

import structlog

from cofinance.audit import AuditLogger, create_correlation_id
from cofinance.config import get_settings
from cofinance.ledger import (
    AccountInUseError,
    AccountNotFoundError,
    DuplicateAccountError,
    LedgerEngine,
    signed_amount,
)
from cofinance.models.audit import AuditEventType
from cofinance.models.ledger import (
    Account,
    AccountType,
    ChargeResult,
    LedgerResult,
    Subscription,
    Transaction,
)
from cofinance.queries import SummaryService
from cofinance.scheduling import SubscriptionScheduler
from cofinance.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from cofinance.validation import LedgerValidator


logger = structlog.get_logger(__name__)


async def _save_changed_accounts(
    storage: LedgerStorageInterface,
    before: Sequence[Account],
    after: Sequence[Account],
) -> list[Account]:
    """Persist only the accounts an engine call actually touched."""
    previous = {account.id: account for account in before}
    changed = []
    for account in after:
        old = previous.get(account.id)
        if old is None or old.balance != account.balance or old.balance_state != account.balance_state:
            await storage.save_account(account)
            changed.append(account)
    return changed


@asynccontextmanager
async def _audit_storage_failure(
    audit_logger: AuditLogger,
    operation: str,
    correlation_id: UUID,
):
    """Audit a gateway failure raised inside the block, then re-raise it."""
    try:
        yield
    except NotFoundError:
        # A missing record is the caller's error, not a gateway failure
        raise
    except StorageError as e:
        await audit_logger.log_storage_error(
            operation=operation,
            error_message=str(e),
            correlation_id=correlation_id,
        )
        raise


class LedgerFlow:
    """
    Orchestrates account and transaction changes.

    Flow for every balance-affecting action:
    1. Load the current accounts from storage
    2. Ask the engine for the new balances
    3. Persist the record and the accounts that changed
    4. Audit the action and any ledger conditions

    A gateway failure is audited as STORAGE_ERROR and re-raised.

    LedgerFlow and SubscriptionFlow must share one lock when they share a
    store: build them with create_app_components, or pass
    `lock=ledger_flow.lock` to the SubscriptionFlow.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        engine: Optional[LedgerEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
        lock: Optional[asyncio.Lock] = None,
    ):
        self._storage = storage
        self._engine = engine or LedgerEngine()
        self._audit_logger = audit_logger or AuditLogger()
        self._lock = lock or asyncio.Lock()

    @property
    def lock(self) -> asyncio.Lock:
        """The lock serializing every ledger write; hand it to SubscriptionFlow."""
        return self._lock

    def _storage_step(self, operation: str, correlation_id: UUID):
        return _audit_storage_failure(self._audit_logger, operation, correlation_id)


    async def _require_account(self, account_id: UUID) -> Account:
        account = await self._storage.get_account_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    async def _commit(
        self,
        before: Sequence[Account],
        result: LedgerResult,
        correlation_id: UUID,
    ) -> LedgerResult:
        await _save_changed_accounts(self._storage, before, result.accounts)
        await self._audit_logger.log_conditions(result.conditions, correlation_id)
        return result

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        name: str,
        account_type: AccountType = AccountType.BANK,
        starting_balance: Decimal = Decimal("0"),
        color: str = "blue",
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Create an account whose balance starts at `starting_balance`.

        Raises:
            DuplicateAccountError: if the name is taken
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("create_account", correlation_id), self._lock:
            account = Account(
                name=name,
                account_type=account_type,
                balance=starting_balance,
                starting_balance=starting_balance,
                color=color,
            )
            if await self._storage.get_account_by_name(account.name) is not None:
                raise DuplicateAccountError(account.name)

            await self._storage.save_account(account)

        await self._audit_logger.log_account_created(
            account_id=account.id,
            name=account.name,
            balance=account.balance,
            correlation_id=correlation_id,
        )
        return account

    async def edit_account(
        self,
        account_id: UUID,
        account_type: Optional[AccountType] = None,
        color: Optional[str] = None,
        balance: Optional[Decimal] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Edit an account's tags and, optionally, override its balance.

        A balance different from the current one goes through
        LedgerEngine.override_balance and leaves the account
        MANUALLY_OVERRIDDEN until the next recalculation.
        Use rename_account to change the name.
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("edit_account", correlation_id), self._lock:
            account = await self._require_account(account_id)
            old_balance = account.balance

            updates = {}
            if account_type is not None:
                updates["account_type"] = account_type
            if color is not None:
                updates["color"] = color
            account = account.model_copy(update=updates)

            overridden = balance is not None and balance != old_balance
            if overridden:
                result = self._engine.override_balance(account.name, balance, [account])
                account = result.accounts[0]

            await self._storage.save_account(account)

        if overridden:
            await self._audit_logger.log_balance_overridden(
                account_id=account.id,
                name=account.name,
                old_balance=old_balance,
                new_balance=account.balance,
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_account_updated(
                account_id=account.id,
                name=account.name,
                correlation_id=correlation_id,
            )
        return account

    async def rename_account(
        self,
        account_id: UUID,
        new_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Rename an account and every record that refers to it by name.

        Transactions and subscriptions reference accounts by name, so the
        new name is written to each of them first and the account itself
        last. If the gateway fails part way, the records already moved are
        put back under the old name and the account keeps it too.
        """
        correlation_id = correlation_id or create_correlation_id()
        new_name = new_name.strip()

        async with self._storage_step("rename_account", correlation_id), self._lock:
            account = await self._require_account(account_id)
            old_name = account.name
            if new_name == old_name:
                return account

            if await self._storage.get_account_by_name(new_name) is not None:
                raise DuplicateAccountError(new_name)

            moved_transactions: list[Transaction] = []
            moved_subscriptions: list[Subscription] = []
            try:
                for transaction in await self._storage.list_transactions():
                    if transaction.account_name == old_name:
                        await self._storage.save_transaction(
                            transaction.model_copy(update={"account_name": new_name})
                        )
                        moved_transactions.append(transaction)

                for subscription in await self._storage.list_subscriptions():
                    if subscription.account_name == old_name:
                        await self._storage.save_subscription(
                            subscription.model_copy(update={"account_name": new_name})
                        )
                        moved_subscriptions.append(subscription)

                renamed = account.model_copy(update={"name": new_name})
                await self._storage.save_account(renamed)
            except StorageError:
                await self._restore_references(moved_transactions, moved_subscriptions)
                raise

        await self._audit_logger.log_account_renamed(
            account_id=account.id,
            old_name=old_name,
            new_name=new_name,
            transactions_moved=len(moved_transactions),
            subscriptions_moved=len(moved_subscriptions),
            correlation_id=correlation_id,
        )
        return renamed

    async def _restore_references(
        self,
        transactions: Sequence[Transaction],
        subscriptions: Sequence[Subscription],
    ) -> None:
        """Write back the original versions of records a failed rename moved."""
        for transaction in transactions:
            try:
                await self._storage.save_transaction(transaction)
            except StorageError as e:
                logger.error(
                    "rename_rollback_failed",
                    transaction_id=str(transaction.id),
                    account_name=transaction.account_name,
                    error=str(e),
                )
        for subscription in subscriptions:
            try:
                await self._storage.save_subscription(subscription)
            except StorageError as e:
                logger.error(
                    "rename_rollback_failed",
                    subscription_id=str(subscription.id),
                    account_name=subscription.account_name,
                    error=str(e),
                )


    async def delete_account(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete an account nothing refers to.

        Raises:
            AccountInUseError: while transactions or subscriptions still
                               name the account
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("delete_account", correlation_id), self._lock:
            account = await self._require_account(account_id)

            transaction_count = sum(
                1 for t in await self._storage.list_transactions()
                if t.account_name == account.name
            )
            subscription_count = sum(
                1 for s in await self._storage.list_subscriptions()
                if s.account_name == account.name
            )
            if transaction_count or subscription_count:
                raise AccountInUseError(account.name, transaction_count, subscription_count)

            await self._storage.delete_account(account.id)

        await self._audit_logger.log_account_deleted(
            account_id=account.id,
            name=account.name,
            correlation_id=correlation_id,
        )

    async def set_starting_balance(
        self,
        account_id: UUID,
        starting_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Change the opening balance of an account.

        The running balance moves by the same difference, so a reconciled
        account stays reconciled.
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("set_starting_balance", correlation_id), self._lock:
            account = await self._require_account(account_id)
            delta = starting_balance - account.starting_balance
            account = account.model_copy(update={
                "starting_balance": starting_balance,
                "balance": account.balance + delta,
            })
            await self._storage.save_account(account)

        await self._audit_logger.log_account_updated(
            account_id=account.id,
            name=account.name,
            correlation_id=correlation_id,
        )
        return account

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Store a new transaction and post it.

        The transaction is stored even when its account is missing; the
        result then carries an ACCOUNT_NOT_FOUND condition.
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("add_transaction", correlation_id), self._lock:
            accounts = await self._storage.list_accounts()
            result = self._engine.post_transaction(transaction, accounts)
            await self._storage.save_transaction(transaction)
            await self._commit(accounts, result, correlation_id)

        await self._audit_logger.log_transaction_posted(
            transaction_id=transaction.id,
            account_name=transaction.account_name,
            signed_amount=str(signed_amount(transaction)),
            correlation_id=correlation_id,
        )
        return result

    async def edit_transaction(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Replace a stored transaction with its edited version (same id).

        Raises:
            NotFoundError: if no transaction with that id is stored
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("edit_transaction", correlation_id), self._lock:
            old = await self._storage.get_transaction_by_id(transaction.id)
            if old is None:
                raise NotFoundError(f"Transaction {transaction.id} not found")

            accounts = await self._storage.list_accounts()
            result = self._engine.update_transaction(old, transaction, accounts)
            await self._storage.save_transaction(transaction)
            await self._commit(accounts, result, correlation_id)

        await self._audit_logger.log_transaction_updated(
            transaction_id=transaction.id,
            old_account_name=old.account_name,
            new_account_name=transaction.account_name,
            old_signed_amount=str(signed_amount(old)),
            new_signed_amount=str(signed_amount(transaction)),
            correlation_id=correlation_id,
        )
        return result

    async def remove_transaction(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """Revert a transaction's effect and delete it."""
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("remove_transaction", correlation_id), self._lock:
            transaction = await self._storage.get_transaction_by_id(transaction_id)
            if transaction is None:
                raise NotFoundError(f"Transaction {transaction_id} not found")

            accounts = await self._storage.list_accounts()
            result = self._engine.delete_transaction(transaction, accounts)
            await self._storage.delete_transaction(transaction_id)
            await self._commit(accounts, result, correlation_id)

        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction.id,
            account_name=transaction.account_name,
            signed_amount=str(signed_amount(transaction)),
            correlation_id=correlation_id,
        )
        return result

    async def recalculate_balances(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """Rebuild every balance from the stored transactions."""
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("recalculate_balances", correlation_id), self._lock:
            accounts = await self._storage.list_accounts()
            transactions = await self._storage.list_transactions()
            result = self._engine.recalculate_all(accounts, transactions)
            await self._commit(accounts, result, correlation_id)

        await self._audit_logger.log_balances_recalculated(
            account_count=len(result.accounts),
            transaction_count=len(transactions),
            drift_count=len(result.drifted_accounts),
            correlation_id=correlation_id,
        )
        return result

    # -------------------------------------------------------------------------
    # Sample data
    # -------------------------------------------------------------------------

    async def seed_sample_data_if_empty(
        self,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Create demo accounts and transactions on an empty store.

        Accounts start at zero; the transactions build their balances.
        The emptiness check and every write happen under one hold of the
        lock, so concurrent callers seed at most once.
        Returns True if anything was created.
        """
        now = now or datetime.now()
        correlation_id = create_correlation_id()

        yesterday = now - timedelta(days=1)
        two_days_ago = now - timedelta(days=2)
        one_week_ago = now - timedelta(days=7)

        async with self._storage_step("seed_sample_data", correlation_id), self._lock:
            if await self._storage.list_accounts() or await self._storage.list_transactions():
                return False

            accounts = [
                Account(name=name, account_type=account_type, color=color)
                for name, account_type, color in [
                    ("Main Account", AccountType.BANK, "blue"),
                    ("Credit Card", AccountType.CREDIT, "purple"),
                    ("Cash", AccountType.CASH, "green"),
                    ("Savings", AccountType.SAVINGS, "orange"),
                ]
            ]
            transactions = [
                Transaction(
                    name=name,
                    amount=Decimal(amount),
                    is_income=is_income,
                    account_name=account_name,
                    category=category,
                    posted_at=posted_at,
                )
                for name, amount, is_income, account_name, category, posted_at in [
                    ("Salary", "5000.00", True, "Main Account", "Salary", now),
                    ("Initial savings deposit", "15000.00", True, "Savings", "Other income", one_week_ago),
                    ("Initial cash", "850.00", True, "Cash", "Other income", one_week_ago),
                    ("Groceries", "120.50", False, "Main Account", "Food", yesterday),
                    ("Gas", "45.00", False, "Main Account", "Transport", two_days_ago),
                    ("Netflix", "15.99", False, "Credit Card", "Entertainment", one_week_ago),
                    ("Freelance Web", "800.00", True, "Main Account", "Freelance", one_week_ago),
                ]
            ]
            for transaction in transactions:
                accounts = self._engine.post_transaction(transaction, accounts).accounts

            for transaction in transactions:
                await self._storage.save_transaction(transaction)
            for account in accounts:
                await self._storage.save_account(account)

        for account in accounts:
            await self._audit_logger.log_account_created(
                account_id=account.id,
                name=account.name,
                balance=Decimal("0"),
                correlation_id=correlation_id,
            )
        for transaction in transactions:
            await self._audit_logger.log_transaction_posted(
                transaction_id=transaction.id,
                account_name=transaction.account_name,
                signed_amount=str(signed_amount(transaction)),
                correlation_id=correlation_id,
            )

        logger.info("sample_data_created", correlation_id=str(correlation_id))
        return True



class SubscriptionFlow:
    """
    Orchestrates subscription changes and charges.

    Charging shares the ledger lock: a charge posts a transaction, so it
    must not interleave with transaction edits. Pass the LedgerFlow's lock
    (`lock=ledger_flow.lock`) when building the two flows by hand; a flow
    built without one only serializes against itself.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        scheduler: Optional[SubscriptionScheduler] = None,
        audit_logger: Optional[AuditLogger] = None,
        lock: Optional[asyncio.Lock] = None,
    ):
        self._storage = storage
        self._scheduler = scheduler or SubscriptionScheduler()
        self._audit_logger = audit_logger or AuditLogger()
        self._lock = lock or asyncio.Lock()

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def _storage_step(self, operation: str, correlation_id: UUID):
        return _audit_storage_failure(self._audit_logger, operation, correlation_id)


    async def _require_subscription(self, subscription_id: UUID) -> Subscription:
        subscription = await self._storage.get_subscription_by_id(subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    async def _log(
        self,
        event_type: AuditEventType,
        subscription: Subscription,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> None:
        await self._audit_logger.log_subscription_event(
            event_type=event_type,
            subscription_id=subscription.id,
            name=subscription.name,
            correlation_id=correlation_id,
            details=details,
        )

    async def create_subscription(
        self,
        subscription: Subscription,
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("create_subscription", correlation_id), self._lock:
            await self._storage.save_subscription(subscription)

        await self._log(
            AuditEventType.SUBSCRIPTION_CREATED,
            subscription,
            correlation_id,
            details={
                "amount": str(subscription.amount),
                "frequency": subscription.frequency.value,
                "account_name": subscription.account_name,
            },
        )
        return subscription

    async def edit_subscription(
        self,
        subscription: Subscription,
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        """Replace a stored subscription (same id). Balances are untouched."""
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("edit_subscription", correlation_id), self._lock:
            await self._require_subscription(subscription.id)
            await self._storage.save_subscription(subscription)

        await self._log(AuditEventType.SUBSCRIPTION_UPDATED, subscription, correlation_id)
        return subscription

    async def charge_subscription(
        self,
        subscription_id: UUID,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ChargeResult:
        """
        Charge a subscription now and roll it to its next date.

        Persists the new expense, the charged account and the advanced
        subscription.
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("charge_subscription", correlation_id), self._lock:
            subscription = await self._require_subscription(subscription_id)
            accounts = await self._storage.list_accounts()
            transactions = await self._storage.list_transactions()

            result = self._scheduler.charge_now(subscription, accounts, transactions, now)

            await self._storage.save_transaction(result.transaction)
            await _save_changed_accounts(self._storage, accounts, result.accounts)
            await self._storage.save_subscription(result.subscription)

        await self._audit_logger.log_conditions(result.conditions, correlation_id)
        await self._audit_logger.log_subscription_charged(
            subscription_id=subscription.id,
            transaction_id=result.transaction.id,
            amount=str(result.transaction.amount),
            next_charge_date=result.subscription.next_charge_date,
            correlation_id=correlation_id,
        )
        return result

    async def deactivate_subscription(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("deactivate_subscription", correlation_id), self._lock:
            subscription = self._scheduler.deactivate(
                await self._require_subscription(subscription_id)
            )
            await self._storage.save_subscription(subscription)

        await self._log(AuditEventType.SUBSCRIPTION_DEACTIVATED, subscription, correlation_id)
        return subscription

    async def reactivate_subscription(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("reactivate_subscription", correlation_id), self._lock:
            subscription = self._scheduler.reactivate(
                await self._require_subscription(subscription_id)
            )
            await self._storage.save_subscription(subscription)

        await self._log(AuditEventType.SUBSCRIPTION_REACTIVATED, subscription, correlation_id)
        return subscription

    async def delete_subscription(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a subscription. Transactions it already produced are kept."""
        correlation_id = correlation_id or create_correlation_id()

        async with self._storage_step("delete_subscription", correlation_id), self._lock:
            subscription = await self._require_subscription(subscription_id)
            await self._storage.delete_subscription(subscription_id)

        await self._log(AuditEventType.SUBSCRIPTION_DELETED, subscription, correlation_id)


def create_app_components(
    storage: Optional[LedgerStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[LedgerFlow, SubscriptionFlow, SummaryService, LedgerValidator]:
    """
    Factory function to create all application components.

    Args:
        storage: Ledger gateway. If None, one is built from the
                 `storage_backend` setting.
        audit_storage: Audit gateway. If None, it follows the ledger one.

    Returns:
        (ledger_flow, subscription_flow, summary_service, validator)
    """
    app_settings = get_settings().app

    if storage is None:
        if app_settings.storage_backend == "google_sheets":
            try:
                sheets_client = GoogleSheetsClient()
                sheets_client.get_spreadsheet()
                storage = GoogleSheetsLedgerStorage(sheets_client)
                audit_storage = audit_storage or GoogleSheetsAuditStorage(sheets_client)
            except (StorageError, ValueError) as e:
                # Storage not configured - continue in memory
                logger.warning("storage_not_configured", error=str(e))
                storage = InMemoryLedgerStorage()
        else:
            storage = InMemoryLedgerStorage()

    if audit_storage is None and isinstance(storage, InMemoryLedgerStorage):
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)
    engine = LedgerEngine()
    scheduler = SubscriptionScheduler(engine=engine)
    lock = asyncio.Lock()

    ledger_flow = LedgerFlow(
        storage=storage,
        engine=engine,
        audit_logger=audit_logger,
        lock=lock,
    )
    subscription_flow = SubscriptionFlow(
        storage=storage,
        scheduler=scheduler,
        audit_logger=audit_logger,
        lock=lock,
    )

    return (
        ledger_flow,
        subscription_flow,
        SummaryService(storage, scheduler),
        LedgerValidator(storage),
    )


async def create_app(
    storage: Optional[LedgerStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[LedgerFlow, SubscriptionFlow, SummaryService, LedgerValidator]:
    """
    Build the components and prepare the store for use.

    With the `seed_sample_data` setting on, an empty store gets the demo
    accounts and transactions. A store holding anything is left alone.
    """
    components = create_app_components(storage, audit_storage)
    ledger_flow = components[0]

    if get_settings().app.seed_sample_data:
        seeded = await ledger_flow.seed_sample_data_if_empty()
        logger.info("sample_data_seed_checked", seeded=seeded)

    return components
