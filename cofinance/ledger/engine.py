"""
Ledger Engine

Keeps every account's cached balance consistent with the transactions
that reference it:

    account.balance == account.starting_balance
                       + sum(+amount if income else -amount)
                         for each transaction posted to the account

DESIGN DECISION: The engine is stateless. Every operation receives the
caller's snapshot of accounts (and transactions, for recalculation) and
returns a LedgerResult holding fresh copies. Inputs are never mutated, so
the caller decides what gets persisted and when.

FAILURE SEMANTICS: Nothing here raises for business reasons. A transaction
that names a missing account leaves all balances untouched and comes back
as an ACCOUNT_NOT_FOUND condition on the result.

ORDERING: update_transaction is revert(old) THEN post(new), as two
separate phases. When the account changes, the two phases touch two
different accounts; a single net delta against one account would be wrong.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Sequence

import structlog

from cofinance.models.ledger import (
    Account,
    BalanceState,
    ConditionType,
    LedgerCondition,
    LedgerResult,
    Transaction,
)


def signed_amount(transaction: Transaction) -> Decimal:
    """+amount for income, -amount for expenses."""
    return transaction.amount if transaction.is_income else -transaction.amount


class LedgerEngine:
    """
    Applies and reverts transaction effects on account balances.

    Accounts are resolved by name (the first account with a matching name
    wins), which is how transactions and subscriptions reference them.
    """

    def __init__(self):
        self._logger = structlog.get_logger(__name__)

    # -------------------------------------------------------------------------
    # Transaction effects
    # -------------------------------------------------------------------------

    def post_transaction(
        self,
        transaction: Transaction,
        accounts: Sequence[Account],
    ) -> LedgerResult:
        """
        Apply a transaction's signed amount to its account.

        Exactly one account changes, by exactly the signed amount, once.
        """
        working = self._snapshot(accounts)
        conditions: list[LedgerCondition] = []
        self._apply(working, transaction, reverting=False, conditions=conditions)
        return LedgerResult(accounts=working, conditions=conditions)

    def revert_transaction(
        self,
        transaction: Transaction,
        accounts: Sequence[Account],
    ) -> LedgerResult:
        """Undo a previously posted transaction (exact inverse of post)."""
        working = self._snapshot(accounts)
        conditions: list[LedgerCondition] = []
        self._apply(working, transaction, reverting=True, conditions=conditions)
        return LedgerResult(accounts=working, conditions=conditions)

    def update_transaction(
        self,
        old_transaction: Transaction,
        new_transaction: Transaction,
        accounts: Sequence[Account],
    ) -> LedgerResult:
        """
        Replace a posted transaction with its edited version.

        Phase 1 reverts `old_transaction` using the OLD account, amount and
        direction. Phase 2 posts `new_transaction` using the NEW ones.
        Conditions from both phases are returned in that order.
        """
        working = self._snapshot(accounts)
        conditions: list[LedgerCondition] = []
        self._apply(working, old_transaction, reverting=True, conditions=conditions)
        self._apply(working, new_transaction, reverting=False, conditions=conditions)
        return LedgerResult(accounts=working, conditions=conditions)

    def delete_transaction(
        self,
        transaction: Transaction,
        accounts: Sequence[Account],
    ) -> LedgerResult:
        """
        Revert a transaction that is about to be deleted.

        Removing it from the transaction store is the caller's job.
        """
        return self.revert_transaction(transaction, accounts)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def recalculate_all(
        self,
        accounts: Sequence[Account],
        transactions: Iterable[Transaction],
    ) -> LedgerResult:
        """
        Rebuild every balance from scratch.

        balance = starting_balance + sum of signed amounts of the account's
        transactions. An account with no transactions ends at its starting
        balance (0 unless one was set explicitly), which discards any
        manual override. Every account comes back RECONCILED.

        Idempotent and independent of transaction order. Accounts whose
        balance changed are reported as RECALCULATION_DRIFT conditions;
        those are diagnostics, the recalculated value is authoritative.
        """
        totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for transaction in transactions:
            totals[transaction.account_name] += signed_amount(transaction)

        working = self._snapshot(accounts)
        conditions: list[LedgerCondition] = []
        known_names = set()

        for account in working:
            known_names.add(account.name)
            calculated = account.starting_balance + totals.get(account.name, Decimal("0"))

            if calculated != account.balance:
                conditions.append(LedgerCondition(
                    condition_type=ConditionType.RECALCULATION_DRIFT,
                    account_name=account.name,
                    message=f"Balance of {account.name} drifted: {account.balance} -> {calculated}",
                    previous_balance=account.balance,
                    new_balance=calculated,
                ))
                self._logger.info(
                    "balance_recalculated",
                    account=account.name,
                    previous_balance=str(account.balance),
                    new_balance=str(calculated),
                )

            account.balance = calculated
            account.balance_state = BalanceState.RECONCILED

        orphaned = sorted(name for name in totals if name not in known_names)
        if orphaned:
            self._logger.warning("orphaned_transactions", account_names=orphaned)

        return LedgerResult(accounts=working, conditions=conditions)

    # -------------------------------------------------------------------------
    # Administrative override
    # -------------------------------------------------------------------------

    def override_balance(
        self,
        account_name: str,
        new_balance: Decimal,
        accounts: Sequence[Account],
    ) -> LedgerResult:
        """
        Set a balance directly, bypassing the transaction sum.

        The account is marked MANUALLY_OVERRIDDEN until the next
        recalculate_all. `starting_balance` is left alone.
        """
        working = self._snapshot(accounts)
        account = self._find(working, account_name)
        if account is None:
            return LedgerResult(
                accounts=working,
                conditions=[self._not_found(account_name, None)],
            )

        self._logger.info(
            "balance_overridden",
            account=account_name,
            old_balance=str(account.balance),
            new_balance=str(new_balance),
        )
        account.balance = new_balance
        account.balance_state = BalanceState.MANUALLY_OVERRIDDEN
        return LedgerResult(accounts=working)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _snapshot(accounts: Sequence[Account]) -> list[Account]:
        return [account.model_copy() for account in accounts]

    @staticmethod
    def _find(accounts: list[Account], name: str) -> Optional[Account]:
        for account in accounts:
            if account.name == name:
                return account
        return None

    def _not_found(self, account_name: str, transaction: Optional[Transaction]) -> LedgerCondition:
        self._logger.warning(
            "account_not_found",
            account=account_name,
            transaction_id=str(transaction.id) if transaction else None,
        )
        return LedgerCondition(
            condition_type=ConditionType.ACCOUNT_NOT_FOUND,
            account_name=account_name,
            message=f"No account named '{account_name}'; balance left unchanged",
            transaction_id=transaction.id if transaction else None,
        )

    def _apply(
        self,
        working: list[Account],
        transaction: Transaction,
        reverting: bool,
        conditions: list[LedgerCondition],
    ) -> None:
        """Post (or revert) one transaction against the working copies in place."""
        account = self._find(working, transaction.account_name)
        if account is None:
            conditions.append(self._not_found(transaction.account_name, transaction))
            return

        change = signed_amount(transaction)
        old_balance = account.balance
        account.balance = old_balance - change if reverting else old_balance + change

        self._logger.debug(
            "balance_reverted" if reverting else "balance_posted",
            account=account.name,
            transaction_id=str(transaction.id),
            old_balance=str(old_balance),
            new_balance=str(account.balance),
        )
