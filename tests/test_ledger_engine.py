"""
Tests for the Ledger Engine

The invariant under test everywhere:
    balance == starting_balance + sum of signed amounts posted to the account
"""

import random

import pytest
from decimal import Decimal

from cofinance.ledger import LedgerEngine, signed_amount
from cofinance.models.ledger import (
    Account,
    BalanceState,
    ConditionType,
    Transaction,
)

from tests.conftest import balance_of


def tx(amount: str, account: str = "Main", income: bool = False, **kwargs) -> Transaction:
    return Transaction(
        name=kwargs.pop("name", "Test"),
        amount=Decimal(amount),
        is_income=income,
        account_name=account,
        **kwargs,
    )


@pytest.fixture
def engine() -> LedgerEngine:
    return LedgerEngine()


class TestPostAndRevert:
    """Tests for post_transaction / revert_transaction."""

    def test_post_income_credits_account(self, engine, accounts):
        result = engine.post_transaction(tx("5000", income=True), accounts)
        assert balance_of(result.accounts, "Main") == Decimal("5000")
        assert balance_of(result.accounts, "Card") == Decimal("0")
        assert result.has_conditions is False

    def test_post_expense_debits_account(self, engine, accounts):
        result = engine.post_transaction(tx("15.99", account="Card"), accounts)
        assert balance_of(result.accounts, "Card") == Decimal("-15.99")

    def test_revert_is_exact_inverse(self, engine, accounts):
        """post then revert leaves every balance unchanged."""
        transaction = tx("120.50")
        posted = engine.post_transaction(transaction, accounts)
        reverted = engine.revert_transaction(transaction, posted.accounts)
        assert [a.balance for a in reverted.accounts] == [a.balance for a in accounts]

    def test_inputs_are_not_mutated(self, engine, accounts):
        engine.post_transaction(tx("100", income=True), accounts)
        assert balance_of(accounts, "Main") == Decimal("0")

    def test_zero_amount_is_a_no_op(self, engine, accounts):
        result = engine.post_transaction(tx("0"), accounts)
        assert balance_of(result.accounts, "Main") == Decimal("0")

    def test_missing_account_reports_condition(self, engine, accounts):
        """A dangling account reference changes nothing and is reported."""
        transaction = tx("50", account="Ghost")
        result = engine.post_transaction(transaction, accounts)

        assert [a.balance for a in result.accounts] == [Decimal("0"), Decimal("0")]
        assert result.missing_accounts == ["Ghost"]
        assert result.conditions[0].transaction_id == transaction.id

    def test_duplicate_names_resolve_to_first(self, engine):
        first = Account(name="Main")
        second = Account(name="Main")
        result = engine.post_transaction(tx("10", income=True), [first, second])
        assert result.accounts[0].balance == Decimal("10")
        assert result.accounts[1].balance == Decimal("0")


class TestUpdateAndDelete:
    """Tests for update_transaction / delete_transaction."""

    def test_update_same_account(self, engine, accounts):
        old = tx("120.50")
        posted = engine.post_transaction(old, accounts)
        new = old.model_copy(update={"amount": Decimal("200.00")})

        result = engine.update_transaction(old, new, posted.accounts)
        assert balance_of(result.accounts, "Main") == Decimal("-200.00")

    def test_update_moves_between_accounts(self, engine, accounts):
        """Old account gets the revert, new account gets the post."""
        old = tx("40")
        posted = engine.post_transaction(old, accounts)
        new = old.model_copy(update={"account_name": "Card", "amount": Decimal("60")})

        result = engine.update_transaction(old, new, posted.accounts)
        assert balance_of(result.accounts, "Main") == Decimal("0")
        assert balance_of(result.accounts, "Card") == Decimal("-60")

    def test_update_flips_direction(self, engine, accounts):
        old = tx("25")
        posted = engine.post_transaction(old, accounts)
        new = old.model_copy(update={"is_income": True})

        result = engine.update_transaction(old, new, posted.accounts)
        assert balance_of(result.accounts, "Main") == Decimal("25")

    def test_update_to_missing_account_still_reverts_old(self, engine, accounts):
        old = tx("30")
        posted = engine.post_transaction(old, accounts)
        new = old.model_copy(update={"account_name": "Ghost"})

        result = engine.update_transaction(old, new, posted.accounts)
        assert balance_of(result.accounts, "Main") == Decimal("0")
        assert result.missing_accounts == ["Ghost"]

    def test_delete_reverts(self, engine, accounts):
        transaction = tx("300", income=True)
        posted = engine.post_transaction(transaction, accounts)
        result = engine.delete_transaction(transaction, posted.accounts)
        assert balance_of(result.accounts, "Main") == Decimal("0")


class TestRecalculation:
    """Tests for recalculate_all."""

    def test_end_to_end_scenario(self, engine):
        """Post, edit and delete; recalculation agrees with the running balance."""
        accounts = [Account(name="Main")]

        income = tx("5000", income=True)
        accounts = engine.post_transaction(income, accounts).accounts
        assert balance_of(accounts, "Main") == Decimal("5000")

        expense = tx("120.50")
        accounts = engine.post_transaction(expense, accounts).accounts
        assert balance_of(accounts, "Main") == Decimal("4879.50")

        edited = expense.model_copy(update={"amount": Decimal("200.00")})
        accounts = engine.update_transaction(expense, edited, accounts).accounts
        assert balance_of(accounts, "Main") == Decimal("4800.00")

        accounts = engine.delete_transaction(income, accounts).accounts
        assert balance_of(accounts, "Main") == Decimal("-200.00")

        result = engine.recalculate_all(accounts, [edited])
        assert balance_of(result.accounts, "Main") == Decimal("-200.00")
        assert result.drifted_accounts == []

    def test_idempotent(self, engine, accounts):
        transactions = [tx("10", income=True), tx("3.25"), tx("7", account="Card")]
        once = engine.recalculate_all(accounts, transactions)
        twice = engine.recalculate_all(once.accounts, transactions)
        assert [a.balance for a in once.accounts] == [a.balance for a in twice.accounts]
        assert twice.conditions == []

    def test_order_independent(self, engine, accounts):
        transactions = [
            tx("100.10", income=True),
            tx("33.33"),
            tx("12.01", account="Card"),
            tx("0.99", account="Card", income=True),
            tx("45"),
        ]
        shuffled = transactions[:]
        random.Random(7).shuffle(shuffled)

        forward = engine.recalculate_all(accounts, transactions)
        backward = engine.recalculate_all(accounts, list(reversed(transactions)))
        mixed = engine.recalculate_all(accounts, shuffled)
        assert (
            [a.balance for a in forward.accounts]
            == [a.balance for a in backward.accounts]
            == [a.balance for a in mixed.accounts]
        )

    def test_matches_incremental_posting(self, engine, accounts):
        transactions = [tx("19.99"), tx("250", income=True), tx("5.01", account="Card")]
        running = accounts
        for transaction in transactions:
            running = engine.post_transaction(transaction, running).accounts

        rebuilt = engine.recalculate_all(accounts, transactions)
        assert [a.balance for a in rebuilt.accounts] == [a.balance for a in running]

    def test_account_without_transactions_resets_to_starting_balance(self, engine):
        account = Account(name="Savings", balance=Decimal("999"))
        result = engine.recalculate_all([account], [])
        assert result.accounts[0].balance == Decimal("0")
        assert result.drifted_accounts == ["Savings"]

    def test_starting_balance_is_kept(self, engine):
        account = Account(
            name="Savings",
            balance=Decimal("1000"),
            starting_balance=Decimal("1000"),
        )
        result = engine.recalculate_all([account], [tx("100", account="Savings")])
        assert result.accounts[0].balance == Decimal("900")

    def test_drift_condition_carries_both_balances(self, engine, accounts):
        drifted = [accounts[0].model_copy(update={"balance": Decimal("42")}), accounts[1]]
        result = engine.recalculate_all(drifted, [])

        condition = result.conditions[0]
        assert condition.condition_type == ConditionType.RECALCULATION_DRIFT
        assert condition.previous_balance == Decimal("42")
        assert condition.new_balance == Decimal("0")

    def test_orphaned_transactions_are_ignored(self, engine, accounts):
        result = engine.recalculate_all(accounts, [tx("10", account="Ghost")])
        assert [a.balance for a in result.accounts] == [Decimal("0"), Decimal("0")]


class TestOverride:
    """Tests for manual balance overrides."""

    def test_override_marks_account(self, engine, accounts):
        result = engine.override_balance("Main", Decimal("500"), accounts)
        account = result.account("Main")
        assert account.balance == Decimal("500")
        assert account.balance_state == BalanceState.MANUALLY_OVERRIDDEN

    def test_recalculation_discards_unbacked_override(self, engine, accounts):
        """Only recalculation moves an account back to RECONCILED."""
        overridden = engine.override_balance("Main", Decimal("500"), accounts).accounts
        result = engine.recalculate_all(overridden, [])

        account = result.account("Main")
        assert account.balance == Decimal("0")
        assert account.balance_state == BalanceState.RECONCILED
        assert result.drifted_accounts == ["Main"]

    def test_override_missing_account(self, engine, accounts):
        result = engine.override_balance("Ghost", Decimal("1"), accounts)
        assert result.missing_accounts == ["Ghost"]


def test_signed_amount():
    assert signed_amount(tx("5", income=True)) == Decimal("5")
    assert signed_amount(tx("5")) == Decimal("-5")
