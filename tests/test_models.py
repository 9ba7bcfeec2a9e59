"""
Tests for CoFinance models

Test strategy:
1. Unit tests for individual components (models, engine, scheduler)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests (fake worksheets stand in for Sheets)
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from cofinance.models.ledger import (
    Account,
    AccountType,
    BalanceState,
    ConditionType,
    LedgerCondition,
    LedgerResult,
    Subscription,
    SubscriptionFrequency,
    Transaction,
    ValidationIssue,
    ValidationResult,
)
from cofinance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestLedgerModels:
    """Tests for account, transaction and subscription models."""

    def test_account_defaults(self):
        """A new account starts at zero and reconciled."""
        account = Account(name="Main")
        assert account.balance == Decimal("0")
        assert account.starting_balance == Decimal("0")
        assert account.balance_state == BalanceState.RECONCILED
        assert account.account_type == AccountType.BANK

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from account names."""
        account = Account(name="  Main  ")
        assert account.name == "Main"

    def test_account_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            Account(name="   ")

    def test_transaction_signed_amount(self):
        """Income is positive, expense is negative."""
        income = Transaction(name="Salary", amount=Decimal("5000"), is_income=True, account_name="Main")
        expense = Transaction(name="Gas", amount=Decimal("45"), account_name="Main")
        assert income.signed_amount == Decimal("5000")
        assert expense.signed_amount == Decimal("-45")

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Transaction(name="Test", amount=Decimal("-100"), account_name="Main")

    def test_transaction_rejects_sub_cent_amount(self):
        with pytest.raises(ValidationError):
            Transaction(name="Test", amount=Decimal("1.005"), account_name="Main")

    def test_subscription_custom_interval_must_be_positive(self):
        """Test that a custom cycle needs at least one day."""
        with pytest.raises(ValidationError, match="at least 1 day"):
            Subscription(
                name="Gym",
                amount=Decimal("30"),
                frequency=SubscriptionFrequency.CUSTOM,
                interval_days=0,
                account_name="Main",
            )

    def test_subscription_interval_ignored_for_fixed_frequencies(self):
        """Monthly subscriptions do not care about interval_days."""
        subscription = Subscription(
            name="Netflix",
            amount=Decimal("15.99"),
            frequency=SubscriptionFrequency.MONTHLY,
            interval_days=0,
            account_name="Card",
        )
        assert subscription.is_active is True

    def test_subscription_rejects_unknown_frequency(self):
        with pytest.raises(ValidationError):
            Subscription(name="X", amount=Decimal("1"), frequency="fortnightly", account_name="Main")


class TestLedgerResult:
    """Tests for LedgerResult helpers."""

    def test_condition_partitions(self):
        result = LedgerResult(
            accounts=[Account(name="Main")],
            conditions=[
                LedgerCondition(
                    condition_type=ConditionType.ACCOUNT_NOT_FOUND,
                    account_name="Ghost",
                    message="missing",
                ),
                LedgerCondition(
                    condition_type=ConditionType.RECALCULATION_DRIFT,
                    account_name="Main",
                    message="drift",
                    previous_balance=Decimal("10"),
                    new_balance=Decimal("0"),
                ),
            ],
        )
        assert result.has_conditions is True
        assert result.missing_accounts == ["Ghost"]
        assert result.drifted_accounts == ["Main"]

    def test_account_lookup(self):
        result = LedgerResult(accounts=[Account(name="Main")])
        assert result.account("Main").name == "Main"
        assert result.account("Other") is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            description="Account created",
        )
        assert event.event_type == AuditEventType.ACCOUNT_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_POSTED,
            description="Transaction posted",
            details={"account_name": "Main", "signed_amount": "-45.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_posted"
        assert log_dict["details"]["account_name"] == "Main"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            description="Account deleted",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "account_deleted"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_account_not_found(self):
        """A dangling account reference is a warning, not an info line."""
        transaction_id = uuid4()
        correlation_id = uuid4()

        event = AuditEventBuilder.account_not_found(
            transaction_id=transaction_id,
            account_name="Ghost",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.ACCOUNT_NOT_FOUND
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == transaction_id
        assert event.correlation_id == correlation_id

    def test_audit_event_builder_balance_overridden(self):
        account_id = uuid4()

        event = AuditEventBuilder.balance_overridden(
            account_id=account_id,
            name="Main",
            old_balance=Decimal("100"),
            new_balance=Decimal("250"),
            correlation_id=uuid4(),
        )

        assert event.event_type == AuditEventType.BALANCE_OVERRIDDEN
        assert event.entity_id == account_id
        assert event.details["new_balance"] == "250"
        assert event.is_user_action is True


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            entity_type="transaction",
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            entity_type="transaction",
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="posted_at",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestEnums:
    """Tests for ledger enums."""

    def test_frequency_values(self):
        assert SubscriptionFrequency.MONTHLY.value == "monthly"
        assert SubscriptionFrequency.CUSTOM.value == "custom"

    def test_account_types_exist(self):
        for value in ["bank", "credit", "cash", "savings", "other"]:
            assert AccountType(value) is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
