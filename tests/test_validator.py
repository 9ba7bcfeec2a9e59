"""Tests for form-boundary validation."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from cofinance.models.ledger import Account, SubscriptionFrequency
from cofinance.services.storage import InMemoryLedgerStorage
from cofinance.validation import LedgerValidator


@pytest.fixture
def validator(ledger_settings) -> LedgerValidator:
    storage = InMemoryLedgerStorage(accounts=[Account(name="Main")])
    return LedgerValidator(storage, ledger_settings)


def issue_types(result) -> list[str]:
    return [issue.issue_type for issue in result.issues]


class TestTransactionValidation:
    """Tests for validate_transaction."""

    @pytest.mark.asyncio
    async def test_valid_transaction(self, validator):
        result = await validator.validate_transaction("Groceries", "120.50", "Main")
        assert result.is_valid is True
        assert result.issues == []

    @pytest.mark.asyncio
    async def test_blank_name(self, validator):
        result = await validator.validate_transaction("  ", "10", "Main")
        assert result.is_valid is False
        assert issue_types(result) == ["missing"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount,issue", [
        (None, "missing"),
        ("", "missing"),
        ("abc", "invalid_format"),
        ("NaN", "invalid_format"),
        ("0", "invalid_value"),
        ("-5", "invalid_value"),
        ("1.005", "invalid_format"),
    ])
    async def test_bad_amounts_are_errors(self, validator, amount, issue):
        """Test that bad amounts are reported, never fixed."""
        result = await validator.validate_transaction("Test", amount, "Main")
        assert result.is_valid is False
        assert issue in issue_types(result)

    @pytest.mark.asyncio
    async def test_huge_amount_is_a_warning(self, validator):
        result = await validator.validate_transaction("Lottery", Decimal("5000000"), "Main")
        assert result.is_valid is True
        assert issue_types(result) == ["suspicious_value"]
        assert len(result.warnings) == 1
        assert "USD 5,000,000.00" in result.warnings[0]

    @pytest.mark.asyncio
    async def test_unknown_account_is_a_warning(self, validator):
        result = await validator.validate_transaction("Test", "10", "Ghost")
        assert result.is_valid is True
        assert issue_types(result) == ["unknown_account"]

    @pytest.mark.asyncio
    async def test_missing_account_is_an_error(self, validator):
        result = await validator.validate_transaction("Test", "10", "")
        assert result.is_valid is False

    @pytest.mark.asyncio
    async def test_far_future_date(self, validator):
        posted_at = datetime.now() + timedelta(days=30)
        result = await validator.validate_transaction("Test", "10", "Main", posted_at)
        assert issue_types(result) == ["future_date"]

    @pytest.mark.asyncio
    async def test_without_storage_skips_account_lookup(self, ledger_settings):
        validator = LedgerValidator(settings=ledger_settings)
        result = await validator.validate_transaction("Test", "10", "Anything")
        assert result.issues == []


class TestSubscriptionValidation:
    """Tests for validate_subscription."""

    @pytest.mark.asyncio
    async def test_custom_interval_zero_is_reported(self, validator):
        """An interval of 0 is an error, not silently bumped to 1."""
        result = await validator.validate_subscription(
            "Gym", "30", SubscriptionFrequency.CUSTOM, "Main", interval_days=0,
        )
        assert result.is_valid is False
        assert issue_types(result) == ["invalid_interval"]

    @pytest.mark.asyncio
    async def test_custom_interval_missing(self, validator):
        result = await validator.validate_subscription(
            "Gym", "30", SubscriptionFrequency.CUSTOM, "Main",
        )
        assert issue_types(result) == ["missing"]

    @pytest.mark.asyncio
    async def test_monthly_ignores_interval(self, validator):
        result = await validator.validate_subscription(
            "Netflix", "15.99", SubscriptionFrequency.MONTHLY, "Main", interval_days=0,
        )
        assert result.is_valid is True

    @pytest.mark.asyncio
    async def test_past_next_charge_date_warns(self, validator):
        result = await validator.validate_subscription(
            "Netflix", "15.99", SubscriptionFrequency.MONTHLY, "Main",
            next_charge_date=datetime.now() - timedelta(days=10),
        )
        assert result.is_valid is True
        assert issue_types(result) == ["past_date"]


class TestAccountValidation:
    """Tests for validate_account."""

    @pytest.mark.asyncio
    async def test_duplicate_name(self, validator):
        result = await validator.validate_account("Main")
        assert result.is_valid is False
        assert issue_types(result) == ["duplicate"]

    @pytest.mark.asyncio
    async def test_editing_keeps_own_name(self, validator):
        main = await validator._storage.get_account_by_name("Main")
        result = await validator.validate_account("Main", exclude_id=main.id)
        assert result.is_valid is True

    @pytest.mark.asyncio
    async def test_new_name(self, validator):
        result = await validator.validate_account("Savings")
        assert result.is_valid is True


class TestSummary:
    """Tests for the user-facing summary text."""

    @pytest.mark.asyncio
    async def test_all_clear(self, validator):
        result = await validator.validate_transaction("Test", "10", "Main")
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    @pytest.mark.asyncio
    async def test_errors_and_warnings_listed(self, validator):
        result = await validator.validate_transaction("", "10", "Ghost")
        summary = validator.get_user_friendly_summary(result)
        assert "Please fix the following" in summary
        assert "A name is required" in summary
        assert "Please verify the following" in summary
