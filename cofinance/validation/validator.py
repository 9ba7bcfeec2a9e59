"""
Form-Boundary Validation

DESIGN DECISION: Drafts coming from a form are checked in two stages
before they become Transaction / Subscription models:

STAGE 1 - FIELD VALIDATION:
- Required field presence
- Positive amounts with at most two decimals
- Custom recurrence interval of at least one day

STAGE 2 - LEDGER VALIDATION:
- Referenced account exists (a warning: the ledger tolerates it, but the
  balance will not move)
- Absurd amount detection
- Far-future dates
- Duplicate account names

IMPORTANT: Validation NEVER silently fixes issues.
An interval of 0 is reported, not bumped to 1.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from cofinance.config import LedgerSettings, get_settings
from cofinance.models.ledger import (
    SubscriptionFrequency,
    ValidationIssue,
    ValidationResult,
)
from cofinance.queries.formatting import format_currency
from cofinance.services.storage import LedgerStorageInterface


AmountInput = Union[Decimal, str, int, float, None]


class LedgerValidator:
    """
    Validates transaction, subscription and account drafts.

    Stage 1 runs without storage.
    Stage 2 uses storage (if given) to resolve account names.
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            storage: Gateway used to check that referenced accounts exist.
                     If None, account checks are skipped.
            settings: Sanity thresholds
        """
        self._storage = storage
        self._settings = settings or get_settings().ledger

    # -------------------------------------------------------------------------
    # Field checks
    # -------------------------------------------------------------------------

    def _check_name(self, name: Optional[str], issues: list[ValidationIssue]) -> None:
        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="A name is required",
                severity="error",
            ))

    def _check_amount(
        self,
        amount: AmountInput,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        """Parse and check an amount. Returns the Decimal if it parsed."""
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
            return None

        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            value = None

        if value is None or not value.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"'{amount}' is not a valid amount",
                severity="error",
                suggested_fix="Use digits with an optional decimal point, e.g. 120.50",
            ))
            return None

        if value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the magnitude and choose income or expense separately",
            ))
        elif value.as_tuple().exponent < -self._settings.decimal_places:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount {value} has more than {self._settings.decimal_places} decimal places",
                severity="error",
            ))
        elif value > Decimal(str(self._settings.max_transaction_amount)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({format_currency(value, self._settings)}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))
        return value

    def _check_account_name(self, account_name: Optional[str], issues: list[ValidationIssue]) -> bool:
        if not account_name or not account_name.strip():
            issues.append(ValidationIssue(
                field="account_name",
                issue_type="missing",
                message="Choose an account",
                severity="error",
            ))
            return False
        return True

    async def _check_account_exists(self, account_name: str, issues: list[ValidationIssue]) -> None:
        if self._storage is None:
            return
        account = await self._storage.get_account_by_name(account_name)
        if account is None:
            issues.append(ValidationIssue(
                field="account_name",
                issue_type="unknown_account",
                message=f"No account named '{account_name}'; its balance will not change",
                severity="warning",
                suggested_fix="Pick an existing account or create it first",
            ))

    @staticmethod
    def _result(entity_type: str, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            entity_type=entity_type,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def validate_transaction(
        self,
        name: Optional[str],
        amount: AmountInput,
        account_name: Optional[str],
        posted_at: Optional[datetime] = None,
    ) -> ValidationResult:
        """Validate a transaction draft."""
        issues: list[ValidationIssue] = []

        # Stage 1
        self._check_name(name, issues)
        self._check_amount(amount, issues)
        has_account = self._check_account_name(account_name, issues)

        # Stage 2
        if has_account:
            await self._check_account_exists(account_name, issues)

        if posted_at is not None:
            max_future = datetime.now() + timedelta(days=self._settings.future_date_tolerance_days)
            if posted_at > max_future:
                issues.append(ValidationIssue(
                    field="posted_at",
                    issue_type="future_date",
                    message=f"Date ({posted_at.date().isoformat()}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))

        return self._result("transaction", issues)

    async def validate_subscription(
        self,
        name: Optional[str],
        amount: AmountInput,
        frequency: SubscriptionFrequency,
        account_name: Optional[str],
        interval_days: Optional[int] = None,
        next_charge_date: Optional[datetime] = None,
    ) -> ValidationResult:
        """Validate a subscription draft."""
        issues: list[ValidationIssue] = []

        # Stage 1
        self._check_name(name, issues)
        self._check_amount(amount, issues)
        has_account = self._check_account_name(account_name, issues)

        if frequency == SubscriptionFrequency.CUSTOM:
            if interval_days is None:
                issues.append(ValidationIssue(
                    field="interval_days",
                    issue_type="missing",
                    message="Custom subscriptions need an interval in days",
                    severity="error",
                ))
            elif interval_days < 1:
                issues.append(ValidationIssue(
                    field="interval_days",
                    issue_type="invalid_interval",
                    message=f"Interval must be at least 1 day (got {interval_days})",
                    severity="error",
                    suggested_fix="Enter how many days pass between charges",
                ))

        # Stage 2
        if has_account:
            await self._check_account_exists(account_name, issues)

        if next_charge_date is not None and next_charge_date < datetime.now() - timedelta(days=1):
            issues.append(ValidationIssue(
                field="next_charge_date",
                issue_type="past_date",
                message="Next charge date is in the past; the subscription will show as overdue",
                severity="warning",
            ))

        return self._result("subscription", issues)

    async def validate_account(
        self,
        name: Optional[str],
        exclude_id=None,
    ) -> ValidationResult:
        """
        Validate an account draft.

        Account names double as references from transactions, so they
        must be unique. `exclude_id` skips the account being edited.
        """
        issues: list[ValidationIssue] = []
        self._check_name(name, issues)

        if name and self._storage is not None:
            existing = await self._storage.get_account_by_name(name.strip())
            if existing is not None and existing.id != exclude_id:
                issues.append(ValidationIssue(
                    field="name",
                    issue_type="duplicate",
                    message=f"An account named '{name.strip()}' already exists",
                    severity="error",
                    suggested_fix="Choose a different name",
                ))

        return self._result("account", issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the form shows under the save button.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
