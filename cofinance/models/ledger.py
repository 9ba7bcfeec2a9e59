"""
Core Data Models for the CoFinance Ledger

These models define the strict schemas for the three top-level entities
(accounts, transactions, subscriptions) and for the values the ledger
engine and the subscription scheduler hand back to their callers.

They are designed to:
1. Enforce type safety at runtime
2. Reject malformed input at the boundary (never fix it silently)
3. Be serializable for storage and logging
4. Carry non-fatal conditions as data instead of exceptions

DESIGN DECISION: Money is Decimal everywhere. Amounts on transactions and
subscriptions are non-negative magnitudes; direction lives in `is_income`.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Account category tag.

    The original app shipped bank/credit/cash/savings. OTHER keeps the set
    extensible without accepting free text.
    """
    BANK = "bank"
    CREDIT = "credit"
    CASH = "cash"
    SAVINGS = "savings"
    OTHER = "other"


class BalanceState(str, Enum):
    """
    Whether an account balance is backed by its transactions.

    RECONCILED: balance == starting_balance + sum of posted transactions
    MANUALLY_OVERRIDDEN: balance was set directly and may diverge
                         until the next recalculation
    """
    RECONCILED = "reconciled"
    MANUALLY_OVERRIDDEN = "manually_overridden"


class AccountStatus(str, Enum):
    """Health of an account balance, for display."""
    HEALTHY = "healthy"    # above the healthy threshold
    LOW = "low"            # between zero and the threshold, inclusive
    NEGATIVE = "negative"


class SubscriptionFrequency(str, Enum):
    """Recurrence cycle of a subscription."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"
    CUSTOM = "custom"  # every `interval_days` days


class ConditionType(str, Enum):
    """
    Non-fatal conditions reported by ledger operations.

    These never abort an operation. The caller decides whether to surface
    them (toast, banner, log line).
    """
    ACCOUNT_NOT_FOUND = "account_not_found"
    RECALCULATION_DRIFT = "recalculation_drift"


# =============================================================================
# ENTITIES
# =============================================================================

class Account(BaseModel):
    """
    A money container (bank account, card, wallet...).

    INVARIANT: once reconciled, `balance` equals `starting_balance` plus the
    signed sum of every transaction whose `account_name` equals `name`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Stable unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, unique within the dataset (referenced by transactions)"
    )
    account_type: AccountType = Field(
        default=AccountType.BANK,
        description="Account category tag"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Running balance (signed)"
    )
    starting_balance: Decimal = Field(
        default=Decimal("0"),
        description="Opening balance kept as a base term by recalculation"
    )
    balance_state: BalanceState = Field(
        default=BalanceState.RECONCILED,
        description="Whether the balance is backed by transactions"
    )
    color: str = Field(
        default="blue",
        max_length=20,
        description="Display color tag"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the account was created"
    )


class Transaction(BaseModel):
    """
    A single income or expense posted to one account.

    `amount` is always a magnitude. The sign comes from `is_income`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Label shown in the transaction list"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Non-negative magnitude"
    )
    is_income: bool = Field(
        default=False,
        description="True = credit, False = debit"
    )
    account_name: str = Field(
        ...,
        description="Name of the account this transaction posts to"
    )
    category: str = Field(
        default="",
        max_length=100,
    )
    posted_at: datetime = Field(
        default_factory=datetime.now,
        description="Posting date/time"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @property
    def signed_amount(self) -> Decimal:
        """+amount for income, -amount for expenses."""
        return self.amount if self.is_income else -self.amount


class Subscription(BaseModel):
    """
    A recurring expense (streaming service, gym, insurance...).

    CRITICAL: `interval_days` must be >= 1 for CUSTOM subscriptions.
    This is rejected here, at the input boundary, rather than coerced
    deep inside the date arithmetic.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Charged amount, always treated as an expense"
    )
    frequency: SubscriptionFrequency = Field(
        default=SubscriptionFrequency.MONTHLY,
    )
    interval_days: int = Field(
        default=30,
        description="Days between charges (only used for CUSTOM)"
    )
    next_charge_date: datetime = Field(
        default_factory=datetime.now,
        description="Next due date"
    )
    account_name: str = Field(
        ...,
        description="Name of the account charges are posted to"
    )
    category: str = Field(
        default="",
        max_length=100,
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    is_active: bool = Field(
        default=True,
        description="Inactive subscriptions are kept but excluded from totals"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode='after')
    def validate_interval(self) -> 'Subscription':
        """Custom cycles need a positive interval."""
        if self.frequency == SubscriptionFrequency.CUSTOM and self.interval_days < 1:
            raise ValueError(
                f"Custom interval must be at least 1 day (got {self.interval_days})"
            )
        return self


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class LedgerCondition(BaseModel):
    """A non-fatal condition raised while applying a ledger operation."""

    condition_type: ConditionType
    account_name: str
    message: str
    transaction_id: Optional[UUID] = None

    # Only set for RECALCULATION_DRIFT
    previous_balance: Optional[Decimal] = None
    new_balance: Optional[Decimal] = None


class LedgerResult(BaseModel):
    """
    Output of every Ledger Engine operation.

    `accounts` is a fresh list of account copies. The input snapshot is
    never mutated; the caller persists what it gets back.
    """

    accounts: list[Account]
    conditions: list[LedgerCondition] = Field(default_factory=list)

    @property
    def has_conditions(self) -> bool:
        return bool(self.conditions)

    @property
    def missing_accounts(self) -> list[str]:
        """Account names that could not be resolved."""
        return [
            c.account_name for c in self.conditions
            if c.condition_type == ConditionType.ACCOUNT_NOT_FOUND
        ]

    @property
    def drifted_accounts(self) -> list[str]:
        return [
            c.account_name for c in self.conditions
            if c.condition_type == ConditionType.RECALCULATION_DRIFT
        ]

    def account(self, name: str) -> Optional[Account]:
        """Look up an account in the result by name."""
        for account in self.accounts:
            if account.name == name:
                return account
        return None


class ChargeResult(BaseModel):
    """
    Output of `SubscriptionScheduler.charge_now`.

    `transaction` is the synthesized expense, already included in
    `transactions`. `subscription` carries the advanced next charge date.
    """

    accounts: list[Account]
    transactions: list[Transaction]
    subscription: Subscription
    transaction: Transaction
    conditions: list[LedgerCondition] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_account')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a transaction or subscription draft.

    Errors block the save. Warnings are shown but don't block.
    """

    entity_type: str = Field(
        ...,
        pattern="^(transaction|subscription|account)$",
    )
    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
