"""
Data Models Package

This package contains all Pydantic models used by the CoFinance ledger.
All data flowing through the engine, the scheduler and the gateways
must conform to these schemas.
"""

from cofinance.models.ledger import (
    Account,
    AccountStatus,
    AccountType,
    BalanceState,
    ChargeResult,
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

__all__ = [
    # Ledger models
    "Account",
    "AccountStatus",
    "AccountType",
    "BalanceState",
    "ChargeResult",
    "ConditionType",
    "LedgerCondition",
    "LedgerResult",
    "Subscription",
    "SubscriptionFrequency",
    "Transaction",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
