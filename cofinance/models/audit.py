"""
Audit Models for the CoFinance Ledger

Every significant ledger action is logged for audit purposes.
This provides:
1. Complete traceability of balance changes
2. Debugging information when balances drift
3. A visible trail for AccountNotFound conditions (never silently swallowed)
4. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger and scheduler operation has its own event type.
    """
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_RENAMED = "account_renamed"
    ACCOUNT_DELETED = "account_deleted"
    BALANCE_OVERRIDDEN = "balance_overridden"

    # Transactions
    TRANSACTION_POSTED = "transaction_posted"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    ACCOUNT_NOT_FOUND = "account_not_found"

    # Reconciliation
    BALANCES_RECALCULATED = "balances_recalculated"
    RECALCULATION_DRIFT = "recalculation_drift"

    # Subscriptions
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_CHARGED = "subscription_charged"
    SUBSCRIPTION_DEACTIVATED = "subscription_deactivated"
    SUBSCRIPTION_REACTIVATED = "subscription_reactivated"
    SUBSCRIPTION_DELETED = "subscription_deleted"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'subscription')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a charge and its posting)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_posted(tx_id, "Main", "-120.50", correlation_id)
        event = AuditEventBuilder.account_not_found(tx_id, "Ghost", correlation_id)
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        balance: Decimal,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account created: {name}",
            details={
                "name": name,
                "initial_balance": str(balance),
            },
            is_user_action=True,
        )

    @staticmethod
    def account_updated(
        account_id: UUID,
        name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account updated: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def account_renamed(
        account_id: UUID,
        old_name: str,
        new_name: str,
        transactions_moved: int,
        subscriptions_moved: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_RENAMED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "transactions_moved": transactions_moved,
                "subscriptions_moved": subscriptions_moved,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(
        account_id: UUID,
        name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account deleted: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def balance_overridden(
        account_id: UUID,
        name: str,
        old_balance: Decimal,
        new_balance: Decimal,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_OVERRIDDEN,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Balance of {name} set manually: {old_balance} -> {new_balance}",
            details={
                "old_balance": str(old_balance),
                "new_balance": str(new_balance),
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_posted(
        transaction_id: UUID,
        account_name: str,
        signed_amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_POSTED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction posted: {signed_amount} on {account_name}",
            details={
                "account_name": account_name,
                "signed_amount": signed_amount,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: UUID,
        old_account_name: str,
        new_account_name: str,
        old_signed_amount: str,
        new_signed_amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=(
                f"Transaction updated: {old_signed_amount} on {old_account_name} "
                f"-> {new_signed_amount} on {new_account_name}"
            ),
            details={
                "old_account_name": old_account_name,
                "new_account_name": new_account_name,
                "old_signed_amount": old_signed_amount,
                "new_signed_amount": new_signed_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        account_name: str,
        signed_amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction deleted and reverted: {signed_amount} on {account_name}",
            details={
                "account_name": account_name,
                "signed_amount": signed_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_not_found(
        transaction_id: Optional[UUID],
        account_name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Account not found: {account_name} (balance left unchanged)",
            details={"account_name": account_name},
        )

    @staticmethod
    def balances_recalculated(
        account_count: int,
        transaction_count: int,
        drift_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_RECALCULATED,
            description=(
                f"Recalculated {account_count} accounts from "
                f"{transaction_count} transactions ({drift_count} drifted)"
            ),
            details={
                "account_count": account_count,
                "transaction_count": transaction_count,
                "drift_count": drift_count,
            },
            correlation_id=correlation_id,
            is_user_action=True,
        )

    @staticmethod
    def recalculation_drift(
        account_name: str,
        previous_balance: Decimal,
        new_balance: Decimal,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECALCULATION_DRIFT,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            correlation_id=correlation_id,
            description=f"Balance drift on {account_name}: {previous_balance} -> {new_balance}",
            details={
                "account_name": account_name,
                "previous_balance": str(previous_balance),
                "new_balance": str(new_balance),
            },
        )

    @staticmethod
    def subscription_event(
        event_type: AuditEventType,
        subscription_id: UUID,
        name: str,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        """Create/update/deactivate/reactivate/delete share one shape."""
        action = event_type.value.replace("subscription_", "")
        return AuditEvent(
            event_type=event_type,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription {action}: {name}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def subscription_charged(
        subscription_id: UUID,
        transaction_id: UUID,
        amount: str,
        next_charge_date: datetime,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CHARGED,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription charged: {amount}, next charge {next_charge_date.date().isoformat()}",
            details={
                "transaction_id": str(transaction_id),
                "amount": amount,
                "next_charge_date": next_charge_date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

