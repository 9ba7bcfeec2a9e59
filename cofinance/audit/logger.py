"""
Audit Logger

DESIGN DECISION: Every balance-affecting action is logged.
This provides:
1. Complete traceability of how a balance got to its value
2. Visibility for AccountNotFound conditions (a dangling account
   reference must never disappear into a print statement)
3. Drift reports whenever a recalculation corrects a balance

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from cofinance.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from cofinance.models.ledger import ConditionType, LedgerCondition
from cofinance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if one is configured (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_conditions(
        self,
        conditions: list[LedgerCondition],
        correlation_id: UUID,
    ) -> None:
        """Turn non-fatal ledger conditions into warning-level audit events."""
        for condition in conditions:
            if condition.condition_type == ConditionType.ACCOUNT_NOT_FOUND:
                event = AuditEventBuilder.account_not_found(
                    transaction_id=condition.transaction_id,
                    account_name=condition.account_name,
                    correlation_id=correlation_id,
                )
            else:
                event = AuditEventBuilder.recalculation_drift(
                    account_name=condition.account_name,
                    previous_balance=condition.previous_balance,
                    new_balance=condition.new_balance,
                    correlation_id=correlation_id,
                )
            await self.log(event)

    async def log_account_created(
        self,
        account_id: UUID,
        name: str,
        balance: Decimal,
        correlation_id: UUID,
    ) -> None:
        """Log account creation."""
        await self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            balance=balance,
            correlation_id=correlation_id,
        ))

    async def log_account_updated(
        self,
        account_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.account_updated(
            account_id=account_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_account_renamed(
        self,
        account_id: UUID,
        old_name: str,
        new_name: str,
        transactions_moved: int,
        subscriptions_moved: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.account_renamed(
            account_id=account_id,
            old_name=old_name,
            new_name=new_name,
            transactions_moved=transactions_moved,
            subscriptions_moved=subscriptions_moved,
            correlation_id=correlation_id,
        ))

    async def log_account_deleted(
        self,
        account_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.account_deleted(
            account_id=account_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_balance_overridden(
        self,
        account_id: UUID,
        name: str,
        old_balance: Decimal,
        new_balance: Decimal,
        correlation_id: UUID,
    ) -> None:
        """Log a manual balance edit (the account is no longer reconciled)."""
        await self.log(AuditEventBuilder.balance_overridden(
            account_id=account_id,
            name=name,
            old_balance=old_balance,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_transaction_posted(
        self,
        transaction_id: UUID,
        account_name: str,
        signed_amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a transaction post."""
        await self.log(AuditEventBuilder.transaction_posted(
            transaction_id=transaction_id,
            account_name=account_name,
            signed_amount=signed_amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: UUID,
        old_account_name: str,
        new_account_name: str,
        old_signed_amount: str,
        new_signed_amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            old_account_name=old_account_name,
            new_account_name=new_account_name,
            old_signed_amount=old_signed_amount,
            new_signed_amount=new_signed_amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        account_name: str,
        signed_amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            account_name=account_name,
            signed_amount=signed_amount,
            correlation_id=correlation_id,
        ))

    async def log_balances_recalculated(
        self,
        account_count: int,
        transaction_count: int,
        drift_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.balances_recalculated(
            account_count=account_count,
            transaction_count=transaction_count,
            drift_count=drift_count,
            correlation_id=correlation_id,
        ))

    async def log_subscription_event(
        self,
        event_type: AuditEventType,
        subscription_id: UUID,
        name: str,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> None:
        """Log a subscription lifecycle change."""
        await self.log(AuditEventBuilder.subscription_event(
            event_type=event_type,
            subscription_id=subscription_id,
            name=name,
            correlation_id=correlation_id,
            details=details,
        ))

    async def log_subscription_charged(
        self,
        subscription_id: UUID,
        transaction_id: UUID,
        amount: str,
        next_charge_date: datetime,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_charged(
            subscription_id=subscription_id,
            transaction_id=transaction_id,
            amount=amount,
            next_charge_date=next_charge_date,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a persistence gateway failure."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., editing a transaction).
    Pass it through all subsequent operations.
    """
    return uuid4()
