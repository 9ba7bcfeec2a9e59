"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. Users can view their accounts and transactions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (LedgerFlow serializes ledger operations instead)
- Limited query capabilities (we filter in Python)

One worksheet per entity. Money is stored as Decimal strings so balances
round-trip exactly.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from cofinance.config import get_settings
from cofinance.models.audit import AuditEvent, AuditEventType, AuditSeverity
from cofinance.models.ledger import (
    Account,
    AccountType,
    BalanceState,
    Subscription,
    Transaction,
)
from cofinance.scheduling.frequency import coerce_interval_days, frequency_from_label
from cofinance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


T = TypeVar("T")

ACCOUNT_COLUMNS = [
    "id",
    "name",
    "account_type",
    "balance",
    "starting_balance",
    "balance_state",
    "color",
    "created_at",
]

TRANSACTION_COLUMNS = [
    "id",
    "name",
    "amount",
    "is_income",
    "account_name",
    "category",
    "posted_at",
    "notes",
]

SUBSCRIPTION_COLUMNS = [
    "id",
    "name",
    "amount",
    "frequency",
    "interval_days",
    "next_charge_date",
    "account_name",
    "category",
    "notes",
    "is_active",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and empty cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS, rows=100)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_subscriptions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.subscriptions_sheet_name, SUBSCRIPTION_COLUMNS, rows=200)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self._get_or_create(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of the ledger gateway.

    Each entity is one row; column 0 is always the entity id, which is
    what upserts and deletes match on.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _account_to_row(account: Account) -> list:
        return [
            str(account.id),
            account.name,
            account.account_type.value,
            str(account.balance),
            str(account.starting_balance),
            account.balance_state.value,
            account.color,
            account.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_account(row: list) -> Account:
        return Account(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            account_type=AccountType(_cell(row, 2, AccountType.OTHER.value)),
            balance=Decimal(_cell(row, 3, "0")),
            starting_balance=Decimal(_cell(row, 4, "0")),
            balance_state=BalanceState(_cell(row, 5, BalanceState.RECONCILED.value)),
            color=_cell(row, 6, "blue"),
            created_at=datetime.fromisoformat(_cell(row, 7)),
        )

    @staticmethod
    def _transaction_to_row(transaction: Transaction) -> list:
        return [
            str(transaction.id),
            transaction.name,
            str(transaction.amount),
            str(transaction.is_income),
            transaction.account_name,
            transaction.category,
            transaction.posted_at.isoformat(),
            transaction.notes or "",
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        return Transaction(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            amount=Decimal(_cell(row, 2, "0")),
            is_income=_cell(row, 3).lower() == "true",
            account_name=_cell(row, 4),
            category=_cell(row, 5),
            posted_at=datetime.fromisoformat(_cell(row, 6)),
            notes=_cell(row, 7) or None,
        )

    @staticmethod
    def _subscription_to_row(subscription: Subscription) -> list:
        return [
            str(subscription.id),
            subscription.name,
            str(subscription.amount),
            subscription.frequency.value,
            str(subscription.interval_days),
            subscription.next_charge_date.isoformat(),
            subscription.account_name,
            subscription.category,
            subscription.notes or "",
            str(subscription.is_active),
            subscription.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_subscription(row: list) -> Subscription:
        # Rows written by older versions may carry Spanish frequency labels
        # and zero intervals; both decode the way the old app read them.
        return Subscription(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            amount=Decimal(_cell(row, 2, "0")),
            frequency=frequency_from_label(_cell(row, 3)),
            interval_days=coerce_interval_days(int(_cell(row, 4, "30"))),
            next_charge_date=datetime.fromisoformat(_cell(row, 5)),
            account_name=_cell(row, 6),
            category=_cell(row, 7),
            notes=_cell(row, 8) or None,
            is_active=_cell(row, 9, "True").lower() == "true",
            created_at=datetime.fromisoformat(_cell(row, 10)),
        )

    # -------------------------------------------------------------------------
    # Generic row operations
    # -------------------------------------------------------------------------

    @staticmethod
    def _read_all(sheet, parse: Callable[[list], T]) -> list[T]:
        items = []
        for row in sheet.get_all_values()[1:]:  # Skip header
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                items.append(parse(row))
            except Exception as e:
                logger.warning(
                    "malformed_row_skipped",
                    sheet=sheet.title,
                    row_id=row[0],
                    error=str(e),
                )
        return items

    @staticmethod
    def _upsert(sheet, entity_id: UUID, row: list) -> None:
        all_rows = sheet.get_all_values()
        for idx, existing in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if existing and existing[0] == str(entity_id):
                sheet.update(values=[row], range_name=f"A{idx}")
                return
        sheet.append_row(row, value_input_option="RAW")

    @staticmethod
    def _delete(sheet, entity_id: UUID) -> bool:
        all_rows = sheet.get_all_values()
        for idx, existing in enumerate(all_rows[1:], start=2):
            if existing and existing[0] == str(entity_id):
                sheet.delete_rows(idx)
                return True
        return False

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def list_accounts(self) -> list[Account]:
        try:
            accounts = self._read_all(self._client.get_accounts_sheet(), self._row_to_account)
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}")
        accounts.sort(key=lambda a: a.created_at)
        return accounts

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_account(self, account: Account) -> bool:
        try:
            self._upsert(self._client.get_accounts_sheet(), account.id, self._account_to_row(account))
            return True
        except Exception as e:
            raise StorageError(f"Failed to save account: {e}")

    async def delete_account(self, account_id: UUID) -> bool:
        try:
            return self._delete(self._client.get_accounts_sheet(), account_id)
        except Exception as e:
            raise StorageError(f"Failed to delete account: {e}")

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        try:
            transactions = self._read_all(
                self._client.get_transactions_sheet(), self._row_to_transaction
            )
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")
        # Newest first
        transactions.sort(key=lambda t: t.posted_at, reverse=True)
        return transactions

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_transaction(self, transaction: Transaction) -> bool:
        try:
            self._upsert(
                self._client.get_transactions_sheet(),
                transaction.id,
                self._transaction_to_row(transaction),
            )
            return True
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        try:
            return self._delete(self._client.get_transactions_sheet(), transaction_id)
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    async def list_subscriptions(self) -> list[Subscription]:
        try:
            subscriptions = self._read_all(
                self._client.get_subscriptions_sheet(), self._row_to_subscription
            )
        except Exception as e:
            raise StorageError(f"Failed to list subscriptions: {e}")
        subscriptions.sort(key=lambda s: s.next_charge_date)
        return subscriptions

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_subscription(self, subscription: Subscription) -> bool:
        try:
            self._upsert(
                self._client.get_subscriptions_sheet(),
                subscription.id,
                self._subscription_to_row(subscription),
            )
            return True
        except Exception as e:
            raise StorageError(f"Failed to save subscription: {e}")

    async def delete_subscription(self, subscription_id: UUID) -> bool:
        try:
            return self._delete(self._client.get_subscriptions_sheet(), subscription_id)
        except Exception as e:
            raise StorageError(f"Failed to delete subscription: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _row_to_event(row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=UUID(_cell(row, 5)) if _cell(row, 5) else None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            is_user_action=_cell(row, 10).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    def _events_matching(self, predicate: Callable[[list], bool]) -> list[AuditEvent]:
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0] and predicate(row):
                try:
                    events.append(self._row_to_event(row))
                except Exception:
                    continue
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = self._events_matching(lambda row: _cell(row, 6) == str(correlation_id))
        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = self._events_matching(
            lambda row: _cell(row, 4) == entity_type and _cell(row, 5) == str(entity_id)
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._events_matching(lambda row: True)
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
