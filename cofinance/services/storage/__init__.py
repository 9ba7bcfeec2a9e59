"""
Storage Services Package

Provides abstract interfaces and concrete implementations of the
persistence gateway. In-memory storage backs tests and local runs;
Google Sheets is the hosted backend. Business logic only ever sees the
interfaces.
"""

from cofinance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from cofinance.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)
from cofinance.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
]
