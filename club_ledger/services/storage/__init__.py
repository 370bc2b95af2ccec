"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the remote backend; a local JSON file and an in-memory
store cover offline use and tests.
"""

from club_ledger.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
    TransactionStorageInterface,
)
from club_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
)
from club_ledger.services.storage.local import (
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    JsonFileTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StoreUnavailableError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
    # Local implementations
    "InMemoryAuditStorage",
    "InMemoryTransactionStorage",
    "JsonFileTransactionStorage",
]
