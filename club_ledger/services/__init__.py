"""Services package."""

from club_ledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    JsonFileTransactionStorage,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
    "InMemoryAuditStorage",
    "InMemoryTransactionStorage",
    "JsonFileTransactionStorage",
    "NotFoundError",
    "StorageError",
    "StoreUnavailableError",
    "TransactionStorageInterface",
]
