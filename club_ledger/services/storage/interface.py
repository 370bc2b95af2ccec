"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Use Google Sheets as the remote store
2. Fall back to a local JSON file when no remote store is configured
3. Use in-memory storage for testing
4. Keep the aggregation engine decoupled from storage implementation

The interface is intentionally narrow: the engine needs append, list,
status update and delete. Nothing else.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from club_ledger.models.audit import AuditEvent
from club_ledger.models.transaction import (
    Transaction,
    TransactionDraft,
    TransactionStatus,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation (Google Sheets, local file, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def append(self, draft: TransactionDraft) -> str:
        """
        Store a new transaction.

        Does not validate: classification and validation run before this.

        Returns:
            The id assigned by the store

        Raises:
            StoreUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def list_by_owner(self, user_id: str) -> list[Transaction]:
        """
        All transactions of one owner, newest date first.

        Returns:
            Possibly empty list
        """
        pass

    @abstractmethod
    async def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by its id.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
    ) -> None:
        """
        Overwrite the status of a stored transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StoreUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def remove(self, transaction_id: str) -> bool:
        """
        Delete a transaction by id. Unconditional.

        Returns:
            True if something was deleted
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events of one user action, in chronological order.
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StoreUnavailableError(StorageError):
    """Could not reach the storage backend."""
    pass
