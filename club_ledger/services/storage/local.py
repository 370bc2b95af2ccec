"""
Local Storage Implementations

Two stores for when Google Sheets is not configured:

- InMemoryTransactionStorage: process-local, used by tests and offline runs
- JsonFileTransactionStorage: the same, persisted to a JSON file after every
  write (the "demo mode" fallback)

Ids look like `demo_<epoch ms>_<random>` so locally created records are easy
to tell apart from Sheets rows.
"""

import json
import time
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from pydantic import ValidationError

from club_ledger.models.audit import AuditEvent
from club_ledger.models.transaction import (
    Transaction,
    TransactionDraft,
    TransactionStatus,
)
from club_ledger.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StoreUnavailableError,
    TransactionStorageInterface,
)


def new_local_id() -> str:
    return f"demo_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


class InMemoryTransactionStorage(TransactionStorageInterface):
    """
    Transactions kept in a dict, keyed by id, in insertion order.

    Writes build the next version of the dict and only swap it in once
    `_persist()` accepted it, so a failed write leaves the store as it was.
    """

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._transactions: dict[str, Transaction] = {
            t.id: t for t in (transactions or [])
        }

    def _persist(self, transactions: dict[str, Transaction]) -> None:
        """Hook for subclasses that write through to disk."""

    def _commit(self, transactions: dict[str, Transaction]) -> None:
        self._persist(transactions)
        self._transactions = transactions

    async def append(self, draft: TransactionDraft) -> str:
        transaction_id = new_local_id()
        updated = dict(self._transactions)
        updated[transaction_id] = Transaction(
            id=transaction_id,
            **draft.model_dump(),
        )
        self._commit(updated)
        return transaction_id

    async def list_by_owner(self, user_id: str) -> list[Transaction]:
        owned = [t for t in self._transactions.values() if t.user_id == user_id]
        owned.sort(key=lambda t: t.date, reverse=True)
        return owned

    async def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def update_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
    ) -> None:
        current = self._transactions.get(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        updated = dict(self._transactions)
        updated[transaction_id] = current.model_copy(update={"status": status})
        self._commit(updated)

    async def remove(self, transaction_id: str) -> bool:
        if transaction_id not in self._transactions:
            return False
        updated = dict(self._transactions)
        del updated[transaction_id]
        self._commit(updated)
        return True


class JsonFileTransactionStorage(InMemoryTransactionStorage):
    """
    In-memory store backed by a JSON file.

    The whole list is loaded once and rewritten on every change; fine for
    the few thousand rows a household ledger holds.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        super().__init__(self._load())

    def _load(self) -> list[Transaction]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "[]")
            return [Transaction.model_validate(item) for item in raw]
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StoreUnavailableError(f"Failed to read local store {self._path}: {e}")

    def _persist(self, transactions: dict[str, Transaction]) -> None:
        payload = [t.model_dump(mode="json") for t in transactions.values()]
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(payload, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise StoreUnavailableError(f"Failed to write local store {self._path}: {e}")


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        """Every event, in the order it was appended."""
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
