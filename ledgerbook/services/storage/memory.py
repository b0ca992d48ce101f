"""
In-Memory Storage Implementation

Used by tests and by local runs with no backend configured.
Follows the abstract interface, so the ledger flow cannot tell the
difference between this and a hosted store.

Each write holds an asyncio.Lock for its whole read-modify-write, which
gives the atomic-write contract the interface promises.
"""

import asyncio
from typing import Iterable, Optional
from uuid import UUID

from ledgerbook.models.audit import AuditEvent
from ledgerbook.models.transaction import Transaction
from ledgerbook.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transaction log kept in a dict keyed by id, in insertion order."""

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self._rows: dict[UUID, Transaction] = {}
        self._lock = asyncio.Lock()
        for transaction in transactions or ():
            if transaction.id in self._rows:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            self._rows[transaction.id] = transaction

    async def list_transactions(self) -> list[Transaction]:
        """Snapshot copy, newest recorded first."""
        async with self._lock:
            rows = list(self._rows.values())
        rows.sort(key=lambda t: t.recorded_at, reverse=True)
        return rows

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        async with self._lock:
            return self._rows.get(transaction_id)

    async def add_transaction(self, transaction: Transaction) -> bool:
        async with self._lock:
            if transaction.id in self._rows:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            self._rows[transaction.id] = transaction
        return True

    async def update_transaction(self, transaction: Transaction) -> bool:
        async with self._lock:
            if transaction.id not in self._rows:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
            self._rows[transaction.id] = transaction
        return True

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        async with self._lock:
            return self._rows.pop(transaction_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

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

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
