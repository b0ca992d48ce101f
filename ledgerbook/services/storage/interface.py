"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the balance engine free of any persistence concerns
2. Use in-memory storage for testing
3. Plug in a hosted database later without touching business logic

The interface is intentionally simple - we're not building a full ORM.
Just the operations the ledger needs: read the whole log, append,
update by id, delete by id.

CONTRACT: each write completes (or fails) atomically, and a read issued
after a write returns has to reflect it. The ledger re-reads after every
write; nothing above this layer caches.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from ledgerbook.models.audit import AuditEvent
from ledgerbook.models.transaction import Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for the transaction log.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        Return the full transaction snapshot.

        Returns:
            All transactions, newest recorded first
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def add_transaction(self, transaction: Transaction) -> bool:
        """
        Append a transaction to the log.

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If a transaction with this id already exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace a stored transaction with the same id.

        Returns:
            True if updated successfully

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if something was deleted, False if it was already gone
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
        Get all events for a correlation ID (e.g., one settle-up).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
