"""
Audit Models for Ledgerbook

Every write to the ledger is logged for audit purposes.
This provides:
1. A record of who added, changed or removed which entry
2. Debugging information when a balance looks wrong
3. Ability to reconstruct how a balance got where it is

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ledgerbook.models.transaction import Transaction, utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger writes
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_EDITED = "transaction_edited"
    TRANSACTION_DELETED = "transaction_deleted"
    SETTLED_UP = "settled_up"
    SETTLE_UP_SKIPPED = "settle_up_skipped"

    # Rejected input
    VALIDATION_FAILED = "validation_failed"

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
    Every ledger write creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
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

    # Who did it
    actor: Optional[str] = Field(
        default=None,
        description="Member whose action triggered the event"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., validate + write)"
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
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor": self.actor,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _transaction_details(transaction: Transaction) -> dict[str, Any]:
    return {
        "from_member": transaction.from_member,
        "to_member": transaction.to_member,
        "kind": transaction.kind.value,
        "amount": str(transaction.amount),
        "occurred_on": transaction.occurred_on.isoformat() if transaction.occurred_on else None,
    }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx, correlation_id)
        event = AuditEventBuilder.settled_up(tx, correlation_id)
    """

    @staticmethod
    def transaction_added(
        transaction: Transaction,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            actor=transaction.from_member,
            entity_type="transaction",
            entity_id=transaction.id,
            correlation_id=correlation_id,
            description=(
                f"{transaction.from_member} recorded {transaction.kind.value} "
                f"of {transaction.amount} with {transaction.to_member}"
            ),
            details=_transaction_details(transaction),
        )

    @staticmethod
    def transaction_edited(
        before: Transaction,
        after: Transaction,
        actor: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_EDITED,
            actor=actor,
            entity_type="transaction",
            entity_id=after.id,
            correlation_id=correlation_id,
            description=f"Transaction edited: {before.amount} -> {after.amount}",
            details={
                "before": _transaction_details(before) | {"note": before.note},
                "after": _transaction_details(after) | {"note": after.note},
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        actor: str,
        existed: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            severity=AuditSeverity.INFO if existed else AuditSeverity.WARNING,
            actor=actor,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=(
                "Transaction deleted" if existed
                else "Delete requested for a transaction that no longer exists"
            ),
            details={"existed": existed},
        )

    @staticmethod
    def settled_up(
        transaction: Transaction,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLED_UP,
            actor=transaction.from_member,
            entity_type="transaction",
            entity_id=transaction.id,
            correlation_id=correlation_id,
            description=(
                f"Settled up {transaction.amount} between "
                f"{transaction.from_member} and {transaction.to_member}"
            ),
            details=_transaction_details(transaction),
        )

    @staticmethod
    def settle_up_skipped(
        viewpoint: str,
        other: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLE_UP_SKIPPED,
            actor=viewpoint,
            correlation_id=correlation_id,
            description=f"Nothing to settle between {viewpoint} and {other}",
            details={"other": other, "balance": "0"},
        )

    @staticmethod
    def validation_failed(
        actor: str,
        operation: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: UUID,
        entity_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="transaction" if entity_id else None,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
