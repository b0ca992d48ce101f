"""
Audit Logger

DESIGN DECISION: Every write to the ledger is logged.
This provides:
1. Traceability (who changed which entry, and to what)
2. Debugging capability when a balance looks wrong
3. A history members can look back on

The audit logger:
- Is async so it fits the storage write path
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledgerbook.models.audit import AuditEvent, AuditEventBuilder
from ledgerbook.models.transaction import Transaction
from ledgerbook.services.storage import AuditStorageInterface


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
    2. Audit storage, when one is configured
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
        self._logger = structlog.get_logger("ledgerbook.audit")

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

    async def log_transaction_added(
        self,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(
            transaction=transaction,
            correlation_id=correlation_id,
        ))

    async def log_transaction_edited(
        self,
        before: Transaction,
        after: Transaction,
        actor: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_edited(
            before=before,
            after=after,
            actor=actor,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        actor: str,
        existed: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            actor=actor,
            existed=existed,
            correlation_id=correlation_id,
        ))

    async def log_settled_up(
        self,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settled_up(
            transaction=transaction,
            correlation_id=correlation_id,
        ))

    async def log_settle_up_skipped(
        self,
        viewpoint: str,
        other: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settle_up_skipped(
            viewpoint=viewpoint,
            other=other,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        actor: str,
        operation: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log rejected user input."""
        await self.log(AuditEventBuilder.validation_failed(
            actor=actor,
            operation=operation,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
        entity_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed storage write."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
            entity_id=entity_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a settle-up).
    Pass it through all subsequent operations.
    """
    return uuid4()
