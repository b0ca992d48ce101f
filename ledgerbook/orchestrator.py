"""
Main Orchestrator for Ledgerbook

This module ties together all the components and defines the flows a
front end calls into:
1. Views (dashboard, member detail) - load snapshot -> run engine
2. Writes (add, edit, delete, settle up) - validate -> store -> audit

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches storage without passing validation
- No balance is ever kept between calls; every view re-reads the log
- Every write is audited

The engine is pure and knows nothing about storage. This is the "glue"
that feeds it a fresh snapshot every time.
"""

import logging
from datetime import date
from typing import Any, Optional
from uuid import UUID

from ledgerbook.audit import AuditLogger, create_correlation_id
from ledgerbook.config import LedgerSettings, get_settings
from ledgerbook.engine import (
    aggregate_totals,
    balance_status,
    history_for_pair,
    member_balances,
    pairwise_balance,
    settle_up,
)
from ledgerbook.models.transaction import (
    Transaction,
    TransactionEdit,
    TransactionKind,
    ValidationIssue,
)
from ledgerbook.models.views import DashboardView, MemberDetailView
from ledgerbook.services.storage import (
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from ledgerbook.validation import TransactionValidator


class LedgerError(Exception):
    """Base exception for ledger flow errors."""
    pass


class TransactionValidationError(LedgerError):
    """User input failed validation. Carries field-level issues."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        message = issues[0].message if issues else "Invalid transaction"
        super().__init__(message)

    @property
    def fields(self) -> dict[str, str]:
        """First message per field, for putting next to form inputs."""
        result: dict[str, str] = {}
        for issue in self.issues:
            result.setdefault(issue.field, issue.message)
        return result


class TransactionNotFound(LedgerError):
    """Edit requested for a transaction that is not in storage."""
    pass


class LedgerFlow:
    """
    Orchestrates everything a front end does with the ledger.

    Flow for every write:
    1. Validate input (field-level issues, never auto-corrected)
    2. Build the new/edited transaction
    3. Write through the storage interface
    4. Audit
    The next view call re-reads storage, so results reflect the write.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        roster: Optional[tuple[str, ...]] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._storage = storage
        self._roster = tuple(roster) if roster is not None else self._settings.roster
        self._validator = validator or TransactionValidator(self._settings)
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def roster(self) -> tuple[str, ...]:
        return self._roster

    async def load_snapshot(self) -> list[Transaction]:
        """Full transaction log as it is right now."""
        return await self._storage.list_transactions()

    # =========================================================================
    # VIEWS
    # =========================================================================

    async def dashboard(self, viewpoint: str) -> DashboardView:
        """Totals and ranked member list for the viewpoint member."""
        snapshot = await self.load_snapshot()
        return DashboardView(
            viewpoint=viewpoint,
            totals=aggregate_totals(snapshot, viewpoint, self._roster),
            members=member_balances(self._roster, viewpoint, snapshot),
        )

    async def member_detail(self, viewpoint: str, other: str) -> MemberDetailView:
        """Balance and history between two members."""
        snapshot = await self.load_snapshot()
        balance = pairwise_balance(snapshot, viewpoint, other)
        return MemberDetailView(
            viewpoint=viewpoint,
            other=other,
            balance=balance,
            status=balance_status(balance),
            history=history_for_pair(snapshot, viewpoint, other),
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    async def _reject(
        self,
        actor: str,
        operation: str,
        issues: list[ValidationIssue],
        correlation_id: UUID,
    ) -> None:
        await self._audit_logger.log_validation_failed(
            actor=actor,
            operation=operation,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in issues
            ],
            correlation_id=correlation_id,
        )
        raise TransactionValidationError(issues)

    async def add_transaction(
        self,
        viewpoint: str,
        other: str,
        kind: TransactionKind,
        amount: Any,
        note: Optional[str] = None,
        occurred_on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record a new transaction with `viewpoint` as the actor.

        Raises:
            TransactionValidationError: If the input fails validation
            StorageError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        issues = self._validator.validate_participants(viewpoint, other, self._roster)
        issues.extend(self._validator.validate_kind(kind))
        result = self._validator.validate_new_transaction(amount, note)
        issues.extend(result.issues)
        if issues:
            await self._reject(viewpoint, "add", issues, correlation_id)

        transaction = Transaction(
            from_member=viewpoint,
            to_member=other,
            kind=TransactionKind(kind),
            amount=result.amount,
            note=result.note,
            occurred_on=occurred_on or date.today(),
        )
        await self._write("add", self._storage.add_transaction, transaction, correlation_id)
        await self._audit_logger.log_transaction_added(transaction, correlation_id)
        return transaction

    async def edit_transaction(
        self,
        viewpoint: str,
        transaction_id: UUID,
        amount: Any,
        note: Optional[str] = None,
        occurred_on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Replace amount, note and date on an existing transaction.

        Direction and kind cannot be edited; delete and re-create instead.
        The note is replaced as given, so no note clears it. Passing no
        date keeps the current one.

        Raises:
            TransactionValidationError: If the input fails validation
            TransactionNotFound: If no such transaction exists
            StorageError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_edited_transaction(amount, note)
        if not result.is_valid:
            await self._reject(viewpoint, "edit", result.issues, correlation_id)

        existing = await self._storage.get_transaction(transaction_id)
        if existing is None:
            raise TransactionNotFound(f"Transaction not found: {transaction_id}")

        edited = existing.with_edit(TransactionEdit(
            amount=result.amount,
            note=result.note,
            occurred_on=occurred_on or existing.occurred_on,
        ))
        await self._write("edit", self._storage.update_transaction, edited, correlation_id)
        await self._audit_logger.log_transaction_edited(
            before=existing,
            after=edited,
            actor=viewpoint,
            correlation_id=correlation_id,
        )
        return edited

    async def delete_transaction(
        self,
        viewpoint: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove a transaction. Deleting something already gone is not an error.

        Returns:
            True if a transaction was removed
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            existed = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="delete",
                error_message=str(e),
                correlation_id=correlation_id,
                entity_id=transaction_id,
            )
            raise

        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            actor=viewpoint,
            existed=existed,
            correlation_id=correlation_id,
        )
        return existed

    async def settle_up(
        self,
        viewpoint: str,
        other: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Transaction]:
        """
        Zero out the balance between two members with one repayment.

        Returns:
            The stored repayment, or None if they were already settled
        """
        correlation_id = correlation_id or create_correlation_id()

        issues = self._validator.validate_participants(viewpoint, other, self._roster)
        if issues:
            await self._reject(viewpoint, "settle_up", issues, correlation_id)

        snapshot = await self.load_snapshot()
        repayment = settle_up(
            snapshot,
            viewpoint,
            other,
            today=today or date.today(),
            note=self._settings.settlement_note,
        )
        if repayment is None:
            await self._audit_logger.log_settle_up_skipped(viewpoint, other, correlation_id)
            return None

        await self._write("settle_up", self._storage.add_transaction, repayment, correlation_id)
        await self._audit_logger.log_settled_up(repayment, correlation_id)
        return repayment

    async def _write(
        self,
        operation: str,
        write,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> None:
        try:
            await write(transaction)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(e),
                correlation_id=correlation_id,
                entity_id=transaction.id,
            )
            if isinstance(e, NotFoundError):
                raise TransactionNotFound(str(e)) from e
            raise


def create_app_components(
    storage: Optional[TransactionStorageInterface] = None,
) -> tuple[LedgerFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        storage: Transaction storage to use.
                 Defaults to an in-memory store.

    Returns:
        (ledger_flow, audit_logger)
    """
    settings = get_settings()
    logging.getLogger("ledgerbook").setLevel(settings.app.log_level)

    audit_logger = AuditLogger(InMemoryAuditStorage())
    flow = LedgerFlow(
        storage=storage or InMemoryTransactionStorage(),
        audit_logger=audit_logger,
        settings=settings.ledger,
    )
    return flow, audit_logger
