"""
Data Models Package

This package contains all Pydantic models used in Ledgerbook.
All data flowing through the system must conform to these schemas.
"""

from ledgerbook.models.transaction import (
    NOTE_MAX_LENGTH,
    Transaction,
    TransactionEdit,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)
from ledgerbook.models.views import (
    AggregateTotals,
    BalanceStatus,
    DashboardView,
    HistoryEntry,
    MemberBalance,
    MemberDetailView,
)
from ledgerbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "NOTE_MAX_LENGTH",
    "Transaction",
    "TransactionEdit",
    "TransactionKind",
    "ValidationIssue",
    "ValidationResult",
    # Derived views
    "AggregateTotals",
    "BalanceStatus",
    "DashboardView",
    "HistoryEntry",
    "MemberBalance",
    "MemberDetailView",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
