"""
Core Data Models for Ledgerbook

These models define the strict schemas for ledger entries.
They are designed to:
1. Enforce the ledger invariants at construction time
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Stay immutable once built (edits produce new copies)

DESIGN DECISION: A transaction is ONE row with a direction (from -> to) and
a kind. There are no debit/credit postings - the sign of a row is derived
from who recorded it, relative to whoever is looking at it.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


NOTE_MAX_LENGTH = 200


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize aware datetimes to naive UTC so they compare with naive ones."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    What the recording member did.

    Always read from the point of view of `from_member` (the actor):
    "I borrowed", "I lent", "I paid back".
    """
    BORROW = "borrow"
    LEND = "lend"
    REPAYMENT = "repayment"


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    CRITICAL: id, from_member, to_member and kind never change after
    creation. Changing direction or kind means delete + re-create.
    Only amount, note and occurred_on may be edited.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique, stable transaction ID"
    )
    from_member: str = Field(
        ...,
        min_length=1,
        description="Member who recorded the transaction (the actor)"
    )
    to_member: str = Field(
        ...,
        min_length=1,
        description="Counterparty member"
    )
    kind: TransactionKind
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount, exact to currency precision"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=NOTE_MAX_LENGTH,
        description="Free text, no effect on balances"
    )
    occurred_on: Optional[date] = Field(
        default=None,
        description="When the money actually changed hands"
    )
    recorded_at: datetime = Field(
        default_factory=utcnow,
        description="When the entry was created"
    )

    @field_validator('note')
    @classmethod
    def blank_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode='after')
    def validate_members(self) -> 'Transaction':
        """A member cannot owe themselves."""
        if self.from_member == self.to_member:
            raise ValueError("from_member and to_member must be different members")
        return self

    @property
    def effective_at(self) -> datetime:
        """occurred_on (at midnight) when set, otherwise recorded_at."""
        if self.occurred_on is not None:
            return datetime.combine(self.occurred_on, time.min)
        return as_naive_utc(self.recorded_at)

    def involves(self, member_a: str, member_b: str) -> bool:
        """True if this entry is between exactly these two members, either way."""
        return {self.from_member, self.to_member} == {member_a, member_b}

    def with_edit(self, edit: 'TransactionEdit') -> 'Transaction':
        """Return a copy with the editable fields replaced."""
        return Transaction(
            id=self.id,
            from_member=self.from_member,
            to_member=self.to_member,
            kind=self.kind,
            amount=edit.amount,
            note=edit.note,
            occurred_on=edit.occurred_on,
            recorded_at=self.recorded_at,
        )


class TransactionEdit(BaseModel):
    """
    The editable subset of a transaction.

    Replaces all three fields at once - a None note or date clears it.
    LedgerFlow.edit_transaction fills a missing date from the stored
    transaction before building one, so only the note clears there.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2
    )
    note: Optional[str] = Field(
        default=None,
        max_length=NOTE_MAX_LENGTH
    )
    occurred_on: Optional[date] = None

    @field_validator('note')
    @classmethod
    def blank_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'too_large')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating user input for a new or edited transaction.

    When valid, `amount` and `note` hold the cleaned values that should be
    written. When invalid they may be None.
    """

    validated_at: datetime = Field(
        default_factory=utcnow
    )
    is_valid: bool
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    amount: Optional[Decimal] = None
    note: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[ValidationIssue]:
        """The issue a form should show first, if any."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue
        return None
