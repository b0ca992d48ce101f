"""
Transaction Input Validation

DESIGN DECISION: Validation happens BEFORE anything reaches the engine or
storage. The engine assumes every transaction it sees is well formed.

Checks:
- Amount present, numeric, finite
- Amount in (0, max_amount]
- Amount no finer than currency precision
- Note within the length limit
- Kind is borrow, lend or repayment
- Participants on the roster and distinct

IMPORTANT: Validation NEVER silently fixes issues.
An amount of 12.345 is rejected, not rounded. A 250 character note is
rejected, not truncated. Every problem comes back as a field-level issue.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from ledgerbook.config import LedgerSettings, get_settings
from ledgerbook.models.transaction import (
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)


def _decimal_places(amount: Decimal) -> int:
    """Significant digits after the point, ignoring trailing zeros (12.500 -> 1)."""
    _, digits, exponent = amount.as_tuple()
    # Digit tuple only, never the decimal context
    significant = len(digits)
    while significant > 1 and digits[significant - 1] == 0:
        significant -= 1
        exponent += 1
    return max(0, -exponent)


class TransactionValidator:
    """
    Validates user input for new and edited transactions.

    Returns ValidationResult objects; it never raises for bad input.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Ledger rules to validate against.
                      If None, loaded from the environment.
        """
        self._settings = settings or get_settings().ledger

    def _parse_amount(
        self,
        raw: Any,
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """
        Turn raw form input into an exact Decimal.

        Returns: (amount_or_none, list_of_issues)
        """
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None, [ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                suggested_fix="Enter how much money changed hands",
            )]

        # bool is an int subclass; True is not an amount
        if isinstance(raw, bool):
            raw = str(raw)

        try:
            if isinstance(raw, float):
                # str() keeps the value the user typed instead of the binary expansion
                amount = Decimal(str(raw))
            else:
                amount = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            return None, [ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
                suggested_fix="Use digits only, e.g. 250 or 99.50",
            )]

        if not amount.is_finite():
            return None, [ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
            )]

        return amount, []

    def _check_amount(
        self,
        raw: Any,
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        amount, issues = self._parse_amount(raw)
        if amount is None:
            return None, issues

        if amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ))
            return None, issues

        max_amount = self._settings.max_amount
        if amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="too_large",
                message="Amount too large",
                suggested_fix=f"Amounts are limited to {max_amount:,}",
            ))
            return None, issues

        places = self._settings.amount_decimal_places
        if _decimal_places(amount) > places:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="too_precise",
                message=f"Amount can have at most {places} decimal places",
            ))
            return None, issues

        # Same value, canonical exponent (12.500 -> 12.50)
        return amount.quantize(Decimal(1).scaleb(-places)), issues

    def _check_note(
        self,
        raw: Optional[str],
    ) -> tuple[Optional[str], list[ValidationIssue]]:
        if raw is None:
            return None, []

        note = raw.strip()
        limit = self._settings.note_max_length
        if len(note) > limit:
            return None, [ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note must be under {limit} characters",
                suggested_fix=f"Shorten the note by {len(note) - limit} characters",
            )]

        return note or None, []

    def _validate(self, amount: Any, note: Optional[str]) -> ValidationResult:
        clean_amount, amount_issues = self._check_amount(amount)
        clean_note, note_issues = self._check_note(note)

        issues = amount_issues + note_issues
        is_valid = not any(issue.severity == "error" for issue in issues)

        return ValidationResult(
            is_valid=is_valid,
            issues=issues,
            amount=clean_amount if is_valid else None,
            note=clean_note if is_valid else None,
        )

    def validate_new_transaction(
        self,
        amount: Any,
        note: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate the amount and note for a transaction about to be added.

        Args:
            amount: Raw amount as typed (str, int, float or Decimal)
            note: Optional free text

        Returns:
            ValidationResult; when valid, carries the cleaned amount and note
        """
        return self._validate(amount, note)

    def validate_edited_transaction(
        self,
        amount: Any,
        note: Optional[str] = None,
    ) -> ValidationResult:
        """
        Re-validate amount and note before an edit is committed.

        Same rules as a new transaction: an edit can never smuggle in a
        value that would have been rejected on creation.
        """
        return self._validate(amount, note)

    def validate_kind(self, kind: Any) -> list[ValidationIssue]:
        """Kind must be one of borrow, lend or repayment."""
        if kind is None or (isinstance(kind, str) and not kind.strip()):
            return [ValidationIssue(
                field="kind",
                issue_type="missing",
                message="Transaction type is required",
            )]

        try:
            TransactionKind(kind)
        except ValueError:
            allowed = ", ".join(k.value for k in TransactionKind)
            return [ValidationIssue(
                field="kind",
                issue_type="invalid_value",
                message=f"{kind} is not a valid transaction type",
                suggested_fix=f"Choose one of: {allowed}",
            )]

        return []

    def validate_participants(
        self,
        actor: str,
        counterparty: str,
        roster: Sequence[str],
    ) -> list[ValidationIssue]:
        """Both members must be on the roster and must differ."""
        issues = []

        if actor not in roster:
            issues.append(ValidationIssue(
                field="from_member",
                issue_type="unknown_member",
                message=f"{actor} is not a member of this group",
            ))
        if counterparty not in roster:
            issues.append(ValidationIssue(
                field="to_member",
                issue_type="unknown_member",
                message=f"{counterparty} is not a member of this group",
            ))
        if actor == counterparty:
            issues.append(ValidationIssue(
                field="to_member",
                issue_type="same_member",
                message="You cannot record a transaction with yourself",
            ))

        return issues

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what a form shows next to the Save button.
        """
        if result.is_valid:
            return "All checks passed."

        lines = ["Please fix the following:"]
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

        return "\n".join(lines)
