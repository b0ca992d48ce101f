"""Input validation package."""

from ledgerbook.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
