"""Balance engine package - pure functions over a transaction snapshot."""

from ledgerbook.engine.balances import (
    SETTLEMENT_NOTE,
    InvariantViolation,
    TransactionNotFoundError,
    aggregate_totals,
    apply_edit,
    balance_status,
    balances_by_member,
    describe,
    history_for_pair,
    member_balances,
    pair_transactions,
    pairwise_balance,
    rank_members,
    remove_transaction,
    settle_up,
    signed_amount,
)

__all__ = [
    "SETTLEMENT_NOTE",
    "InvariantViolation",
    "TransactionNotFoundError",
    "aggregate_totals",
    "apply_edit",
    "balance_status",
    "balances_by_member",
    "describe",
    "history_for_pair",
    "member_balances",
    "pair_transactions",
    "pairwise_balance",
    "rank_members",
    "remove_transaction",
    "settle_up",
    "signed_amount",
]
