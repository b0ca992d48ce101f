"""
Balance Engine

DESIGN DECISION: Balances are NEVER stored. Every number in this module is
folded fresh from the transaction snapshot the caller hands in. There is no
running total that could drift away from the log it summarizes.

Every function here is pure:
- inputs are never mutated
- no I/O, no logging, no clock reads (the caller passes `today`)
- the roster is a parameter, never a module constant

The output is only as fresh as the snapshot. Callers must re-fetch after
every write and call in again.

SIGN RULE (balance from the viewpoint member's side):

    actor        kind        effect
    viewpoint    lend        +amount
    viewpoint    borrow      -amount
    viewpoint    repayment   -amount
    other        lend        -amount
    other        borrow      +amount
    other        repayment   +amount

Positive means the other member owes the viewpoint member.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from ledgerbook.models.transaction import (
    Transaction,
    TransactionEdit,
    TransactionKind,
    as_naive_utc,
)
from ledgerbook.models.views import (
    AggregateTotals,
    BalanceStatus,
    HistoryEntry,
    MemberBalance,
)


ZERO = Decimal("0")
SETTLEMENT_NOTE = "Settled up"

# +1 when the actor is the viewpoint member; flipped when it is the other one.
_ACTOR_SIGN = {
    TransactionKind.LEND: 1,
    TransactionKind.BORROW: -1,
    TransactionKind.REPAYMENT: -1,
}


class InvariantViolation(ValueError):
    """A caller broke an engine precondition. This is a bug, not user error."""
    pass


class TransactionNotFoundError(LookupError):
    """No transaction with the requested id in the snapshot."""

    def __init__(self, transaction_id: UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


def _require_pair(viewpoint: str, other: str) -> None:
    if viewpoint == other:
        raise InvariantViolation(f"Cannot compute a balance of {viewpoint!r} with themselves")


def _require_roster(roster: Sequence[str], viewpoint: str) -> None:
    if len(set(roster)) != len(roster):
        raise InvariantViolation("Roster contains duplicate members")
    if viewpoint not in roster:
        raise InvariantViolation(f"Viewpoint member {viewpoint!r} is not in the roster")


# =============================================================================
# PAIRWISE BALANCE
# =============================================================================

def signed_amount(transaction: Transaction, viewpoint: str) -> Decimal:
    """Effect of a single transaction on `viewpoint`'s balance with its counterparty."""
    sign = _ACTOR_SIGN[transaction.kind]
    if transaction.from_member != viewpoint:
        sign = -sign
    return transaction.amount if sign > 0 else -transaction.amount


def pair_transactions(
    transactions: Iterable[Transaction],
    viewpoint: str,
    other: str,
) -> list[Transaction]:
    """Transactions between exactly these two members, in either direction."""
    _require_pair(viewpoint, other)
    return [t for t in transactions if t.involves(viewpoint, other)]


def pairwise_balance(
    transactions: Iterable[Transaction],
    viewpoint: str,
    other: str,
) -> Decimal:
    """
    Signed net amount between two members.

    Positive: `other` owes `viewpoint`.
    Negative: `viewpoint` owes `other`.
    Zero: settled (including when they never transacted).

    Order of `transactions` does not matter.
    """
    return sum(
        (signed_amount(t, viewpoint) for t in pair_transactions(transactions, viewpoint, other)),
        ZERO,
    )


def balances_by_member(
    transactions: Iterable[Transaction],
    viewpoint: str,
    roster: Sequence[str],
) -> dict[str, Decimal]:
    """Balance against every other roster member, in roster order."""
    _require_roster(roster, viewpoint)
    snapshot = list(transactions)
    return {
        member: pairwise_balance(snapshot, viewpoint, member)
        for member in roster
        if member != viewpoint
    }


def balance_status(balance: Decimal) -> BalanceStatus:
    if balance > 0:
        return BalanceStatus.OWES_YOU
    if balance < 0:
        return BalanceStatus.YOU_OWE
    return BalanceStatus.SETTLED


# =============================================================================
# AGGREGATES AND RANKING
# =============================================================================

def aggregate_totals(
    transactions: Iterable[Transaction],
    viewpoint: str,
    roster: Sequence[str],
) -> AggregateTotals:
    """
    Total owed to the viewpoint member and total they owe.

    Each pairwise balance is clamped to its own sign before summing, so a
    large debt to one member never hides a large credit with another.
    """
    balances = balances_by_member(transactions, viewpoint, roster).values()
    return AggregateTotals(
        owed_to_me=sum((b for b in balances if b > 0), ZERO),
        i_owe=sum((-b for b in balances if b < 0), ZERO),
    )


def member_balances(
    roster: Sequence[str],
    viewpoint: str,
    transactions: Iterable[Transaction],
) -> list[MemberBalance]:
    """
    Roster in display order with each member's balance attached.

    Order:
    1. viewpoint first
    2. nonzero balances before zero balances
    3. larger absolute balance first
    4. otherwise roster order (sorted() is stable)
    """
    balances = balances_by_member(transactions, viewpoint, roster)
    others = sorted(
        balances,
        key=lambda member: (balances[member] == 0, -abs(balances[member])),
    )

    ranked = [
        MemberBalance(
            member=viewpoint,
            balance=ZERO,
            status=BalanceStatus.SETTLED,
            is_viewpoint=True,
        )
    ]
    for member in others:
        ranked.append(MemberBalance(
            member=member,
            balance=balances[member],
            status=balance_status(balances[member]),
        ))
    return ranked


def rank_members(
    roster: Sequence[str],
    viewpoint: str,
    transactions: Iterable[Transaction],
) -> list[str]:
    """Member identifiers in display order. See member_balances for the rules."""
    return [entry.member for entry in member_balances(roster, viewpoint, transactions)]


# =============================================================================
# HISTORY
# =============================================================================

def describe(transaction: Transaction, viewpoint: str) -> str:
    """Who-did-what label for one transaction, phrased for `viewpoint`."""
    if transaction.from_member == viewpoint:
        return {
            TransactionKind.LEND: "You lent",
            TransactionKind.BORROW: "You borrowed",
            TransactionKind.REPAYMENT: "You paid back",
        }[transaction.kind]

    actor = transaction.from_member
    return {
        TransactionKind.LEND: f"{actor} lent you",
        TransactionKind.BORROW: f"{actor} borrowed",
        TransactionKind.REPAYMENT: f"{actor} paid back",
    }[transaction.kind]


def _newest_first_key(transaction: Transaction) -> tuple[datetime, datetime, str]:
    # Same effective date: later recorded_at wins, then id for a total order.
    return (
        transaction.effective_at,
        as_naive_utc(transaction.recorded_at),
        str(transaction.id),
    )


def history_for_pair(
    transactions: Iterable[Transaction],
    viewpoint: str,
    other: str,
) -> list[HistoryEntry]:
    """
    Transactions between two members, newest first, ready to display.

    Newest is by effective date (occurred_on, falling back to recorded_at).
    Ties break on recorded_at, then on id, all descending.
    """
    pair = pair_transactions(transactions, viewpoint, other)
    pair.sort(key=_newest_first_key, reverse=True)
    return [
        HistoryEntry(
            transaction=t,
            label=describe(t, viewpoint),
            signed_amount=signed_amount(t, viewpoint),
            effective_at=t.effective_at,
        )
        for t in pair
    ]


# =============================================================================
# SETTLE-UP, EDIT, DELETE
# =============================================================================

def settle_up(
    transactions: Iterable[Transaction],
    viewpoint: str,
    other: str,
    today: date,
    note: str = SETTLEMENT_NOTE,
) -> Optional[Transaction]:
    """
    Build the repayment that brings the pair's balance to exactly zero.

    Returns None when the pair is already settled - a zero-amount entry is
    never created. The repayment is recorded by whichever side the sign rule
    needs so that appending it zeroes the balance: the viewpoint member when
    they are owed, the other member when the viewpoint member owes.
    """
    balance = pairwise_balance(transactions, viewpoint, other)
    if balance == 0:
        return None

    if balance > 0:
        actor, counterparty = viewpoint, other
    else:
        actor, counterparty = other, viewpoint

    return Transaction(
        from_member=actor,
        to_member=counterparty,
        kind=TransactionKind.REPAYMENT,
        amount=abs(balance),
        note=note,
        occurred_on=today,
    )


def apply_edit(
    transactions: Iterable[Transaction],
    transaction_id: UUID,
    edit: TransactionEdit,
) -> list[Transaction]:
    """New snapshot with one transaction's amount, note and date replaced."""
    edited = []
    found = False
    for t in transactions:
        if t.id == transaction_id:
            edited.append(t.with_edit(edit))
            found = True
        else:
            edited.append(t)
    if not found:
        raise TransactionNotFoundError(transaction_id)
    return edited


def remove_transaction(
    transactions: Iterable[Transaction],
    transaction_id: UUID,
) -> list[Transaction]:
    """New snapshot without the given transaction. Unknown ids are a no-op."""
    return [t for t in transactions if t.id != transaction_id]
