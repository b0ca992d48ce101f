"""Tests for the balance engine"""

import itertools
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from ledgerbook.engine import (
    SETTLEMENT_NOTE,
    InvariantViolation,
    TransactionNotFoundError,
    aggregate_totals,
    apply_edit,
    balance_status,
    balances_by_member,
    history_for_pair,
    member_balances,
    pairwise_balance,
    rank_members,
    remove_transaction,
    settle_up,
    signed_amount,
)
from ledgerbook.models.transaction import TransactionEdit, TransactionKind
from ledgerbook.models.views import BalanceStatus


class TestPairwiseBalance:
    """Tests for the signed pairwise balance."""

    @pytest.mark.parametrize(
        "actor, counterparty, kind, expected",
        [
            ("A", "B", "lend", Decimal("100")),
            ("A", "B", "borrow", Decimal("-100")),
            ("A", "B", "repayment", Decimal("-100")),
            ("B", "A", "lend", Decimal("-100")),
            ("B", "A", "borrow", Decimal("100")),
            ("B", "A", "repayment", Decimal("100")),
        ],
    )
    def test_sign_rule(self, make_tx, actor, counterparty, kind, expected):
        """Test every row of the sign table from A's point of view."""
        tx = make_tx(actor, counterparty, kind, 100)
        assert pairwise_balance([tx], "A", "B") == expected
        assert signed_amount(tx, "A") == expected

    def test_lend_and_borrow_example(self, make_tx):
        """A lent 500, then B recorded borrowing 200 from A."""
        transactions = [
            make_tx("A", "B", "lend", 500),
            make_tx("B", "A", "borrow", 200),
        ]
        assert pairwise_balance(transactions, "A", "B") == Decimal("700")

    def test_borrow_example(self, make_tx):
        """A borrowed 300 from B."""
        transactions = [make_tx("A", "B", "borrow", 300)]
        assert pairwise_balance(transactions, "A", "B") == Decimal("-300")

    def test_no_transactions_is_zero(self, make_tx):
        """Test a pair that never transacted is settled."""
        assert pairwise_balance([], "A", "B") == Decimal("0")
        transactions = [make_tx("A", "C", "lend", 50)]
        assert pairwise_balance(transactions, "A", "B") == Decimal("0")

    def test_ignores_other_pairs(self, make_tx):
        """Test entries with third parties don't leak into the pair."""
        transactions = [
            make_tx("A", "B", "lend", 100),
            make_tx("A", "C", "lend", 900),
            make_tx("C", "B", "borrow", 40),
        ]
        assert pairwise_balance(transactions, "A", "B") == Decimal("100")

    def test_self_pair_is_rejected(self, make_tx):
        """Test a member cannot be balanced against themselves."""
        with pytest.raises(InvariantViolation):
            pairwise_balance([make_tx("A", "B", "lend", 1)], "A", "A")

    def test_antisymmetry(self, make_tx):
        """Test balance(a, b) == -balance(b, a)."""
        transactions = [
            make_tx("A", "B", "lend", "120.50"),
            make_tx("B", "A", "lend", 80),
            make_tx("A", "B", "repayment", 15),
            make_tx("B", "A", "borrow", "2.25"),
            make_tx("B", "A", "repayment", 10),
        ]
        assert pairwise_balance(transactions, "A", "B") == -pairwise_balance(transactions, "B", "A")

    def test_order_independence(self, make_tx):
        """Test every permutation gives the same balance."""
        transactions = [
            make_tx("A", "B", "lend", "10.10"),
            make_tx("B", "A", "lend", "3.30"),
            make_tx("A", "B", "borrow", "7.70"),
            make_tx("B", "A", "repayment", "1.01"),
        ]
        expected = pairwise_balance(transactions, "A", "B")
        for permutation in itertools.permutations(transactions):
            assert pairwise_balance(list(permutation), "A", "B") == expected

    def test_exact_decimal_arithmetic(self, make_tx):
        """Test no float rounding creeps in."""
        transactions = [make_tx("A", "B", "lend", "0.10") for _ in range(3)]
        transactions.append(make_tx("A", "B", "borrow", "0.30"))
        assert pairwise_balance(transactions, "A", "B") == Decimal("0")

    def test_does_not_mutate_input(self, make_tx):
        """Test the snapshot is left alone."""
        transactions = [make_tx("A", "B", "lend", 5), make_tx("A", "C", "lend", 5)]
        before = list(transactions)
        pairwise_balance(transactions, "A", "B")
        assert transactions == before

    def test_balance_status(self):
        """Test three-way summary of a balance."""
        assert balance_status(Decimal("1")) == BalanceStatus.OWES_YOU
        assert balance_status(Decimal("-1")) == BalanceStatus.YOU_OWE
        assert balance_status(Decimal("0")) == BalanceStatus.SETTLED


class TestAggregateTotals:
    """Tests for owed-to-me / I-owe totals."""

    def test_lend_and_borrow_example(self, make_tx):
        """Test the worked example totals."""
        transactions = [
            make_tx("A", "B", "lend", 500),
            make_tx("B", "A", "borrow", 200),
        ]
        totals = aggregate_totals(transactions, "A", ["A", "B"])
        assert totals.owed_to_me == Decimal("700")
        assert totals.i_owe == Decimal("0")

    def test_borrow_example(self, make_tx):
        """Test the borrow-only example totals."""
        totals = aggregate_totals([make_tx("A", "B", "borrow", 300)], "A", ["A", "B"])
        assert totals.owed_to_me == Decimal("0")
        assert totals.i_owe == Decimal("300")

    def test_credit_and_debt_do_not_cancel(self, make_tx, roster):
        """Test each balance is clamped before summing."""
        transactions = [
            make_tx("A", "B", "lend", 500),
            make_tx("A", "C", "borrow", 500),
        ]
        totals = aggregate_totals(transactions, "A", roster)
        assert totals.owed_to_me == Decimal("500")
        assert totals.i_owe == Decimal("500")
        assert totals.net == Decimal("0")

    def test_totals_never_negative(self, make_tx, roster):
        """Test both totals stay non-negative for a mixed ledger."""
        transactions = [
            make_tx("A", "B", "borrow", 50),
            make_tx("C", "A", "borrow", 20),
            make_tx("D", "A", "repayment", 70),
            make_tx("A", "E", "repayment", 5),
            make_tx("B", "C", "lend", 1000),
        ]
        for viewpoint in roster:
            totals = aggregate_totals(transactions, viewpoint, roster)
            assert totals.owed_to_me >= 0
            assert totals.i_owe >= 0

    def test_only_roster_members_count(self, make_tx):
        """Test members outside the roster are not summed."""
        transactions = [make_tx("A", "B", "lend", 10), make_tx("A", "Z", "lend", 99)]
        totals = aggregate_totals(transactions, "A", ["A", "B"])
        assert totals.owed_to_me == Decimal("10")

    def test_balances_by_member_in_roster_order(self, make_tx, roster):
        """Test the per-member map skips the viewpoint and keeps roster order."""
        balances = balances_by_member([make_tx("C", "A", "lend", 10)], "C", roster)
        assert list(balances) == ["A", "B", "D", "E"]
        assert balances["A"] == Decimal("10")
        assert balances["B"] == Decimal("0")


class TestRankMembers:
    """Tests for member display order."""

    def test_ranking_rules(self, make_tx, roster):
        """Viewpoint first, then nonzero by size, then zero in roster order."""
        transactions = [
            make_tx("C", "B", "borrow", 100),
            make_tx("C", "D", "lend", 300),
            make_tx("E", "C", "lend", 100),
        ]
        assert rank_members(roster, "C", transactions) == ["C", "D", "B", "E", "A"]

    def test_ties_keep_roster_order(self, roster):
        """Test an all-settled ledger keeps the roster order."""
        assert rank_members(roster, "D", []) == ["D", "A", "B", "C", "E"]

    def test_equal_balances_are_stable(self, make_tx, roster):
        """Test equal magnitudes keep their roster positions."""
        transactions = [
            make_tx("A", "E", "lend", 50),
            make_tx("A", "B", "borrow", 50),
            make_tx("A", "D", "lend", 50),
        ]
        assert rank_members(roster, "A", transactions) == ["A", "B", "D", "E", "C"]

    def test_member_balances_attach_status(self, make_tx, roster):
        """Test the ranked entries carry balance and status."""
        ranked = member_balances(roster, "A", [make_tx("A", "B", "borrow", 40)])
        assert ranked[0].member == "A"
        assert ranked[0].is_viewpoint is True
        assert ranked[1].member == "B"
        assert ranked[1].balance == Decimal("-40")
        assert ranked[1].status == BalanceStatus.YOU_OWE
        assert all(entry.status == BalanceStatus.SETTLED for entry in ranked[2:])

    def test_viewpoint_must_be_on_roster(self, roster):
        """Test an unknown viewpoint is a programming error."""
        with pytest.raises(InvariantViolation, match="not in the roster"):
            rank_members(roster, "Z", [])

    def test_duplicate_roster_is_rejected(self):
        """Test duplicate roster entries are a programming error."""
        with pytest.raises(InvariantViolation, match="duplicate"):
            rank_members(["A", "B", "B"], "A", [])


class TestHistoryForPair:
    """Tests for the pair history view."""

    def test_newest_first_by_effective_date(self, make_tx):
        """Test ordering uses occurred_on, falling back to recorded_at."""
        old = make_tx("A", "B", "lend", 1, occurred_on=date(2024, 1, 1))
        newest = make_tx("A", "B", "lend", 2, occurred_on=date(2024, 3, 1))
        undated = make_tx("B", "A", "lend", 3, recorded_at=datetime(2024, 2, 1, 9, 0))

        history = history_for_pair([old, newest, undated], "A", "B")

        assert [entry.transaction for entry in history] == [newest, undated, old]

    def test_same_day_ties_break_on_recorded_at(self, make_tx):
        """Test same effective date puts the later-recorded entry first."""
        first = make_tx(
            "A", "B", "lend", 1, occurred_on=date(2024, 5, 5),
            recorded_at=datetime(2024, 5, 5, 8, 0),
        )
        second = make_tx(
            "A", "B", "lend", 2, occurred_on=date(2024, 5, 5),
            recorded_at=datetime(2024, 5, 5, 20, 0),
        )
        history = history_for_pair([first, second], "A", "B")
        assert [entry.transaction for entry in history] == [second, first]

    def test_dated_midnight_sorts_before_same_day_timestamp(self, make_tx):
        """Test a dated entry counts as midnight of its day."""
        dated = make_tx("A", "B", "lend", 1, occurred_on=date(2024, 5, 5))
        undated = make_tx("A", "B", "lend", 2, recorded_at=datetime(2024, 5, 5, 10, 0))
        history = history_for_pair([dated, undated], "A", "B")
        assert [entry.transaction for entry in history] == [undated, dated]

    def test_full_ties_are_deterministic(self, make_tx):
        """Test identical timestamps still give one order regardless of input order."""
        stamp = datetime(2024, 6, 1, 12, 0)
        a = make_tx("A", "B", "lend", 1, recorded_at=stamp)
        b = make_tx("A", "B", "lend", 2, recorded_at=stamp)
        forward = history_for_pair([a, b], "A", "B")
        backward = history_for_pair([b, a], "A", "B")
        assert [e.transaction_id for e in forward] == [e.transaction_id for e in backward]

    @pytest.mark.parametrize(
        "actor, kind, label, signed",
        [
            ("A", "lend", "You lent", Decimal("25")),
            ("A", "borrow", "You borrowed", Decimal("-25")),
            ("A", "repayment", "You paid back", Decimal("-25")),
            ("B", "lend", "B lent you", Decimal("-25")),
            ("B", "borrow", "B borrowed", Decimal("25")),
            ("B", "repayment", "B paid back", Decimal("25")),
        ],
    )
    def test_labels_and_signed_amounts(self, make_tx, actor, kind, label, signed):
        """Test direction-aware labels and per-entry signs."""
        counterparty = "B" if actor == "A" else "A"
        history = history_for_pair([make_tx(actor, counterparty, kind, 25)], "A", "B")
        assert history[0].label == label
        assert history[0].signed_amount == signed

    def test_only_the_pair(self, make_tx):
        """Test history excludes other pairs."""
        transactions = [make_tx("A", "B", "lend", 1), make_tx("A", "C", "lend", 1)]
        history = history_for_pair(transactions, "A", "B")
        assert len(history) == 1

    def test_empty_history(self):
        """Test no transactions gives an empty list, not an error."""
        assert history_for_pair([], "A", "B") == []


class TestSettleUp:
    """Tests for the settle-up helper."""

    def test_settle_when_owed(self, make_tx):
        """Test the worked example: A is owed 700."""
        transactions = [
            make_tx("A", "B", "lend", 500),
            make_tx("B", "A", "borrow", 200),
        ]
        repayment = settle_up(transactions, "A", "B", today=date(2024, 7, 1))

        assert repayment.from_member == "A"
        assert repayment.to_member == "B"
        assert repayment.kind == TransactionKind.REPAYMENT
        assert repayment.amount == Decimal("700")
        assert repayment.note == SETTLEMENT_NOTE
        assert repayment.occurred_on == date(2024, 7, 1)
        assert pairwise_balance(transactions + [repayment], "A", "B") == Decimal("0")

    def test_settle_when_owing(self, make_tx):
        """Test settling a debt also lands on exactly zero."""
        transactions = [make_tx("A", "B", "borrow", 300)]
        repayment = settle_up(transactions, "A", "B", today=date(2024, 7, 1))

        assert repayment.amount == Decimal("300")
        assert repayment.from_member == "B"
        assert repayment.to_member == "A"
        assert pairwise_balance(transactions + [repayment], "A", "B") == Decimal("0")
        assert pairwise_balance(transactions + [repayment], "B", "A") == Decimal("0")

    def test_settle_is_idempotent(self, make_tx):
        """Test a second settle-up finds nothing to do."""
        transactions = [make_tx("B", "A", "lend", "45.50"), make_tx("A", "B", "lend", 10)]
        repayment = settle_up(transactions, "A", "B", today=date(2024, 7, 1))
        settled = transactions + [repayment]
        assert settle_up(settled, "A", "B", today=date(2024, 7, 2)) is None

    def test_settled_pair_returns_none(self, make_tx):
        """Test no zero-amount transaction is ever created."""
        assert settle_up([], "A", "B", today=date(2024, 7, 1)) is None
        transactions = [make_tx("A", "B", "lend", 10), make_tx("A", "B", "repayment", 10)]
        assert settle_up(transactions, "A", "B", today=date(2024, 7, 1)) is None

    def test_custom_note(self, make_tx):
        """Test the settlement marker can be configured."""
        repayment = settle_up(
            [make_tx("A", "B", "lend", 10)], "A", "B",
            today=date(2024, 7, 1), note="All square",
        )
        assert repayment.note == "All square"

    def test_large_balance_settles_in_one_step(self, make_tx):
        """Test balances above the per-entry input limit still settle."""
        transactions = [make_tx("A", "B", "lend", 1000000), make_tx("A", "B", "lend", 1000000)]
        repayment = settle_up(transactions, "A", "B", today=date(2024, 7, 1))
        assert repayment.amount == Decimal("2000000")


class TestEditAndDelete:
    """Tests for snapshot edit/delete helpers."""

    def test_apply_edit(self, make_tx):
        """Test edit replaces amount, note and date and nothing else."""
        target = make_tx("A", "B", "lend", 100, note="Lunch")
        other = make_tx("A", "C", "lend", 5)
        snapshot = [target, other]

        edited = apply_edit(snapshot, target.id, TransactionEdit(
            amount=Decimal("150"), note="Lunch + dessert", occurred_on=date(2024, 2, 2),
        ))

        assert edited[0].id == target.id
        assert edited[0].amount == Decimal("150")
        assert edited[0].note == "Lunch + dessert"
        assert edited[0].kind == TransactionKind.LEND
        assert edited[1] is other
        assert snapshot[0].amount == Decimal("100")
        assert pairwise_balance(edited, "A", "B") == Decimal("150")

    def test_apply_edit_clears_missing_note_and_date(self, make_tx):
        """Test the edit model replaces note and date even when None."""
        target = make_tx("A", "B", "lend", 100, note="Lunch", occurred_on=date(2024, 1, 1))

        edited = apply_edit([target], target.id, TransactionEdit(amount=Decimal("100")))

        assert edited[0].note is None
        assert edited[0].occurred_on is None

    def test_apply_edit_unknown_id(self, make_tx):
        """Test editing a missing transaction is reported."""
        with pytest.raises(TransactionNotFoundError):
            apply_edit([make_tx("A", "B", "lend", 1)], uuid4(), TransactionEdit(amount=Decimal("1")))

    def test_delete_is_inverse_of_append(self, make_tx, roster):
        """Test append-then-delete leaves every balance function unchanged."""
        base = [
            make_tx("A", "B", "lend", 40),
            make_tx("C", "A", "borrow", 15),
            make_tx("D", "A", "lend", 60),
        ]
        extra = make_tx("A", "B", "borrow", 999)
        restored = remove_transaction(base + [extra], extra.id)

        assert pairwise_balance(restored, "A", "B") == pairwise_balance(base, "A", "B")
        assert aggregate_totals(restored, "A", roster) == aggregate_totals(base, "A", roster)
        assert rank_members(roster, "A", restored) == rank_members(roster, "A", base)
        assert history_for_pair(restored, "A", "B") == history_for_pair(base, "A", "B")
        assert settle_up(restored, "A", "B", date(2024, 1, 1)).amount == \
            settle_up(base, "A", "B", date(2024, 1, 1)).amount

    def test_delete_unknown_id_is_noop(self, make_tx):
        """Test deleting twice is harmless."""
        snapshot = [make_tx("A", "B", "lend", 1)]
        assert remove_transaction(snapshot, uuid4()) == snapshot
