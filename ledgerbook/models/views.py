"""
Derived View Models

Everything in this module is computed from the transaction log on demand.
None of it is ever persisted - see ledgerbook.engine.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models.transaction import Transaction


class BalanceStatus(str, Enum):
    """Three-way summary of a pairwise balance."""
    OWES_YOU = "owes_you"
    YOU_OWE = "you_owe"
    SETTLED = "settled"


class AggregateTotals(BaseModel):
    """
    Exposure in each direction across the whole roster.

    NOT a net sum: a member who owes you 500 and another you owe 500
    show up as 500 / 500, not 0 / 0.
    """
    model_config = ConfigDict(frozen=True)

    owed_to_me: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Sum of all positive pairwise balances"
    )
    i_owe: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Sum of the magnitudes of all negative pairwise balances"
    )

    @property
    def net(self) -> Decimal:
        return self.owed_to_me - self.i_owe


class HistoryEntry(BaseModel):
    """One row of the history between the viewpoint member and one other member."""
    model_config = ConfigDict(frozen=True)

    transaction: Transaction
    label: str = Field(
        ...,
        description="Who-did-what phrasing, e.g. 'You lent' or 'Vivek paid back'"
    )
    signed_amount: Decimal = Field(
        ...,
        description="Effect of this single entry on the viewpoint's balance"
    )
    effective_at: datetime

    @property
    def transaction_id(self) -> UUID:
        return self.transaction.id

    @property
    def display_title(self) -> str:
        """The note when there is one, otherwise the label."""
        return self.transaction.note or self.label


class MemberBalance(BaseModel):
    """A roster member as seen from the viewpoint member."""
    model_config = ConfigDict(frozen=True)

    member: str
    balance: Decimal
    status: BalanceStatus
    is_viewpoint: bool = False


class DashboardView(BaseModel):
    """Summary totals plus the ranked member list."""

    viewpoint: str
    totals: AggregateTotals
    members: list[MemberBalance] = Field(
        default_factory=list,
        description="Members in display order, viewpoint first"
    )

    @property
    def ranked_members(self) -> list[str]:
        return [entry.member for entry in self.members]


class MemberDetailView(BaseModel):
    """Balance and history between the viewpoint member and one other member."""

    viewpoint: str
    other: str
    balance: Decimal
    status: BalanceStatus
    history: list[HistoryEntry] = Field(default_factory=list)

    @property
    def can_settle(self) -> bool:
        return self.balance != 0

    @property
    def settle_amount(self) -> Decimal:
        return abs(self.balance)
