"""Pydantic domain models for GroupSettle."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Registry Models
# ============================================================================


class Participant(BaseModel):
    """Someone who can pay for or share in an expense."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None


class Group(BaseModel):
    """A group of participants sharing expenses.

    member_ids is kept in join order. Equal splits hand the rounding
    remainder to the last member, so this order must be stable.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_by: str
    member_ids: tuple[str, ...] = ()


# ============================================================================
# Expense Models
# ============================================================================


class SplitRule(StrEnum):
    """How an expense total is divided among participants."""

    EQUAL = "EQUAL"
    EXACT = "EXACT"

    @classmethod
    def _missing_(cls, value):
        # Accept "equal" / "exact" from env vars and user input
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class SplitEntry(BaseModel):
    """The amount one participant owes for one expense."""

    model_config = ConfigDict(frozen=True)

    participant_id: str
    amount: Decimal = Field(ge=0)


class ExpenseRecord(BaseModel):
    """An expense with its computed splits.

    The splits always add up to total_amount; that is checked once when the
    record is created and never again.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    group_id: str | None = None
    description: str
    total_amount: Decimal
    paid_by: str
    split_rule: SplitRule
    splits: tuple[SplitEntry, ...]
    created_at: datetime = Field(default_factory=datetime.now)


class ExpenseInput(BaseModel):
    """Caller-supplied request to record a new expense."""

    description: str = Field(min_length=1, max_length=255)
    total_amount: Decimal = Field(gt=0, decimal_places=2)
    paid_by: str
    split_rule: SplitRule = SplitRule.EQUAL
    splits: list[SplitEntry] | None = None  # only used by EXACT


# ============================================================================
# Settlement Models
# ============================================================================


class Transfer(BaseModel):
    """A single payment: from_id pays to_id the given amount."""

    model_config = ConfigDict(frozen=True)

    from_id: str
    to_id: str
    amount: Decimal = Field(gt=0)


class BalanceStatus(StrEnum):
    """Direction of a participant's net balance."""

    GETS_BACK = "GETS_BACK"
    OWES_MONEY = "OWES_MONEY"
    SETTLED = "SETTLED"


class MemberBalance(BaseModel):
    """A participant's net position within a group."""

    participant_id: str
    name: str
    balance: Decimal  # positive = gets money back, negative = owes
    status: BalanceStatus


class BalanceReport(BaseModel):
    """Net balances for every participant in a group, largest first."""

    group_id: str
    balances: list[MemberBalance] = Field(default_factory=list)


class SettlementLine(BaseModel):
    """A transfer with display names attached."""

    from_id: str
    from_name: str
    to_id: str
    to_name: str
    amount: Decimal


class SettlementPlan(BaseModel):
    """The list of payments that settles a group."""

    group_id: str
    settlements: list[SettlementLine] = Field(default_factory=list)
    total_transactions: int = 0
