"""Split strategies: how one expense total is divided among participants."""

import logging
from collections.abc import Collection, Sequence
from decimal import Decimal
from typing import Protocol

from .exceptions import BusinessRuleError, ValidationError
from .models import SplitEntry, SplitRule
from .money import has_money_scale, round_money, to_decimal

logger = logging.getLogger(__name__)


def compute_equal_split(total: Decimal, participants: Sequence[str]) -> list[SplitEntry]:
    """
    Split a total equally, giving the rounding remainder to the last participant.

    Example: $100.00 among 3 people -> 33.33, 33.33, 33.34

    Args:
        total: Expense total (scale 2)
        participants: Participant IDs in a stable order (e.g. join order)

    Returns:
        One split entry per participant, summing exactly to total

    Raises:
        BusinessRuleError: If there are no participants
        ValidationError: If the total is too small to give everyone a share
    """
    if not participants:
        raise BusinessRuleError("Cannot split expense: no members to split among")

    total = to_decimal(total)
    count = len(participants)
    per_person = round_money(total / count)
    last_amount = total - per_person * (count - 1)

    if last_amount < 0:
        raise ValidationError(
            f"Total {total} is too small to split among {count} members"
        )

    splits = [
        SplitEntry(participant_id=participant_id, amount=per_person)
        for participant_id in participants[:-1]
    ]
    splits.append(SplitEntry(participant_id=participants[-1], amount=last_amount))

    logger.debug(f"Created {len(splits)} equal splits of {per_person} (last: {last_amount})")
    return splits


def compute_exact_split(
    total: Decimal,
    entries: Sequence[SplitEntry] | None,
    valid_member_ids: Collection[str],
) -> list[SplitEntry]:
    """
    Validate explicit per-participant amounts against the total.

    Each amount is rounded to cents before summing, and the rounded sum must
    equal the total exactly.

    Raises:
        ValidationError: If no entries are given or the sum doesn't match
        BusinessRuleError: If an entry references a non-member
    """
    if not entries:
        raise ValidationError("Exact split requires split details")

    total = to_decimal(total)
    splits = []
    split_sum = Decimal("0")

    for entry in entries:
        if entry.participant_id not in valid_member_ids:
            raise BusinessRuleError(
                f"User {entry.participant_id} is not a member of the group"
            )

        if not has_money_scale(entry.amount):
            logger.warning(
                f"Split for {entry.participant_id} has unusual precision: {entry.amount}"
            )

        amount = round_money(entry.amount)
        split_sum += amount
        splits.append(SplitEntry(participant_id=entry.participant_id, amount=amount))

    if split_sum != total:
        raise ValidationError(
            f"Split amounts ({split_sum}) do not equal total amount ({total})"
        )

    logger.debug(f"Created {len(splits)} exact splits")
    return splits


# ============================================================================
# Strategy registry
# ============================================================================


class SplitStrategy(Protocol):
    """Computes the splits for one expense."""

    def calculate_splits(
        self,
        total: Decimal,
        members: Sequence[str],
        entries: Sequence[SplitEntry] | None = None,
    ) -> list[SplitEntry]: ...


class EqualSplitStrategy:
    """Everyone in the group pays the same share."""

    def calculate_splits(
        self,
        total: Decimal,
        members: Sequence[str],
        entries: Sequence[SplitEntry] | None = None,
    ) -> list[SplitEntry]:
        return compute_equal_split(total, members)


class ExactSplitStrategy:
    """The caller states how much each participant owes."""

    def calculate_splits(
        self,
        total: Decimal,
        members: Sequence[str],
        entries: Sequence[SplitEntry] | None = None,
    ) -> list[SplitEntry]:
        return compute_exact_split(total, entries, set(members))


_STRATEGIES: dict[SplitRule, SplitStrategy] = {
    SplitRule.EQUAL: EqualSplitStrategy(),
    SplitRule.EXACT: ExactSplitStrategy(),
}


def register_strategy(rule: SplitRule, strategy: SplitStrategy) -> None:
    """Register (or replace) the strategy used for a split rule."""
    _STRATEGIES[rule] = strategy


def get_strategy(rule: SplitRule | str) -> SplitStrategy:
    """
    Look up the strategy for a split rule.

    Raises:
        ValidationError: If the rule is unknown or has no strategy
    """
    try:
        return _STRATEGIES[SplitRule(rule)]
    except (KeyError, ValueError) as e:
        raise ValidationError(f"Unsupported split type: {rule}") from e


def compute_splits(
    rule: SplitRule | str,
    total: Decimal,
    members: Sequence[str],
    entries: Sequence[SplitEntry] | None = None,
) -> list[SplitEntry]:
    """Compute the splits for an expense using the strategy for its rule."""
    return get_strategy(rule).calculate_splits(total, members, entries)
