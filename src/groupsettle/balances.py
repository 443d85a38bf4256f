"""Fold recorded expenses into one net balance per participant."""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from .models import BalanceReport, BalanceStatus, ExpenseRecord, MemberBalance
from .money import round_money

logger = logging.getLogger(__name__)


def aggregate(expense_records: Iterable[ExpenseRecord]) -> dict[str, Decimal]:
    """
    Calculate the net balance of every participant.

    For each expense the payer is credited the full total and every split
    participant is debited what they owe. A payer who also owes a share nets
    out naturally.

    Args:
        expense_records: Recorded expenses with their splits

    Returns:
        Mapping of participant ID to signed balance rounded to cents
        (positive = gets money back, negative = owes money)
    """
    totals: dict[str, Decimal] = {}

    for record in expense_records:
        totals[record.paid_by] = totals.get(record.paid_by, Decimal("0")) + record.total_amount

        for split in record.splits:
            totals[split.participant_id] = (
                totals.get(split.participant_id, Decimal("0")) - split.amount
            )

    return {participant_id: round_money(amount) for participant_id, amount in totals.items()}


def balance_status(amount: Decimal) -> BalanceStatus:
    """Classify a balance as gets-back, owes or settled."""
    if amount > 0:
        return BalanceStatus.GETS_BACK
    if amount < 0:
        return BalanceStatus.OWES_MONEY
    return BalanceStatus.SETTLED


def build_balance_report(
    group_id: str,
    balances: Mapping[str, Decimal],
    names: Mapping[str, str],
) -> BalanceReport:
    """Attach names and statuses to net balances, largest balance first."""
    member_balances = [
        MemberBalance(
            participant_id=participant_id,
            name=names.get(participant_id, "Unknown"),
            balance=round_money(amount),
            status=balance_status(round_money(amount)),
        )
        for participant_id, amount in balances.items()
    ]
    member_balances.sort(key=lambda b: b.balance, reverse=True)

    logger.debug(f"Built balance report for {len(member_balances)} members of {group_id}")
    return BalanceReport(group_id=group_id, balances=member_balances)
