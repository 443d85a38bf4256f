"""Debt simplification: turn net balances into a short list of payments.

Algorithm: greedy matching with two max-heaps.

- Always match the largest creditor with the largest debtor
- Each match fully settles at least one of the two
- So k participants with a non-zero balance need at most k-1 transfers

Running time is O(k log k). This is a bounded heuristic, not a search for
the global minimum number of transactions; callers can rely on full
settlement and the k-1 bound only.

Balances are rounded to cents first and then anything below one cent is
dropped, so a half-cent balance (0.005) becomes 0.01 and is settled.
"""

import heapq
import itertools
import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from .models import SettlementLine, SettlementPlan, Transfer
from .money import EPSILON, round_money

logger = logging.getLogger(__name__)


def settle(net_balances: Mapping[str, Decimal]) -> list[Transfer]:
    """
    Calculate the payments needed to settle all debts.

    Args:
        net_balances: Participant ID to net balance
                      (positive = gets money, negative = owes money)

    Returns:
        Transfers in the order they were matched
    """
    logger.debug(f"Starting settlement calculation for {len(net_balances)} users")

    # Heap entries are (-magnitude, tiebreak, participant_id) so the largest
    # magnitude pops first and IDs are never compared.
    tiebreak = itertools.count()
    creditors: list[tuple[Decimal, int, str]] = []
    debtors: list[tuple[Decimal, int, str]] = []

    for participant_id, raw_balance in net_balances.items():
        balance = round_money(raw_balance)
        if abs(balance) < EPSILON:
            continue

        if balance > 0:
            creditors.append((-balance, next(tiebreak), participant_id))
        else:
            debtors.append((balance, next(tiebreak), participant_id))

    heapq.heapify(creditors)
    heapq.heapify(debtors)

    logger.debug(f"Partitioned into {len(creditors)} creditors and {len(debtors)} debtors")

    transfers: list[Transfer] = []

    while creditors and debtors:
        neg_credit, _, creditor_id = heapq.heappop(creditors)
        neg_debt, _, debtor_id = heapq.heappop(debtors)
        credit, debt = -neg_credit, -neg_debt

        amount = min(credit, debt)

        if amount >= EPSILON:
            transfers.append(Transfer(from_id=debtor_id, to_id=creditor_id, amount=amount))
            logger.debug(f"Settlement: {debtor_id} pays {creditor_id} amount {amount}")

        credit_remaining = credit - amount
        debt_remaining = debt - amount

        if credit_remaining >= EPSILON:
            heapq.heappush(creditors, (-credit_remaining, next(tiebreak), creditor_id))
        if debt_remaining >= EPSILON:
            heapq.heappush(debtors, (-debt_remaining, next(tiebreak), debtor_id))

    logger.info(f"Settlement calculation complete: {len(transfers)} transactions generated")
    return transfers


def validate_conservation(net_balances: Mapping[str, Decimal]) -> bool:
    """
    Check that balances sum to zero within one cent.

    If they don't, the balance calculation has a bug; this is a self-check
    and is not used when computing settlements.
    """
    total = sum(net_balances.values(), Decimal("0"))
    is_valid = abs(total) < EPSILON

    if not is_valid:
        logger.warning(f"Balance conservation check failed! Sum: {total} (should be ~0)")

    return is_valid


def apply_transfers(
    net_balances: Mapping[str, Decimal], transfers: Iterable[Transfer]
) -> dict[str, Decimal]:
    """
    Replay transfers against balances and return what's left.

    Paying raises the payer's balance toward zero and lowers the receiver's.
    """
    remaining = {pid: round_money(amount) for pid, amount in net_balances.items()}
    for transfer in transfers:
        remaining[transfer.from_id] = remaining.get(transfer.from_id, Decimal("0")) + transfer.amount
        remaining[transfer.to_id] = remaining.get(transfer.to_id, Decimal("0")) - transfer.amount
    return remaining


def build_settlement_plan(
    group_id: str,
    transfers: Iterable[Transfer],
    names: Mapping[str, str],
) -> SettlementPlan:
    """Attach display names to transfers."""
    lines = [
        SettlementLine(
            from_id=t.from_id,
            from_name=names.get(t.from_id, "Unknown"),
            to_id=t.to_id,
            to_name=names.get(t.to_id, "Unknown"),
            amount=t.amount,
        )
        for t in transfers
    ]
    return SettlementPlan(group_id=group_id, settlements=lines, total_transactions=len(lines))
