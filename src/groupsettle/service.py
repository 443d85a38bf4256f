"""Service layer that composes ledger storage with the settlement core.

The split, balance and settlement functions are pure; this module feeds
them snapshots read from the database and stores what they produce.
"""

import logging

from .balances import aggregate, build_balance_report
from .config import Settings
from .db import Database
from .exceptions import BusinessRuleError, ResourceNotFoundError
from .models import (
    BalanceReport,
    ExpenseInput,
    ExpenseRecord,
    Group,
    Participant,
    SettlementPlan,
)
from .money import round_money
from .settlement import build_settlement_plan, settle, validate_conservation
from .splits import compute_splits

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording group expenses and settling them up."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Participants and groups
    # ========================================================================

    def register_participant(self, name: str, email: str | None = None) -> Participant:
        """Create a new participant."""
        participant = self.db.create_participant(name, email)
        logger.info(f"Created participant {participant.id} ({name})")
        return participant

    def find_participant_or_raise(self, participant_id: str) -> Participant:
        participant = self.db.get_participant(participant_id)
        if participant is None:
            raise ResourceNotFoundError("User", "id", participant_id)
        return participant

    def find_group_or_raise(self, group_id: str) -> Group:
        group = self.db.get_group(group_id)
        if group is None:
            raise ResourceNotFoundError("Group", "id", group_id)
        return group

    def create_group(self, name: str, created_by: str) -> Group:
        """Create a group; the creator joins it as the first member."""
        self.find_participant_or_raise(created_by)
        group = self.db.create_group(name, created_by)
        logger.info(f"Created group {group.id} ({name}) by {created_by}")
        return group

    def add_member(self, group_id: str, participant_id: str) -> Group:
        """Add an existing participant to a group."""
        self.find_group_or_raise(group_id)
        self.find_participant_or_raise(participant_id)
        group = self.db.add_member(group_id, participant_id)
        logger.info(f"Added {participant_id} to group {group_id}")
        return group

    # ========================================================================
    # Expenses
    # ========================================================================

    def create_expense(self, group_id: str, expense: ExpenseInput) -> ExpenseRecord:
        """
        Record an expense in a group.

        Equal splits are divided among the group's members in join order, so
        the same group always assigns the rounding remainder to the same
        member.

        Args:
            group_id: Group the expense belongs to
            expense: Validated expense input

        Returns:
            The stored expense record with its splits

        Raises:
            ResourceNotFoundError: If the group or payer doesn't exist
            BusinessRuleError: If the payer isn't a member, or a split rule
                               is violated
            ValidationError: If explicit splits are missing or don't add up
        """
        logger.info(
            f"Creating expense in group {group_id}: "
            f"{expense.description} - {expense.total_amount}"
        )

        group = self.find_group_or_raise(group_id)
        self.find_participant_or_raise(expense.paid_by)

        if not self.db.is_member(group_id, expense.paid_by):
            raise BusinessRuleError(
                f"User {expense.paid_by} is not a member of group {group_id}"
            )

        total = round_money(expense.total_amount)
        splits = compute_splits(
            expense.split_rule, total, list(group.member_ids), expense.splits
        )

        record = ExpenseRecord(
            description=expense.description,
            total_amount=total,
            paid_by=expense.paid_by,
            split_rule=expense.split_rule,
            splits=tuple(splits),
        )
        saved = self.db.save_expense(group_id, record)

        logger.info(f"Expense created successfully with ID: {saved.id}")
        return saved

    def list_expenses(self, group_id: str) -> list[ExpenseRecord]:
        """Get the recorded expenses of a group."""
        self.find_group_or_raise(group_id)
        return self.db.list_expenses(group_id)

    def delete_expense(self, expense_id: str) -> None:
        """Delete an expense and its splits."""
        if not self.db.delete_expense(expense_id):
            raise ResourceNotFoundError("Expense", "id", expense_id)
        logger.info(f"Deleted expense {expense_id}")

    # ========================================================================
    # Balances and settlements
    # ========================================================================

    def calculate_balances(self, group_id: str) -> BalanceReport:
        """
        Calculate the net balance of everyone involved in a group's expenses.

        Positive balance = should receive money, negative = owes money.
        """
        logger.info(f"Calculating balances for group: {group_id}")

        expenses = self.list_expenses(group_id)
        balances = aggregate(expenses)
        names = self.db.get_participant_names(list(balances))

        report = build_balance_report(group_id, balances, names)
        logger.debug(f"Calculated balances for {len(report.balances)} users in group {group_id}")
        return report

    def calculate_settlements(self, group_id: str) -> SettlementPlan:
        """Calculate the payments that settle every balance in a group."""
        logger.info(f"Calculating optimized settlements for group: {group_id}")

        expenses = self.list_expenses(group_id)
        balances = aggregate(expenses)
        validate_conservation(balances)

        transfers = settle(balances)
        names = self.db.get_participant_names(list(balances))
        plan = build_settlement_plan(group_id, transfers, names)

        logger.info(f"Generated {plan.total_transactions} optimized settlements for group {group_id}")
        return plan
