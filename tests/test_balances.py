"""Tests for net balance aggregation."""

from decimal import Decimal

from groupsettle.balances import aggregate, balance_status, build_balance_report
from groupsettle.models import BalanceStatus, ExpenseRecord, SplitEntry, SplitRule
from groupsettle.settlement import validate_conservation
from groupsettle.splits import compute_equal_split


def make_expense(paid_by: str, total: str, splits: dict[str, str]) -> ExpenseRecord:
    """Create an ExpenseRecord for testing."""
    return ExpenseRecord(
        description=f"Paid by {paid_by}",
        total_amount=Decimal(total),
        paid_by=paid_by,
        split_rule=SplitRule.EXACT,
        splits=tuple(
            SplitEntry(participant_id=pid, amount=Decimal(amount))
            for pid, amount in splits.items()
        ),
    )


def make_equal_expense(paid_by: str, total: str, members: list[str]) -> ExpenseRecord:
    return ExpenseRecord(
        description="Shared",
        total_amount=Decimal(total),
        paid_by=paid_by,
        split_rule=SplitRule.EQUAL,
        splits=tuple(compute_equal_split(Decimal(total), members)),
    )


class TestAggregate:
    """Folding expenses into net balances."""

    def test_single_equal_expense(self):
        """90.00 paid by A, split among A, B, C."""
        balances = aggregate([make_equal_expense("A", "90.00", ["A", "B", "C"])])

        assert balances == {
            "A": Decimal("60.00"),
            "B": Decimal("-30.00"),
            "C": Decimal("-30.00"),
        }

    def test_empty_input(self):
        assert aggregate([]) == {}

    def test_payer_outside_splits_gets_full_credit(self):
        balances = aggregate([make_expense("A", "50.00", {"B": "20.00", "C": "30.00"})])

        assert balances["A"] == Decimal("50.00")
        assert balances["B"] == Decimal("-20.00")
        assert balances["C"] == Decimal("-30.00")

    def test_expenses_offset_each_other(self):
        expenses = [
            make_expense("A", "40.00", {"A": "20.00", "B": "20.00"}),
            make_expense("B", "40.00", {"A": "20.00", "B": "20.00"}),
        ]

        balances = aggregate(expenses)

        assert balances == {"A": Decimal("0.00"), "B": Decimal("0.00")}

    def test_many_expenses_conserve_money(self):
        members = ["A", "B", "C", "D"]
        expenses = [
            make_equal_expense("A", "100.00", members),
            make_equal_expense("B", "33.33", members),
            make_equal_expense("C", "0.07", members[:3]),
            make_expense("D", "19.99", {"A": "9.99", "C": "10.00"}),
        ]

        balances = aggregate(expenses)

        assert abs(sum(balances.values())) < Decimal("0.01")
        assert validate_conservation(balances)

    def test_balances_have_cent_scale(self):
        balances = aggregate([make_equal_expense("A", "100.00", ["A", "B", "C"])])

        assert str(balances["A"]) == "66.67"
        assert str(balances["C"]) == "-33.34"


class TestBalanceReport:
    """Names, statuses and ordering for display."""

    def test_status(self):
        assert balance_status(Decimal("0.01")) == BalanceStatus.GETS_BACK
        assert balance_status(Decimal("-0.01")) == BalanceStatus.OWES_MONEY
        assert balance_status(Decimal("0.00")) == BalanceStatus.SETTLED

    def test_sorted_largest_first_with_names(self):
        balances = {"B": Decimal("-30"), "A": Decimal("60"), "C": Decimal("-30"), "D": Decimal("0")}

        report = build_balance_report("g1", balances, {"A": "Alice", "B": "Bob", "D": "Dan"})

        assert report.group_id == "g1"
        assert [b.participant_id for b in report.balances][:2] == ["A", "D"]
        assert report.balances[0].name == "Alice"
        assert report.balances[0].balance == Decimal("60.00")
        assert report.balances[1].status == BalanceStatus.SETTLED
        assert {b.name for b in report.balances[2:]} == {"Bob", "Unknown"}
