"""Tests for the group-settle command line."""

from decimal import Decimal

import pytest
import typer
from typer.testing import CliRunner

from groupsettle.cli import app, format_money, parse_amount, parse_shares
from groupsettle.db import Database
from groupsettle.models import ExpenseRecord, SplitRule
from groupsettle.splits import compute_equal_split

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the CLI at a temporary database."""
    path = tmp_path / "cli.db"
    monkeypatch.setenv("GROUPSETTLE_DATABASE_PATH", str(path))
    return path


@pytest.fixture
def seeded_group(db_path):
    """A group where Alice paid 90.00 for Alice, Bob and Carol."""
    db = Database(db_path)
    alice = db.create_participant("Alice")
    bob = db.create_participant("Bob")
    carol = db.create_participant("Carol")
    group = db.create_group("Trip", alice.id)
    db.add_member(group.id, bob.id)
    db.add_member(group.id, carol.id)

    total = Decimal("90.00")
    db.save_expense(
        group.id,
        ExpenseRecord(
            description="Dinner",
            total_amount=total,
            paid_by=alice.id,
            split_rule=SplitRule.EQUAL,
            splits=tuple(compute_equal_split(total, [alice.id, bob.id, carol.id])),
        ),
    )
    db.close()
    return group.id


class TestCommands:
    def test_add_person(self, db_path):
        result = runner.invoke(app, ["add-person", "Alice", "--email", "a@example.com"])

        assert result.exit_code == 0
        assert "Added Alice" in result.output

    def test_balances(self, seeded_group):
        result = runner.invoke(app, ["balances", seeded_group])

        assert result.exit_code == 0
        assert "Alice" in result.output
        assert "60.00" in result.output
        assert "30.00" in result.output

    def test_settle(self, seeded_group):
        result = runner.invoke(app, ["settle", seeded_group])

        assert result.exit_code == 0
        assert "Total transactions: 2" in result.output
        assert "All balances settle to zero" in result.output

    def test_unknown_group_exits_with_error(self, db_path):
        result = runner.invoke(app, ["settle", "no-such-group"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_group_lists_members_in_join_order(self, seeded_group):
        result = runner.invoke(app, ["group", seeded_group])

        assert result.exit_code == 0
        assert "Trip" in result.output
        assert (
            result.output.index("Alice")
            < result.output.index("Bob")
            < result.output.index("Carol")
        )
        assert "creator" in result.output
        assert "Members: 3" in result.output

    def test_group_unknown(self, db_path):
        result = runner.invoke(app, ["group", "no-such-group"])

        assert result.exit_code == 1
        assert "no-such-group" in result.output

    def test_share_without_exact_split_is_rejected(self, seeded_group, db_path):
        result = runner.invoke(
            app,
            ["add-expense", seeded_group, "Taxi", "10.00", "--paid-by", "x", "--share", "x=10.00"],
        )

        assert result.exit_code == 1
        assert "only applies to EXACT" in result.output

        db = Database(db_path)
        try:
            assert len(db.list_expenses(seeded_group)) == 1
        finally:
            db.close()

    def test_non_numeric_amount_is_rejected(self, seeded_group):
        result = runner.invoke(app, ["add-expense", seeded_group, "Taxi", "abc", "--paid-by", "x"])

        assert result.exit_code == 1
        assert "not a valid amount" in result.output
        assert "InvalidOperation" not in result.output


class TestFormatting:
    def test_format_money(self):
        assert format_money(Decimal("85.02"), use_color=False) == " $85.02 "
        assert format_money(Decimal("-85.02"), use_color=False) == "($85.02)"
        assert format_money(Decimal("1234.5"), "€", use_color=False) == " €1,234.50 "

    def test_parse_shares(self):
        entries = parse_shares(["alice=12.50", "bob = 7.50"])

        assert [(e.participant_id, e.amount) for e in entries] == [
            ("alice", Decimal("12.50")),
            ("bob", Decimal("7.50")),
        ]

    @pytest.mark.parametrize("share", ["alice", "alice=", "alice=12,50", "alice=ten"])
    def test_parse_shares_rejects_malformed(self, share):
        with pytest.raises(typer.BadParameter):
            parse_shares([share])

    def test_parse_amount(self):
        assert parse_amount(" 42.5 ", "AMOUNT") == Decimal("42.5")

        with pytest.raises(typer.BadParameter, match="not a valid amount"):
            parse_amount("12..0", "AMOUNT")
