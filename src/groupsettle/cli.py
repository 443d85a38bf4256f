"""CLI for GroupSettle using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .models import ExpenseInput, SplitEntry, SplitRule, Transfer
from .money import is_negligible, to_decimal
from .service import LedgerService
from .settlement import apply_transfers

app = typer.Typer(
    name="group-settle",
    help="Track shared group expenses and work out who pays whom",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_ledger(verbose: bool) -> Iterator[LedgerService]:
    """Open the ledger database and report failures the same way for every command."""
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_money(amount: Decimal, symbol: str = "$", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"({symbol}[red]{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def parse_amount(value: str, param_hint: str) -> Decimal:
    """Parse a money amount given on the command line."""
    try:
        return to_decimal(value.strip())
    except InvalidOperation as e:
        raise typer.BadParameter(
            f"'{value}' is not a valid amount", param_hint=param_hint
        ) from e


def parse_shares(shares: list[str]) -> list[SplitEntry]:
    """Parse repeated PERSON_ID=AMOUNT options into split entries."""
    entries = []
    for share in shares:
        participant_id, sep, amount = share.partition("=")
        if not sep or not participant_id or not amount:
            raise typer.BadParameter(
                f"Invalid share '{share}', expected PERSON_ID=AMOUNT", param_hint="--share"
            )
        entries.append(
            SplitEntry(
                participant_id=participant_id.strip(),
                amount=parse_amount(amount, "--share"),
            )
        )
    return entries


# ============================================================================
# Participants and groups
# ============================================================================


@app.command("add-person")
def add_person(
    name: str = typer.Argument(..., help="Display name"),
    email: str | None = typer.Option(None, "--email", "-e", help="Unique email"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Register a new person."""
    with open_ledger(verbose) as service:
        participant = service.register_participant(name, email)
        console.print(f"[green]✓ Added {participant.name}[/green] (id: {participant.id})")


@app.command()
def people(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List everyone in the ledger."""
    with open_ledger(verbose) as service:
        participants = service.db.list_participants()
        if not participants:
            console.print("[yellow]No people yet.[/yellow]")
            return

        table = Table(title="People", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Email")
        for participant in participants:
            table.add_row(participant.id, participant.name, participant.email or "—")
        console.print(table)


@app.command("create-group")
def create_group(
    name: str = typer.Argument(..., help="Group name"),
    creator: str = typer.Option(..., "--creator", help="ID of the person creating the group"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create a group. The creator is its first member."""
    with open_ledger(verbose) as service:
        group = service.create_group(name, creator)
        console.print(f"[green]✓ Created group {group.name}[/green] (id: {group.id})")


@app.command("add-member")
def add_member(
    group_id: str = typer.Argument(..., help="Group ID"),
    person_id: str = typer.Argument(..., help="Person ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a person to a group."""
    with open_ledger(verbose) as service:
        group = service.add_member(group_id, person_id)
        console.print(
            f"[green]✓ Added member[/green] ({len(group.member_ids)} members in {group.name})"
        )


@app.command()
def group(
    group_id: str = typer.Argument(..., help="Group ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Show a group and its members in join order.

    The last member listed absorbs any leftover cent of an EQUAL split.
    """
    with open_ledger(verbose) as service:
        found = service.find_group_or_raise(group_id)
        names = service.db.get_participant_names(list(found.member_ids))

        table = Table(title=found.name, show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("ID", style="dim")
        for position, member_id in enumerate(found.member_ids, start=1):
            name = names.get(member_id, "Unknown")
            if member_id == found.created_by:
                name += " [dim](creator)[/dim]"
            table.add_row(str(position), name, member_id)
        console.print(table)
        console.print(f"  Members: {len(found.member_ids)}")


# ============================================================================
# Expenses
# ============================================================================


@app.command("add-expense")
def add_expense(
    group_id: str = typer.Argument(..., help="Group ID"),
    description: str = typer.Argument(..., help="What the money was spent on"),
    amount: str = typer.Argument(..., help="Total amount, e.g. 42.50"),
    paid_by: str = typer.Option(..., "--paid-by", "-p", help="ID of the person who paid"),
    split: SplitRule | None = typer.Option(
        None, "--split", "-s", case_sensitive=False, help="Split rule (EQUAL or EXACT)"
    ),
    share: list[str] = typer.Option(
        [], "--share", help="PERSON_ID=AMOUNT, repeat for each person (EXACT only)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record an expense paid by one person.

    EQUAL splits divide the total among all group members, giving any
    leftover cent to the member who joined last. EXACT splits take one
    --share per person and must add up to the total.
    """
    with open_ledger(verbose) as service:
        split_rule = split or service.settings.default_split_rule
        if share and split_rule != SplitRule.EXACT:
            raise typer.BadParameter(
                f"--share only applies to EXACT splits, not {split_rule.value}",
                param_hint="--share",
            )

        expense = ExpenseInput(
            description=description,
            total_amount=parse_amount(amount, "AMOUNT"),
            paid_by=paid_by,
            split_rule=split_rule,
            splits=parse_shares(share) or None,
        )
        record = service.create_expense(group_id, expense)

        symbol = service.settings.currency_symbol
        names = service.db.get_participant_names([s.participant_id for s in record.splits])

        table = Table(title=record.description, show_header=True, header_style="bold magenta")
        table.add_column("Person", style="cyan")
        table.add_column("Owes", justify="right")
        for entry in record.splits:
            table.add_row(
                names.get(entry.participant_id, entry.participant_id),
                format_money(entry.amount, symbol),
            )
        console.print(table)
        console.print(f"\n[bold green]✓ Expense recorded[/bold green] (id: {record.id})")


@app.command()
def expenses(
    group_id: str = typer.Argument(..., help="Group ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List the expenses recorded in a group."""
    with open_ledger(verbose) as service:
        records = service.list_expenses(group_id)
        if not records:
            console.print("[yellow]No expenses recorded.[/yellow]")
            return

        symbol = service.settings.currency_symbol
        names = service.db.get_participant_names(list({r.paid_by for r in records}))

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Date", style="dim")
        table.add_column("Description", style="cyan", width=40)
        table.add_column("Paid by")
        table.add_column("Split", justify="center")
        table.add_column("Amount", justify="right", width=12)

        for record in records:
            desc = record.description
            table.add_row(
                record.id or "",
                str(record.created_at.date()),
                desc[:40] + "..." if len(desc) > 40 else desc,
                names.get(record.paid_by, "Unknown"),
                record.split_rule.value,
                format_money(record.total_amount, symbol),
            )
        console.print(table)


@app.command("delete-expense")
def delete_expense(
    expense_id: str = typer.Argument(..., help="Expense ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense and its splits."""
    if not yes and not typer.confirm(f"Delete expense {expense_id}?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    with open_ledger(verbose) as service:
        service.delete_expense(expense_id)
        console.print("[green]✓ Expense deleted[/green]")


# ============================================================================
# Balances and settlements
# ============================================================================


@app.command()
def balances(
    group_id: str = typer.Argument(..., help="Group ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show each person's net balance in a group."""
    with open_ledger(verbose) as service:
        report = service.calculate_balances(group_id)
        if not report.balances:
            console.print("[yellow]No balances: nothing has been spent yet.[/yellow]")
            return

        symbol = service.settings.currency_symbol
        table = Table(title="Balances", show_header=True, header_style="bold magenta")
        table.add_column("Person", style="cyan")
        table.add_column("Balance", justify="right", width=14)
        table.add_column("Status")

        status_labels = {
            "GETS_BACK": "[green]gets back[/green]",
            "OWES_MONEY": "[red]owes[/red]",
            "SETTLED": "[dim]settled[/dim]",
        }
        for member in report.balances:
            table.add_row(
                member.name,
                format_money(member.balance, symbol),
                status_labels[member.status.value],
            )
        console.print(table)


@app.command("settle")
def settle_up(
    group_id: str = typer.Argument(..., help="Group ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the payments that settle everyone in a group."""
    with open_ledger(verbose) as service:
        plan = service.calculate_settlements(group_id)
        if not plan.settlements:
            console.print("[green]✓ Everyone is settled up.[/green]")
            return

        symbol = service.settings.currency_symbol
        table = Table(title="Settle Up", show_header=True, header_style="bold magenta")
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Amount", justify="right", width=14)
        for line in plan.settlements:
            table.add_row(line.from_name, line.to_name, format_money(line.amount, symbol))
        console.print(table)

        console.print()
        console.print("[bold]Summary:[/bold]")
        console.print(f"  Total transactions: {plan.total_transactions}")

        # Verification
        net = {b.participant_id: b.balance for b in service.calculate_balances(group_id).balances}
        transfers = [
            Transfer(from_id=line.from_id, to_id=line.to_id, amount=line.amount)
            for line in plan.settlements
        ]
        remaining = apply_transfers(net, transfers)
        if all(is_negligible(amount) for amount in remaining.values()):
            console.print("  [green]✓ All balances settle to zero[/green]")
        else:
            console.print("  [red]✗ Some balances remain after these payments[/red]")


if __name__ == "__main__":
    app()
