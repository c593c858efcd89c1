"""Cash ledger commands."""

import click

from flockbook.cli.error_handling import handle_domain_error
from flockbook.cli.parsing import resolve_amount, resolve_date, resolve_note_counts
from flockbook.config import NOTES
from flockbook.domain.cash import CashService, display_note
from flockbook.domain.entities import CashLogType

CASH_TYPE = click.Choice([t.value for t in CashLogType], case_sensitive=False)


@click.group()
def cash_group():
    """Manage cash on hand."""
    pass


@cash_group.command("add")
@click.argument("type", type=CASH_TYPE)
@click.argument("amount")
@click.option("--note", help="Note (defaults to a description of the type)")
@click.option("--date", "date_str", help="Date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.pass_context
def add_cash(ctx, type: str, amount: str, note: str | None, date_str: str | None):
    """Record a manual cash movement.

    TYPE is OPENING, ADD (owner deposit) or WITHDRAW (owner withdrawal).

    Examples:
        flockbook cash add OPENING 5000
        flockbook cash add WITHDRAW 1000 --note "Rent"
    """
    service = CashService(ctx.obj["db"], ctx.obj["user"])
    try:
        log_id = service.add_cash_log(
            CashLogType(type.upper()), resolve_amount(ctx, amount), resolve_date(ctx, date_str), note=note
        )
        click.echo(f"Added cash entry (ID: {log_id})")
        click.echo(f"Balance: {service.balance()}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@cash_group.command("list")
@click.option("--date", "date_str", help="Only entries of this date")
@click.pass_context
def list_cash(ctx, date_str: str | None):
    """List cash entries, newest first."""
    service = CashService(ctx.obj["db"], ctx.obj["user"])

    logs = service.list_cash_logs(on_date=resolve_date(ctx, date_str, default_today=False))
    if not logs:
        click.echo("No cash entries found.")
        return

    click.echo("\nCash entries:")
    click.echo("-" * 70)
    for log in logs:
        sign = "-" if log.type == CashLogType.WITHDRAW else "+"
        click.echo(f"ID: {log.id:4d} | {log.date} | {log.type.value:8s} | {sign}{log.amount:>10} | {display_note(log.note)}")


@cash_group.command("edit")
@click.argument("log_id", type=int)
@click.option("--type", "type_", type=CASH_TYPE, help="Entry type")
@click.option("--amount", help="Amount")
@click.option("--note", help="Note")
@click.option("--date", "date_str", help="Date")
@click.pass_context
def edit_cash(ctx, log_id: int, type_: str | None, amount: str | None, note: str | None, date_str: str | None):
    """Edit a manual cash entry."""
    service = CashService(ctx.obj["db"], ctx.obj["user"])
    try:
        service.update_cash_log(
            log_id,
            type=CashLogType(type_.upper()) if type_ is not None else None,
            amount=resolve_amount(ctx, amount),
            on_date=resolve_date(ctx, date_str, default_today=False),
            note=note,
        )
        click.echo(f"Updated cash entry {log_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@cash_group.command("delete")
@click.argument("log_id", type=int)
@click.pass_context
def delete_cash(ctx, log_id: int):
    """Delete a cash entry."""
    service = CashService(ctx.obj["db"], ctx.obj["user"])
    if not click.confirm(f"Are you sure you want to delete cash entry {log_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_cash_log(log_id)
        click.echo(f"Deleted cash entry {log_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@cash_group.command("balance")
@click.pass_context
def cash_balance(ctx):
    """Show cash on hand."""
    service = CashService(ctx.obj["db"], ctx.obj["user"])
    click.echo(f"Cash balance: {service.balance()}")


@cash_group.command("count")
@click.option("--note", "notes", multiple=True, metavar="NOTE=COUNT", help="Counted notes, e.g. 500=4")
@click.option("--edit", "log_id", type=int, help="Rewrite an earlier cash count")
@click.option("--date", "date_str", help="Date of the count")
@click.pass_context
def count_cash(ctx, notes: tuple[str, ...], log_id: int | None, date_str: str | None):
    """Reconcile the ledger against a physical note count.

    Examples:
        flockbook cash count --note 1000=3 --note 500=4 --note 20=7
    """
    service = CashService(ctx.obj["db"], ctx.obj["user"])
    counts = resolve_note_counts(ctx, notes)
    unknown = [note for note in counts if not note.isdigit() or int(note) not in NOTES]
    if unknown:
        click.echo(f"Error: Unknown note value(s): {', '.join(unknown)}", err=True)
        ctx.exit(1)

    try:
        result = service.record_cash_count(counts, resolve_date(ctx, date_str), log_id=log_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Physical cash: {result.physical_total}")
    click.echo(f"Ledger balance: {result.system_balance}")
    if result.gap == 0:
        click.echo("Cash matched")
    elif result.gap > 0:
        click.echo(f"Excess: {result.gap}")
    else:
        click.echo(f"Short: {-result.gap}")


@cash_group.command("counts")
@click.pass_context
def list_counts(ctx):
    """Show cash count history."""
    service = CashService(ctx.obj["db"], ctx.obj["user"])

    counts = service.list_cash_counts()
    if not counts:
        click.echo("No cash counts found.")
        return

    for log in counts:
        notes = ", ".join(f"{note}x{count}" for note, count in log.denominations.items())
        click.echo(f"ID: {log.id:4d} | {log.date} | {log.note} | {notes}")


@cash_group.command("reconcile")
@click.pass_context
def reconcile_cash(ctx):
    """Repair cash entries of purchases, sales, expenses and dues."""
    service = CashService(ctx.obj["db"], ctx.obj["user"])
    try:
        result = service.reconcile_mirrors()
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Synced {result['synced']} cash entries, removed {result['orphans_removed']} orphaned")


def register_commands(cli):
    """Register cash commands with main CLI."""
    cli.add_command(cash_group, name="cash")
