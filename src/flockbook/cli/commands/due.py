"""Customer due commands."""

import click

from flockbook.cli.error_handling import handle_domain_error
from flockbook.cli.parsing import resolve_amount, resolve_date
from flockbook.domain.due import DueService
from flockbook.domain.entities import DueLogType


@click.group()
def due_group():
    """Manage customer dues."""
    pass


@due_group.command("create")
@click.argument("customer_name", metavar="CUSTOMER_NAME")
@click.argument("amount")
@click.option("--mobile", help="Customer mobile number")
@click.option("--date", "date_str", help="Date the debt was given")
@click.pass_context
def create_due(ctx, customer_name: str, amount: str, mobile: str | None, date_str: str | None):
    """Open a due account for a customer.

    Examples:
        flockbook due create "Rahim" 1500 --mobile 01711000000
    """
    service = DueService(ctx.obj["db"], ctx.obj["user"])
    try:
        due_id = service.create_due(
            customer_name=customer_name,
            amount=resolve_amount(ctx, amount),
            on_date=resolve_date(ctx, date_str),
            mobile=mobile,
        )
        click.echo(f"Opened due for '{customer_name}' (ID: {due_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


def _add_entry(ctx, due_id: int, type: DueLogType, amount: str, date_str: str | None) -> None:
    service = DueService(ctx.obj["db"], ctx.obj["user"])
    try:
        entry = service.add_transaction(
            due_id, type, resolve_amount(ctx, amount), on_date=resolve_date(ctx, date_str)
        )
        due = service.require_due(due_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    action = "Collected" if type == DueLogType.ADD else "Gave"
    click.echo(f"{action} {entry.amount} for '{due.customer_name}' (entry {entry.id})")
    click.echo(f"Balance: {due.balance}")


@due_group.command("pay")
@click.argument("due_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", help="Payment date")
@click.pass_context
def pay_due(ctx, due_id: int, amount: str, date_str: str | None):
    """Record a payment received from a customer."""
    _add_entry(ctx, due_id, DueLogType.ADD, amount, date_str)


@due_group.command("give")
@click.argument("due_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", help="Date the debt was given")
@click.pass_context
def give_due(ctx, due_id: int, amount: str, date_str: str | None):
    """Record more goods or cash given on credit."""
    _add_entry(ctx, due_id, DueLogType.DUE, amount, date_str)


@due_group.command("remove-entry")
@click.argument("due_id", type=int)
@click.argument("log_id", type=int)
@click.pass_context
def remove_entry(ctx, due_id: int, log_id: int):
    """Remove one entry from a customer's due history."""
    service = DueService(ctx.obj["db"], ctx.obj["user"])
    try:
        service.delete_transaction(due_id, log_id)
        click.echo(f"Removed entry {log_id} from due {due_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@due_group.command("list")
@click.option("--search", help="Match customer name or mobile")
@click.pass_context
def list_dues(ctx, search: str | None):
    """List customer dues."""
    service = DueService(ctx.obj["db"], ctx.obj["user"])

    dues = service.list_dues(search=search)
    if not dues:
        click.echo("No dues found.")
        return

    click.echo("\nDues:")
    click.echo("-" * 80)
    for d in dues:
        mobile = d.mobile or "-"
        click.echo(
            f"ID: {d.id:4d} | {d.customer_name:20s} | {mobile:14s} | "
            f"due {d.amount:>10} | paid {d.paid:>10} | balance {d.balance:>10}"
        )
    click.echo("-" * 80)
    click.echo(f"Total outstanding: {service.total_outstanding()}")


@due_group.command("history")
@click.argument("due_id", type=int)
@click.pass_context
def due_history(ctx, due_id: int):
    """Show a customer's entries with running balance, newest first."""
    service = DueService(ctx.obj["db"], ctx.obj["user"])
    try:
        due = service.require_due(due_id)
        rows = service.history(due_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nHistory for '{due.customer_name}':")
    click.echo("-" * 70)
    for row in rows:
        label = "Payment" if row.log.type == DueLogType.ADD else "Due"
        click.echo(
            f"{row.log.id} | {row.log.date} {row.log.time:8s} | {label:7s} | "
            f"{row.log.amount:>10} | balance {row.balance:>10}"
        )


@due_group.command("edit")
@click.argument("due_id", type=int)
@click.option("--name", "customer_name", help="Customer name")
@click.option("--mobile", help="Customer mobile number")
@click.pass_context
def edit_due(ctx, due_id: int, customer_name: str | None, mobile: str | None):
    """Edit customer details."""
    service = DueService(ctx.obj["db"], ctx.obj["user"])
    try:
        service.update_details(due_id, customer_name=customer_name, mobile=mobile)
        click.echo(f"Updated due {due_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@due_group.command("delete")
@click.argument("due_id", type=int)
@click.pass_context
def delete_due(ctx, due_id: int):
    """Delete a due account and all of its cash entries."""
    service = DueService(ctx.obj["db"], ctx.obj["user"])

    due = service.get_due(due_id)
    if due is None:
        click.echo(f"Error: Due record {due_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete the due of '{due.customer_name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_due(due_id)
        click.echo(f"Deleted due of '{due.customer_name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register due commands with main CLI."""
    cli.add_command(due_group, name="due")
