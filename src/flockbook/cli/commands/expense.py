"""Expense management commands."""

import click

from flockbook.cli.error_handling import handle_domain_error
from flockbook.cli.parsing import resolve_amount, resolve_date
from flockbook.config import EXPENSE_CATEGORIES
from flockbook.domain.expense import ExpenseService


@click.group()
def expense_group():
    """Manage expenses."""
    pass


@expense_group.command("add")
@click.argument("category")
@click.argument("amount")
@click.option("--note", help="Free-text note")
@click.option("--date", "date_str", help="Expense date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.pass_context
def add_expense(ctx, category: str, amount: str, note: str | None, date_str: str | None):
    """Record an expense paid from the cash box.

    CATEGORY is usually one of: Daily, Feed, Salary, Electricity, Gas, Other.

    Examples:
        flockbook expense add Feed 2500 --note "2 bags starter"
    """
    service = ExpenseService(ctx.obj["db"], ctx.obj["user"])
    if category not in EXPENSE_CATEGORIES:
        click.echo(f"Note: '{category}' is not a standard category")

    try:
        expense_id = service.add_expense(
            category=category,
            amount=resolve_amount(ctx, amount),
            on_date=resolve_date(ctx, date_str),
            note=note,
        )
        click.echo(f"Added expense '{category}' (ID: {expense_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("list")
@click.pass_context
def list_expenses(ctx):
    """List expenses, newest first."""
    service = ExpenseService(ctx.obj["db"], ctx.obj["user"])

    expenses = service.list_expenses()
    if not expenses:
        click.echo("No expenses found.")
        return

    click.echo("\nExpenses:")
    click.echo("-" * 70)
    for e in expenses:
        click.echo(f"ID: {e.id:4d} | {e.date} | {e.category:12s} | {e.amount:>10} | {e.note}")


@expense_group.command("edit")
@click.argument("expense_id", type=int)
@click.option("--category", help="Category")
@click.option("--amount", help="Amount")
@click.option("--note", help="Note")
@click.option("--date", "date_str", help="Expense date")
@click.pass_context
def edit_expense(
    ctx, expense_id: int, category: str | None, amount: str | None, note: str | None, date_str: str | None
) -> None:
    """Edit an expense and its cash entry."""
    service = ExpenseService(ctx.obj["db"], ctx.obj["user"])
    try:
        service.update_expense(
            expense_id,
            category=category,
            amount=resolve_amount(ctx, amount),
            on_date=resolve_date(ctx, date_str, default_today=False),
            note=note,
        )
        click.echo(f"Updated expense {expense_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("delete")
@click.argument("expense_id", type=int)
@click.pass_context
def delete_expense(ctx, expense_id: int) -> None:
    """Delete an expense and its cash entry."""
    service = ExpenseService(ctx.obj["db"], ctx.obj["user"])

    expense = service.get_expense(expense_id)
    if expense is None:
        click.echo(f"Error: Expense {expense_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete expense {expense_id} ({expense.category})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_expense(expense_id)
        click.echo(f"Deleted expense {expense_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
