"""Report commands."""

import click

from flockbook.cli.parsing import resolve_date
from flockbook.domain.due import DueService
from flockbook.domain.entities import ReportPeriod
from flockbook.domain.report import ReportService


@click.group()
def report_group():
    """Profit and loss reports."""
    pass


@report_group.command("summary")
@click.option(
    "--period",
    type=click.Choice([p.value for p in ReportPeriod], case_sensitive=False),
    default=ReportPeriod.MONTHLY.value,
    show_default=True,
    help="Report period",
)
@click.option("--date", "date_str", help="Reference date (defaults to today)")
@click.pass_context
def summary(ctx, period: str, date_str: str | None):
    """Show purchases, sales, expenses and net profit for a period.

    Examples:
        flockbook report summary
        flockbook report summary --period YEARLY
        flockbook report summary --period DAILY --date yesterday
    """
    service = ReportService(ctx.obj["db"], ctx.obj["user"])
    report = service.period_report(ReportPeriod(period.upper()), today=resolve_date(ctx, date_str))

    if report.start_date is None:
        click.echo("\nSummary (all time)")
    else:
        click.echo(f"\nSummary {report.start_date} to {report.end_date}")
    click.echo("-" * 40)
    click.echo(f"Purchases:       {report.total_purchase:>12}")
    click.echo(f"Sales:           {report.total_sale:>12}")
    click.echo(f"Expenses:        {report.total_expense:>12}")
    click.echo(f"Cash adjustment: {report.total_adjustment:>12}")
    click.echo("-" * 40)
    label = "Net profit" if report.net_profit >= 0 else "Net loss"
    click.echo(f"{label + ':':17s}{abs(report.net_profit):>12}")


@report_group.command("overview")
@click.pass_context
def overview(ctx):
    """Show cash, outstanding dues and archived profit at a glance."""
    snapshot = ReportService(ctx.obj["db"], ctx.obj["user"]).snapshot()
    outstanding = DueService(ctx.obj["db"], ctx.obj["user"]).total_outstanding()

    click.echo(f"Cash balance:      {snapshot.cash_balance}")
    click.echo(f"Outstanding dues:  {outstanding}")
    click.echo(f"Archived lots:     {len(snapshot.lot_history)}")
    click.echo(f"Archived profit:   {sum(a.profit for a in snapshot.lot_history)}")
    in_stock = {t: level.pieces for t, level in snapshot.stock.items() if level.pieces}
    if in_stock:
        click.echo("In stock:          " + ", ".join(f"{t} {pieces}" for t, pieces in in_stock.items()))


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
