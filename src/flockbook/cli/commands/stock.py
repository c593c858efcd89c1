"""Stock command."""

import click

from flockbook.domain.report import ReportService


@click.command()
@click.pass_context
def stock(ctx):
    """Show current stock per poultry type."""
    service = ReportService(ctx.obj["db"], ctx.obj["user"])

    click.echo("\nStock:")
    click.echo("-" * 50)
    for product_type, level in service.stock().items():
        click.echo(f"{product_type:8s} | {level.pieces:6d} pcs | {level.kg:>10} kg | dead {level.dead:4d}")


def register_commands(cli):
    """Register stock command with main CLI."""
    cli.add_command(stock, name="stock")
