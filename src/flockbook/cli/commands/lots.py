"""Lot archive commands."""

import click

from flockbook.cli.error_handling import handle_domain_error
from flockbook.config import POULTRY_TYPES
from flockbook.domain.lots import LotService
from flockbook.domain.stock import lot_state

PRODUCT_TYPE = click.Choice(POULTRY_TYPES, case_sensitive=False)


@click.group()
def lots_group():
    """Inspect and rebuild lot history."""
    pass


@lots_group.command("status")
@click.pass_context
def lot_status(ctx):
    """Show the open lot of every poultry type."""
    service = LotService(ctx.obj["db"], ctx.obj["user"])

    click.echo("\nOpen lots:")
    click.echo("-" * 70)
    for product_type in POULTRY_TYPES:
        window = service.current_window(product_type)
        click.echo(
            f"{product_type:8s} | {lot_state(window).value:8s} | "
            f"bought {window.purchased_pieces:5d} | remaining {window.remaining_pieces:5d} | "
            f"cost {window.total_purchase:>10} | sales {window.total_sale:>10}"
        )


@lots_group.command("history")
@click.option("--type", "product_type", type=PRODUCT_TYPE, help="Only this product type")
@click.pass_context
def lot_history(ctx, product_type: str | None):
    """List archived lots, newest first."""
    service = LotService(ctx.obj["db"], ctx.obj["user"])

    archives = service.history(product_type)
    if not archives:
        click.echo("No archived lots found.")
        return

    click.echo("\nArchived lots:")
    click.echo("-" * 80)
    for a in archives:
        click.echo(
            f"ID: {a.id:4d} | {a.date:%Y-%m-%d %H:%M} | {a.product_type:8s} | "
            f"cost {a.total_purchase:>10} | sales {a.total_sale:>10} | profit {a.profit:>10}"
        )
    click.echo("-" * 80)
    click.echo(f"Total profit: {service.total_profit(product_type)}")


@lots_group.command("rebuild")
@click.argument("product_type", metavar="TYPE", type=PRODUCT_TYPE)
@click.pass_context
def rebuild_lots(ctx, product_type: str):
    """Regenerate the archived lots of a type from its records."""
    service = LotService(ctx.obj["db"], ctx.obj["user"])
    try:
        archive_ids = service.rebuild(product_type)
        click.echo(f"Rebuilt {len(archive_ids)} archived lot(s) for {product_type}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@lots_group.command("check")
@click.argument("product_type", metavar="TYPE", type=PRODUCT_TYPE)
@click.pass_context
def check_lot(ctx, product_type: str):
    """Archive the open lot of a type if it has sold through."""
    service = LotService(ctx.obj["db"], ctx.obj["user"])
    try:
        archive_id = service.check_and_archive(product_type)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if archive_id is None:
        click.echo(f"{product_type} lot is still open")
    else:
        click.echo(f"Archived {product_type} lot (ID: {archive_id})")


def register_commands(cli):
    """Register lot commands with main CLI."""
    cli.add_command(lots_group, name="lots")
