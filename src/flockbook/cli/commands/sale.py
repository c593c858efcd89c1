"""Sale management commands."""

import click

from flockbook.cli.error_handling import handle_domain_error
from flockbook.cli.parsing import resolve_amount, resolve_date, resolve_weight
from flockbook.config import POULTRY_TYPES
from flockbook.domain.sale import SaleService

PRODUCT_TYPE = click.Choice(POULTRY_TYPES, case_sensitive=False)


@click.group()
def sale_group():
    """Manage sales and mortality."""
    pass


@sale_group.command("add")
@click.argument("product_type", metavar="TYPE", type=PRODUCT_TYPE)
@click.argument("pieces", type=int)
@click.option("--mortality", type=int, default=0, show_default=True, help="Birds that died")
@click.option("--weight", help="Sold weight in kg")
@click.option("--rate", help="Price per kg (or per piece without --weight)")
@click.option("--total", help="Sale income (defaults to weight or pieces x rate)")
@click.option("--date", "date_str", help="Sale date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.pass_context
def add_sale(
    ctx,
    product_type: str,
    pieces: int,
    mortality: int,
    weight: str | None,
    rate: str | None,
    total: str | None,
    date_str: str | None,
):
    """Record a sale.

    Use PIECES 0 with --mortality to write off dead birds.

    Examples:
        flockbook sale add Broiler 40 --weight 70 --rate 210
        flockbook sale add Broiler 0 --mortality 3
    """
    service = SaleService(ctx.obj["db"], ctx.obj["user"])
    try:
        sale_id = service.add_sale(
            product_type=product_type,
            pieces=pieces,
            on_date=resolve_date(ctx, date_str),
            total=resolve_amount(ctx, total, "total"),
            mortality=mortality,
            weight_kg=resolve_weight(ctx, weight),
            rate=resolve_amount(ctx, rate, "rate"),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    sale = service.get_sale(sale_id)
    click.echo(f"Added sale of {pieces} {product_type} for {sale.total} (ID: {sale_id})")
    if mortality:
        click.echo(f"Recorded {mortality} dead")


@sale_group.command("list")
@click.option("--type", "product_type", type=PRODUCT_TYPE, help="Only this product type")
@click.pass_context
def list_sales(ctx, product_type: str | None):
    """List sales, newest first."""
    service = SaleService(ctx.obj["db"], ctx.obj["user"])

    sales = service.list_sales(product_type=product_type)
    if not sales:
        click.echo("No sales found.")
        return

    click.echo("\nSales:")
    click.echo("-" * 80)
    for s in sales:
        weight = f"{s.weight_kg} kg" if s.weight_kg is not None else "-"
        click.echo(
            f"ID: {s.id:4d} | {s.date} | {s.product_type:8s} | {s.pieces:5d} pcs | "
            f"dead {s.mortality:3d} | {weight:>10} | {s.total:>10}"
        )


@sale_group.command("edit")
@click.argument("sale_id", type=int)
@click.option("--type", "product_type", type=PRODUCT_TYPE, help="Product type")
@click.option("--pieces", type=int, help="Birds sold")
@click.option("--mortality", type=int, help="Birds that died")
@click.option("--weight", help="Sold weight in kg")
@click.option("--rate", help="Price per kg")
@click.option("--total", help="Sale income")
@click.option("--date", "date_str", help="Sale date")
@click.pass_context
def edit_sale(
    ctx,
    sale_id: int,
    product_type: str | None,
    pieces: int | None,
    mortality: int | None,
    weight: str | None,
    rate: str | None,
    total: str | None,
    date_str: str | None,
) -> None:
    """Edit a sale.

    Updates only the fields that are provided. Closed lots the sale
    belonged to are rebuilt.
    """
    service = SaleService(ctx.obj["db"], ctx.obj["user"])
    try:
        service.update_sale(
            sale_id,
            product_type=product_type,
            pieces=pieces,
            total=resolve_amount(ctx, total, "total"),
            on_date=resolve_date(ctx, date_str, default_today=False),
            mortality=mortality,
            weight_kg=resolve_weight(ctx, weight),
            rate=resolve_amount(ctx, rate, "rate"),
        )
        click.echo(f"Updated sale {sale_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@sale_group.command("delete")
@click.argument("sale_id", type=int)
@click.pass_context
def delete_sale(ctx, sale_id: int) -> None:
    """Delete a sale and its cash entry."""
    service = SaleService(ctx.obj["db"], ctx.obj["user"])

    sale = service.get_sale(sale_id)
    if sale is None:
        click.echo(f"Error: Sale {sale_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete sale {sale_id} ({sale.product_type})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_sale(sale_id)
        click.echo(f"Deleted sale {sale_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
