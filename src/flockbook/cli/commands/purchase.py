"""Purchase management commands."""

import click

from flockbook.cli.error_handling import handle_domain_error
from flockbook.cli.parsing import resolve_amount, resolve_date, resolve_weight
from flockbook.config import POULTRY_TYPES
from flockbook.domain.purchase import PurchaseService

PRODUCT_TYPE = click.Choice(POULTRY_TYPES, case_sensitive=False)


@click.group()
def purchase_group():
    """Manage purchases."""
    pass


@purchase_group.command("add")
@click.argument("product_type", metavar="TYPE", type=PRODUCT_TYPE)
@click.argument("pieces", type=int)
@click.argument("weight", metavar="WEIGHT_KG")
@click.argument("rate")
@click.option("--total", help="Total price (defaults to weight x rate)")
@click.option("--date", "date_str", help="Purchase date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--credit", is_flag=True, help="Bought on credit (no cash leaves the box)")
@click.pass_context
def add_purchase(
    ctx, product_type: str, pieces: int, weight: str, rate: str, total: str | None, date_str: str | None, credit: bool
):
    """Record a purchase.

    Examples:
        flockbook purchase add Broiler 100 150 180
        flockbook purchase add Sonali 50 40kg 320 --total 12500 --credit
    """
    service = PurchaseService(ctx.obj["db"], ctx.obj["user"])
    weight_kg = resolve_weight(ctx, weight)
    rate_value = resolve_amount(ctx, rate, "rate")
    total_value = resolve_amount(ctx, total, "total")
    on_date = resolve_date(ctx, date_str)

    try:
        purchase_id = service.add_purchase(
            product_type=product_type,
            pieces=pieces,
            weight_kg=weight_kg,
            rate=rate_value,
            on_date=on_date,
            total=total_value,
            is_credit=credit,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    purchase = service.get_purchase(purchase_id)
    click.echo(f"Added purchase of {pieces} {product_type} for {purchase.total} (ID: {purchase_id})")
    if credit:
        click.echo("Bought on credit, cash ledger unchanged")


@purchase_group.command("list")
@click.option("--type", "product_type", type=PRODUCT_TYPE, help="Only this product type")
@click.pass_context
def list_purchases(ctx, product_type: str | None):
    """List purchases, newest first."""
    service = PurchaseService(ctx.obj["db"], ctx.obj["user"])

    purchases = service.list_purchases(product_type=product_type)
    if not purchases:
        click.echo("No purchases found.")
        return

    click.echo("\nPurchases:")
    click.echo("-" * 80)
    for p in purchases:
        credit = " (credit)" if p.is_credit else ""
        click.echo(
            f"ID: {p.id:4d} | {p.date} | {p.product_type:8s} | {p.pieces:5d} pcs | "
            f"{p.weight_kg:>8} kg @ {p.rate:>7} | {p.total:>10}{credit}"
        )


@purchase_group.command("edit")
@click.argument("purchase_id", type=int)
@click.option("--type", "product_type", type=PRODUCT_TYPE, help="Product type")
@click.option("--pieces", type=int, help="Number of birds")
@click.option("--weight", help="Total weight in kg")
@click.option("--rate", help="Price per kg")
@click.option("--total", help="Total price")
@click.option("--date", "date_str", help="Purchase date")
@click.option("--credit/--cash", default=None, help="Switch between credit and cash purchase")
@click.pass_context
def edit_purchase(
    ctx,
    purchase_id: int,
    product_type: str | None,
    pieces: int | None,
    weight: str | None,
    rate: str | None,
    total: str | None,
    date_str: str | None,
    credit: bool | None,
) -> None:
    """Edit a purchase.

    Updates only the fields that are provided. Closed lots the purchase
    belonged to are rebuilt.

    Examples:
        flockbook purchase edit 3 --pieces 120
        flockbook purchase edit 3 --cash
    """
    service = PurchaseService(ctx.obj["db"], ctx.obj["user"])
    try:
        service.update_purchase(
            purchase_id,
            product_type=product_type,
            pieces=pieces,
            weight_kg=resolve_weight(ctx, weight),
            rate=resolve_amount(ctx, rate, "rate"),
            total=resolve_amount(ctx, total, "total"),
            on_date=resolve_date(ctx, date_str, default_today=False),
            is_credit=credit,
        )
        click.echo(f"Updated purchase {purchase_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@purchase_group.command("delete")
@click.argument("purchase_id", type=int)
@click.pass_context
def delete_purchase(ctx, purchase_id: int) -> None:
    """Delete a purchase and its cash entry."""
    service = PurchaseService(ctx.obj["db"], ctx.obj["user"])

    purchase = service.get_purchase(purchase_id)
    if purchase is None:
        click.echo(f"Error: Purchase {purchase_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete purchase {purchase_id} ({purchase.product_type})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_purchase(purchase_id)
        click.echo(f"Deleted purchase {purchase_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register purchase commands with main CLI."""
    cli.add_command(purchase_group, name="purchase")
