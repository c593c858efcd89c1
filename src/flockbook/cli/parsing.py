"""CLI helpers for parsing option values."""

from datetime import date
from decimal import Decimal

import click

from flockbook.utils.amount_parser import parse_amount, parse_weight
from flockbook.utils.date_parser import parse_date


def resolve_date(ctx: click.Context, value: str | None, default_today: bool = True) -> date | None:
    """Parse a --date option, defaulting to today."""
    if value is None:
        return date.today() if default_today else None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def resolve_amount(ctx: click.Context, value: str | None, label: str = "amount") -> Decimal | None:
    """Parse an amount option or argument; None stays None."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)


def resolve_weight(ctx: click.Context, value: str | None) -> Decimal | None:
    """Parse a weight option or argument; None stays None."""
    if value is None:
        return None
    try:
        return parse_weight(value)
    except ValueError as e:
        click.echo(f"Error: Invalid weight format: {e}", err=True)
        ctx.exit(1)


def resolve_note_counts(ctx: click.Context, values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated NOTE=COUNT pairs from a cash count."""
    counts = {}
    for value in values:
        note, sep, count = value.partition("=")
        if not sep or not note.strip() or not count.strip():
            click.echo(f"Error: Expected NOTE=COUNT, got '{value}'", err=True)
            ctx.exit(1)
        counts[note.strip()] = count.strip()
    return counts
