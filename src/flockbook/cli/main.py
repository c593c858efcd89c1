"""Main CLI entry point."""

import logging

import click

from flockbook.config import DB_PATH_ENV, DEFAULT_USER, USER_ENV, default_log_level
from flockbook.database.factories import create_sqlite_database
from flockbook.log import configure_logging

# Import and register all commands at module level
from flockbook.cli.commands import (
    purchase,
    sale,
    expense,
    due,
    cash,
    stock,
    lots,
    report,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--user",
    default=DEFAULT_USER,
    show_default=True,
    help=f"Owning user of the books (overrides {USER_ENV} environment variable)",
    envvar=USER_ENV,
)
@click.option("-v", "--verbose", is_flag=True, help="Log lot and cash bookkeeping to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, user: str, verbose: bool):
    """Flockbook - poultry shop bookkeeping.

    Track purchases, sales, expenses, customer dues and cash on hand, with
    lots archived automatically once their stock is sold through.
    """
    ctx.ensure_object(dict)
    configure_logging(logging.INFO if verbose else default_log_level())

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user"] = user
        ctx.call_on_close(db.disconnect)


# Register all commands
purchase.register_commands(cli)
sale.register_commands(cli)
expense.register_commands(cli)
due.register_commands(cli)
cash.register_commands(cli)
stock.register_commands(cli)
lots.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
