#!/usr/bin/env python3
"""Migration script to link cash logs to their source records by column.

Older databases linked a cash log to the purchase, sale, expense or due
entry it mirrors only through a ``[ref:<kind>:<id>]`` token in its note.
This migration:
- adds source_kind (VARCHAR), source_id (INTEGER) and source_entry (INTEGER)
  to the cash_logs table if they are missing
- fills them in for every cash log whose note carries a token

Notes are left untouched, so the tokens keep working for lookups.

Usage:
    python migrations/migrate_backfill_cash_log_sources.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import flockbook modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import text, inspect
from flockbook.database.factories import create_sqlite_database
from flockbook.domain.references import parse_reference

SOURCE_COLUMNS = (
    ("source_kind", "VARCHAR"),
    ("source_id", "INTEGER"),
    ("source_entry", "INTEGER"),
)


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column

    Returns:
        True if column exists, False otherwise
    """
    inspector = inspect(engine)
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def backfill_sources(conn) -> int:
    """Copy back-reference tokens from notes into the source columns.

    Args:
        conn: Open connection inside a transaction

    Returns:
        Number of cash logs linked
    """
    rows = conn.execute(
        text("SELECT id, note FROM cash_logs WHERE source_kind IS NULL AND note LIKE '%[ref:%'")
    ).fetchall()

    linked = 0
    for log_id, note in rows:
        reference = parse_reference(note)
        if reference is None:
            continue
        conn.execute(
            text(
                "UPDATE cash_logs SET source_kind = :kind, source_id = :source_id, source_entry = :entry "
                "WHERE id = :id"
            ),
            {
                "kind": reference.kind.value,
                "source_id": reference.source_id,
                "entry": reference.entry,
                "id": log_id,
            },
        )
        linked += 1
    return linked


def migrate_database(database_path: str | None = None) -> None:
    """Migrate database to link cash logs to their sources.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        Exception: If migration fails
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise Exception("Could not get database engine from session")
        finally:
            session.close()

        inspector = inspect(engine)
        if "cash_logs" not in inspector.get_table_names():
            raise Exception("Table 'cash_logs' does not exist. Please initialize the database schema first.")

        print("Starting migration: linking cash logs to their sources...")

        missing = [
            (column_name, column_type)
            for column_name, column_type in SOURCE_COLUMNS
            if not column_exists(engine, "cash_logs", column_name)
        ]

        with engine.begin() as conn:
            for column_name, column_type in missing:
                conn.execute(text(f"ALTER TABLE cash_logs ADD COLUMN {column_name} {column_type}"))
                print(f"  Added column: {column_name}")

            conn.execute(
                text(
                    "CREATE INDEX IF NOT EXISTS ix_cash_logs_source "
                    "ON cash_logs (user_id, source_kind, source_id)"
                )
            )

            linked = backfill_sources(conn)
            print(f"  Linked {linked} cash log(s) to their source records")

        print("Migration completed successfully!")

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to link cash logs to their source records"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides FLOCKBOOK_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
