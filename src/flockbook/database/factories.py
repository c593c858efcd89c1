"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from sqlalchemy.pool import StaticPool

from flockbook.config import DB_PATH_ENV, DEFAULT_DB_DIR, DEFAULT_DB_NAME
from flockbook.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks FLOCKBOOK_DB_PATH
            environment variable, then defaults to ~/.flockbook/flockbook.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        db_dir = Path.home() / DEFAULT_DB_DIR
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / DEFAULT_DB_NAME)

    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_memory_database() -> SQLAlchemyDatabase:
    """Create an in-memory SQLite database that lives as long as the instance."""
    return SQLAlchemyDatabase(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
