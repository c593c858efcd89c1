"""Database layer for flockbook application."""

from flockbook.database.base import Database
from flockbook.database.factories import create_sqlite_database, create_memory_database

__all__ = ["Database", "create_sqlite_database", "create_memory_database"]
