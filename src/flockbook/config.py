"""Static configuration for flockbook."""

import os
from typing import Final

DB_PATH_ENV: Final[str] = "FLOCKBOOK_DB_PATH"
USER_ENV: Final[str] = "FLOCKBOOK_USER"
LOG_LEVEL_ENV: Final[str] = "FLOCKBOOK_LOG_LEVEL"

DEFAULT_USER: Final[str] = "owner"
DEFAULT_DB_DIR: Final[str] = ".flockbook"
DEFAULT_DB_NAME: Final[str] = "flockbook.db"

POULTRY_TYPES: Final[tuple[str, ...]] = ("Broiler", "Sonali", "Layer", "Deshi", "Cock")

EXPENSE_CATEGORIES: Final[tuple[str, ...]] = (
    "Daily",
    "Feed",
    "Salary",
    "Electricity",
    "Gas",
    "Other",
)

# Taka notes counted during a cash count, largest first.
NOTES: Final[tuple[int, ...]] = (1000, 500, 200, 100, 50, 20, 10, 5, 2, 1)

OWNER_DEPOSIT_NOTE: Final[str] = "Owner deposit"
OWNER_WITHDRAWAL_NOTE: Final[str] = "Owner withdrawal"
OPENING_CASH_NOTE: Final[str] = "Opening cash"
CASH_MATCHED_NOTE: Final[str] = "Cash matched"
CASH_ADJUSTMENT_PREFIX: Final[str] = "Cash adjustment"


def default_user() -> str:
    """Owning user id, from the environment or the default."""
    return os.environ.get(USER_ENV) or DEFAULT_USER


def default_log_level() -> str:
    """Log level name, from the environment or WARNING."""
    return (os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
