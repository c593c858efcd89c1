"""Shared pytest fixtures for flockbook tests."""

import tempfile
import os
from datetime import datetime, timedelta, UTC
import pytest

from flockbook.database.factories import create_sqlite_database
from flockbook.domain.cash import CashService
from flockbook.domain.due import DueService
from flockbook.domain.expense import ExpenseService
from flockbook.domain.lots import LotService
from flockbook.domain.purchase import PurchaseService
from flockbook.domain.report import ReportService
from flockbook.domain.sale import SaleService

USER = "test-user"


class TickingClock:
    """Clock that moves forward one second every time it is read."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_id():
    """Owning user of the test books."""
    return USER


@pytest.fixture
def clock():
    """Controllable clock starting at 2024-03-01 08:00 UTC."""
    return TickingClock(datetime(2024, 3, 1, 8, 0, tzinfo=UTC))


@pytest.fixture
def purchase_service(temp_db, user_id, clock):
    """Create a PurchaseService with a temporary database."""
    return PurchaseService(temp_db, user_id, clock=clock)


@pytest.fixture
def sale_service(temp_db, user_id, clock):
    """Create a SaleService with a temporary database."""
    return SaleService(temp_db, user_id, clock=clock)


@pytest.fixture
def expense_service(temp_db, user_id):
    """Create an ExpenseService with a temporary database."""
    return ExpenseService(temp_db, user_id)


@pytest.fixture
def due_service(temp_db, user_id, clock):
    """Create a DueService with a temporary database."""
    return DueService(temp_db, user_id, clock=clock)


@pytest.fixture
def cash_service(temp_db, user_id):
    """Create a CashService with a temporary database."""
    return CashService(temp_db, user_id)


@pytest.fixture
def lot_service(temp_db, user_id, clock):
    """Create a LotService with a temporary database."""
    return LotService(temp_db, user_id, clock=clock)


@pytest.fixture
def report_service(temp_db, user_id):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db, user_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
