"""Abstract ledger store interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from flockbook.domain.entities import (
    CashLog,
    CashLogType,
    DueLog,
    DueRecord,
    Expense,
    LotArchive,
    Purchase,
    ResetMarker,
    Sale,
    SourceKind,
)


class Database(ABC):
    """Abstract ledger store for flockbook.

    Every operation is scoped to one owning ``user_id``. ``update_*`` raises
    NotFoundError for a missing id; ``delete_*`` is a no-op in that case.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager["Database"]:
        """Transactional boundary for multi-step writes.

        Writes inside the block are committed together on exit or rolled
        back together if the block raises. Blocks may nest; only the
        outermost one commits.
        """
        pass

    # Purchase operations
    @abstractmethod
    def create_purchase(
        self,
        user_id: str,
        product_type: str,
        pieces: int,
        weight_kg: Decimal,
        rate: Decimal,
        total: Decimal,
        date: date,
        is_credit: bool = False,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create a purchase. Returns purchase ID."""
        pass

    @abstractmethod
    def get_purchase(self, user_id: str, purchase_id: int) -> Optional[Purchase]:
        """Get purchase by ID."""
        pass

    @abstractmethod
    def list_purchases(
        self,
        user_id: str,
        product_type: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_until: Optional[datetime] = None,
    ) -> list[Purchase]:
        """List purchases, newest business date first.

        Args:
            user_id: Owning user
            product_type: Optional product type filter
            created_after: Only records with created_at strictly after this
            created_until: Only records with created_at at or before this
        """
        pass

    @abstractmethod
    def update_purchase(
        self,
        user_id: str,
        purchase_id: int,
        product_type: Optional[str] = None,
        pieces: Optional[int] = None,
        weight_kg: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
        total: Optional[Decimal] = None,
        date: Optional[date] = None,
        is_credit: Optional[bool] = None,
    ) -> None:
        """Update purchase fields that are not None."""
        pass

    @abstractmethod
    def delete_purchase(self, user_id: str, purchase_id: int) -> None:
        """Delete a purchase."""
        pass

    # Sale operations
    @abstractmethod
    def create_sale(
        self,
        user_id: str,
        product_type: str,
        pieces: int,
        total: Decimal,
        date: date,
        mortality: int = 0,
        weight_kg: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create a sale. Returns sale ID."""
        pass

    @abstractmethod
    def get_sale(self, user_id: str, sale_id: int) -> Optional[Sale]:
        """Get sale by ID."""
        pass

    @abstractmethod
    def list_sales(
        self,
        user_id: str,
        product_type: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_until: Optional[datetime] = None,
    ) -> list[Sale]:
        """List sales, newest business date first."""
        pass

    @abstractmethod
    def update_sale(
        self,
        user_id: str,
        sale_id: int,
        product_type: Optional[str] = None,
        pieces: Optional[int] = None,
        total: Optional[Decimal] = None,
        date: Optional[date] = None,
        mortality: Optional[int] = None,
        weight_kg: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
    ) -> None:
        """Update sale fields that are not None."""
        pass

    @abstractmethod
    def delete_sale(self, user_id: str, sale_id: int) -> None:
        """Delete a sale."""
        pass

    # Expense operations
    @abstractmethod
    def create_expense(self, user_id: str, category: str, amount: Decimal, date: date, note: str = "") -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, user_id: str, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def list_expenses(self, user_id: str) -> list[Expense]:
        """List expenses, newest first."""
        pass

    @abstractmethod
    def update_expense(
        self,
        user_id: str,
        expense_id: int,
        category: Optional[str] = None,
        amount: Optional[Decimal] = None,
        date: Optional[date] = None,
        note: Optional[str] = None,
    ) -> None:
        """Update expense fields that are not None."""
        pass

    @abstractmethod
    def delete_expense(self, user_id: str, expense_id: int) -> None:
        """Delete an expense."""
        pass

    # Due operations
    @abstractmethod
    def create_due(
        self,
        user_id: str,
        customer_name: str,
        amount: Decimal,
        paid: Decimal,
        date: date,
        logs: Sequence[DueLog] = (),
        mobile: Optional[str] = None,
        image: Optional[str] = None,
    ) -> int:
        """Create a customer due record. Returns due ID."""
        pass

    @abstractmethod
    def get_due(self, user_id: str, due_id: int) -> Optional[DueRecord]:
        """Get due record by ID."""
        pass

    @abstractmethod
    def list_dues(self, user_id: str) -> list[DueRecord]:
        """List due records, newest first."""
        pass

    @abstractmethod
    def update_due_details(
        self,
        user_id: str,
        due_id: int,
        customer_name: Optional[str] = None,
        mobile: Optional[str] = None,
        image: Optional[str] = None,
    ) -> None:
        """Update customer details of a due record."""
        pass

    @abstractmethod
    def update_due_logs(
        self, user_id: str, due_id: int, logs: Sequence[DueLog], amount: Decimal, paid: Decimal
    ) -> None:
        """Replace the log array together with its cached totals."""
        pass

    @abstractmethod
    def delete_due(self, user_id: str, due_id: int) -> None:
        """Delete a due record."""
        pass

    # Cash log operations
    @abstractmethod
    def create_cash_log(
        self,
        user_id: str,
        type: CashLogType,
        amount: Decimal,
        date: date,
        note: Optional[str] = None,
        denominations: Optional[dict[str, str]] = None,
        source_kind: Optional[SourceKind] = None,
        source_id: Optional[int] = None,
        source_entry: Optional[int] = None,
    ) -> int:
        """Create a cash log. Returns cash log ID."""
        pass

    @abstractmethod
    def get_cash_log(self, user_id: str, log_id: int) -> Optional[CashLog]:
        """Get cash log by ID."""
        pass

    @abstractmethod
    def list_cash_logs(self, user_id: str, on_date: Optional[date] = None) -> list[CashLog]:
        """List cash logs, newest first, optionally for one date."""
        pass

    @abstractmethod
    def update_cash_log(
        self,
        user_id: str,
        log_id: int,
        type: Optional[CashLogType] = None,
        amount: Optional[Decimal] = None,
        date: Optional[date] = None,
        note: Optional[str] = None,
        denominations: Optional[dict[str, str]] = None,
        source_kind: Optional[SourceKind] = None,
        source_id: Optional[int] = None,
        source_entry: Optional[int] = None,
    ) -> None:
        """Update cash log fields that are not None."""
        pass

    @abstractmethod
    def delete_cash_log(self, user_id: str, log_id: int) -> None:
        """Delete a cash log."""
        pass

    @abstractmethod
    def find_cash_logs_by_source(
        self, user_id: str, kind: SourceKind, source_id: int, entry: Optional[int] = None
    ) -> list[CashLog]:
        """Find cash mirrors of a source record.

        Matches the source columns, or the ``[ref:...]`` token inside the note
        for rows written before those columns existed. Without ``entry`` every
        per-entry mirror of the source matches as well.
        """
        pass

    # Lot archive operations
    @abstractmethod
    def create_lot_archive(
        self,
        user_id: str,
        product_type: str,
        total_purchase: Decimal,
        total_sale: Decimal,
        profit: Decimal,
        date: datetime,
        window_start: datetime,
    ) -> int:
        """Create a lot archive. Raises ConflictError if the window is already archived."""
        pass

    @abstractmethod
    def list_lot_archives(self, user_id: str, product_type: Optional[str] = None) -> list[LotArchive]:
        """List lot archives, newest first."""
        pass

    @abstractmethod
    def delete_lot_archives(self, user_id: str, product_type: str) -> int:
        """Delete every archive of a product type. Returns number deleted."""
        pass

    # Reset marker operations
    @abstractmethod
    def add_reset_marker(self, user_id: str, product_type: str, reset_time: datetime) -> int:
        """Record a close-out. Returns marker ID."""
        pass

    @abstractmethod
    def get_last_reset(self, user_id: str, product_type: str) -> Optional[datetime]:
        """Latest reset time of a product type, or None if never reset."""
        pass

    @abstractmethod
    def list_reset_markers(self, user_id: str, product_type: str) -> list[ResetMarker]:
        """All reset markers of a product type, oldest first."""
        pass

    @abstractmethod
    def get_reset_map(self, user_id: str) -> dict[str, datetime]:
        """Latest reset time per product type."""
        pass

    @abstractmethod
    def has_reset_since(self, user_id: str, product_type: str, timestamp: datetime) -> bool:
        """True if any reset marker of the type is at or after ``timestamp``."""
        pass
