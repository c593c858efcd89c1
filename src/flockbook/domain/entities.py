"""Domain model entities for flockbook.

These are pure data classes representing business concepts, independent of
database schema. Derived values (stock, lot state, running balances) are
computed from them by the domain services and never stored on them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class CashLogType(str, Enum):
    """Kind of cash ledger movement."""

    OPENING = "OPENING"
    ADD = "ADD"
    WITHDRAW = "WITHDRAW"


class DueLogType(str, Enum):
    """Kind of customer due movement.

    DUE increases what the customer owes, ADD records a payment.
    """

    DUE = "DUE"
    ADD = "ADD"


class SourceKind(str, Enum):
    """Entity kinds that can own a cash mirror."""

    PURCHASE = "purchase"
    SALE = "sale"
    EXPENSE = "expense"
    DUE = "due"


class LotState(str, Enum):
    """Close-out state of the open lot window for one product type."""

    OPEN = "OPEN"
    CLOSING = "CLOSING"
    ARCHIVED = "ARCHIVED"


class ReportPeriod(str, Enum):
    """Time range used by the period report."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    ALL = "ALL"


@dataclass(frozen=True)
class Purchase:
    """Stock bought for one product type."""

    id: int
    product_type: str
    pieces: int
    weight_kg: Decimal
    rate: Decimal
    total: Decimal
    date: date
    is_credit: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Sale:
    """Stock leaving the shop, sold or dead.

    ``mortality`` counts dead birds removed from stock without revenue.
    """

    id: int
    product_type: str
    pieces: int
    total: Decimal
    date: date
    mortality: int = 0
    weight_kg: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Expense:
    """Shop expense, always paid in cash."""

    id: int
    category: str
    amount: Decimal
    date: date
    note: str = ""


@dataclass(frozen=True)
class DueLog:
    """One entry of a customer's due ledger."""

    id: int
    date: date
    time: str
    type: DueLogType
    amount: Decimal


@dataclass(frozen=True)
class DueRecord:
    """Customer debt account.

    ``amount`` and ``paid`` are caches of the DUE and ADD sums over ``logs``.
    """

    id: int
    customer_name: str
    amount: Decimal
    paid: Decimal
    date: date
    logs: tuple[DueLog, ...] = ()
    mobile: Optional[str] = None
    image: Optional[str] = None

    @property
    def balance(self) -> Decimal:
        return self.amount - self.paid


@dataclass(frozen=True)
class CashLog:
    """Cash box movement.

    Mirrors of other entities carry ``source_kind``/``source_id`` and a
    ``[ref:<kind>:<id>]`` token inside ``note``.
    """

    id: int
    type: CashLogType
    amount: Decimal
    date: date
    note: Optional[str] = None
    denominations: dict[str, str] = field(default_factory=dict)
    source_kind: Optional[SourceKind] = None
    source_id: Optional[int] = None
    source_entry: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_cash_count(self) -> bool:
        return bool(self.denominations)


@dataclass(frozen=True)
class LotArchive:
    """Profit snapshot of one closed lot."""

    id: int
    product_type: str
    total_purchase: Decimal
    total_sale: Decimal
    profit: Decimal
    date: datetime
    window_start: Optional[datetime] = None


@dataclass(frozen=True)
class ResetMarker:
    """Close-out timestamp of one lot of a product type."""

    id: int
    product_type: str
    reset_time: datetime


@dataclass(frozen=True)
class StockLevel:
    """Current open-window stock of one product type."""

    pieces: int = 0
    kg: Decimal = Decimal("0")
    dead: int = 0


@dataclass(frozen=True)
class LotWindow:
    """Aggregates of the records inside one lot window."""

    product_type: str
    window_start: datetime
    window_end: Optional[datetime]
    purchased_pieces: int
    accounted_pieces: int
    total_purchase: Decimal
    total_sale: Decimal
    record_count: int

    @property
    def remaining_pieces(self) -> int:
        return self.purchased_pieces - self.accounted_pieces

    @property
    def profit(self) -> Decimal:
        return self.total_sale - self.total_purchase


@dataclass(frozen=True)
class DueHistoryRow:
    """Due log annotated with the running balance after it was applied."""

    log: DueLog
    balance: Decimal


@dataclass(frozen=True)
class CashCountResult:
    """Outcome of a physical cash count."""

    log_id: int
    physical_total: Decimal
    system_balance: Decimal
    gap: Decimal


@dataclass(frozen=True)
class PeriodReport:
    """Profit and loss over a period."""

    period: ReportPeriod
    start_date: Optional[date]
    end_date: Optional[date]
    total_purchase: Decimal
    total_sale: Decimal
    total_expense: Decimal
    total_adjustment: Decimal

    @property
    def net_profit(self) -> Decimal:
        return self.total_sale - self.total_purchase - self.total_expense + self.total_adjustment


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything a screen refresh needs, loaded in one pass."""

    purchases: tuple[Purchase, ...]
    sales: tuple[Sale, ...]
    expenses: tuple[Expense, ...]
    dues: tuple[DueRecord, ...]
    cash_logs: tuple[CashLog, ...]
    lot_history: tuple[LotArchive, ...]
    resets: dict[str, datetime]
    stock: dict[str, StockLevel]
    cash_balance: Decimal
