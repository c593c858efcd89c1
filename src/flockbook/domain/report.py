"""Report domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from flockbook.config import POULTRY_TYPES
from flockbook.database.base import Database
from flockbook.domain.cash import cash_balance, is_adjustment
from flockbook.domain.entities import CashLogType, LedgerSnapshot, PeriodReport, ReportPeriod, StockLevel
from flockbook.domain.lots import check_archive
from flockbook.domain.stock import calculate_stock
from flockbook.utils.date_parser import get_period_range, in_date_range

logger = logging.getLogger(__name__)


class ReportService:
    """Service for read-side summaries."""

    def __init__(self, db: Database, user_id: str, product_types: Sequence[str] = POULTRY_TYPES):
        """Initialize report service.

        Args:
            db: Database instance
            user_id: Owning user
            product_types: Product types to report stock for
        """
        self.db = db
        self.user_id = user_id
        self.product_types = product_types

    def period_report(self, period: ReportPeriod, today: Optional[date] = None) -> PeriodReport:
        """Profit and loss for a period ending at ``today``.

        Cash counts and adjustment entries inside the period count as a
        signed adjustment: excess adds to profit, shortage takes from it.
        """
        period = ReportPeriod(period)
        start_date, end_date = get_period_range(period, today)

        def in_period(value: date) -> bool:
            return in_date_range(value, start_date, end_date)

        total_purchase = sum(
            (p.total for p in self.db.list_purchases(self.user_id) if in_period(p.date)), Decimal("0")
        )
        total_sale = sum((s.total for s in self.db.list_sales(self.user_id) if in_period(s.date)), Decimal("0"))
        total_expense = sum(
            (e.amount for e in self.db.list_expenses(self.user_id) if in_period(e.date)), Decimal("0")
        )
        total_adjustment = Decimal("0")
        for log in self.db.list_cash_logs(self.user_id):
            if not in_period(log.date) or not is_adjustment(log):
                continue
            if log.type == CashLogType.WITHDRAW:
                total_adjustment -= log.amount
            else:
                total_adjustment += log.amount

        return PeriodReport(
            period=period,
            start_date=start_date,
            end_date=end_date,
            total_purchase=total_purchase,
            total_sale=total_sale,
            total_expense=total_expense,
            total_adjustment=total_adjustment,
        )

    def stock(self) -> dict[str, StockLevel]:
        """Current stock per product type."""
        return calculate_stock(
            self.db.list_purchases(self.user_id),
            self.db.list_sales(self.user_id),
            self.db.get_reset_map(self.user_id),
            self.product_types,
        )

    def snapshot(self) -> LedgerSnapshot:
        """Load every collection and the derived stock in one pass.

        Archive rows that break their invariants are logged and still
        returned.
        """
        purchases = self.db.list_purchases(self.user_id)
        sales = self.db.list_sales(self.user_id)
        resets = self.db.get_reset_map(self.user_id)
        cash_logs = self.db.list_cash_logs(self.user_id)
        lot_history = self.db.list_lot_archives(self.user_id)

        for archive in lot_history:
            problem = check_archive(archive)
            if problem is not None:
                logger.warning("Inconsistent lot history: %s", problem)

        return LedgerSnapshot(
            purchases=tuple(purchases),
            sales=tuple(sales),
            expenses=tuple(self.db.list_expenses(self.user_id)),
            dues=tuple(self.db.list_dues(self.user_id)),
            cash_logs=tuple(cash_logs),
            lot_history=tuple(lot_history),
            resets=resets,
            stock=calculate_stock(purchases, sales, resets, self.product_types),
            cash_balance=cash_balance(cash_logs),
        )
