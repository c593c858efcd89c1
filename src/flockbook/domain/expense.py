"""Expense domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from flockbook.database.base import Database
from flockbook.domain.cash import CashService
from flockbook.domain.entities import Expense, SourceKind
from flockbook.domain.errors import NotFoundError, record_not_found
from flockbook.domain.validation import require_positive, require_text

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for managing expenses."""

    def __init__(self, db: Database, user_id: str):
        """Initialize expense service.

        Args:
            db: Database instance
            user_id: Owning user
        """
        self.db = db
        self.user_id = user_id
        self.cash = CashService(db, user_id)

    def add_expense(self, category: str, amount: Decimal, on_date: date, note: Optional[str] = None) -> int:
        """Record an expense paid from the cash box.

        Returns:
            Expense ID

        Raises:
            ValidationError: If category is blank or amount is not positive
        """
        category = require_text(category, "Category")
        require_positive(amount, "Amount")
        with self.db.atomic():
            expense_id = self.db.create_expense(
                self.user_id, category=category, amount=amount, date=on_date, note=(note or "").strip()
            )
            self.cash.sync_expense(self.require_expense(expense_id))
        logger.info("Added expense %d: %s %s", expense_id, category, amount)
        return expense_id

    def update_expense(
        self,
        expense_id: int,
        category: Optional[str] = None,
        amount: Optional[Decimal] = None,
        on_date: Optional[date] = None,
        note: Optional[str] = None,
    ) -> None:
        """Edit an expense and its cash mirror."""
        self.require_expense(expense_id)
        if category is not None:
            category = require_text(category, "Category")
        if amount is not None:
            require_positive(amount, "Amount")
        with self.db.atomic():
            self.db.update_expense(
                self.user_id,
                expense_id,
                category=category,
                amount=amount,
                date=on_date,
                note=note.strip() if note is not None else None,
            )
            self.cash.sync_expense(self.require_expense(expense_id))
        logger.info("Updated expense %d", expense_id)

    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense together with its cash mirror."""
        self.require_expense(expense_id)
        with self.db.atomic():
            self.cash.retract(SourceKind.EXPENSE, expense_id)
            self.db.delete_expense(self.user_id, expense_id)
        logger.info("Deleted expense %d", expense_id)

    def get_expense(self, expense_id: int) -> Optional[Expense]:
        return self.db.get_expense(self.user_id, expense_id)

    def require_expense(self, expense_id: int) -> Expense:
        expense = self.db.get_expense(self.user_id, expense_id)
        if expense is None:
            raise NotFoundError(record_not_found("expense", expense_id))
        return expense

    def list_expenses(self) -> list[Expense]:
        """List expenses, newest first."""
        return self.db.list_expenses(self.user_id)
