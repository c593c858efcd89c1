"""Customer due ledger.

A due record keeps an append-only array of DUE (debt given) and ADD
(payment received) entries. The cached ``amount`` and ``paid`` columns are
always rewritten together with the full array, and the balance shown to the
user is replayed from it.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from flockbook.database.base import Database
from flockbook.domain.cash import CashService
from flockbook.domain.entities import DueHistoryRow, DueLog, DueLogType, DueRecord, SourceKind
from flockbook.domain.errors import NotFoundError, due_log_not_found, record_not_found
from flockbook.domain.validation import require_positive, require_text
from flockbook.utils.timestamps import Clock, as_utc, utc_now

logger = logging.getLogger(__name__)


def due_totals(logs: Iterable[DueLog]) -> tuple[Decimal, Decimal]:
    """Return (amount, paid): the DUE sum and the ADD sum."""
    amount = Decimal("0")
    paid = Decimal("0")
    for log in logs:
        if log.type == DueLogType.DUE:
            amount += log.amount
        else:
            paid += log.amount
    return amount, paid


def replay_history(logs: Iterable[DueLog]) -> list[DueHistoryRow]:
    """Annotate each entry with the running balance after it, newest first.

    Entries are replayed oldest first, ordered by (date, id).
    """
    balance = Decimal("0")
    rows = []
    for log in sorted(logs, key=lambda entry: (entry.date, entry.id)):
        if log.type == DueLogType.DUE:
            balance += log.amount
        else:
            balance -= log.amount
        rows.append(DueHistoryRow(log=log, balance=balance))
    rows.reverse()
    return rows


def next_log_id(now: datetime, logs: Iterable[DueLog]) -> int:
    """Millisecond timestamp id, kept strictly above existing ids."""
    candidate = int(as_utc(now).timestamp() * 1000)
    highest = max((log.id for log in logs), default=0)
    return max(candidate, highest + 1)


def log_time(now: datetime) -> str:
    return now.strftime("%I:%M %p")


class DueService:
    """Service for customer due accounts and their cash mirrors."""

    def __init__(self, db: Database, user_id: str, clock: Clock = utc_now):
        """Initialize due service.

        Args:
            db: Database instance
            user_id: Owning user
            clock: Source of the current time, used for log ids
        """
        self.db = db
        self.user_id = user_id
        self.clock = clock
        self.cash = CashService(db, user_id)

    def create_due(
        self,
        customer_name: str,
        amount: Decimal,
        on_date: date,
        mobile: Optional[str] = None,
        image: Optional[str] = None,
    ) -> int:
        """Open a due account with its first DUE entry.

        The opening entry has no cash mirror.

        Returns:
            Due record ID

        Raises:
            ValidationError: If the name is blank or amount is not positive
        """
        customer_name = require_text(customer_name, "Customer name")
        require_positive(amount, "Amount")
        now = as_utc(self.clock())
        opening = DueLog(
            id=next_log_id(now, ()), date=on_date, time=log_time(now), type=DueLogType.DUE, amount=amount
        )
        due_id = self.db.create_due(
            self.user_id,
            customer_name=customer_name,
            amount=amount,
            paid=Decimal("0"),
            date=on_date,
            logs=(opening,),
            mobile=(mobile or "").strip() or None,
            image=image,
        )
        logger.info("Opened due account %d for %s: %s", due_id, customer_name, amount)
        return due_id

    def add_transaction(
        self, due_id: int, type: DueLogType, amount: Decimal, on_date: Optional[date] = None
    ) -> DueLog:
        """Append a DUE or ADD entry and mirror it in the cash ledger.

        Returns:
            The appended entry
        """
        type = DueLogType(type)
        require_positive(amount, "Amount")
        due = self.require_due(due_id)
        now = as_utc(self.clock())
        entry = DueLog(
            id=next_log_id(now, due.logs),
            date=on_date if on_date is not None else now.date(),
            time=log_time(now),
            type=type,
            amount=amount,
        )
        logs = due.logs + (entry,)
        total, paid = due_totals(logs)
        with self.db.atomic():
            self.db.update_due_logs(self.user_id, due_id, logs, amount=total, paid=paid)
            self.cash.sync_due_log(due, entry)
        logger.info("Due %d: %s %s", due_id, type.value, amount)
        return entry

    def delete_transaction(self, due_id: int, log_id: int) -> None:
        """Remove one entry, recompute the totals and retract its mirror.

        Raises:
            NotFoundError: If the due record or the entry doesn't exist
        """
        due = self.require_due(due_id)
        if all(entry.id != log_id for entry in due.logs):
            raise NotFoundError(due_log_not_found(due_id, log_id))
        logs = tuple(entry for entry in due.logs if entry.id != log_id)
        total, paid = due_totals(logs)
        with self.db.atomic():
            self.db.update_due_logs(self.user_id, due_id, logs, amount=total, paid=paid)
            self.cash.retract(SourceKind.DUE, due_id, log_id)
        logger.info("Due %d: removed entry %d", due_id, log_id)

    def update_logs(self, due_id: int, logs: Sequence[DueLog]) -> None:
        """Replace the whole entry array.

        New entries are mirrored, dropped entries retracted and entries that
        already had a mirror get it refreshed.
        """
        for entry in logs:
            require_positive(entry.amount, "Amount")
        due = self.require_due(due_id)
        old_ids = {entry.id for entry in due.logs}
        new_ids = {entry.id for entry in logs}
        total, paid = due_totals(logs)
        with self.db.atomic():
            self.db.update_due_logs(self.user_id, due_id, tuple(logs), amount=total, paid=paid)
            for removed in sorted(old_ids - new_ids):
                self.cash.retract(SourceKind.DUE, due_id, removed)
            for entry in logs:
                if entry.id not in old_ids or self.cash.find_mirror(SourceKind.DUE, due_id, entry.id) is not None:
                    self.cash.sync_due_log(due, entry)
        logger.info(
            "Due %d: replaced entries (%d added, %d removed)", due_id, len(new_ids - old_ids), len(old_ids - new_ids)
        )

    def update_details(
        self,
        due_id: int,
        customer_name: Optional[str] = None,
        mobile: Optional[str] = None,
        image: Optional[str] = None,
    ) -> None:
        """Change customer details, leaving the entries untouched."""
        self.require_due(due_id)
        if customer_name is not None:
            customer_name = require_text(customer_name, "Customer name")
        with self.db.atomic():
            self.db.update_due_details(self.user_id, due_id, customer_name=customer_name, mobile=mobile, image=image)
            if customer_name is not None:
                # Mirror notes carry the customer name
                due = self.require_due(due_id)
                for entry in due.logs:
                    if self.cash.find_mirror(SourceKind.DUE, due_id, entry.id) is not None:
                        self.cash.sync_due_log(due, entry)

    def delete_due(self, due_id: int) -> None:
        """Delete a due record and every cash mirror of its entries."""
        self.require_due(due_id)
        with self.db.atomic():
            retracted = self.cash.retract(SourceKind.DUE, due_id)
            self.db.delete_due(self.user_id, due_id)
        logger.info("Deleted due %d and %d cash mirror(s)", due_id, retracted)

    def get_due(self, due_id: int) -> Optional[DueRecord]:
        return self.db.get_due(self.user_id, due_id)

    def require_due(self, due_id: int) -> DueRecord:
        due = self.db.get_due(self.user_id, due_id)
        if due is None:
            raise NotFoundError(record_not_found("due record", due_id))
        return due

    def list_dues(self, search: Optional[str] = None) -> list[DueRecord]:
        """List due records, optionally matching name or mobile."""
        dues = self.db.list_dues(self.user_id)
        if not search:
            return dues
        needle = search.strip().lower()
        return [
            due
            for due in dues
            if needle in due.customer_name.lower() or (due.mobile is not None and needle in due.mobile)
        ]

    def history(self, due_id: int) -> list[DueHistoryRow]:
        """Entries of a due record with replayed balances, newest first."""
        return replay_history(self.require_due(due_id).logs)

    def total_outstanding(self) -> Decimal:
        """Sum of balances across all customers."""
        return sum((due.balance for due in self.db.list_dues(self.user_id)), Decimal("0"))
