"""Cash ledger: manual entries, cash counts and mirrors of other records.

Every non-credit purchase, every sale and every expense owns exactly one
mirror CashLog; every appended due log entry owns one as well. Mirrors are
linked through ``source_kind``/``source_id`` and carry the same link as a
``[ref:...]`` token in their note.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from flockbook import config
from flockbook.database.base import Database
from flockbook.domain.entities import (
    CashCountResult,
    CashLog,
    CashLogType,
    DueLog,
    DueLogType,
    DueRecord,
    Expense,
    Purchase,
    Sale,
    SourceKind,
)
from flockbook.domain.errors import NotFoundError, ValidationError, must_be_positive, record_not_found
from flockbook.domain.references import strip_reference, with_reference

logger = logging.getLogger(__name__)

_DEFAULT_NOTES = {
    CashLogType.OPENING: config.OPENING_CASH_NOTE,
    CashLogType.ADD: config.OWNER_DEPOSIT_NOTE,
    CashLogType.WITHDRAW: config.OWNER_WITHDRAWAL_NOTE,
}


def cash_balance(logs: Iterable[CashLog], exclude_log_id: Optional[int] = None) -> Decimal:
    """Sum of ADD and OPENING minus WITHDRAW, in any order."""
    balance = Decimal("0")
    for log in logs:
        if log.id == exclude_log_id:
            continue
        if log.type == CashLogType.WITHDRAW:
            balance -= log.amount
        else:
            balance += log.amount
    return balance


def display_note(note: Optional[str]) -> str:
    """Note text for display, without its back-reference token."""
    return strip_reference(note) or "General entry"


def count_notes(counts: Mapping[Union[int, str], Union[int, str]]) -> tuple[dict[str, str], Decimal]:
    """Clean a note-count map and total it.

    Args:
        counts: Note value to number of notes; blank or zero counts are dropped

    Returns:
        Tuple of (denominations as note -> count strings, physical total)

    Raises:
        ValidationError: If a note value or count is not a non-negative integer
    """
    denominations: dict[str, str] = {}
    total = Decimal("0")
    for note, count in counts.items():
        raw = str(count).strip()
        if raw == "":
            continue
        if not raw.isdigit() or not str(note).strip().isdigit():
            raise ValidationError(f"Invalid count '{count}' for note {note}")
        if int(raw) == 0:
            continue
        denominations[str(int(str(note)))] = str(int(raw))
        total += Decimal(int(str(note))) * int(raw)
    return denominations, total


def adjustment_note(gap: Decimal) -> str:
    """Note for a cash count with the given physical minus system gap."""
    if gap == 0:
        return config.CASH_MATCHED_NOTE
    direction = "excess" if gap > 0 else "short"
    return f"{config.CASH_ADJUSTMENT_PREFIX} ({direction} {abs(gap)})"


def is_adjustment(log: CashLog) -> bool:
    """True for cash counts and manual adjustment entries."""
    if log.is_cash_count:
        return True
    note = log.note or ""
    return note.startswith(config.CASH_ADJUSTMENT_PREFIX) or note.startswith(config.CASH_MATCHED_NOTE)


def purchase_note(purchase: Purchase) -> str:
    return f"Purchase: {purchase.product_type}"


def sale_note(sale: Sale) -> str:
    return f"Sale income: {sale.product_type}"


def expense_note(expense: Expense) -> str:
    if expense.note:
        return f"Expense: {expense.category} - {expense.note}"
    return f"Expense: {expense.category}"


def due_note(due: DueRecord, log: DueLog) -> str:
    if log.type == DueLogType.ADD:
        return f"Due collected: {due.customer_name}"
    return f"Due given: {due.customer_name}"


class CashService:
    """Service for the cash box of one user."""

    def __init__(self, db: Database, user_id: str):
        """Initialize cash service.

        Args:
            db: Database instance
            user_id: Owning user
        """
        self.db = db
        self.user_id = user_id

    # Mirrors
    def find_mirror(self, kind: SourceKind, source_id: int, entry: Optional[int] = None) -> Optional[CashLog]:
        """Locate the mirror of a source record. Absence is not an error."""
        matches = self.db.find_cash_logs_by_source(self.user_id, kind, source_id, entry)
        if entry is None:
            matches = [log for log in matches if log.source_entry is None]
        return matches[0] if matches else None

    def mirror(
        self,
        kind: SourceKind,
        source_id: int,
        type: CashLogType,
        amount: Decimal,
        on_date: date,
        text: str,
        entry: Optional[int] = None,
    ) -> int:
        """Create or update the mirror of a source record.

        Extra mirrors of the same source are removed.

        Returns:
            Cash log ID of the mirror
        """
        note = with_reference(text, kind, source_id, entry)
        matches = self.db.find_cash_logs_by_source(self.user_id, kind, source_id, entry)
        if entry is None:
            matches = [log for log in matches if log.source_entry is None]

        if not matches:
            log_id = self.db.create_cash_log(
                self.user_id,
                type=type,
                amount=amount,
                date=on_date,
                note=note,
                source_kind=kind,
                source_id=source_id,
                source_entry=entry,
            )
            logger.debug("Created cash mirror %d for %s %d", log_id, kind.value, source_id)
            return log_id

        existing, duplicates = matches[0], matches[1:]
        for duplicate in duplicates:
            logger.warning("Removing duplicate cash mirror %d of %s %d", duplicate.id, kind.value, source_id)
            self.db.delete_cash_log(self.user_id, duplicate.id)
        self.db.update_cash_log(
            self.user_id,
            existing.id,
            type=type,
            amount=amount,
            date=on_date,
            note=note,
            source_kind=kind,
            source_id=source_id,
            source_entry=entry,
        )
        logger.debug("Updated cash mirror %d for %s %d", existing.id, kind.value, source_id)
        return existing.id

    def retract(self, kind: SourceKind, source_id: int, entry: Optional[int] = None) -> int:
        """Delete the mirror(s) of a source record.

        Without ``entry`` every mirror of the source goes, including
        per-entry mirrors of a due record.

        Returns:
            Number of cash logs deleted
        """
        matches = self.db.find_cash_logs_by_source(self.user_id, kind, source_id, entry)
        for log in matches:
            self.db.delete_cash_log(self.user_id, log.id)
        if matches:
            logger.debug("Retracted %d cash mirror(s) of %s %d", len(matches), kind.value, source_id)
        return len(matches)

    def sync_purchase(self, purchase: Purchase) -> Optional[int]:
        """Mirror a cash purchase, or drop the mirror of a credit purchase."""
        if purchase.is_credit:
            self.retract(SourceKind.PURCHASE, purchase.id)
            return None
        return self.mirror(
            SourceKind.PURCHASE,
            purchase.id,
            CashLogType.WITHDRAW,
            purchase.total,
            purchase.date,
            purchase_note(purchase),
        )

    def sync_sale(self, sale: Sale) -> int:
        """Mirror a sale as cash income."""
        return self.mirror(SourceKind.SALE, sale.id, CashLogType.ADD, sale.total, sale.date, sale_note(sale))

    def sync_expense(self, expense: Expense) -> int:
        """Mirror an expense as a withdrawal."""
        return self.mirror(
            SourceKind.EXPENSE,
            expense.id,
            CashLogType.WITHDRAW,
            expense.amount,
            expense.date,
            expense_note(expense),
        )

    def sync_due_log(self, due: DueRecord, log: DueLog) -> int:
        """Mirror one due log entry: payments in, new debt out."""
        cash_type = CashLogType.ADD if log.type == DueLogType.ADD else CashLogType.WITHDRAW
        return self.mirror(SourceKind.DUE, due.id, cash_type, log.amount, log.date, due_note(due, log), entry=log.id)

    def reconcile_mirrors(self) -> dict[str, int]:
        """Repair pass over all mirrors.

        Recreates missing mirrors, refreshes stale ones, removes duplicates
        and deletes mirrors whose source no longer exists.

        Returns:
            Counts of mirrors ``synced`` and ``orphans_removed``
        """
        synced = 0
        with self.db.atomic():
            purchases = {p.id: p for p in self.db.list_purchases(self.user_id)}
            sales = {s.id: s for s in self.db.list_sales(self.user_id)}
            expenses = {e.id: e for e in self.db.list_expenses(self.user_id)}
            dues = {d.id: d for d in self.db.list_dues(self.user_id)}

            for purchase in purchases.values():
                if self.sync_purchase(purchase) is not None:
                    synced += 1
            for sale in sales.values():
                self.sync_sale(sale)
                synced += 1
            for expense in expenses.values():
                self.sync_expense(expense)
                synced += 1
            # Opening due entries have no mirror, so only existing ones are refreshed
            for due in dues.values():
                for entry in due.logs:
                    if self.find_mirror(SourceKind.DUE, due.id, entry.id) is not None:
                        self.sync_due_log(due, entry)
                        synced += 1

            orphans = 0
            for log in self.db.list_cash_logs(self.user_id):
                if log.source_kind is None or log.source_id is None:
                    continue
                if self._is_orphan(log, purchases, sales, expenses, dues):
                    self.db.delete_cash_log(self.user_id, log.id)
                    orphans += 1

        if orphans:
            logger.warning("Removed %d orphaned cash mirror(s)", orphans)
        return {"synced": synced, "orphans_removed": orphans}

    @staticmethod
    def _is_orphan(
        log: CashLog,
        purchases: Mapping[int, Purchase],
        sales: Mapping[int, Sale],
        expenses: Mapping[int, Expense],
        dues: Mapping[int, DueRecord],
    ) -> bool:
        if log.source_kind == SourceKind.PURCHASE:
            return log.source_id not in purchases
        if log.source_kind == SourceKind.SALE:
            return log.source_id not in sales
        if log.source_kind == SourceKind.EXPENSE:
            return log.source_id not in expenses
        due = dues.get(log.source_id)
        if due is None:
            return True
        return log.source_entry is not None and log.source_entry not in {entry.id for entry in due.logs}

    # Manual entries
    def add_cash_log(
        self, type: CashLogType, amount: Decimal, on_date: date, note: Optional[str] = None
    ) -> int:
        """Record a manual cash movement.

        Args:
            type: OPENING, ADD or WITHDRAW
            amount: Positive amount
            on_date: Business date
            note: Optional note; defaults to a description of the type

        Returns:
            Cash log ID

        Raises:
            ValidationError: If amount is not positive
        """
        type = CashLogType(type)
        if amount is None or amount <= 0:
            raise ValidationError(must_be_positive("Amount"))
        text = (note or "").strip() or _DEFAULT_NOTES[type]
        return self.db.create_cash_log(self.user_id, type=type, amount=amount, date=on_date, note=text)

    def update_cash_log(
        self,
        log_id: int,
        type: Optional[CashLogType] = None,
        amount: Optional[Decimal] = None,
        on_date: Optional[date] = None,
        note: Optional[str] = None,
    ) -> None:
        """Edit a manual cash movement."""
        if amount is not None and amount <= 0:
            raise ValidationError(must_be_positive("Amount"))
        self.require_cash_log(log_id)
        self.db.update_cash_log(
            self.user_id,
            log_id,
            type=CashLogType(type) if type is not None else None,
            amount=amount,
            date=on_date,
            note=note,
        )

    def delete_cash_log(self, log_id: int) -> None:
        """Delete a cash log."""
        self.require_cash_log(log_id)
        self.db.delete_cash_log(self.user_id, log_id)

    def require_cash_log(self, log_id: int) -> CashLog:
        log = self.db.get_cash_log(self.user_id, log_id)
        if log is None:
            raise NotFoundError(record_not_found("cash log", log_id))
        return log

    def list_cash_logs(self, on_date: Optional[date] = None) -> list[CashLog]:
        """Cash logs, newest first."""
        return self.db.list_cash_logs(self.user_id, on_date=on_date)

    def balance(self, exclude_log_id: Optional[int] = None) -> Decimal:
        """Cash on hand according to the ledger."""
        return cash_balance(self.db.list_cash_logs(self.user_id), exclude_log_id)

    # Cash counts
    def record_cash_count(
        self,
        counts: Mapping[Union[int, str], Union[int, str]],
        on_date: date,
        log_id: Optional[int] = None,
    ) -> CashCountResult:
        """Reconcile the ledger against a physical note count.

        The gap between counted and ledger cash is booked as an ADD (excess)
        or WITHDRAW (short) carrying the denominations. When ``log_id`` names
        an earlier count it is rewritten, and its own effect is left out of
        the ledger balance it is compared against.

        Raises:
            ValidationError: If no notes were counted
        """
        denominations, physical = count_notes(counts)
        if physical <= 0:
            raise ValidationError("No notes were counted")
        if log_id is not None:
            existing = self.require_cash_log(log_id)
            if not existing.is_cash_count:
                raise ValidationError(f"Cash log {log_id} is not a cash count")

        system = self.balance(exclude_log_id=log_id)
        gap = physical - system
        type = CashLogType.ADD if gap >= 0 else CashLogType.WITHDRAW
        note = adjustment_note(gap)

        if log_id is None:
            log_id = self.db.create_cash_log(
                self.user_id,
                type=type,
                amount=abs(gap),
                date=on_date,
                note=note,
                denominations=denominations,
            )
        else:
            self.db.update_cash_log(
                self.user_id,
                log_id,
                type=type,
                amount=abs(gap),
                date=on_date,
                note=note,
                denominations=denominations,
            )
        logger.info("Cash count: physical=%s system=%s gap=%s", physical, system, gap)
        return CashCountResult(log_id=log_id, physical_total=physical, system_balance=system, gap=gap)

    def list_cash_counts(self) -> list[CashLog]:
        """Cash count history, newest first."""
        return [log for log in self.db.list_cash_logs(self.user_id) if log.is_cash_count]
