"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the JSON encoding of due
logs and cash-count denominations and the UTC normalisation of timestamps
that SQLite hands back without tzinfo.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from flockbook.domain import entities as domain
from flockbook.database.models import (
    Purchase as ORMPurchase,
    Sale as ORMSale,
    Expense as ORMExpense,
    DueRecord as ORMDueRecord,
    CashLog as ORMCashLog,
    LotArchive as ORMLotArchive,
    ResetMarker as ORMResetMarker,
)
from flockbook.utils.timestamps import as_utc


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else _decimal(value)


def purchase_to_domain(orm_purchase: ORMPurchase) -> domain.Purchase:
    """Convert SQLAlchemy Purchase model to domain Purchase entity."""
    return domain.Purchase(
        id=orm_purchase.id,
        product_type=orm_purchase.product_type,
        pieces=orm_purchase.pieces,
        weight_kg=_decimal(orm_purchase.weight_kg),
        rate=_decimal(orm_purchase.rate),
        total=_decimal(orm_purchase.total),
        date=orm_purchase.date,
        is_credit=bool(orm_purchase.is_credit),
        created_at=as_utc(orm_purchase.created_at),
    )


def sale_to_domain(orm_sale: ORMSale) -> domain.Sale:
    """Convert SQLAlchemy Sale model to domain Sale entity."""
    return domain.Sale(
        id=orm_sale.id,
        product_type=orm_sale.product_type,
        pieces=orm_sale.pieces,
        total=_decimal(orm_sale.total),
        date=orm_sale.date,
        mortality=orm_sale.mortality or 0,
        weight_kg=_optional_decimal(orm_sale.weight_kg),
        rate=_optional_decimal(orm_sale.rate),
        created_at=as_utc(orm_sale.created_at),
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        category=orm_expense.category,
        amount=_decimal(orm_expense.amount),
        date=orm_expense.date,
        note=orm_expense.note or "",
    )


def due_log_to_json(log: domain.DueLog) -> dict[str, Any]:
    """Encode one due log entry for the JSON column."""
    return {
        "id": log.id,
        "date": log.date.isoformat(),
        "time": log.time,
        "type": log.type.value,
        "amount": str(log.amount),
    }


def due_logs_to_json(logs: Iterable[domain.DueLog]) -> list[dict[str, Any]]:
    """Encode a full due log array."""
    return [due_log_to_json(log) for log in logs]


def due_log_from_json(raw: dict[str, Any]) -> domain.DueLog:
    """Decode one due log entry from the JSON column."""
    return domain.DueLog(
        id=int(raw["id"]),
        date=date.fromisoformat(str(raw["date"])[:10]),
        time=str(raw.get("time") or ""),
        type=domain.DueLogType(raw["type"]),
        amount=_decimal(raw["amount"]),
    )


def due_to_domain(orm_due: ORMDueRecord) -> domain.DueRecord:
    """Convert SQLAlchemy DueRecord model to domain DueRecord entity."""
    return domain.DueRecord(
        id=orm_due.id,
        customer_name=orm_due.customer_name,
        amount=_decimal(orm_due.amount),
        paid=_decimal(orm_due.paid),
        date=orm_due.date,
        logs=tuple(due_log_from_json(raw) for raw in (orm_due.logs or [])),
        mobile=orm_due.mobile,
        image=orm_due.image,
    )


def cash_log_to_domain(orm_log: ORMCashLog) -> domain.CashLog:
    """Convert SQLAlchemy CashLog model to domain CashLog entity."""
    return domain.CashLog(
        id=orm_log.id,
        type=domain.CashLogType(orm_log.type),
        amount=_decimal(orm_log.amount),
        date=orm_log.date,
        note=orm_log.note,
        denominations={str(k): str(v) for k, v in (orm_log.denominations or {}).items()},
        source_kind=domain.SourceKind(orm_log.source_kind) if orm_log.source_kind else None,
        source_id=orm_log.source_id,
        source_entry=orm_log.source_entry,
        created_at=as_utc(orm_log.created_at) if orm_log.created_at else None,
    )


def lot_archive_to_domain(orm_archive: ORMLotArchive) -> domain.LotArchive:
    """Convert SQLAlchemy LotArchive model to domain LotArchive entity."""
    return domain.LotArchive(
        id=orm_archive.id,
        product_type=orm_archive.product_type,
        total_purchase=_decimal(orm_archive.total_purchase),
        total_sale=_decimal(orm_archive.total_sale),
        profit=_decimal(orm_archive.profit),
        date=as_utc(orm_archive.date),
        window_start=as_utc(orm_archive.window_start) if orm_archive.window_start else None,
    )


def reset_marker_to_domain(orm_marker: ORMResetMarker) -> domain.ResetMarker:
    """Convert SQLAlchemy ResetMarker model to domain ResetMarker entity."""
    return domain.ResetMarker(
        id=orm_marker.id,
        product_type=orm_marker.product_type,
        reset_time=as_utc(orm_marker.reset_time),
    )
