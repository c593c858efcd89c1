"""SQLAlchemy models for the flockbook database."""

from datetime import datetime, UTC
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Purchase(Base):
    """Purchase model."""

    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    product_type = Column(String, nullable=False)
    pieces = Column(Integer, nullable=False)
    weight_kg = Column(Numeric(12, 3), nullable=False)
    rate = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    is_credit = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (Index("ix_purchases_user_type_created", "user_id", "product_type", "created_at"),)


class Sale(Base):
    """Sale model. ``mortality`` counts dead birds taken out of stock."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    product_type = Column(String, nullable=False)
    pieces = Column(Integer, nullable=False)
    weight_kg = Column(Numeric(12, 3), nullable=True)
    rate = Column(Numeric(12, 2), nullable=True)
    mortality = Column(Integer, default=0, nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (Index("ix_sales_user_type_created", "user_id", "product_type", "created_at"),)


class Expense(Base):
    """Expense model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    note = Column(String, nullable=False, default="")
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class DueRecord(Base):
    """Customer due model.

    ``logs`` holds the full transaction log as JSON and is always written
    together with ``amount`` and ``paid``.
    """

    __tablename__ = "dues"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    mobile = Column(String, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid = Column(Numeric(12, 2), nullable=False, default=0)
    date = Column(Date, nullable=False)
    image = Column(String, nullable=True)
    logs: Any = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=_now, nullable=False)


class CashLog(Base):
    """Cash box movement model."""

    __tablename__ = "cash_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    note = Column(String, nullable=True)
    denominations: Any = Column(JSON, nullable=True)
    source_kind = Column(String, nullable=True)
    source_id = Column(Integer, nullable=True)
    source_entry = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (Index("ix_cash_logs_source", "user_id", "source_kind", "source_id"),)


class LotArchive(Base):
    """Closed lot snapshot.

    The (user, type, window_start) key allows one archive per lot window.
    """

    __tablename__ = "lot_archives"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    product_type = Column(String, nullable=False)
    total_purchase = Column(Numeric(12, 2), nullable=False)
    total_sale = Column(Numeric(12, 2), nullable=False)
    profit = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, nullable=False)
    window_start = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "product_type", "window_start", name="uq_lot_archive_window"),
    )


class ResetMarker(Base):
    """One close-out of a product type's lot window."""

    __tablename__ = "reset_markers"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False)
    product_type = Column(String, nullable=False)
    reset_time = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "product_type", "reset_time", name="uq_reset_marker_time"),
    )


def create_session_factory(database_url: str, **engine_kwargs: Any) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False, **engine_kwargs)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
