"""Sale domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from flockbook.config import POULTRY_TYPES
from flockbook.database.base import Database
from flockbook.domain.cash import CashService
from flockbook.domain.entities import Sale, SourceKind
from flockbook.domain.errors import NotFoundError, ValidationError, record_not_found
from flockbook.domain.lots import LotService
from flockbook.domain.validation import money, require_not_negative, require_product_type
from flockbook.utils.timestamps import Clock, as_utc, record_timestamp, utc_now

logger = logging.getLogger(__name__)


def default_sale_total(pieces: int, weight_kg: Optional[Decimal], rate: Optional[Decimal]) -> Decimal:
    """Price of a sale: rate per kg when weighed, else per piece."""
    if rate is None:
        return Decimal("0")
    if weight_kg is not None:
        return money(weight_kg * rate)
    return money(Decimal(pieces) * rate)


class SaleService:
    """Service for managing sales, including mortality write-offs."""

    def __init__(
        self,
        db: Database,
        user_id: str,
        clock: Clock = utc_now,
        product_types: Sequence[str] = POULTRY_TYPES,
    ):
        """Initialize sale service.

        Args:
            db: Database instance
            user_id: Owning user
            clock: Source of the current time
            product_types: Known product types
        """
        self.db = db
        self.user_id = user_id
        self.clock = clock
        self.product_types = product_types
        self.cash = CashService(db, user_id)
        self.lots = LotService(db, user_id, clock)

    def _validate(self, product_type: str, pieces: int, mortality: int, total: Decimal) -> None:
        require_product_type(product_type, self.product_types)
        require_not_negative(pieces, "Pieces")
        require_not_negative(mortality, "Mortality")
        if pieces + mortality <= 0:
            raise ValidationError("A sale needs sold or dead pieces")
        require_not_negative(total, "Total")

    def add_sale(
        self,
        product_type: str,
        pieces: int,
        on_date: date,
        total: Optional[Decimal] = None,
        mortality: int = 0,
        weight_kg: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
    ) -> int:
        """Record a sale.

        A sale with only mortality removes dead birds from stock and is
        mirrored with a zero amount.

        Args:
            product_type: Poultry type sold
            pieces: Birds sold
            on_date: Business date
            total: Income; defaults to weight (or pieces) times rate, else 0
            mortality: Birds that died
            weight_kg: Optional sold weight
            rate: Optional price per kg (or per piece without weight)

        Returns:
            Sale ID

        Raises:
            ValidationError: If any field is invalid
        """
        if total is None:
            total = default_sale_total(pieces or 0, weight_kg, rate)
        self._validate(product_type, pieces, mortality, total)

        now = as_utc(self.clock())
        with self.db.atomic():
            sale_id = self.db.create_sale(
                self.user_id,
                product_type=product_type,
                pieces=pieces,
                total=total,
                date=on_date,
                mortality=mortality,
                weight_kg=weight_kg,
                rate=rate,
                created_at=now,
            )
            self.cash.sync_sale(self.require_sale(sale_id))
        logger.info("Added sale %d: %d %s (+%d dead) for %s", sale_id, pieces, product_type, mortality, total)

        self.lots.after_mutation([product_type], now)
        return sale_id

    def update_sale(
        self,
        sale_id: int,
        product_type: Optional[str] = None,
        pieces: Optional[int] = None,
        total: Optional[Decimal] = None,
        on_date: Optional[date] = None,
        mortality: Optional[int] = None,
        weight_kg: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
    ) -> None:
        """Edit a sale, its cash mirror and any lot it closed.

        Raises:
            NotFoundError: If the sale doesn't exist
            ValidationError: If the merged sale is invalid
        """
        current = self.require_sale(sale_id)
        new_type = product_type if product_type is not None else current.product_type
        new_pieces = pieces if pieces is not None else current.pieces
        new_mortality = mortality if mortality is not None else current.mortality
        new_weight = weight_kg if weight_kg is not None else current.weight_kg
        new_rate = rate if rate is not None else current.rate
        if total is None:
            repriced = pieces is not None or weight_kg is not None or rate is not None
            if repriced and new_rate is not None:
                total = default_sale_total(new_pieces, new_weight, new_rate)
            else:
                total = current.total
        self._validate(new_type, new_pieces, new_mortality, total)

        with self.db.atomic():
            self.db.update_sale(
                self.user_id,
                sale_id,
                product_type=new_type,
                pieces=new_pieces,
                total=total,
                date=on_date,
                mortality=new_mortality,
                weight_kg=weight_kg,
                rate=rate,
            )
            self.cash.sync_sale(self.require_sale(sale_id))
        logger.info("Updated sale %d", sale_id)

        ordered_at = record_timestamp(current.created_at, current.date)
        self.lots.after_mutation({current.product_type, new_type}, ordered_at)

    def delete_sale(self, sale_id: int) -> None:
        """Delete a sale together with its cash mirror.

        Raises:
            NotFoundError: If the sale doesn't exist
        """
        current = self.require_sale(sale_id)
        with self.db.atomic():
            self.cash.retract(SourceKind.SALE, sale_id)
            self.db.delete_sale(self.user_id, sale_id)
        logger.info("Deleted sale %d", sale_id)

        self.lots.after_mutation([current.product_type], record_timestamp(current.created_at, current.date))

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID, or None if not found."""
        return self.db.get_sale(self.user_id, sale_id)

    def require_sale(self, sale_id: int) -> Sale:
        sale = self.db.get_sale(self.user_id, sale_id)
        if sale is None:
            raise NotFoundError(record_not_found("sale", sale_id))
        return sale

    def list_sales(self, product_type: Optional[str] = None) -> list[Sale]:
        """List sales, newest first."""
        return self.db.list_sales(self.user_id, product_type=product_type)
