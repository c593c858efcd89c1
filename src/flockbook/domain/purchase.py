"""Purchase domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from flockbook.config import POULTRY_TYPES
from flockbook.database.base import Database
from flockbook.domain.cash import CashService
from flockbook.domain.entities import Purchase, SourceKind
from flockbook.domain.errors import NotFoundError, record_not_found
from flockbook.domain.lots import LotService
from flockbook.domain.validation import money, require_positive, require_product_type
from flockbook.utils.timestamps import Clock, as_utc, record_timestamp, utc_now

logger = logging.getLogger(__name__)


class PurchaseService:
    """Service for managing purchases and their cash mirrors."""

    def __init__(
        self,
        db: Database,
        user_id: str,
        clock: Clock = utc_now,
        product_types: Sequence[str] = POULTRY_TYPES,
    ):
        """Initialize purchase service.

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

    def _validate(self, product_type: str, pieces: int, weight_kg: Decimal, rate: Decimal, total: Decimal) -> None:
        require_product_type(product_type, self.product_types)
        require_positive(pieces, "Pieces")
        require_positive(weight_kg, "Weight")
        require_positive(rate, "Rate")
        require_positive(total, "Total")

    def add_purchase(
        self,
        product_type: str,
        pieces: int,
        weight_kg: Decimal,
        rate: Decimal,
        on_date: date,
        total: Optional[Decimal] = None,
        is_credit: bool = False,
    ) -> int:
        """Record a purchase.

        Args:
            product_type: Poultry type bought
            pieces: Number of birds
            weight_kg: Total weight
            rate: Price per kg
            on_date: Business date
            total: Total price; defaults to weight times rate
            is_credit: Bought on credit, so no cash leaves the box

        Returns:
            Purchase ID

        Raises:
            ValidationError: If any field is invalid
        """
        if total is None and weight_kg is not None and rate is not None:
            total = money(weight_kg * rate)
        self._validate(product_type, pieces, weight_kg, rate, total)

        now = as_utc(self.clock())
        with self.db.atomic():
            purchase_id = self.db.create_purchase(
                self.user_id,
                product_type=product_type,
                pieces=pieces,
                weight_kg=weight_kg,
                rate=rate,
                total=total,
                date=on_date,
                is_credit=is_credit,
                created_at=now,
            )
            self.cash.sync_purchase(self.require_purchase(purchase_id))
        logger.info("Added purchase %d: %d %s for %s", purchase_id, pieces, product_type, total)

        self.lots.after_mutation([product_type], now)
        return purchase_id

    def update_purchase(
        self,
        purchase_id: int,
        product_type: Optional[str] = None,
        pieces: Optional[int] = None,
        weight_kg: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
        total: Optional[Decimal] = None,
        on_date: Optional[date] = None,
        is_credit: Optional[bool] = None,
    ) -> None:
        """Edit a purchase, its cash mirror and any lot it closed.

        Only fields that are not None change. When weight or rate change and
        no total is given, the total is recomputed.

        Raises:
            NotFoundError: If the purchase doesn't exist
            ValidationError: If the merged purchase is invalid
        """
        current = self.require_purchase(purchase_id)
        new_type = product_type if product_type is not None else current.product_type
        new_pieces = pieces if pieces is not None else current.pieces
        new_weight = weight_kg if weight_kg is not None else current.weight_kg
        new_rate = rate if rate is not None else current.rate
        if total is None:
            if weight_kg is not None or rate is not None:
                total = money(new_weight * new_rate)
            else:
                total = current.total
        self._validate(new_type, new_pieces, new_weight, new_rate, total)

        with self.db.atomic():
            self.db.update_purchase(
                self.user_id,
                purchase_id,
                product_type=new_type,
                pieces=new_pieces,
                weight_kg=new_weight,
                rate=new_rate,
                total=total,
                date=on_date,
                is_credit=is_credit,
            )
            self.cash.sync_purchase(self.require_purchase(purchase_id))
        logger.info("Updated purchase %d", purchase_id)

        ordered_at = record_timestamp(current.created_at, current.date)
        self.lots.after_mutation({current.product_type, new_type}, ordered_at)

    def delete_purchase(self, purchase_id: int) -> None:
        """Delete a purchase together with its cash mirror.

        Raises:
            NotFoundError: If the purchase doesn't exist
        """
        current = self.require_purchase(purchase_id)
        with self.db.atomic():
            self.cash.retract(SourceKind.PURCHASE, purchase_id)
            self.db.delete_purchase(self.user_id, purchase_id)
        logger.info("Deleted purchase %d", purchase_id)

        self.lots.after_mutation([current.product_type], record_timestamp(current.created_at, current.date))

    def get_purchase(self, purchase_id: int) -> Optional[Purchase]:
        """Get purchase by ID, or None if not found."""
        return self.db.get_purchase(self.user_id, purchase_id)

    def require_purchase(self, purchase_id: int) -> Purchase:
        purchase = self.db.get_purchase(self.user_id, purchase_id)
        if purchase is None:
            raise NotFoundError(record_not_found("purchase", purchase_id))
        return purchase

    def list_purchases(self, product_type: Optional[str] = None) -> list[Purchase]:
        """List purchases, newest first."""
        return self.db.list_purchases(self.user_id, product_type=product_type)

