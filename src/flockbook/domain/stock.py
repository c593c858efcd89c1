"""Stock and lot-window aggregation over in-memory records.

Everything here is pure: callers pass in records already loaded from the
store.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from flockbook.config import POULTRY_TYPES
from flockbook.domain.entities import LotState, LotWindow, Purchase, Sale, StockLevel
from flockbook.utils.timestamps import EPOCH, in_window, record_timestamp


def _after_cutoff(record: Purchase | Sale, cutoff: datetime) -> bool:
    return in_window(record_timestamp(record.created_at, record.date), cutoff)


def calculate_stock(
    purchases: Iterable[Purchase],
    sales: Iterable[Sale],
    resets: Mapping[str, datetime],
    product_types: Sequence[str] = POULTRY_TYPES,
) -> dict[str, StockLevel]:
    """Current stock per product type.

    Only records stamped after the type's last reset count. Purchases add
    pieces and kg, sales remove sold and dead pieces. Negative pieces are
    returned as-is.

    Args:
        purchases: All purchases of the user
        sales: All sales of the user
        resets: Last reset time per product type
        product_types: Product types to report on

    Returns:
        Mapping of product type to its StockLevel
    """
    pieces = {product_type: 0 for product_type in product_types}
    kg = {product_type: Decimal("0") for product_type in product_types}
    dead = {product_type: 0 for product_type in product_types}

    for purchase in purchases:
        if purchase.product_type not in pieces:
            continue
        if not _after_cutoff(purchase, resets.get(purchase.product_type, EPOCH)):
            continue
        pieces[purchase.product_type] += purchase.pieces or 0
        kg[purchase.product_type] += purchase.weight_kg or Decimal("0")

    for sale in sales:
        if sale.product_type not in pieces:
            continue
        if not _after_cutoff(sale, resets.get(sale.product_type, EPOCH)):
            continue
        pieces[sale.product_type] -= (sale.pieces or 0) + (sale.mortality or 0)
        dead[sale.product_type] += sale.mortality or 0

    return {
        product_type: StockLevel(pieces=pieces[product_type], kg=kg[product_type], dead=dead[product_type])
        for product_type in product_types
    }


def summarize_window(
    product_type: str,
    purchases: Iterable[Purchase],
    sales: Iterable[Sale],
    window_start: datetime,
    window_end: Optional[datetime] = None,
) -> LotWindow:
    """Aggregate the records of one type inside ``(window_start, window_end]``."""
    purchased = 0
    accounted = 0
    total_purchase = Decimal("0")
    total_sale = Decimal("0")
    count = 0

    for purchase in purchases:
        if purchase.product_type != product_type:
            continue
        if not in_window(record_timestamp(purchase.created_at, purchase.date), window_start, window_end):
            continue
        purchased += purchase.pieces or 0
        total_purchase += purchase.total
        count += 1

    for sale in sales:
        if sale.product_type != product_type:
            continue
        if not in_window(record_timestamp(sale.created_at, sale.date), window_start, window_end):
            continue
        accounted += (sale.pieces or 0) + (sale.mortality or 0)
        total_sale += sale.total
        count += 1

    return LotWindow(
        product_type=product_type,
        window_start=window_start,
        window_end=window_end,
        purchased_pieces=purchased,
        accounted_pieces=accounted,
        total_purchase=total_purchase,
        total_sale=total_sale,
        record_count=count,
    )


def lot_state(window: LotWindow) -> LotState:
    """Close-out state of a lot window.

    ARCHIVED right after a close-out until the next record of the type,
    OPEN while stock remains, CLOSING once everything bought is sold or dead.
    """
    if window.record_count == 0 and window.window_start > EPOCH:
        return LotState.ARCHIVED
    if window.purchased_pieces > 0 and window.remaining_pieces <= 0:
        return LotState.CLOSING
    return LotState.OPEN
