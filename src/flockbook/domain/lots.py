"""Lot close-out and archive rebuilding.

A lot is the open window ``(last_reset, now]`` of one product type. Once
every purchased piece has been sold or died, the window is snapshotted into
a LotArchive and a reset marker closes it. Archives are a materialised view
over (records x reset markers) and are only ever regenerated, never edited.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from flockbook.database.base import Database
from flockbook.domain.entities import LotArchive, LotState, LotWindow
from flockbook.domain.errors import ConflictError, InconsistencyError
from flockbook.domain.stock import lot_state, summarize_window
from flockbook.utils.timestamps import EPOCH, Clock, as_utc, utc_now

logger = logging.getLogger(__name__)


def check_archive(archive: LotArchive) -> Optional[str]:
    """Describe the first invariant an archive row violates, if any."""
    if archive.total_purchase < 0 or archive.total_sale < 0:
        return f"archive {archive.id} of {archive.product_type} has negative totals"
    if archive.profit != archive.total_sale - archive.total_purchase:
        return f"archive {archive.id} of {archive.product_type} has profit out of sync with its totals"
    return None


class LotService:
    """Service evaluating and archiving lot windows for one user."""

    def __init__(self, db: Database, user_id: str, clock: Clock = utc_now):
        """Initialize lot service.

        Args:
            db: Database instance
            user_id: Owning user
            clock: Source of the current time
        """
        self.db = db
        self.user_id = user_id
        self.clock = clock

    def current_window(self, product_type: str, now: Optional[datetime] = None) -> LotWindow:
        """Aggregate the open lot window of a product type."""
        now = as_utc(now if now is not None else self.clock())
        window_start = self.db.get_last_reset(self.user_id, product_type) or EPOCH
        purchases = self.db.list_purchases(
            self.user_id, product_type=product_type, created_after=window_start, created_until=now
        )
        sales = self.db.list_sales(
            self.user_id, product_type=product_type, created_after=window_start, created_until=now
        )
        return summarize_window(product_type, purchases, sales, window_start, now)

    def state(self, product_type: str) -> LotState:
        """Close-out state of the open window."""
        return lot_state(self.current_window(product_type))

    def check_and_archive(self, product_type: str) -> Optional[int]:
        """Archive the open window if it has sold through.

        The archive insert and the reset marker are written in one atomic
        block. A concurrent close-out of the same window loses on the
        archive uniqueness key and is treated as already done.

        Returns:
            New LotArchive ID, or None if nothing was archived
        """
        now = as_utc(self.clock())
        try:
            with self.db.atomic():
                window = self.current_window(product_type, now)
                if lot_state(window) != LotState.CLOSING:
                    return None
                if window.total_purchase == 0 and window.total_sale == 0:
                    logger.debug("Skipping empty close-out of %s", product_type)
                    return None
                self._guard_close_out(window, now)

                archive_id = self.db.create_lot_archive(
                    self.user_id,
                    product_type=product_type,
                    total_purchase=window.total_purchase,
                    total_sale=window.total_sale,
                    profit=window.profit,
                    date=now,
                    window_start=window.window_start,
                )
                self.db.add_reset_marker(self.user_id, product_type, now)
        except ConflictError:
            logger.info("Lot window of %s starting %s was already archived", product_type, window.window_start)
            return None

        logger.info(
            "Archived %s lot: purchase=%s sale=%s profit=%s",
            product_type,
            window.total_purchase,
            window.total_sale,
            window.profit,
        )
        return archive_id

    def _guard_close_out(self, window: LotWindow, now: datetime) -> None:
        if window.total_purchase < 0 or window.total_sale < 0:
            message = f"Refusing to archive {window.product_type}: negative lot totals"
            logger.warning(message)
            raise InconsistencyError(message)
        if now <= window.window_start:
            message = f"Refusing to archive {window.product_type}: clock is behind the last reset"
            logger.warning(message)
            raise InconsistencyError(message)

    def is_archived(self, product_type: str, created_at: datetime) -> bool:
        """True if a record stamped ``created_at`` belongs to a closed lot."""
        return self.db.has_reset_since(self.user_id, product_type, created_at)

    def rebuild(self, product_type: str) -> list[int]:
        """Regenerate every archive of a product type from records and markers.

        Returns:
            IDs of the archives written, oldest lot first
        """
        with self.db.atomic():
            deleted = self.db.delete_lot_archives(self.user_id, product_type)
            markers = self.db.list_reset_markers(self.user_id, product_type)
            purchases = self.db.list_purchases(self.user_id, product_type=product_type)
            sales = self.db.list_sales(self.user_id, product_type=product_type)

            archive_ids = []
            window_start = EPOCH
            for marker in markers:
                window = summarize_window(product_type, purchases, sales, window_start, marker.reset_time)
                if window.record_count and (window.total_purchase > 0 or window.total_sale > 0):
                    archive_ids.append(
                        self.db.create_lot_archive(
                            self.user_id,
                            product_type=product_type,
                            total_purchase=window.total_purchase,
                            total_sale=window.total_sale,
                            profit=window.profit,
                            date=marker.reset_time,
                            window_start=window_start,
                        )
                    )
                window_start = marker.reset_time

        logger.info(
            "Rebuilt %s lot history: %d archives replaced by %d over %d markers",
            product_type,
            deleted,
            len(archive_ids),
            len(markers),
        )
        return archive_ids

    def after_mutation(self, product_types: Iterable[str], created_at: datetime) -> list[int]:
        """Reconcile lot state after a purchase or sale changed.

        Rebuilds the history of every affected type the record was already
        archived under, then runs the close-out check on each type.

        Args:
            product_types: Product types the record had before and after the change
            created_at: Ordering timestamp of the changed record

        Returns:
            IDs of archives created by close-out checks
        """
        created = []
        for product_type in sorted(set(product_types)):
            if self.is_archived(product_type, created_at):
                logger.info("Retroactive change to a closed %s lot, rebuilding history", product_type)
                self.rebuild(product_type)
            archive_id = self.check_and_archive(product_type)
            if archive_id is not None:
                created.append(archive_id)
        return created

    def history(self, product_type: Optional[str] = None) -> list[LotArchive]:
        """Archived lots, newest first."""
        return self.db.list_lot_archives(self.user_id, product_type=product_type)

    def total_profit(self, product_type: Optional[str] = None) -> Decimal:
        """Sum of archived lot profit."""
        return sum((archive.profit for archive in self.history(product_type)), Decimal("0"))
