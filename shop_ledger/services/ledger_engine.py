"""
Ledger engine: the end-of-day settlement of one business day.

Each business date moves through three states:

    NO_DATA  -> STAGED  -> COMMITTED

A STAGED day is never stored. It is recomputed from the orders
every time it is asked for, so a review can be repeated as often
as needed. COMMITTED is terminal: the DailyLedger row is written
once, together with the inventory deductions, in one database
transaction.

The engine enforces:
1. At most one committed ledger per date
2. No commit while any item-location pair lacks stock
3. All deductions applied, or none
4. Committed totals and snapshots never change afterwards

Unlike the other services, commit() owns its transaction: it
commits on success and rolls back on failure, because the
per-date lock is only meaningful while the write is in flight.
"""

import hashlib
import json
import logging
from collections.abc import Iterable
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from shop_ledger.exceptions import (
    AlreadyCommittedError,
    InsufficientStockError,
    NothingToCommitError,
    StaleStagingError,
)
from shop_ledger.models.daily_ledger import (
    DailyLedger,
    LedgerOrderSnapshot,
    LedgerDeduction,
)
from shop_ledger.models.enums import DayStatus
from shop_ledger.schemas.eod import (
    CommitValidation,
    InventoryShortfall,
    StagedLedger,
    StagingResult,
)
from shop_ledger.services.concurrency import business_day_lock
from shop_ledger.services.inventory_service import InventoryService
from shop_ledger.services.order_aggregator import (
    LocationResolver,
    OrderAggregator,
)
from shop_ledger.services.order_service import OrderService

logger = logging.getLogger(__name__)


def staging_digest(business_date: date, staging: StagingResult) -> str:
    """
    SHA-256 over the canonical form of a staged day.

    Covers the deduction rows, the payment totals and the settled
    order ids, so any change to what a commit would write changes
    the digest.
    """
    canonical = {
        "business_date": business_date.isoformat(),
        "entries": [
            [
                e.item_id,
                e.location_id,
                str(e.total_quantity.normalize()),
                e.contributing_order_ids,
            ]
            for e in staging.entries
        ],
        "totals": [
            str(staging.totals.cash.normalize()),
            str(staging.totals.upi.normalize()),
            str(staging.totals.credit.normalize()),
            str(staging.totals.mixed.normalize()),
        ],
        "orders": [o.order_id for o in staging.orders],
    }
    encoded = json.dumps(canonical, separators=(",", ":"), sort_keys=True)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class LedgerEngine:
    """
    All end-of-day operations pass through this engine.

    Stores are injected: the session, and optionally the
    aggregator, order service and inventory service to use.
    """

    def __init__(
        self,
        db: Session,
        aggregator: OrderAggregator | None = None,
        order_service: OrderService | None = None,
        inventory_service: InventoryService | None = None,
    ):
        self.db = db
        self.aggregator = aggregator or OrderAggregator()
        self.order_service = order_service or OrderService(db)
        self.inventory_service = inventory_service or InventoryService(db)

    # --- Reads ---

    def get_entry(self, business_date: date) -> DailyLedger | None:
        """The committed ledger for a date, if there is one."""
        return self.db.execute(
            select(DailyLedger)
            .options(
                selectinload(DailyLedger.orders),
                selectinload(DailyLedger.deductions),
                selectinload(DailyLedger.corrections),
            )
            .where(DailyLedger.business_date == business_date)
        ).scalar_one_or_none()

    def list_entries(self) -> list[DailyLedger]:
        """All committed ledgers, newest first."""
        entries = self.db.execute(
            select(DailyLedger).order_by(DailyLedger.business_date.desc())
        ).scalars().all()
        return list(entries)

    def stage(
        self,
        business_date: date,
        orders: Iterable | None = None,
        location_resolver: LocationResolver | None = None,
    ) -> StagedLedger:
        """
        Compute the staged view of a day, ignoring any commit.

        When orders are not given they are loaded from the order store.
        """
        if orders is None:
            orders = self.order_service.get_orders_for_day(business_date)

        staging = self.aggregator.build_staging(
            orders, business_date, location_resolver
        )
        return StagedLedger(
            business_date=business_date,
            entries=staging.entries,
            totals=staging.totals,
            orders=staging.orders,
            issues=staging.issues,
            digest=staging_digest(business_date, staging),
        )

    def get_or_create_staged(
        self,
        business_date: date,
        orders: Iterable | None = None,
        location_resolver: LocationResolver | None = None,
    ) -> DailyLedger | StagedLedger:
        """
        What the end-of-day screen shows for a date.

        Returns the committed DailyLedger when the day is settled,
        otherwise a freshly computed StagedLedger. Never writes.
        """
        entry = self.get_entry(business_date)
        if entry is not None:
            return entry
        return self.stage(business_date, orders, location_resolver)

    def get_day_status(
        self, business_date: date, orders: Iterable | None = None
    ) -> DayStatus:
        if self.get_entry(business_date) is not None:
            return DayStatus.COMMITTED
        staged = self.stage(business_date, orders)
        if staged.orders or staged.entries:
            return DayStatus.STAGED
        return DayStatus.NO_DATA

    def validate_commit(self, staged: StagedLedger) -> CommitValidation:
        """
        Check every staging row against current stock.

        Collects every shortfall rather than stopping at the first.
        Rows are checked in (item_id, location_id) order so the
        report reads the same on every run. Pure read.
        """
        entries = sorted(
            staged.entries, key=lambda e: (e.item_id, e.location_id)
        )
        available = self.inventory_service.get_quantities(
            (e.item_id, e.location_id) for e in entries
        )

        shortfalls = []
        for e in entries:
            on_hand = available.get((e.item_id, e.location_id))
            if on_hand < e.total_quantity:
                shortfalls.append(InventoryShortfall(
                    item_id=e.item_id,
                    location_id=e.location_id,
                    available=on_hand,
                    required=e.total_quantity,
                ))

        return CommitValidation(
            business_date=staged.business_date,
            shortfalls=shortfalls,
        )

    # --- Commit ---

    def commit(
        self,
        business_date: date,
        staged: StagedLedger,
        committed_by: str | None = None,
        expected_digest: str | None = None,
    ) -> DailyLedger:
        """
        Settle a business day: deduct stock and lock the ledger.

        Raises:
            NothingToCommitError: the staged day has no completed orders.
                A day is never locked empty.
            AlreadyCommittedError: the date is already settled. The
                existing entry is authoritative; nothing is changed.
            StaleStagingError: expected_digest was given and does not
                match staged, or the day restaged from the order store
                no longer matches it.
            InsufficientStockError: some pair lacks stock; carries
                every shortfall; nothing is changed.
            InventoryConsistencyError: stock moved between validation
                and the write. Everything is rolled back.
        """
        if staged.business_date != business_date:
            raise ValueError(
                f"Staged ledger is for {staged.business_date}, "
                f"not {business_date}"
            )
        if expected_digest is not None and expected_digest != staged.digest:
            raise StaleStagingError(business_date, expected_digest, staged.digest)
        if not staged.orders:
            raise NothingToCommitError(business_date)

        with business_day_lock(business_date):
            existing = self.get_entry(business_date)
            if existing is not None:
                logger.warning(
                    "Rejected second commit",
                    extra={
                        "business_date": business_date,
                        "entry_id": existing.id,
                    },
                )
                raise AlreadyCommittedError(business_date, existing.id)

            if expected_digest is not None:
                current = self.stage(business_date).digest
                if current != expected_digest:
                    logger.warning(
                        "Orders changed since review",
                        extra={"business_date": business_date},
                    )
                    raise StaleStagingError(
                        business_date, expected_digest, current
                    )

            validation = self.validate_commit(staged)
            if not validation.is_valid:
                logger.warning(
                    "Commit blocked by insufficient stock",
                    extra={
                        "business_date": business_date,
                        "shortfall_count": len(validation.shortfalls),
                    },
                )
                raise InsufficientStockError(
                    business_date, validation.shortfalls
                )

            try:
                entry = self._write(business_date, staged, committed_by)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                existing = self.get_entry(business_date)
                if existing is None:
                    # Not a duplicate day; e.g. the stock CHECK constraint
                    raise
                # Another process committed the same date first
                raise AlreadyCommittedError(business_date, existing.id)
            except Exception:
                self.db.rollback()
                raise

        logger.info(
            "Business day committed",
            extra={
                "business_date": business_date,
                "entry_id": entry.id,
                "order_count": len(staged.orders),
                "entry_count": len(staged.entries),
                "grand_total": staged.totals.grand_total,
            },
        )
        return entry

    def _write(
        self,
        business_date: date,
        staged: StagedLedger,
        committed_by: str | None,
    ) -> DailyLedger:
        """Inventory deltas and the ledger row, flushed but not committed."""
        entries = sorted(
            staged.entries, key=lambda e: (e.item_id, e.location_id)
        )
        self.inventory_service.apply_deductions([
            (e.item_id, e.location_id, e.total_quantity) for e in entries
        ])

        totals = staged.totals
        entry = DailyLedger(
            business_date=business_date,
            grand_total=totals.grand_total,
            total_cash=totals.cash,
            total_upi=totals.upi,
            total_credit=totals.credit,
            total_mixed=totals.mixed,
            staging_digest=staged.digest,
            is_committed=True,
            is_corrected=False,
            committed_by=committed_by,
            committed_at=datetime.utcnow(),
            orders=[
                LedgerOrderSnapshot(
                    position=position,
                    order_id=o.order_id,
                    customer_name=o.customer_name,
                    final_amount=o.final_amount,
                    payment_method=o.payment_method,
                    verified_by=o.verified_by,
                )
                for position, o in enumerate(staged.orders)
            ],
            deductions=[
                LedgerDeduction(
                    position=position,
                    item_id=e.item_id,
                    location_id=e.location_id,
                    quantity=e.total_quantity,
                    contributing_order_ids=list(e.contributing_order_ids),
                )
                for position, e in enumerate(entries)
            ],
        )
        self.db.add(entry)
        self.db.flush()
        return entry
