"""
Inventory service: stock on hand per item and location.

The ledger treats inventory as a key-value store keyed by
(item_id, location_id). Reads never lock. Deductions are applied
as one batch: every row is locked and checked first, and only
then is anything changed.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from shop_ledger.exceptions import InventoryConsistencyError
from shop_ledger.models.inventory import InventoryRecord
from shop_ledger.services.concurrency import lock_for_update

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class InventoryService:
    """Reads and changes stock on hand for item-location pairs."""

    def __init__(self, db: Session):
        self.db = db

    def get_record(self, item_id: str, location_id: str) -> InventoryRecord | None:
        return self.db.execute(
            select(InventoryRecord).where(
                InventoryRecord.item_id == item_id,
                InventoryRecord.location_id == location_id,
            )
        ).scalar_one_or_none()

    def get_quantity(self, item_id: str, location_id: str) -> Decimal:
        """Stock on hand. An unknown pair has nothing on hand."""
        record = self.get_record(item_id, location_id)
        return record.quantity_on_hand if record else ZERO

    def get_quantities(
        self, keys: Iterable[tuple[str, str]]
    ) -> dict[tuple[str, str], Decimal]:
        """
        Stock on hand for several pairs in one query; missing pairs are 0.

        Always read from the database, never from records the session
        loaded earlier.
        """
        keys = list(dict.fromkeys(keys))
        if not keys:
            return {}
        records = self.db.execute(
            select(InventoryRecord)
            .where(
                InventoryRecord.item_id.in_({item_id for item_id, _ in keys})
            )
            .execution_options(populate_existing=True)
        ).scalars().all()
        found = {r.key: r.quantity_on_hand for r in records}
        return {key: found.get(key, ZERO) for key in keys}

    def set_quantity(
        self, item_id: str, location_id: str, quantity: Decimal
    ) -> InventoryRecord:
        """
        Set stock for a pair, creating the record if needed.

        Used when receiving or counting stock. Raises ValueError
        for negative quantities.
        """
        quantity = Decimal(str(quantity))
        if quantity < 0:
            raise ValueError(
                f"Stock for {item_id}@{location_id} cannot be negative"
            )

        record = self.get_record(item_id, location_id)
        if record is None:
            record = InventoryRecord(
                item_id=item_id,
                location_id=location_id,
                quantity_on_hand=quantity,
            )
            self.db.add(record)
        else:
            record.quantity_on_hand = quantity
        self.db.flush()
        return record

    def list_records(self, location_id: str | None = None) -> list[InventoryRecord]:
        query = select(InventoryRecord).order_by(
            InventoryRecord.item_id, InventoryRecord.location_id
        )
        if location_id is not None:
            query = query.where(InventoryRecord.location_id == location_id)
        return list(self.db.execute(query).scalars().all())

    def apply_deductions(
        self, deductions: list[tuple[str, str, Decimal]]
    ) -> list[InventoryRecord]:
        """
        Take stock out for a batch of (item_id, location_id, quantity).

        All rows are locked and re-read before any is changed, in the
        order given. If one would go negative, InventoryConsistencyError
        is raised and no record is touched. The decrement is written
        relative to the stored value. The caller owns the transaction
        and must roll it back on error.
        """
        if not deductions:
            return []

        item_ids = {item_id for item_id, _, _ in deductions}
        records = self.db.execute(
            lock_for_update(
                select(InventoryRecord)
                .where(InventoryRecord.item_id.in_(item_ids))
                .order_by(InventoryRecord.item_id, InventoryRecord.location_id)
            )
            .execution_options(populate_existing=True)
        ).scalars().all()
        by_key = {r.key: r for r in records}

        for item_id, location_id, quantity in deductions:
            record = by_key.get((item_id, location_id))
            available = record.quantity_on_hand if record else ZERO
            if available < quantity:
                logger.error(
                    "Stock went negative during commit",
                    extra={
                        "item_id": item_id,
                        "location_id": location_id,
                        "available": available,
                        "required": quantity,
                    },
                )
                raise InventoryConsistencyError(
                    item_id, location_id, available, quantity
                )

        changed = []
        for item_id, location_id, quantity in deductions:
            record = by_key[(item_id, location_id)]
            # Evaluated by the database; the attribute is reloaded after flush
            record.quantity_on_hand = InventoryRecord.quantity_on_hand - quantity
            changed.append(record)

        self.db.flush()
        return changed
