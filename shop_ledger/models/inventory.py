"""
Inventory record model.

One row per (item, location) pair. Stock is never allowed to
go negative; the CHECK constraint backs up the service-level
validation.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from shop_ledger.models.base import Base


class InventoryRecord(Base):
    __tablename__ = "inventory_records"
    __table_args__ = (
        UniqueConstraint(
            "item_id", "location_id", name="uq_inventory_item_location"
        ),
        CheckConstraint(
            "quantity_on_hand >= 0", name="ck_inventory_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    item_id: Mapped[str] = mapped_column(String(50), nullable=False)
    location_id: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity_on_hand: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def key(self) -> tuple[str, str]:
        return (self.item_id, self.location_id)

    def __repr__(self) -> str:
        return (
            f"<InventoryRecord {self.item_id}@{self.location_id} "
            f"{self.quantity_on_hand}>"
        )
