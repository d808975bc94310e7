"""
Daily ledger models.

A DailyLedger row is written exactly once per business day, when
the day is committed. It carries a frozen snapshot of the orders
it settled and of the stock deductions it applied. After that,
the only allowed writes are appended corrections and the
is_corrected flag (see models/immutability.py).

Staged days are never stored: they are recomputed from the orders
every time they are looked at.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Numeric, ForeignKey, JSON, Text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shop_ledger.models.base import Base
from shop_ledger.models.enums import PaymentMethod


class DailyLedger(Base):
    __tablename__ = "daily_ledgers"

    id: Mapped[int] = mapped_column(primary_key=True)
    # The unique constraint is what stops two processes from
    # committing the same day.
    business_date: Mapped[date] = mapped_column(
        Date, unique=True, nullable=False, index=True
    )
    grand_total: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    total_cash: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    total_upi: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    total_mixed: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    staging_digest: Mapped[str] = mapped_column(String(64), nullable=False)
    is_committed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_corrected: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    committed_by: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    committed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    orders: Mapped[list["LedgerOrderSnapshot"]] = relationship(
        back_populates="ledger", order_by="LedgerOrderSnapshot.position"
    )
    deductions: Mapped[list["LedgerDeduction"]] = relationship(
        back_populates="ledger", order_by="LedgerDeduction.position"
    )
    corrections: Mapped[list["LedgerCorrection"]] = relationship(
        back_populates="ledger", order_by="LedgerCorrection.id"
    )

    def __repr__(self) -> str:
        state = "committed" if self.is_committed else "open"
        return f"<DailyLedger {self.business_date} {self.grand_total} ({state})>"


class LedgerOrderSnapshot(Base):
    """An order as it was settled. Later edits to the order do not reach it."""

    __tablename__ = "ledger_order_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True)
    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("daily_ledgers.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False)
    order_id: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    final_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            name="snapshot_payment_method_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    verified_by: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )

    ledger: Mapped["DailyLedger"] = relationship(back_populates="orders")


class LedgerDeduction(Base):
    """One item-location stock deduction applied by the commit."""

    __tablename__ = "ledger_deductions"

    id: Mapped[int] = mapped_column(primary_key=True)
    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("daily_ledgers.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False)
    item_id: Mapped[str] = mapped_column(String(50), nullable=False)
    location_id: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    contributing_order_ids: Mapped[list[str]] = mapped_column(
        JSON, nullable=False
    )

    ledger: Mapped["DailyLedger"] = relationship(back_populates="deductions")


class LedgerCorrection(Base):
    """
    An amendment to a committed ledger entry.

    Append-only: corrections are never updated or deleted, and
    several corrections to the same field are all kept.
    """

    __tablename__ = "ledger_corrections"

    id: Mapped[int] = mapped_column(primary_key=True)
    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("daily_ledgers.id"), nullable=False, index=True
    )
    field: Mapped[str] = mapped_column(String(50), nullable=False)
    # Set when the correction targets one of the settled orders
    order_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    original_value: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    corrected_value: Mapped[str] = mapped_column(String(255), nullable=False)
    # corrected - original, for monetary fields only
    delta: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    corrected_by: Mapped[str] = mapped_column(String(50), nullable=False)
    corrected_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    ledger: Mapped["DailyLedger"] = relationship(back_populates="corrections")

    def __repr__(self) -> str:
        return (
            f"<LedgerCorrection {self.field} "
            f"{self.original_value} -> {self.corrected_value}>"
        )
