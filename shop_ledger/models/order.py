"""
Order model.

Orders are produced by the order-taking side of the shop. The
ledger only reads them: status, payment method, lines, amounts
and timestamps. Timestamps are stored as naive shop-local
wall-clock time.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shop_ledger.models.base import Base
from shop_ledger.models.enums import OrderStatus, PaymentMethod


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name="order_status_enum", create_constraint=True),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        SAEnum(
            PaymentMethod,
            name="payment_method_enum",
            create_constraint=True,
        ),
        nullable=True,
    )
    customer_name: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    verified_by: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    location_id: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    # As recorded by the till. Null means "derive from the lines".
    final_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    is_delivery_order: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )

    @property
    def subtotal(self) -> Decimal:
        return sum(
            (Decimal(line.quantity) * Decimal(line.unit_price)
             for line in self.lines),
            Decimal("0"),
        )

    def __repr__(self) -> str:
        return f"<Order {self.order_number} ({self.status.value})>"


class OrderLine(Base):
    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id"), nullable=False, index=True
    )
    item_id: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    checked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # Where the stock is taken from. Null falls back to the order's
    # location, then to the shop's default location.
    location_id: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )

    order: Mapped["Order"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<OrderLine {self.item_id} x{self.quantity}>"
