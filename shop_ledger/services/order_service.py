"""
Order service: the ledger's read access to orders.

Orders are written by the order-taking side; record_order exists
so that side (and tests) can hand them over. The ledger only ever
reads them back.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from shop_ledger.config import get_settings
from shop_ledger.models.order import Order, OrderLine
from shop_ledger.schemas.order import OrderCreate
from shop_ledger.services.order_aggregator import day_bounds, to_shop_time


class OrderService:
    """Stores orders from the till and reads them back by day."""

    def __init__(self, db: Session):
        self.db = db
        self.timezone = get_settings().shop_tz

    def record_order(self, request: OrderCreate) -> Order:
        """
        Store an order handed over by the till.

        Timestamps are converted to naive shop-local time before
        they are stored.
        """
        existing = self.db.execute(
            select(Order).where(Order.order_number == request.order_number)
        ).scalar_one_or_none()

        if existing:
            raise ValueError(f"Order '{request.order_number}' already exists")

        order = Order(
            order_number=request.order_number,
            status=request.status,
            payment_method=request.payment_method,
            customer_name=request.customer_name,
            verified_by=request.verified_by,
            location_id=request.location_id,
            discount=request.discount,
            final_amount=request.final_amount,
            is_delivery_order=request.is_delivery_order,
            created_at=self._local_naive(request.created_at),
            completed_at=(
                self._local_naive(request.completed_at)
                if request.completed_at else None
            ),
            lines=[
                OrderLine(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    checked=line.checked,
                    location_id=line.location_id,
                )
                for line in request.lines
            ],
        )
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_number: str) -> Order:
        order = self.db.execute(
            select(Order)
            .options(selectinload(Order.lines))
            .where(Order.order_number == order_number)
        ).scalar_one_or_none()
        if not order:
            raise ValueError(f"Order '{order_number}' not found")
        return order

    def get_orders_for_day(self, business_date: date) -> list[Order]:
        """All orders created on a shop-local business day, any status."""
        start, end = day_bounds(business_date, self.timezone)
        orders = self.db.execute(
            select(Order)
            .options(selectinload(Order.lines))
            .where(
                Order.created_at >= start.replace(tzinfo=None),
                Order.created_at < end.replace(tzinfo=None),
            )
            .order_by(Order.created_at, Order.order_number)
        ).scalars().all()
        return list(orders)

    def _local_naive(self, moment):
        return to_shop_time(moment, self.timezone).replace(tzinfo=None)
