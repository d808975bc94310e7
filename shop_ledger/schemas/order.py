"""
Pydantic schemas for orders handed over by the order-taking side.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from shop_ledger.models.enums import OrderStatus, PaymentMethod


class OrderLineCreate(BaseModel):
    item_id: str = Field(min_length=1, max_length=50)
    quantity: Decimal = Field(gt=0, decimal_places=4)
    unit_price: Decimal = Field(ge=0, decimal_places=4)
    checked: bool = False
    location_id: str | None = Field(default=None, max_length=50)


class OrderCreate(BaseModel):
    """
    An order as recorded by the till.

    final_amount may be left out, in which case it is derived
    as max(0, subtotal - discount).
    """
    order_number: str = Field(min_length=1, max_length=50)
    status: OrderStatus = OrderStatus.PENDING
    payment_method: PaymentMethod | None = None
    customer_name: str | None = Field(default=None, max_length=100)
    verified_by: str | None = Field(default=None, max_length=50)
    location_id: str | None = Field(default=None, max_length=50)
    discount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    final_amount: Decimal | None = Field(default=None, ge=0, decimal_places=4)
    is_delivery_order: bool = False
    created_at: datetime
    completed_at: datetime | None = None
    lines: list[OrderLineCreate] = Field(default_factory=list)
