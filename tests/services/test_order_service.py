"""
Tests for the OrderService.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from shop_ledger.models.enums import OrderStatus, PaymentMethod
from shop_ledger.schemas.order import OrderCreate, OrderLineCreate
from shop_ledger.services.order_service import OrderService


def order_request(number="ORD-1", created_at=datetime(2024, 6, 1, 10, 0), **kwargs):
    return OrderCreate(
        order_number=number,
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.CASH,
        created_at=created_at,
        lines=[OrderLineCreate(
            item_id="A", quantity=Decimal("2"), unit_price=Decimal("25"),
        )],
        **kwargs,
    )


def test_record_and_read_back(db_session):
    service = OrderService(db_session)
    service.record_order(order_request(discount=Decimal("5")))
    db_session.commit()

    order = service.get_order("ORD-1")

    assert order.status == OrderStatus.COMPLETED
    assert order.payment_method == PaymentMethod.CASH
    assert order.subtotal == Decimal("50")
    assert order.discount == Decimal("5")
    assert order.final_amount is None
    assert [line.item_id for line in order.lines] == ["A"]


def test_duplicate_order_number_rejected(db_session):
    service = OrderService(db_session)
    service.record_order(order_request())

    with pytest.raises(ValueError, match="already exists"):
        service.record_order(order_request())


def test_unknown_order(db_session):
    with pytest.raises(ValueError, match="not found"):
        OrderService(db_session).get_order("NOPE")


def test_aware_timestamps_stored_as_shop_time(db_session):
    """20:00 UTC on May 31 is 01:30 on June 1 in the shop."""
    service = OrderService(db_session)
    service.record_order(order_request(
        created_at=datetime(2024, 5, 31, 20, 0, tzinfo=timezone.utc),
    ))
    db_session.commit()

    assert service.get_order("ORD-1").created_at == datetime(2024, 6, 1, 1, 30)
    assert [o.order_number for o in service.get_orders_for_day(date(2024, 6, 1))] == [
        "ORD-1",
    ]
    assert service.get_orders_for_day(date(2024, 5, 31)) == []


def test_orders_for_day_include_every_status(db_session):
    service = OrderService(db_session)
    service.record_order(order_request("ORD-2", datetime(2024, 6, 1, 11, 0)))
    service.record_order(OrderCreate(
        order_number="ORD-1",
        status=OrderStatus.PENDING,
        created_at=datetime(2024, 6, 1, 9, 0),
    ))
    service.record_order(order_request("ORD-3", datetime(2024, 6, 2, 0, 0)))
    db_session.commit()

    orders = service.get_orders_for_day(date(2024, 6, 1))

    assert [o.order_number for o in orders] == ["ORD-1", "ORD-2"]
