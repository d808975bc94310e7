"""
Tests for the OrderAggregator.

Tests cover:
- Filtering to completed orders on the business day
- Quantity totals per item and location
- Contributing order lists (order, no duplicates)
- Payment totals, including the separate mixed bucket
- Location resolution
- Malformed orders reported and excluded
- Determinism regardless of input order
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from shop_ledger.models.enums import OrderStatus, PaymentMethod
from shop_ledger.models.order import Order, OrderLine
from shop_ledger.schemas.order import OrderCreate, OrderLineCreate
from shop_ledger.services.order_aggregator import (
    OrderAggregator,
    final_amount_of,
)


DAY = date(2024, 6, 1)


def make_order(
    number,
    lines,
    payment=PaymentMethod.CASH,
    status=OrderStatus.COMPLETED,
    created_at=datetime(2024, 6, 1, 10, 0),
    **kwargs,
):
    """Build an order; lines are (item_id, quantity, unit_price) tuples."""
    return OrderCreate(
        order_number=number,
        status=status,
        payment_method=payment,
        created_at=created_at,
        lines=[
            OrderLineCreate(
                item_id=item_id,
                quantity=Decimal(str(qty)),
                unit_price=Decimal(str(price)),
            )
            for item_id, qty, price in lines
        ],
        **kwargs,
    )


def aggregator():
    return OrderAggregator(
        timezone=ZoneInfo("Asia/Kolkata"), default_location_id="main"
    )


def entry_map(result):
    return {(e.item_id, e.location_id): e for e in result.entries}


class TestFiltering:

    def test_only_completed_orders_are_staged(self):
        orders = [
            make_order("ORD-1", [("A", 1, 10)]),
            make_order("ORD-2", [("A", 5, 10)], status=OrderStatus.PENDING),
            make_order("ORD-3", [("A", 7, 10)], status=OrderStatus.PARTIAL),
        ]
        result = aggregator().build_staging(orders, DAY)

        assert len(result.entries) == 1
        assert result.entries[0].total_quantity == Decimal("1")
        assert [o.order_id for o in result.orders] == ["ORD-1"]

    def test_orders_from_other_days_are_ignored(self):
        orders = [
            make_order("ORD-1", [("A", 1, 10)],
                       created_at=datetime(2024, 5, 31, 23, 59)),
            make_order("ORD-2", [("A", 2, 10)],
                       created_at=datetime(2024, 6, 1, 0, 0)),
            make_order("ORD-3", [("A", 4, 10)],
                       created_at=datetime(2024, 6, 2, 0, 0)),
        ]
        result = aggregator().build_staging(orders, DAY)

        assert result.entries[0].total_quantity == Decimal("2")
        assert result.entries[0].contributing_order_ids == ["ORD-2"]

    def test_day_follows_shop_calendar_not_utc(self):
        # 20:00 UTC on May 31 is 01:30 on June 1 in Kolkata
        late_utc = datetime(2024, 5, 31, 20, 0, tzinfo=timezone.utc)
        # 20:00 UTC on June 1 is already June 2 in Kolkata
        next_day = datetime(2024, 6, 1, 20, 0, tzinfo=timezone.utc)
        orders = [
            make_order("ORD-1", [("A", 1, 10)], created_at=late_utc),
            make_order("ORD-2", [("A", 3, 10)], created_at=next_day),
        ]
        result = aggregator().build_staging(orders, DAY)

        assert [o.order_id for o in result.orders] == ["ORD-1"]

    def test_no_orders_gives_empty_staging(self):
        result = aggregator().build_staging([], DAY)

        assert result.entries == []
        assert result.totals.grand_total == Decimal("0")
        assert result.issues == []


class TestQuantities:

    def test_example_day(self):
        orders = [
            make_order("ORD-1", [("A", 3, 100)], final_amount=Decimal("500"),
                       created_at=datetime(2024, 6, 1, 9, 0)),
            make_order("ORD-2", [("A", 1, 100), ("B", 2, 50)],
                       payment=PaymentMethod.UPI, final_amount=Decimal("200"),
                       created_at=datetime(2024, 6, 1, 10, 0)),
        ]
        result = aggregator().build_staging(orders, DAY)
        rows = entry_map(result)

        assert rows[("A", "main")].total_quantity == Decimal("4")
        assert rows[("A", "main")].contributing_order_ids == ["ORD-1", "ORD-2"]
        assert rows[("B", "main")].total_quantity == Decimal("2")
        assert rows[("B", "main")].contributing_order_ids == ["ORD-2"]
        assert result.totals.cash == Decimal("500")
        assert result.totals.upi == Decimal("200")
        assert result.totals.credit == Decimal("0")

    def test_order_listed_once_per_entry(self):
        orders = [make_order("ORD-1", [("A", 1, 10), ("A", 2, 10)])]
        result = aggregator().build_staging(orders, DAY)

        assert result.entries[0].total_quantity == Decimal("3")
        assert result.entries[0].contributing_order_ids == ["ORD-1"]

    def test_contributors_follow_creation_time_then_number(self):
        orders = [
            make_order("ORD-3", [("A", 1, 10)],
                       created_at=datetime(2024, 6, 1, 12, 0)),
            make_order("ORD-2", [("A", 1, 10)],
                       created_at=datetime(2024, 6, 1, 9, 0)),
            make_order("ORD-1", [("A", 1, 10)],
                       created_at=datetime(2024, 6, 1, 9, 0)),
        ]
        result = aggregator().build_staging(orders, DAY)

        assert result.entries[0].contributing_order_ids == [
            "ORD-1", "ORD-2", "ORD-3",
        ]

    def test_quantity_is_conserved_across_locations(self):
        orders = [
            make_order("ORD-1", [("A", 2, 10)], location_id="store"),
            make_order("ORD-2", [("A", 3, 10), ("B", 1, 5)]),
            make_order("ORD-3", [("A", Decimal("0.5"), 10)],
                       location_id="warehouse"),
        ]
        result = aggregator().build_staging(orders, DAY)

        staged_a = sum(
            e.total_quantity for e in result.entries if e.item_id == "A"
        )
        ordered_a = sum(
            line.quantity
            for order in orders
            for line in order.lines
            if line.item_id == "A"
        )
        assert staged_a == ordered_a == Decimal("5.5")

    def test_entries_sorted_by_item_then_location(self):
        orders = [
            make_order("ORD-1", [("B", 1, 10)], location_id="z-store"),
            make_order("ORD-2", [("B", 1, 10), ("A", 1, 10)]),
            make_order("ORD-3", [("A", 1, 10)], location_id="annex"),
        ]
        result = aggregator().build_staging(orders, DAY)

        keys = [(e.item_id, e.location_id) for e in result.entries]
        assert keys == [
            ("A", "annex"), ("A", "main"), ("B", "main"), ("B", "z-store"),
        ]

    def test_input_order_does_not_change_result(self):
        orders = [
            make_order("ORD-1", [("A", 1, 10)],
                       created_at=datetime(2024, 6, 1, 9, 0)),
            make_order("ORD-2", [("B", 2, 10), ("A", 1, 10)],
                       payment=PaymentMethod.UPI,
                       created_at=datetime(2024, 6, 1, 11, 0)),
            make_order("ORD-3", [("A", 4, 10)], payment=PaymentMethod.CREDIT,
                       created_at=datetime(2024, 6, 1, 10, 0)),
        ]
        forward = aggregator().build_staging(orders, DAY)
        backward = aggregator().build_staging(list(reversed(orders)), DAY)

        assert forward == backward


class TestLocations:

    def test_line_location_wins_over_order_location(self):
        order = OrderCreate(
            order_number="ORD-1",
            status=OrderStatus.COMPLETED,
            payment_method=PaymentMethod.CASH,
            created_at=datetime(2024, 6, 1, 10, 0),
            location_id="store",
            lines=[
                OrderLineCreate(item_id="A", quantity=Decimal("1"),
                                unit_price=Decimal("10"),
                                location_id="warehouse"),
                OrderLineCreate(item_id="B", quantity=Decimal("1"),
                                unit_price=Decimal("10")),
            ],
        )
        result = aggregator().build_staging([order], DAY)

        assert set(entry_map(result)) == {("A", "warehouse"), ("B", "store")}

    def test_custom_resolver(self):
        orders = [make_order("ORD-1", [("A", 1, 10), ("B", 1, 10)])]

        def by_item(order, line):
            return "cold-room" if line.item_id == "A" else "shelf"

        result = aggregator().build_staging(orders, DAY, by_item)

        assert set(entry_map(result)) == {("A", "cold-room"), ("B", "shelf")}


class TestPaymentTotals:

    def test_totals_grouped_by_method(self):
        orders = [
            make_order("ORD-1", [("A", 1, 100)]),
            make_order("ORD-2", [("A", 1, 40)], payment=PaymentMethod.UPI),
            make_order("ORD-3", [("A", 1, 25)], payment=PaymentMethod.CREDIT),
            make_order("ORD-4", [("A", 1, 60)]),
        ]
        totals = aggregator().build_staging(orders, DAY).totals

        assert totals.cash == Decimal("160")
        assert totals.upi == Decimal("40")
        assert totals.credit == Decimal("25")
        assert totals.grand_total == Decimal("225")

    def test_mixed_payments_kept_in_own_bucket(self):
        orders = [
            make_order("ORD-1", [("A", 1, 100)]),
            make_order("ORD-2", [("A", 1, 80)], payment=PaymentMethod.MIXED),
        ]
        totals = aggregator().build_staging(orders, DAY).totals

        assert totals.cash == Decimal("100")
        assert totals.mixed == Decimal("80")
        assert totals.upi == Decimal("0")
        assert totals.credit == Decimal("0")

    def test_discount_applied_when_amount_not_recorded(self):
        orders = [
            make_order("ORD-1", [("A", 2, 100)], discount=Decimal("30")),
        ]
        totals = aggregator().build_staging(orders, DAY).totals

        assert totals.cash == Decimal("170")

    def test_discount_larger_than_subtotal_clamps_to_zero(self):
        order = make_order("ORD-1", [("A", 1, 50)], discount=Decimal("80"))

        assert final_amount_of(order) == Decimal("0")


class TestMalformedOrders:

    def _orm_order(self, number, lines, **kwargs):
        defaults = dict(
            status=OrderStatus.COMPLETED,
            payment_method=PaymentMethod.CASH,
            discount=Decimal("0"),
            created_at=datetime(2024, 6, 1, 10, 0),
        )
        defaults.update(kwargs)
        return Order(order_number=number, lines=lines, **defaults)

    def test_negative_quantity_excluded_and_reported(self):
        bad = self._orm_order("ORD-BAD", [
            OrderLine(item_id="A", quantity=Decimal("-1"),
                      unit_price=Decimal("10")),
        ])
        good = make_order("ORD-1", [("A", 2, 10)])
        result = aggregator().build_staging([bad, good], DAY)

        assert result.entries[0].total_quantity == Decimal("2")
        assert [o.order_id for o in result.orders] == ["ORD-1"]
        assert len(result.issues) == 1
        assert result.issues[0].order_id == "ORD-BAD"
        assert "quantity" in result.issues[0].reason

    def test_missing_item_id_excluded(self):
        bad = self._orm_order("ORD-BAD", [
            OrderLine(item_id=None, quantity=Decimal("1"),
                      unit_price=Decimal("10")),
        ])
        result = aggregator().build_staging([bad], DAY)

        assert result.entries == []
        assert result.issues[0].order_id == "ORD-BAD"

    def test_negative_price_excluded(self):
        bad = self._orm_order("ORD-BAD", [
            OrderLine(item_id="A", quantity=Decimal("1"),
                      unit_price=Decimal("-5")),
        ])
        result = aggregator().build_staging([bad], DAY)

        assert result.entries == []
        assert "price" in result.issues[0].reason

    def test_bad_line_excludes_whole_order(self):
        bad = self._orm_order("ORD-BAD", [
            OrderLine(item_id="A", quantity=Decimal("3"),
                      unit_price=Decimal("10")),
            OrderLine(item_id="B", quantity=Decimal("0"),
                      unit_price=Decimal("10")),
        ])
        result = aggregator().build_staging([bad], DAY)

        assert result.entries == []
        assert result.totals.grand_total == Decimal("0")

    def test_missing_payment_method_excluded(self):
        bad = self._orm_order("ORD-BAD", [
            OrderLine(item_id="A", quantity=Decimal("1"),
                      unit_price=Decimal("10")),
        ], payment_method=None)
        result = aggregator().build_staging([bad], DAY)

        assert result.issues[0].reason == "payment method is missing"

    def test_duplicate_order_number_counted_once(self):
        orders = [
            make_order("ORD-1", [("A", 1, 10)],
                       created_at=datetime(2024, 6, 1, 9, 0)),
            make_order("ORD-1", [("A", 1, 10)],
                       created_at=datetime(2024, 6, 1, 10, 0)),
        ]
        result = aggregator().build_staging(orders, DAY)

        assert result.entries[0].total_quantity == Decimal("1")
        assert result.issues[0].reason == "duplicate order number"

    def test_malformed_order_from_other_day_not_reported(self):
        bad = self._orm_order("ORD-BAD", [
            OrderLine(item_id="A", quantity=Decimal("-1"),
                      unit_price=Decimal("10")),
        ], created_at=datetime(2024, 6, 3, 10, 0))
        result = aggregator().build_staging([bad], DAY)

        assert result.issues == []

    def test_inputs_are_not_modified(self):
        order = make_order("ORD-1", [("A", 2, 10)])
        before = order.model_dump()
        aggregator().build_staging([order], DAY)

        assert order.model_dump() == before
