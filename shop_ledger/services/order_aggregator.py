"""
Order aggregator: turns a day's orders into a staging ledger.

Given any iterable of orders, it keeps the completed ones created
on the business day (shop-local calendar), then:
1. Sums line quantities per (item, location)
2. Records which orders contributed to each row, in first-seen order
3. Sums final amounts per payment method

Orders are read, never modified. The same input always gives the
same output: orders are processed by created_at, then by order
number, and rows come out sorted by item then location.

A malformed order is left out and reported as an issue rather
than failing the whole day.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal, InvalidOperation

from shop_ledger.config import get_settings
from shop_ledger.exceptions import AggregationInputError
from shop_ledger.models.enums import OrderStatus, PaymentMethod
from shop_ledger.schemas.eod import (
    AggregationIssue,
    OrderSnapshot,
    PaymentTotals,
    StagingEntry,
    StagingResult,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# (order, line) -> location id
LocationResolver = Callable[[object, object], str]


def _to_decimal(value, label: str) -> Decimal:
    if value is None:
        raise AggregationInputError(None, f"{label} is missing")
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise AggregationInputError(None, f"{label} is not a number: {value!r}")


def _enum_value(enum_cls, value):
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)


def day_bounds(business_date: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """[start, end) of a business day as aware datetimes in the shop zone."""
    start = datetime.combine(business_date, time.min, tzinfo=tz)
    end = datetime.combine(business_date + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def to_shop_time(moment: datetime, tz: tzinfo) -> datetime:
    """
    Express a timestamp in the shop's zone.

    Naive timestamps are shop-local wall-clock time already.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def final_amount_of(order) -> Decimal:
    """
    The amount the customer owes for an order, never below zero.

    Uses the amount the till recorded when there is one, otherwise
    max(0, subtotal - discount).
    """
    recorded = getattr(order, "final_amount", None)
    if recorded is not None:
        return max(ZERO, _to_decimal(recorded, "final_amount"))

    subtotal = ZERO
    for line in order.lines:
        subtotal += (
            _to_decimal(line.quantity, "quantity")
            * _to_decimal(line.unit_price, "unit_price")
        )
    discount = _to_decimal(getattr(order, "discount", None) or ZERO, "discount")
    return max(ZERO, subtotal - discount)


class OrderAggregator:
    """
    Builds staging ledgers. Holds configuration only, no state
    between calls, so one instance can be shared freely.
    """

    def __init__(
        self,
        timezone: tzinfo | None = None,
        default_location_id: str | None = None,
    ):
        settings = get_settings()
        self.timezone = timezone or settings.shop_tz
        self.default_location_id = (
            default_location_id or settings.DEFAULT_LOCATION_ID
        )

    def default_location_resolver(self, order, line) -> str:
        """Line location, then order location, then the shop default."""
        return (
            getattr(line, "location_id", None)
            or getattr(order, "location_id", None)
            or self.default_location_id
        )

    def build_staging(
        self,
        orders: Iterable,
        business_date: date,
        location_resolver: LocationResolver | None = None,
    ) -> StagingResult:
        """
        Aggregate one business day.

        Returns the staging rows, payment totals, order snapshots
        and the list of orders that had to be excluded.
        """
        resolve = location_resolver or self.default_location_resolver
        start, end = day_bounds(business_date, self.timezone)
        issues: list[AggregationIssue] = []

        eligible = []
        for order in orders:
            order_id = getattr(order, "order_number", None)
            try:
                status = _enum_value(OrderStatus, order.status)
            except ValueError:
                self._exclude(issues, order_id, f"unknown status {order.status!r}")
                continue
            if status != OrderStatus.COMPLETED:
                continue

            if order.created_at is None:
                self._exclude(issues, order_id, "created_at is missing")
                continue
            local_created = to_shop_time(order.created_at, self.timezone)
            if not (start <= local_created < end):
                continue

            eligible.append((local_created, order_id or "", order))

        # Stable processing order: oldest first, ties by order number
        eligible.sort(key=lambda item: (item[0], item[1]))

        rows: dict[tuple[str, str], StagingEntry] = {}
        totals = {method: ZERO for method in PaymentMethod}
        snapshots: list[OrderSnapshot] = []
        seen: set[str] = set()

        for _, order_id, order in eligible:
            try:
                lines, payment_method, amount = self._check_order(
                    order, order_id, seen, resolve
                )
            except AggregationInputError as e:
                self._exclude(issues, e.order_id or order_id or None, e.reason)
                continue

            seen.add(order_id)
            for item_id, location_id, quantity in lines:
                row = rows.get((item_id, location_id))
                if row is None:
                    row = StagingEntry(
                        item_id=item_id,
                        location_id=location_id,
                        total_quantity=ZERO,
                    )
                    rows[(item_id, location_id)] = row
                row.total_quantity += quantity
                if order_id not in row.contributing_order_ids:
                    row.contributing_order_ids.append(order_id)

            totals[payment_method] += amount
            snapshots.append(OrderSnapshot(
                order_id=order_id,
                customer_name=getattr(order, "customer_name", None),
                final_amount=amount,
                payment_method=payment_method,
                verified_by=getattr(order, "verified_by", None),
            ))

        entries = [rows[key] for key in sorted(rows)]
        return StagingResult(
            entries=entries,
            totals=PaymentTotals(
                cash=totals[PaymentMethod.CASH],
                upi=totals[PaymentMethod.UPI],
                credit=totals[PaymentMethod.CREDIT],
                mixed=totals[PaymentMethod.MIXED],
            ),
            orders=snapshots,
            issues=issues,
        )

    def _check_order(self, order, order_id, seen, resolve):
        """
        Validate an order completely before any of it is counted.

        Returns (resolved lines, payment method, final amount) or
        raises AggregationInputError.
        """
        if not order_id:
            raise AggregationInputError(None, "order number is missing")
        if order_id in seen:
            raise AggregationInputError(order_id, "duplicate order number")

        try:
            payment_method = _enum_value(PaymentMethod, order.payment_method)
        except ValueError:
            raise AggregationInputError(
                order_id, f"unknown payment method {order.payment_method!r}"
            )
        if payment_method is None:
            raise AggregationInputError(order_id, "payment method is missing")

        resolved = []
        try:
            discount = _to_decimal(getattr(order, "discount", None) or ZERO, "discount")
            if discount < 0:
                raise AggregationInputError(order_id, "discount is negative")

            for line in order.lines:
                if not getattr(line, "item_id", None):
                    raise AggregationInputError(order_id, "line without item id")
                quantity = _to_decimal(line.quantity, "quantity")
                unit_price = _to_decimal(line.unit_price, "unit_price")
                if quantity <= 0:
                    raise AggregationInputError(
                        order_id, f"quantity for {line.item_id} is not positive"
                    )
                if unit_price < 0:
                    raise AggregationInputError(
                        order_id, f"unit price for {line.item_id} is negative"
                    )
                location_id = resolve(order, line)
                if not location_id:
                    raise AggregationInputError(
                        order_id, f"no location for {line.item_id}"
                    )
                resolved.append((line.item_id, location_id, quantity))

            amount = final_amount_of(order)
        except AggregationInputError as e:
            # _to_decimal does not know which order it was looking at
            raise AggregationInputError(order_id, e.reason)

        return resolved, payment_method, amount

    @staticmethod
    def _exclude(issues, order_id, reason):
        logger.warning(
            "Order excluded from staging: %s",
            reason,
            extra={"order_id": order_id},
        )
        issues.append(AggregationIssue(order_id=order_id, reason=reason))


def build_staging(
    orders: Iterable,
    business_date: date,
    location_resolver: LocationResolver | None = None,
) -> StagingResult:
    """Aggregate with the configured shop time zone and default location."""
    return OrderAggregator().build_staging(
        orders, business_date, location_resolver
    )
