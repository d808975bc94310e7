"""
Pydantic schemas for end-of-day staging and validation.

A staged day is a value, not a database row: it is rebuilt from
the orders on every review and only becomes a DailyLedger when it
is committed.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

from shop_ledger.models.enums import DayStatus, PaymentMethod


ZERO = Decimal("0")


class StagingEntry(BaseModel):
    """Total quantity of one item to take out of one location."""
    item_id: str
    location_id: str
    total_quantity: Decimal = Field(ge=0)
    contributing_order_ids: list[str] = Field(default_factory=list)


class PaymentTotals(BaseModel):
    """Sum of final amounts per payment method."""
    cash: Decimal = ZERO
    upi: Decimal = ZERO
    credit: Decimal = ZERO
    mixed: Decimal = ZERO

    @computed_field
    @property
    def grand_total(self) -> Decimal:
        return self.cash + self.upi + self.credit + self.mixed

    def bucket(self, method: PaymentMethod) -> Decimal:
        return getattr(self, method.value)


class OrderSnapshot(BaseModel):
    """The parts of an order the ledger keeps once the day is settled."""
    order_id: str
    customer_name: str | None = None
    final_amount: Decimal
    payment_method: PaymentMethod
    verified_by: str | None = None


class AggregationIssue(BaseModel):
    """An order left out of staging because it was malformed."""
    order_id: str | None
    reason: str


class StagingResult(BaseModel):
    entries: list[StagingEntry] = Field(default_factory=list)
    totals: PaymentTotals = Field(default_factory=PaymentTotals)
    orders: list[OrderSnapshot] = Field(default_factory=list)
    issues: list[AggregationIssue] = Field(default_factory=list)


class StagedLedger(StagingResult):
    """
    The uncommitted view of a business day.

    digest fingerprints the entries and totals, so two reviews of
    the same orders can be compared cheaply.
    """
    business_date: date
    status: DayStatus = DayStatus.STAGED
    digest: str

    @property
    def grand_total(self) -> Decimal:
        return self.totals.grand_total

    @property
    def is_committed(self) -> bool:
        return False


class InventoryShortfall(BaseModel):
    item_id: str
    location_id: str
    available: Decimal
    required: Decimal


class CommitValidation(BaseModel):
    """Outcome of checking a staged day against current stock."""
    business_date: date
    shortfalls: list[InventoryShortfall] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.shortfalls


class CommitRequest(BaseModel):
    committed_by: str | None = Field(default=None, max_length=50)
    # When given, the commit is refused unless the freshly staged
    # day still matches what the operator reviewed.
    expected_digest: str | None = Field(default=None, max_length=64)
