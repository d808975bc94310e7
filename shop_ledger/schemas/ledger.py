"""
Pydantic schemas for committed ledger entries and corrections.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
are often different.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from shop_ledger.models.enums import DayStatus, PaymentMethod
from shop_ledger.schemas.eod import PaymentTotals, StagedLedger


# --- Request Schemas ---

class CorrectionCreate(BaseModel):
    """
    Request to amend a committed ledger entry.

    order_id targets one settled order's snapshot instead of the
    entry's own totals.
    """
    field: str = Field(min_length=1, max_length=50)
    corrected_value: str = Field(min_length=1, max_length=255)
    reason: str = Field(max_length=1000)
    corrected_by: str = Field(min_length=1, max_length=50)
    order_id: str | None = Field(default=None, max_length=50)


# --- Response Schemas ---

class LedgerOrderResponse(BaseModel):
    order_id: str
    customer_name: str | None
    final_amount: Decimal
    payment_method: PaymentMethod
    verified_by: str | None

    model_config = {"from_attributes": True}


class LedgerDeductionResponse(BaseModel):
    item_id: str
    location_id: str
    quantity: Decimal
    contributing_order_ids: list[str]

    model_config = {"from_attributes": True}


class CorrectionResponse(BaseModel):
    id: int
    field: str
    order_id: str | None
    original_value: str | None
    corrected_value: str
    delta: Decimal | None
    reason: str
    corrected_by: str
    corrected_at: datetime

    model_config = {"from_attributes": True}


class LedgerEntryResponse(BaseModel):
    """A committed business day."""
    id: int
    business_date: date
    grand_total: Decimal
    total_cash: Decimal
    total_upi: Decimal
    total_credit: Decimal
    total_mixed: Decimal
    staging_digest: str
    is_committed: bool
    is_corrected: bool
    committed_by: str | None
    committed_at: datetime | None
    orders: list[LedgerOrderResponse]
    deductions: list[LedgerDeductionResponse]
    corrections: list[CorrectionResponse]

    model_config = {"from_attributes": True}


class LedgerSummaryResponse(BaseModel):
    """Ledger list row, without the per-order detail."""
    id: int
    business_date: date
    grand_total: Decimal
    total_cash: Decimal
    total_upi: Decimal
    total_credit: Decimal
    total_mixed: Decimal
    is_corrected: bool

    model_config = {"from_attributes": True}


class DayViewResponse(BaseModel):
    """What the end-of-day screen shows for one date."""
    business_date: date
    status: DayStatus
    staged: StagedLedger | None = None
    entry: LedgerEntryResponse | None = None


class ReconciledTotalsResponse(BaseModel):
    """
    Totals of a committed day with its corrections applied.

    This is a computed view. The committed totals themselves are
    never rewritten.
    """
    business_date: date
    recorded: PaymentTotals
    recorded_grand_total: Decimal
    reconciled: PaymentTotals
    reconciled_grand_total: Decimal
    corrections_applied: int
