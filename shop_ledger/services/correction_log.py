"""
Correction log: amendments to committed ledger entries.

A committed day is never edited. Instead, each correction records
which field was wrong, what it said, what it should say, who said
so and why. The committed totals stay as they were; when the
correction touches money, the delta is recorded and the totals
can be reconciled later through reconciled_totals().
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.orm import Session

from shop_ledger.config import get_settings
from shop_ledger.exceptions import InvalidCorrectionError
from shop_ledger.models.daily_ledger import DailyLedger, LedgerCorrection
from shop_ledger.models.enums import PaymentMethod
from shop_ledger.schemas.eod import PaymentTotals

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Correctable fields of the entry itself (all monetary)
ENTRY_FIELDS = {
    "grand_total",
    "total_cash",
    "total_upi",
    "total_credit",
    "total_mixed",
}

# Correctable fields of one settled order, and whether they are money
ORDER_FIELDS = {
    "final_amount": True,
    "payment_method": False,
    "customer_name": False,
    "verified_by": False,
}

BUCKET_FIELDS = {
    PaymentMethod.CASH: "total_cash",
    PaymentMethod.UPI: "total_upi",
    PaymentMethod.CREDIT: "total_credit",
    PaymentMethod.MIXED: "total_mixed",
}


def _as_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, PaymentMethod):
        return value.value
    return str(value)


def _as_money(value: str, field: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidCorrectionError(f"'{value}' is not an amount for {field}")
    if not amount.is_finite() or amount < 0:
        raise InvalidCorrectionError(f"{field} must be a non-negative amount")
    return amount


class CorrectionLog:
    """Append-only corrections to committed ledger entries."""

    def __init__(self, db: Session):
        self.db = db
        self.min_reason_length = get_settings().MIN_CORRECTION_REASON_LENGTH

    def add_correction(
        self,
        entry,
        field: str,
        corrected_value,
        reason: str,
        actor: str,
        order_id: str | None = None,
    ) -> LedgerCorrection:
        """
        Append a correction to a committed ledger entry.

        original_value is read from the field as it stands now.
        Sets entry.is_corrected. Does not touch any total.

        Raises InvalidCorrectionError, before anything is written,
        when the entry is not committed, the reason is too short,
        the field cannot be corrected, the order is not part of the
        entry, or the value would not change.
        """
        if not isinstance(entry, DailyLedger) or not entry.is_committed:
            raise InvalidCorrectionError(
                "Only committed ledger entries can be corrected; "
                "fix the orders and restage instead"
            )

        reason = (reason or "").strip()
        if len(reason) < self.min_reason_length:
            raise InvalidCorrectionError(
                f"Reason must be at least {self.min_reason_length} characters"
            )
        if not actor:
            raise InvalidCorrectionError("Corrections must name who made them")

        target, is_money = self._resolve_target(entry, field, order_id)
        original = getattr(target, field)

        delta = None
        if is_money:
            corrected = _as_money(corrected_value, field)
            if corrected == Decimal(original):
                raise InvalidCorrectionError(
                    f"{field} is already {_as_text(original)}"
                )
            delta = corrected - Decimal(original)
            corrected_text = str(corrected)
        elif field == "payment_method":
            try:
                corrected_text = PaymentMethod(str(corrected_value).strip()).value
            except ValueError:
                raise InvalidCorrectionError(
                    f"'{corrected_value}' is not a payment method"
                )
            if corrected_text == _as_text(original):
                raise InvalidCorrectionError(f"{field} is already {corrected_text}")
        else:
            corrected_text = str(corrected_value).strip()
            if not corrected_text:
                raise InvalidCorrectionError("Corrected value is required")
            if corrected_text == _as_text(original):
                raise InvalidCorrectionError(f"{field} is already {corrected_text}")

        correction = LedgerCorrection(
            field=field,
            order_id=order_id,
            original_value=_as_text(original),
            corrected_value=corrected_text,
            delta=delta,
            reason=reason,
            corrected_by=actor,
            corrected_at=datetime.utcnow(),
        )
        entry.corrections.append(correction)
        entry.is_corrected = True
        self.db.flush()

        logger.info(
            "Ledger correction recorded",
            extra={
                "business_date": entry.business_date,
                "entry_id": entry.id,
                "field": field,
                "order_id": order_id,
                "actor": actor,
            },
        )
        return correction

    def list_corrections(
        self,
        entry: DailyLedger,
        field: str | None = None,
        order_id: str | None = None,
    ) -> list[LedgerCorrection]:
        """Corrections for an entry, oldest first, optionally filtered."""
        query = (
            select(LedgerCorrection)
            .where(LedgerCorrection.ledger_id == entry.id)
            .order_by(LedgerCorrection.id)
        )
        if field is not None:
            query = query.where(LedgerCorrection.field == field)
        if order_id is not None:
            query = query.where(LedgerCorrection.order_id == order_id)
        return list(self.db.execute(query).scalars().all())

    def reconciled_totals(self, entry: DailyLedger) -> dict:
        """
        Totals with the latest correction of each field applied.

        Order-level corrections (amount or payment method) move money
        between buckets first; entry-level corrections then override
        a bucket outright. grand_total is the sum of the buckets
        unless it was corrected itself. Nothing is written.
        """
        latest: dict[tuple[str | None, str], LedgerCorrection] = {}
        for correction in entry.corrections:
            latest[(correction.order_id, correction.field)] = correction

        buckets = {method: ZERO for method in PaymentMethod}
        for snapshot in entry.orders:
            amount = snapshot.final_amount
            method = snapshot.payment_method
            amount_fix = latest.get((snapshot.order_id, "final_amount"))
            method_fix = latest.get((snapshot.order_id, "payment_method"))
            if amount_fix is not None:
                amount = Decimal(amount_fix.corrected_value)
            if method_fix is not None:
                method = PaymentMethod(method_fix.corrected_value)
            buckets[method] += amount

        for method, field in BUCKET_FIELDS.items():
            fix = latest.get((None, field))
            if fix is not None:
                buckets[method] = Decimal(fix.corrected_value)

        reconciled = PaymentTotals(
            cash=buckets[PaymentMethod.CASH],
            upi=buckets[PaymentMethod.UPI],
            credit=buckets[PaymentMethod.CREDIT],
            mixed=buckets[PaymentMethod.MIXED],
        )
        grand_fix = latest.get((None, "grand_total"))
        reconciled_grand_total = (
            Decimal(grand_fix.corrected_value)
            if grand_fix is not None else reconciled.grand_total
        )

        return {
            "business_date": entry.business_date,
            "recorded": PaymentTotals(
                cash=entry.total_cash,
                upi=entry.total_upi,
                credit=entry.total_credit,
                mixed=entry.total_mixed,
            ),
            "recorded_grand_total": entry.grand_total,
            "reconciled": reconciled,
            "reconciled_grand_total": reconciled_grand_total,
            "corrections_applied": len(latest),
        }

    @staticmethod
    def _resolve_target(entry: DailyLedger, field: str, order_id: str | None):
        """The object holding the field, and whether the field is money."""
        if order_id is None:
            if field not in ENTRY_FIELDS:
                raise InvalidCorrectionError(
                    f"'{field}' is not a correctable ledger field"
                )
            return entry, True

        if field not in ORDER_FIELDS:
            raise InvalidCorrectionError(
                f"'{field}' is not a correctable order field"
            )
        for snapshot in entry.orders:
            if snapshot.order_id == order_id:
                return snapshot, ORDER_FIELDS[field]
        raise InvalidCorrectionError(
            f"Order {order_id} is not part of the ledger for {entry.business_date}"
        )
