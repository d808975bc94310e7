"""
Ledger API endpoints.

Read access to committed days, and the correction trail that is
the only way to amend them.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shop_ledger.models.base import get_db
from shop_ledger.schemas.ledger import (
    CorrectionCreate,
    CorrectionResponse,
    LedgerEntryResponse,
    LedgerSummaryResponse,
    ReconciledTotalsResponse,
)
from shop_ledger.services.correction_log import CorrectionLog
from shop_ledger.services.ledger_engine import LedgerEngine

router = APIRouter(prefix="/ledger", tags=["Ledger"])


def _get_entry_or_404(engine: LedgerEngine, business_date: date):
    entry = engine.get_entry(business_date)
    if entry is None:
        raise HTTPException(
            status_code=404,
            detail=f"No committed ledger for {business_date}",
        )
    return entry


@router.get("", response_model=list[LedgerSummaryResponse])
def list_ledgers(db: Session = Depends(get_db)):
    """All committed days, newest first."""
    return LedgerEngine(db).list_entries()


@router.get("/{business_date}", response_model=LedgerEntryResponse)
def get_ledger(
    business_date: date,
    db: Session = Depends(get_db),
):
    """A committed day with its orders, deductions and corrections."""
    return _get_entry_or_404(LedgerEngine(db), business_date)


@router.post(
    "/{business_date}/corrections",
    response_model=CorrectionResponse,
    status_code=201,
)
def add_correction(
    business_date: date,
    request: CorrectionCreate,
    db: Session = Depends(get_db),
):
    """
    Append a correction to a committed day.

    The committed totals are not changed; see /reconciled for the
    totals with corrections applied.
    """
    entry = _get_entry_or_404(LedgerEngine(db), business_date)
    service = CorrectionLog(db)
    try:
        correction = service.add_correction(
            entry,
            field=request.field,
            corrected_value=request.corrected_value,
            reason=request.reason,
            actor=request.corrected_by,
            order_id=request.order_id,
        )
        db.commit()
        return correction
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get(
    "/{business_date}/reconciled",
    response_model=ReconciledTotalsResponse,
)
def get_reconciled_totals(
    business_date: date,
    db: Session = Depends(get_db),
):
    """Totals of a committed day with its latest corrections applied."""
    entry = _get_entry_or_404(LedgerEngine(db), business_date)
    return CorrectionLog(db).reconciled_totals(entry)
