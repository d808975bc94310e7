"""
End-of-day API endpoints.

The review screen calls GET /eod/{date} to show the staged day,
GET /eod/{date}/validation to show blocking stock problems, and
POST /eod/{date}/commit when the operator confirms. All rules
live in the LedgerEngine; this layer maps outcomes to HTTP.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shop_ledger.exceptions import (
    AlreadyCommittedError,
    InsufficientStockError,
    InventoryConsistencyError,
    NothingToCommitError,
    StaleStagingError,
)
from shop_ledger.models.base import get_db
from shop_ledger.models.daily_ledger import DailyLedger
from shop_ledger.models.enums import DayStatus
from shop_ledger.schemas.eod import CommitRequest, CommitValidation
from shop_ledger.schemas.ledger import DayViewResponse, LedgerEntryResponse
from shop_ledger.services.ledger_engine import LedgerEngine

router = APIRouter(prefix="/eod", tags=["End of Day"])


@router.get("/{business_date}", response_model=DayViewResponse)
def get_day(
    business_date: date,
    db: Session = Depends(get_db),
):
    """
    The committed ledger for a day, or its staged view.

    Staged views are recomputed on every call and never stored.
    """
    engine = LedgerEngine(db)
    view = engine.get_or_create_staged(business_date)

    if isinstance(view, DailyLedger):
        return DayViewResponse(
            business_date=business_date,
            status=DayStatus.COMMITTED,
            entry=LedgerEntryResponse.model_validate(view),
        )

    status = DayStatus.STAGED if (view.orders or view.entries) else DayStatus.NO_DATA
    return DayViewResponse(
        business_date=business_date,
        status=status,
        staged=view,
    )


@router.get("/{business_date}/validation", response_model=CommitValidation)
def validate_day(
    business_date: date,
    db: Session = Depends(get_db),
):
    """List every item-location pair that lacks stock for the commit."""
    engine = LedgerEngine(db)
    staged = engine.stage(business_date)
    return engine.validate_commit(staged)


@router.post(
    "/{business_date}/commit",
    response_model=LedgerEntryResponse,
    status_code=201,
)
def commit_day(
    business_date: date,
    request: CommitRequest,
    db: Session = Depends(get_db),
):
    """
    Commit a business day.

    400 if the day has no completed orders,
    409 if the day is already committed or changed since review,
    422 with itemized shortfalls if stock is insufficient.
    """
    engine = LedgerEngine(db)
    staged = engine.stage(business_date)

    try:
        engine.commit(
            business_date,
            staged,
            committed_by=request.committed_by,
            expected_digest=request.expected_digest,
        )
    except NothingToCommitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (AlreadyCommittedError, StaleStagingError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InsufficientStockError as e:
        return JSONResponse(
            status_code=422,
            content={
                "detail": str(e),
                "code": e.code,
                "shortfalls": [
                    s.model_dump(mode="json") for s in e.shortfalls
                ],
            },
        )
    except InventoryConsistencyError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return LedgerEntryResponse.model_validate(engine.get_entry(business_date))
