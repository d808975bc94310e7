"""
ORM guards that keep committed ledger data frozen.

Once a DailyLedger is committed, its totals, order snapshots and
deductions never change. Corrections are appended instead, and
corrections themselves are never rewritten. These mapper events
enforce that for every code path going through the ORM, not just
the services.
"""

import logging

from sqlalchemy import event, inspect

from shop_ledger.exceptions import LedgerFrozenError
from shop_ledger.models.daily_ledger import (
    DailyLedger,
    LedgerOrderSnapshot,
    LedgerDeduction,
    LedgerCorrection,
)

logger = logging.getLogger(__name__)

# The only parts of a committed ledger that may still move
MUTABLE_AFTER_COMMIT = {"is_corrected", "corrections"}


def _was_committed(target: DailyLedger) -> bool:
    history = inspect(target).attrs.is_committed.history
    if history.deleted:
        return bool(history.deleted[0])
    if history.added:
        # Being committed right now (not a path the engine takes,
        # since it inserts the row already committed)
        return False
    return bool(target.is_committed)


@event.listens_for(DailyLedger, "before_update")
def _check_daily_ledger_update(mapper, connection, target):
    if not _was_committed(target):
        return

    for attr in inspect(target).attrs:
        if attr.key in MUTABLE_AFTER_COMMIT:
            continue
        if attr.history.has_changes():
            logger.error(
                "Blocked change to committed ledger",
                extra={
                    "business_date": target.business_date,
                    "entry_id": target.id,
                    "field": attr.key,
                },
            )
            raise LedgerFrozenError("DailyLedger", target.id, attr.key)


@event.listens_for(DailyLedger, "before_delete")
def _check_daily_ledger_delete(mapper, connection, target):
    if target.is_committed:
        raise LedgerFrozenError("DailyLedger", target.id)


def _block_write(entity_type: str):
    def _listener(mapper, connection, target):
        logger.error(
            "Blocked write to frozen %s",
            entity_type,
            extra={"entry_id": target.ledger_id},
        )
        raise LedgerFrozenError(entity_type, target.id)
    return _listener


for _model in (LedgerOrderSnapshot, LedgerDeduction, LedgerCorrection):
    event.listen(_model, "before_update", _block_write(_model.__name__))
    event.listen(_model, "before_delete", _block_write(_model.__name__))
