"""
Typed exceptions for the end-of-day ledger.

Every error carries a machine-readable ``code`` class attribute
and its context as attributes, so callers catch by type and
render itemized diagnostics without parsing messages.

Input problems (bad correction, insufficient stock, a day that
is already committed) subclass ValueError, matching how the
services reject bad requests. InventoryConsistencyError does not:
it means validation passed and the stock still went negative,
which is a concurrency bug rather than bad input.
"""

from datetime import date


class LedgerError(ValueError):
    """Base class for rejected ledger operations."""

    code: str = "LEDGER_ERROR"


class AggregationInputError(LedgerError):
    """
    A malformed order found while staging a day.

    Not raised across the staging pass: the aggregator records
    it as an issue and keeps going with the remaining orders.
    """

    code: str = "AGGREGATION_INPUT"

    def __init__(self, order_id: str | None, reason: str):
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"Order {order_id or '<unknown>'} excluded: {reason}")


class InsufficientStockError(LedgerError):
    """One or more item-location pairs would go below zero."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, business_date: date, shortfalls: list):
        self.business_date = business_date
        self.shortfalls = list(shortfalls)
        details = ", ".join(
            f"{s.item_id}@{s.location_id} "
            f"(available={s.available}, required={s.required})"
            for s in self.shortfalls
        )
        super().__init__(
            f"Insufficient stock to commit {business_date}: {details}"
        )


class AlreadyCommittedError(LedgerError):
    """The business day already has a committed ledger entry."""

    code: str = "ALREADY_COMMITTED"

    def __init__(self, business_date: date, entry_id: int | None = None):
        self.business_date = business_date
        self.entry_id = entry_id
        super().__init__(f"Ledger for {business_date} is already committed")


class NothingToCommitError(LedgerError):
    """The business day has no completed orders to settle."""

    code: str = "NOTHING_TO_COMMIT"

    def __init__(self, business_date: date):
        self.business_date = business_date
        super().__init__(f"No completed orders to commit for {business_date}")


class StaleStagingError(LedgerError):
    """The orders changed after the operator reviewed the staged day."""

    code: str = "STALE_STAGING"

    def __init__(self, business_date: date, expected: str, actual: str):
        self.business_date = business_date
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Staged ledger for {business_date} changed since review: "
            f"expected digest {expected}, got {actual}"
        )


class InvalidCorrectionError(LedgerError):
    """A correction was rejected before anything was written."""

    code: str = "INVALID_CORRECTION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class LedgerFrozenError(LedgerError):
    """Attempt to change or delete committed ledger data."""

    code: str = "LEDGER_FROZEN"

    def __init__(self, entity_type: str, entity_id, field: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.field = field
        target = f" field '{field}'" if field else ""
        super().__init__(
            f"Cannot modify{target} on committed {entity_type} {entity_id}"
        )


class InventoryConsistencyError(RuntimeError):
    """
    Stock would go negative while applying a validated commit.

    The whole commit is rolled back. Seeing this means two writers
    touched the same stock concurrently.
    """

    code: str = "INVENTORY_CONSISTENCY"

    def __init__(self, item_id: str, location_id: str, available, required):
        self.item_id = item_id
        self.location_id = location_id
        self.available = available
        self.required = required
        super().__init__(
            f"Stock for {item_id}@{location_id} changed during commit: "
            f"available={available}, required={required}"
        )
