"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An unknown order status or
payment method is caught at the database level, not just in
Python validation.
"""

import enum


class OrderStatus(str, enum.Enum):
    """Order workflow states. Only COMPLETED orders are settled."""
    PENDING = "pending"
    FULFILLING = "fulfilling"
    COMPLETED = "completed"
    PARTIAL = "partial"
    DELAYED = "delayed"
    CHANGES_MADE = "changes_made"


class PaymentMethod(str, enum.Enum):
    """
    How the customer paid.

    MIXED orders are not split across the other methods; they
    are totalled in their own bucket for manual reconciliation.
    """
    CASH = "cash"
    UPI = "upi"
    CREDIT = "credit"
    MIXED = "mixed"


class DayStatus(str, enum.Enum):
    """Where a business day is in the end-of-day workflow."""
    NO_DATA = "no_data"
    STAGED = "staged"
    COMMITTED = "committed"
