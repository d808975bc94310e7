"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
Importing the package also installs the immutability guards.
"""

from shop_ledger.models.base import Base
from shop_ledger.models.enums import OrderStatus, PaymentMethod, DayStatus
from shop_ledger.models.order import Order, OrderLine
from shop_ledger.models.inventory import InventoryRecord
from shop_ledger.models.daily_ledger import (
    DailyLedger,
    LedgerOrderSnapshot,
    LedgerDeduction,
    LedgerCorrection,
)
from shop_ledger.models import immutability  # noqa: F401

__all__ = [
    "Base",
    "OrderStatus",
    "PaymentMethod",
    "DayStatus",
    "Order",
    "OrderLine",
    "InventoryRecord",
    "DailyLedger",
    "LedgerOrderSnapshot",
    "LedgerDeduction",
    "LedgerCorrection",
]
