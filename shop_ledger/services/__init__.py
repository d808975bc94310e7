"""Business logic services."""

from shop_ledger.services.order_aggregator import OrderAggregator, build_staging
from shop_ledger.services.order_service import OrderService
from shop_ledger.services.inventory_service import InventoryService
from shop_ledger.services.ledger_engine import LedgerEngine
from shop_ledger.services.correction_log import CorrectionLog

__all__ = [
    "OrderAggregator",
    "build_staging",
    "OrderService",
    "InventoryService",
    "LedgerEngine",
    "CorrectionLog",
]
