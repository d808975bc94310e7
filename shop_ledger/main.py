"""
Shop Ledger: FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI

from shop_ledger.config import get_settings
from shop_ledger.log_config import configure_logging
from shop_ledger.api.health import router as health_router
from shop_ledger.api.eod import router as eod_router
from shop_ledger.api.ledger import router as ledger_router

settings = get_settings()

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="End-of-day settlement and daily ledger for a shop",
)

# Register routers
app.include_router(health_router)
app.include_router(eod_router)
app.include_router(ledger_router)
