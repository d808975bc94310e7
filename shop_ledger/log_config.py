"""
Logging setup.

Services log through module loggers (logging.getLogger(__name__))
and pass structured context via ``extra``. This module installs
the handler once, at application start.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from shop_ledger.config import get_settings


# Context keys copied from ``extra`` into the JSON payload
STRUCTURED_FIELDS = (
    "business_date",
    "item_id",
    "location_id",
    "order_id",
    "entry_id",
    "field",
    "actor",
    "order_count",
    "entry_count",
    "issue_count",
    "shortfall_count",
    "grand_total",
    "available",
    "required",
    "request_path",
)


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value) if not isinstance(
                    value, (int, float, str, bool)
                ) else value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    Install a single stream handler on the package logger.

    Calling this more than once replaces the handler instead of
    stacking duplicates.
    """
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()
    fmt = (fmt or settings.LOG_FORMAT).lower()

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s"
        ))

    logger = logging.getLogger("shop_ledger")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
