"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Shop Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./shop_ledger.db"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Business day
    # The shop's local calendar decides which orders belong to a day,
    # not the UTC instant they were recorded at.
    SHOP_TIMEZONE: str = os.getenv("SHOP_TIMEZONE", "Asia/Kolkata")
    DEFAULT_LOCATION_ID: str = os.getenv("DEFAULT_LOCATION_ID", "main")

    # Corrections
    MIN_CORRECTION_REASON_LENGTH: int = int(
        os.getenv("MIN_CORRECTION_REASON_LENGTH", "5")
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json").lower()

    @property
    def shop_tz(self) -> ZoneInfo:
        return ZoneInfo(self.SHOP_TIMEZONE)


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
