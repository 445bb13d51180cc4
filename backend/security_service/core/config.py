"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "Security Service"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # SQLite (local persistence)
    sqlite_path: Optional[str] = None  # Defaults to ./data/security_service.db
    database_url: Optional[str] = None  # Overrides sqlite_path when set

    # Redis
    redis_url: str = "redis://localhost:6379"

    # CORS (Frontend URL)
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Market calendar
    market_timezone: str = "Asia/Kolkata"
    calendar_lookback_days: int = 365
    max_trading_day_range: int = 366

    # Derived metric cache. Queries for dates older than this are not cached.
    metric_cache_ttl_days: int = 1095

    # Max securities assembled concurrently in list responses
    aggregator_concurrency: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
