"""
Database module for the security service.

Provides SQLite database connection, models and store implementations.
"""

from security_service.db.database import AsyncSessionLocal, close_db, init_db
from security_service.db.models import (
    Base,
    MarketHolidayRow,
    MetricRow,
    SecurityMetricRow,
    SecurityRow,
    SecurityStatRow,
)

__all__ = [
    "AsyncSessionLocal",
    "init_db",
    "close_db",
    "Base",
    "SecurityRow",
    "SecurityStatRow",
    "MarketHolidayRow",
    "MetricRow",
    "SecurityMetricRow",
]
