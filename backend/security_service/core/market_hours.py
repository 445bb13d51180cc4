"""
Market Hours Utility

Handles the exchange timezone and weekday/holiday checks.
Holidays come from the holiday store, not from a hardcoded list.
"""

from datetime import datetime, date, timedelta
from typing import Container, Iterator, Optional
import pytz

from security_service.core.config import settings

MARKET_TZ = pytz.timezone(settings.market_timezone)

ONE_DAY = timedelta(days=1)


def get_market_now() -> datetime:
    """Get current time in the exchange timezone."""
    return datetime.now(MARKET_TZ)


def get_market_today() -> date:
    """Today's date in the exchange timezone."""
    return get_market_now().date()


def is_weekend(dt: date) -> bool:
    """Check if date is a weekend."""
    return dt.weekday() >= 5  # Saturday = 5, Sunday = 6


def is_trading_day(dt: date, holidays: Container[date] = frozenset()) -> bool:
    """Check if date is a trading day."""
    return not is_weekend(dt) and dt not in holidays


def walk_back(start: date, stop: Optional[date] = None) -> Iterator[date]:
    """Yield start, start - 1 day, ... down to stop (inclusive)."""
    day = start
    while stop is None or day >= stop:
        yield day
        day -= ONE_DAY
