"""
Trading Calendar Service

Answers which calendar dates are trading days, using the holiday store.
Holidays are loaded once per call for the whole scan window.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from security_service.core.config import settings
from security_service.core.market_hours import get_market_today, is_trading_day, walk_back
from security_service.db.interface import HolidayStore
from security_service.services.base import InvalidRangeError

logger = logging.getLogger(__name__)

SERVICE_NAME = "TradingCalendar"


class TradingCalendar:
    """
    Trading day lookups.

    A trading day is any weekday that is not an exchange holiday.
    Results are most recent first unless asked otherwise.
    """

    def __init__(
        self,
        holiday_store: HolidayStore,
        lookback_days: int = settings.calendar_lookback_days,
        max_range_days: int = settings.max_trading_day_range,
    ):
        self._holidays = holiday_store
        self._lookback = timedelta(days=lookback_days)
        self._max_range_days = max_range_days

    @property
    def name(self) -> str:
        return SERVICE_NAME

    async def trading_days_ending_at(self, reference_date: date, n: int) -> list[date]:
        """
        Up to n trading days on or before reference_date, newest first.

        The scan stops at the lookback backstop, so callers must check
        the length rather than assume exactly n.
        """
        if n < 1:
            raise InvalidRangeError(SERVICE_NAME, "number of days must be positive", {"n": n})
        if n > self._max_range_days:
            raise InvalidRangeError(
                SERVICE_NAME,
                "date range is too long, please pass interval within a year",
                {"n": n, "max": self._max_range_days},
            )

        start = reference_date - self._lookback
        return await self._scan(start, reference_date, n)

    async def trading_days_between(
        self,
        start: date,
        end: date,
        descending: bool = True,
    ) -> list[date]:
        """All trading days in [start, end]."""
        if end < start:
            raise InvalidRangeError(
                SERVICE_NAME,
                "end date is before start date",
                {"start": start.isoformat(), "end": end.isoformat()},
            )

        span = (end - start).days + 1
        if span > self._max_range_days:
            raise InvalidRangeError(
                SERVICE_NAME,
                "date range is too long, please pass interval within a year",
                {"days": span, "max": self._max_range_days},
            )

        days = await self._scan(start, end, span)
        if not descending:
            days.reverse()
        return days

    async def latest_trading_day(self, as_of: Optional[date] = None) -> Optional[date]:
        """Most recent trading day on or before as_of (default: market today)."""
        days = await self.trading_days_ending_at(as_of or get_market_today(), 1)
        return days[0] if days else None

    async def get_trading_days(
        self,
        last_n_days: Optional[int] = None,
        reference_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[date]:
        """
        Query entry point used by the API.

        Either last_n_days (optionally anchored at reference_date) or a
        start_date/end_date pair must be given.
        """
        if last_n_days is not None:
            return await self.trading_days_ending_at(reference_date or get_market_today(), last_n_days)

        if start_date is not None and end_date is not None:
            return await self.trading_days_between(start_date, end_date)

        raise InvalidRangeError(
            SERVICE_NAME,
            "missing parameter: pass last_n_days or both start_date and end_date",
        )

    async def _scan(self, start: date, end: date, n: int) -> list[date]:
        # Collaborator errors propagate; an empty holiday set is never assumed.
        holidays = set(await self._holidays.between(start, end))

        days: list[date] = []
        for day in walk_back(end, start):
            if len(days) >= n:
                break
            if is_trading_day(day, holidays):
                days.append(day)

        logger.debug(f"Found {len(days)} trading days between {start} and {end}")
        return days
