"""
Market Day API Endpoints

Trading day lookups backed by the holiday store.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from security_service.api.v1.errors import http_error
from security_service.schemas.market import TradingDaysMeta, TradingDaysResponse
from security_service.services.base import ServiceError
from security_service.services.calendar import TradingCalendar
from security_service.services.providers import get_trading_calendar

router = APIRouter()


@router.get("", response_model=TradingDaysResponse)
async def list_market_days(
    last_n_days: Optional[int] = Query(default=None, ge=1),
    reference_date: Optional[date] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    calendar: TradingCalendar = Depends(get_trading_calendar),
):
    """
    List trading days, most recent first.

    Either:
    - last_n_days (anchored at reference_date, default today), or
    - start_date and end_date (at most 366 days apart)
    """
    try:
        days = await calendar.get_trading_days(
            last_n_days=last_n_days,
            reference_date=reference_date,
            start_date=start_date,
            end_date=end_date,
        )
    except ServiceError as e:
        raise http_error(e)

    return TradingDaysResponse(data=days, meta=TradingDaysMeta(total=len(days)))
