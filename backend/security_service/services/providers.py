"""
Service singletons wired to the SQL stores and the shared cache.

Routes resolve these through FastAPI Depends so tests can override them.
"""

from typing import Optional

from security_service.db.database import AsyncSessionLocal
from security_service.db.stores import (
    SQLBarStore,
    SQLComputedMetricValueStore,
    SQLHolidayStore,
    SQLMetricDefinitionStore,
    SQLSecurityStore,
)
from security_service.services.cache import get_metric_cache
from security_service.services.calendar import TradingCalendar
from security_service.services.indicators import IndicatorService
from security_service.services.securities import SecurityService
from security_service.services.security_metrics import SecurityMetricService

_calendar: Optional[TradingCalendar] = None
_indicator_service: Optional[IndicatorService] = None
_security_metric_service: Optional[SecurityMetricService] = None
_security_service: Optional[SecurityService] = None


def get_trading_calendar() -> TradingCalendar:
    global _calendar
    if _calendar is None:
        _calendar = TradingCalendar(SQLHolidayStore(AsyncSessionLocal))
    return _calendar


def get_indicator_service() -> IndicatorService:
    global _indicator_service
    if _indicator_service is None:
        _indicator_service = IndicatorService(
            SQLMetricDefinitionStore(AsyncSessionLocal),
            SQLBarStore(AsyncSessionLocal),
        )
    return _indicator_service


def get_security_metric_service() -> SecurityMetricService:
    global _security_metric_service
    if _security_metric_service is None:
        _security_metric_service = SecurityMetricService(
            SQLComputedMetricValueStore(AsyncSessionLocal),
            get_metric_cache(),
            get_indicator_service(),
        )
    return _security_metric_service


def get_security_service() -> SecurityService:
    global _security_service
    if _security_service is None:
        _security_service = SecurityService(
            SQLSecurityStore(AsyncSessionLocal),
            SQLBarStore(AsyncSessionLocal),
            SQLMetricDefinitionStore(AsyncSessionLocal),
            get_trading_calendar(),
            get_security_metric_service(),
        )
    return _security_service
