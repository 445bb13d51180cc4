"""
Trading Calendar

CONTRACT:
    Input:  reference date + count, or a date range
    Output: list of trading days

A trading day is a weekday that is not in the holiday store.
"""

from security_service.services.calendar.service import TradingCalendar

__all__ = [
    "TradingCalendar",
]
