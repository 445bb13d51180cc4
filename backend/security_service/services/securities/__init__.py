"""
Security Service

CONTRACT:
    Input:  security id(s), optional as-of date
    Output: SecurityWithMetrics (bar + normalized metrics)

Pulls the latest trading day from the calendar, the bar from the bar
store and metric values through the cache.
"""

from security_service.services.securities.service import SecurityService

__all__ = [
    "SecurityService",
]
