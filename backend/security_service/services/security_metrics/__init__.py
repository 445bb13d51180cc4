"""
Security Metric Service

CONTRACT:
    Input:  filters / SecurityMetricCreate / ComputeIndicatorRequest
    Output: ComputedMetricValue(s)

Reads go through the derived metric cache; writes invalidate it.
"""

from security_service.services.security_metrics.service import SecurityMetricService

__all__ = [
    "SecurityMetricService",
]
