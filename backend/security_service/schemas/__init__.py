"""
Security Service Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from security_service.schemas.market import (
    Bar,
    Security,
    TradingDaysMeta,
    TradingDaysResponse,
)
from security_service.schemas.metrics import (
    MetricFamily,
    IndicatorCategory,
    MetricDefinition,
    MetricFamilyInfo,
    ComputedMetricValue,
    NormalizedMetric,
    SecurityWithMetrics,
    ComputeIndicatorRequest,
    SecurityMetricCreate,
    SecurityMetricUpdate,
    SecurityMetricPage,
    category_for,
)

__all__ = [
    # Market
    "Bar",
    "Security",
    "TradingDaysMeta",
    "TradingDaysResponse",
    # Metrics
    "MetricFamily",
    "IndicatorCategory",
    "MetricDefinition",
    "MetricFamilyInfo",
    "ComputedMetricValue",
    "NormalizedMetric",
    "SecurityWithMetrics",
    "ComputeIndicatorRequest",
    "SecurityMetricCreate",
    "SecurityMetricUpdate",
    "SecurityMetricPage",
    "category_for",
]
