"""
Cache module for the security service.

Provides Redis caching for computed metric sets.
"""

from security_service.services.cache.redis_client import (
    DerivedMetricCache,
    get_metric_cache,
    init_redis,
    close_redis,
    metric_cache_key,
    metric_version_key,
)

__all__ = [
    "DerivedMetricCache",
    "get_metric_cache",
    "init_redis",
    "close_redis",
    "metric_cache_key",
    "metric_version_key",
]
