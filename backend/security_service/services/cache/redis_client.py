"""
Redis cache client for computed metric sets.

Caches the full list of computed metric values of one security on one
date. Reads fall through to the store on any cache failure; writes to a
metric value delete the matching entry and bump its version, so a
read that started before the write cannot put its snapshot back.
"""

import logging
import time
from datetime import date, timedelta
from typing import Optional, Dict, List, Tuple

import redis.asyncio as redis
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import WatchError

from security_service.core.config import settings
from security_service.core.market_hours import get_market_today
from security_service.schemas.metrics import ComputedMetricValue

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_pool: Optional[redis.Redis] = None


async def init_redis() -> Optional[redis.Redis]:
    """
    Initialize Redis connection pool.
    Called on application startup.
    """
    global _redis_pool

    if _redis_pool is not None:
        return _redis_pool

    try:
        _redis_pool = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        # Test connection
        await _redis_pool.ping()
        logger.info(f"Redis connected: {settings.redis_url}")
        return _redis_pool
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Using in-memory fallback.")
        _redis_pool = None
        return None


async def close_redis() -> None:
    """Close Redis connection pool."""
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None
        logger.info("Redis connection closed")


_METRIC_VALUES = TypeAdapter(List[ComputedMetricValue])


def metric_cache_key(security_id: int, day: date) -> str:
    return f"security_metrics:security_id:{security_id}:date:{day.isoformat()}"


def metric_version_key(security_id: int, day: date) -> str:
    return f"{metric_cache_key(security_id, day)}:version"


class DerivedMetricCache:
    """
    Read-through, write-invalidated cache of computed metric sets.

    Keys:
    - security_metrics:security_id:{id}:date:{YYYY-MM-DD} → JSON list of values
    - security_metrics:security_id:{id}:date:{YYYY-MM-DD}:version → invalidation count

    Uses Redis when it was reachable at startup, an in-process TTL map
    otherwise. Redis errors are never raised to callers.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        ttl: Optional[timedelta] = None,
        use_shared_pool: bool = True,
    ):
        self._redis = redis_client
        self._use_shared_pool = use_shared_pool
        self.ttl = ttl or timedelta(days=settings.metric_cache_ttl_days)
        # key -> (monotonic expiry, serialized values)
        self._memory_cache: Dict[str, Tuple[float, str]] = {}
        # key -> invalidation count
        self._memory_versions: Dict[str, int] = {}

    @property
    def redis(self) -> Optional[redis.Redis]:
        if self._redis is not None:
            return self._redis
        return _redis_pool if self._use_shared_pool else None

    # ============ Policy ============

    def is_cacheable(
        self,
        security_id: Optional[int],
        day: Optional[date],
        metric_id: Optional[int] = None,
        limit: int = 0,
        today: Optional[date] = None,
    ) -> bool:
        """
        Only unpaginated single-security, single-date queries across all
        metrics are cached, and only while the date is within the TTL.
        """
        if limit != 0:
            return False
        if not security_id or metric_id or day is None:
            return False

        today = today or get_market_today()
        return today - day <= self.ttl

    # ============ Memory fallback ============

    def _memory_get(self, key: str) -> Optional[str]:
        entry = self._memory_cache.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            self._memory_cache.pop(key, None)
            return None
        return value

    def _memory_set(self, key: str, value: str, ex: int):
        now = time.monotonic()
        expired = [k for k, (expires_at, _) in self._memory_cache.items() if expires_at <= now]
        for k in expired:
            del self._memory_cache[k]
        self._memory_cache[key] = (now + ex, value)

    # ============ Operations ============

    async def get(self, security_id: int, day: date) -> Optional[List[ComputedMetricValue]]:
        """Cached values, or None on miss or backend failure."""
        key = metric_cache_key(security_id, day)

        if self.redis is not None:
            try:
                value = await self.redis.get(key)
            except Exception as e:
                logger.debug(f"Redis get failed, treating as miss: {key}: {e}")
                return None
        else:
            value = self._memory_get(key)

        if not value:
            return None

        try:
            return _METRIC_VALUES.validate_json(value)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def version(self, security_id: int, day: date) -> Optional[str]:
        """
        Current invalidation version of an entry, to pass to put().

        None when the backend cannot be read; callers should not put then.
        """
        version_key = metric_version_key(security_id, day)

        if self.redis is not None:
            try:
                return await self.redis.get(version_key) or "0"
            except Exception as e:
                logger.debug(f"Redis version read failed: {version_key}: {e}")
                return None

        return str(self._memory_versions.get(version_key, 0))

    async def put(
        self,
        security_id: int,
        day: date,
        values: List[ComputedMetricValue],
        ttl: Optional[timedelta] = None,
        version: Optional[str] = None,
    ) -> bool:
        """
        Store a metric set. Failures are logged, not raised.

        With a version, the set is only stored if no invalidation has
        happened since that version was read.
        """
        key = metric_cache_key(security_id, day)
        version_key = metric_version_key(security_id, day)
        value = _METRIC_VALUES.dump_json(values).decode()
        ex = int((ttl or self.ttl).total_seconds())

        if self.redis is not None:
            try:
                if version is None:
                    await self.redis.set(key, value, ex=ex)
                    return True
                return await self._redis_put_if_current(key, version_key, value, ex, version)
            except WatchError:
                logger.debug(f"Cache entry invalidated during read, not storing: {key}")
                return False
            except Exception as e:
                logger.warning(f"failed to set cache, key: {key}, err: {e}")
                return False

        if version is not None and str(self._memory_versions.get(version_key, 0)) != version:
            logger.debug(f"Cache entry invalidated during read, not storing: {key}")
            return False

        self._memory_set(key, value, ex)
        return True

    async def _redis_put_if_current(
        self,
        key: str,
        version_key: str,
        value: str,
        ex: int,
        version: str,
    ) -> bool:
        async with self.redis.pipeline(transaction=True) as pipe:
            await pipe.watch(version_key)
            current = await pipe.get(version_key) or "0"
            if current != version:
                logger.debug(f"Cache entry invalidated during read, not storing: {key}")
                return False
            pipe.multi()
            pipe.set(key, value, ex=ex)
            await pipe.execute()
        return True

    async def invalidate(self, security_id: int, day: date) -> bool:
        """Delete one entry and bump its version. Failures are logged, not raised."""
        key = metric_cache_key(security_id, day)
        version_key = metric_version_key(security_id, day)

        if self.redis is not None:
            try:
                async with self.redis.pipeline(transaction=True) as pipe:
                    pipe.incr(version_key)
                    pipe.expire(version_key, int(self.ttl.total_seconds()))
                    pipe.delete(key)
                    await pipe.execute()
                return True
            except Exception as e:
                logger.warning(f"failed to clear cache, key: {key}, err: {e}")
                return False

        self._memory_cache.pop(key, None)
        self._memory_versions[version_key] = self._memory_versions.get(version_key, 0) + 1
        return True


# Singleton instance
_metric_cache: Optional[DerivedMetricCache] = None


def get_metric_cache() -> DerivedMetricCache:
    """Get the derived metric cache singleton."""
    global _metric_cache
    if _metric_cache is None:
        _metric_cache = DerivedMetricCache()
    return _metric_cache
