"""
Security Metric Service

Reads computed metric values through the derived metric cache and
writes them to the store. Every write deletes the cache entry for the
value's (security, date), whether or not the value changed.
"""

import logging
from datetime import date
from typing import Optional

from security_service.db.interface import ComputedMetricValueStore
from security_service.schemas.metrics import (
    ComputeIndicatorRequest,
    ComputedMetricValue,
    SecurityMetricCreate,
)
from security_service.services.cache import DerivedMetricCache
from security_service.services.indicators import IndicatorServiceInterface

logger = logging.getLogger(__name__)


class SecurityMetricService:
    """Computed metric values: cached reads, invalidating writes."""

    name = "SecurityMetricService"

    def __init__(
        self,
        store: ComputedMetricValueStore,
        cache: DerivedMetricCache,
        indicator_service: IndicatorServiceInterface,
    ):
        self._store = store
        self._cache = cache
        self._indicators = indicator_service

    # ============ Reads ============

    async def list_values(
        self,
        security_id: Optional[int] = None,
        day: Optional[date] = None,
        metric_id: Optional[int] = None,
        page: int = 1,
        per_page: int = 0,
    ) -> tuple[list[ComputedMetricValue], int]:
        """
        Filtered values and the total count.

        per_page=0 returns everything; only such unbounded single-security,
        single-date queries go through the cache.
        """
        limit = per_page
        offset = limit * (page - 1) if limit else 0

        cacheable = self._cache.is_cacheable(security_id, day, metric_id=metric_id, limit=limit)
        version = None
        if cacheable:
            cached = await self._cache.get(security_id, day)
            if cached is not None:
                return cached, len(cached)
            # read before the store so a write landing mid-read blocks the put
            version = await self._cache.version(security_id, day)

        values = await self._store.index(
            security_id=security_id,
            metric_id=metric_id,
            day=day,
            limit=limit,
            offset=offset,
        )

        if cacheable:
            if version is not None:
                await self._cache.put(security_id, day, values, version=version)
            return values, len(values)

        total = await self._store.count(security_id=security_id, metric_id=metric_id, day=day)
        return values, total

    async def values_for(self, security_id: int, day: date) -> list[ComputedMetricValue]:
        """All metric values of one security on one date."""
        values, _ = await self.list_values(security_id=security_id, day=day)
        return values

    async def read_value(self, value_id: int) -> ComputedMetricValue:
        return await self._store.retrieve(value_id)

    # ============ Writes ============

    async def create_value(self, payload: SecurityMetricCreate) -> ComputedMetricValue:
        value = payload.value
        if payload.calculate_value:
            value = await self._indicators.calculate(payload.security_id, payload.metric_id, payload.date)

        created = await self._store.create(
            ComputedMetricValue(
                security_id=payload.security_id,
                metric_id=payload.metric_id,
                date=payload.date,
                value=value,
            )
        )
        await self._invalidate(created)
        return created

    async def update_value(self, value_id: int, value: float) -> ComputedMetricValue:
        updated = await self._store.update(value_id, value)
        await self._invalidate(updated)
        return updated

    async def compute_indicator(self, request: ComputeIndicatorRequest) -> ComputedMetricValue:
        """
        Compute an indicator at the cutoff date and, when requested,
        store it (insert or overwrite) and invalidate the cache.
        """
        computed = await self._indicators.execute(request)
        if not request.persist:
            return computed

        stored = await self._store.upsert(computed)
        await self._invalidate(stored)
        return stored

    async def _invalidate(self, value: ComputedMetricValue) -> None:
        if not await self._cache.invalidate(value.security_id, value.date):
            logger.warning(
                f"Cache may serve stale metrics for security {value.security_id} on {value.date}"
            )
