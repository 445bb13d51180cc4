"""
Security Service Implementation

Builds "security with market data" responses: the latest trading day's
bar plus that day's indicator values, each annotated with a normalized
score. List responses are assembled concurrently with a fixed cap.
"""

import logging
from datetime import date
from typing import Optional

from security_service.db.interface import BarStore, MetricDefinitionStore, SecurityStore
from security_service.schemas.market import Bar, Security
from security_service.schemas.metrics import MetricDefinition, NormalizedMetric, SecurityWithMetrics
from security_service.services.aggregator import ConcurrentAggregator
from security_service.services.base import NotFoundError
from security_service.services.calendar import TradingCalendar
from security_service.services.indicators import normalize
from security_service.services.security_metrics import SecurityMetricService

logger = logging.getLogger(__name__)


class SecurityService:
    """Securities with their latest bar and normalized metrics."""

    name = "SecurityService"

    def __init__(
        self,
        security_store: SecurityStore,
        bar_store: BarStore,
        metric_store: MetricDefinitionStore,
        calendar: TradingCalendar,
        metric_values: SecurityMetricService,
        aggregator: Optional[ConcurrentAggregator] = None,
    ):
        self._securities = security_store
        self._bars = bar_store
        self._metrics = metric_store
        self._calendar = calendar
        self._metric_values = metric_values
        self._aggregator = aggregator or ConcurrentAggregator()

    async def get_security_with_metrics(
        self,
        security_id: int,
        as_of: Optional[date] = None,
    ) -> SecurityWithMetrics:
        security = await self._securities.retrieve(security_id)
        definitions = await self._definitions_by_id()
        bars = await self._latest_bars([security_id], as_of)

        return await self._assemble(security, bars.get(security_id), definitions)

    async def get_securities_with_metrics(
        self,
        security_ids: list[int],
        as_of: Optional[date] = None,
    ) -> list[SecurityWithMetrics]:
        """Results follow the order of security_ids; any failure fails the batch."""
        if not security_ids:
            return []

        securities = {s.id: s for s in await self._securities.index(security_ids)}
        missing = [sid for sid in security_ids if sid not in securities]
        if missing:
            raise NotFoundError(self.name, f"Securities not found: {missing}", {"ids": missing})

        definitions = await self._definitions_by_id()
        bars = await self._latest_bars(security_ids, as_of)

        async def build(security_id: int) -> SecurityWithMetrics:
            return await self._assemble(securities[security_id], bars.get(security_id), definitions)

        return await self._aggregator.assemble_many(security_ids, build)

    async def _definitions_by_id(self) -> dict[int, MetricDefinition]:
        return {m.id: m for m in await self._metrics.index()}

    async def _latest_bars(self, security_ids: list[int], as_of: Optional[date]) -> dict[int, Bar]:
        day = await self._calendar.latest_trading_day(as_of)
        if day is None:
            logger.warning(f"No trading day found on or before {as_of}")
            return {}

        return {bar.security_id: bar for bar in await self._bars.on_date(security_ids, day)}

    async def _assemble(
        self,
        security: Security,
        bar: Optional[Bar],
        definitions: dict[int, MetricDefinition],
    ) -> SecurityWithMetrics:
        if bar is None:
            return SecurityWithMetrics(security=security)

        metrics = []
        for value in await self._metric_values.values_for(security.id, bar.date):
            definition = definitions.get(value.metric_id)
            if definition is None:
                logger.warning(f"Metric {value.metric_id} has no definition, skipping")
                continue

            metrics.append(
                NormalizedMetric(
                    **value.model_dump(),
                    metric=definition,
                    indicator_category=definition.indicator_category,
                    normalized_value=normalize(definition.family, value.value, bar),
                )
            )

        return SecurityWithMetrics(security=security, bar=bar, metrics=metrics)
