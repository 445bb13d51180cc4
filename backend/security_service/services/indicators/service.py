"""
Indicator Engine Service Implementation

Loads the metric definition and bar window from the stores and runs the
pure calculations. Persistence is left to SecurityMetricService.
"""

import logging
from datetime import date

from security_service.db.interface import BarStore, MetricDefinitionStore
from security_service.schemas.metrics import ComputeIndicatorRequest, ComputedMetricValue
from security_service.services.indicators.interface import IndicatorServiceInterface
from security_service.services.indicators.calculations import compute

logger = logging.getLogger(__name__)


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    All calculations are deterministic and reproducible.
    """

    def __init__(self, metric_store: MetricDefinitionStore, bar_store: BarStore):
        self._metrics = metric_store
        self._bars = bar_store

    async def execute(self, input_data: ComputeIndicatorRequest) -> ComputedMetricValue:
        value = await self.calculate(
            input_data.security_id,
            input_data.metric_id,
            input_data.cutoff_date,
        )
        return ComputedMetricValue(
            security_id=input_data.security_id,
            metric_id=input_data.metric_id,
            date=input_data.cutoff_date,
            value=value,
        )

    async def calculate(self, security_id: int, metric_id: int, cutoff_date: date) -> float:
        metric = await self._metrics.retrieve(metric_id)
        bars = await self._bars.window(security_id, cutoff_date, metric.period)

        value = compute(metric.family, metric.period, bars)
        logger.debug(
            f"{metric.name} for security {security_id} at {cutoff_date}: {value:.4f}"
        )
        return value
