"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod
from datetime import date

from security_service.services.base import BaseService
from security_service.schemas.metrics import ComputeIndicatorRequest, ComputedMetricValue


class IndicatorServiceInterface(BaseService[ComputeIndicatorRequest, ComputedMetricValue]):
    """
    Indicator Engine Service Contract.

    INPUT: ComputeIndicatorRequest
        - security_id, metric_id, cutoff_date

    OUTPUT: ComputedMetricValue
        - Unsaved value for (security_id, metric_id, cutoff_date)
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: ComputeIndicatorRequest) -> ComputedMetricValue:
        """Compute the requested indicator. Never persists."""
        pass

    @abstractmethod
    async def calculate(self, security_id: int, metric_id: int, cutoff_date: date) -> float:
        """
        Compute one indicator value from the bars ending at the cutoff.

        Raises:
            NotFoundError: unknown metric
            InsufficientDataError: fewer bars than the metric period
            UnsupportedMetricFamilyError: unknown family
        """
        pass
