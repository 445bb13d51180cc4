"""
Store Interfaces

Contracts for the persistence collaborators the metrics pipeline reads
from and writes to. SQL implementations live in db.stores; tests supply
in-memory ones.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from security_service.schemas.market import Bar, Security
from security_service.schemas.metrics import ComputedMetricValue, MetricDefinition


class BarStore(ABC):
    """Daily OHLCV bars."""

    @abstractmethod
    async def window(self, security_id: int, cutoff_date: date, limit: int) -> list[Bar]:
        """Most recent `limit` bars on or before `cutoff_date`, newest first."""
        pass

    @abstractmethod
    async def on_date(self, security_ids: list[int], day: date) -> list[Bar]:
        """Bars of the given securities on a single date."""
        pass


class HolidayStore(ABC):
    """Exchange holidays."""

    @abstractmethod
    async def between(self, start: date, end: date) -> list[date]:
        """Holiday dates within [start, end]."""
        pass


class MetricDefinitionStore(ABC):
    """Metric definitions (reference data)."""

    @abstractmethod
    async def retrieve(self, metric_id: int) -> MetricDefinition:
        """Raises NotFoundError for unknown ids."""
        pass

    @abstractmethod
    async def index(self) -> list[MetricDefinition]:
        pass


class SecurityStore(ABC):
    """Securities (read only)."""

    @abstractmethod
    async def retrieve(self, security_id: int) -> Security:
        """Raises NotFoundError for unknown ids."""
        pass

    @abstractmethod
    async def index(self, security_ids: list[int]) -> list[Security]:
        pass


class ComputedMetricValueStore(ABC):
    """Computed metric values keyed by (security_id, metric_id, date)."""

    @abstractmethod
    async def index(
        self,
        security_id: Optional[int] = None,
        metric_id: Optional[int] = None,
        day: Optional[date] = None,
        limit: int = 0,
        offset: int = 0,
    ) -> list[ComputedMetricValue]:
        """Filtered values. limit=0 means unbounded."""
        pass

    @abstractmethod
    async def count(
        self,
        security_id: Optional[int] = None,
        metric_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> int:
        pass

    @abstractmethod
    async def retrieve(self, value_id: int) -> ComputedMetricValue:
        """Raises NotFoundError for unknown ids."""
        pass

    @abstractmethod
    async def create(self, value: ComputedMetricValue) -> ComputedMetricValue:
        pass

    @abstractmethod
    async def update(self, value_id: int, value: float) -> ComputedMetricValue:
        pass

    @abstractmethod
    async def upsert(self, value: ComputedMetricValue) -> ComputedMetricValue:
        """Insert, or overwrite the value stored for the same (security, metric, date)."""
        pass
